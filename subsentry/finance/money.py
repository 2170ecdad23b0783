"""
Currency conversion into the canonical currency.

DESIGN DECISION: Conversion uses a static rate table supplied by the
caller (normally from settings). If a rate is missing we refuse to
guess - the save is rejected with MissingRateError.

All amounts are Decimal and rounded half-up to paise/cents.
"""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from subsentry.models.subscription import Currency


TWO_PLACES = Decimal("0.01")

CURRENCY_SYMBOLS = {
    Currency.INR: "₹",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
}

RateTable = Mapping[Union[Currency, str], Decimal]


class MoneyError(Exception):
    """Base exception for currency conversion."""
    pass


class UnknownCurrencyError(MoneyError):
    """Currency code is not one we support."""

    def __init__(self, currency: object):
        self.currency = currency
        super().__init__(f"Unknown currency: {currency!r}")


class MissingRateError(MoneyError):
    """No exchange rate configured for a non-canonical currency."""

    def __init__(self, currency: Currency, canonical: Currency):
        self.currency = currency
        self.canonical = canonical
        super().__init__(
            f"No exchange rate from {currency.value} to {canonical.value}"
        )


def as_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Decimal from user input; floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return as_decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def parse_currency(currency: Union[Currency, str]) -> Currency:
    """Coerce a currency code to the enum, raising UnknownCurrencyError."""
    if isinstance(currency, Currency):
        return currency
    try:
        return Currency(str(currency).strip().upper())
    except ValueError:
        raise UnknownCurrencyError(currency)


def _lookup_rate(rate_table: RateTable, currency: Currency) -> Optional[Decimal]:
    # Tables built from JSON/env may be keyed by plain strings
    for key, rate in rate_table.items():
        code = getattr(key, "value", key)
        if str(code).strip().upper() == currency.value:
            return as_decimal(rate)
    return None


def to_canonical(
    cost: Decimal,
    currency: Union[Currency, str],
    rate_table: RateTable,
    canonical: Currency = Currency.INR,
) -> Decimal:
    """
    Convert cost into the canonical currency.

    Args:
        cost: Amount in `currency`
        currency: Currency the amount is expressed in
        rate_table: Canonical units per one unit of each foreign currency
        canonical: The currency totals are normalized to

    Returns:
        The converted amount, rounded half-up to 2 places

    Raises:
        UnknownCurrencyError: currency is not a supported code
        MissingRateError: no rate for a non-canonical currency
    """
    currency = parse_currency(currency)
    cost = as_decimal(cost)

    if currency == canonical:
        return round_money(cost)

    rate = _lookup_rate(rate_table, currency)
    if rate is None:
        raise MissingRateError(currency, canonical)

    return round_money(cost * rate)


def format_amount(amount: Decimal, currency: Union[Currency, str] = Currency.INR) -> str:
    """Human-readable amount, e.g. ₹1,499.00"""
    currency = parse_currency(currency)
    return f"{CURRENCY_SYMBOLS[currency]}{round_money(amount):,.2f}"
