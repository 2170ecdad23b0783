"""Money and billing-cycle arithmetic."""

from subsentry.finance.billing import (
    CYCLE_TO_MONTHS,
    annual_equivalent,
    monthly_equivalent,
)
from subsentry.finance.money import (
    MissingRateError,
    MoneyError,
    RateTable,
    UnknownCurrencyError,
    as_decimal,
    format_amount,
    parse_currency,
    round_money,
    to_canonical,
)

__all__ = [
    "CYCLE_TO_MONTHS",
    "annual_equivalent",
    "monthly_equivalent",
    "MissingRateError",
    "MoneyError",
    "RateTable",
    "UnknownCurrencyError",
    "as_decimal",
    "format_amount",
    "parse_currency",
    "round_money",
    "to_canonical",
]
