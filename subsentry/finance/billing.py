"""
Billing cycle normalization.

These two functions are the only place cycle arithmetic happens. Every
total, breakdown and summary goes through them so the "monthly cost"
shown anywhere in the app is always the same number.

Results are NOT rounded; round once at the aggregate.
"""

from decimal import Decimal

from subsentry.finance.money import as_decimal
from subsentry.models.subscription import BillingCycle


CYCLE_TO_MONTHS = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.YEARLY: 12,
}


def monthly_equivalent(cost: Decimal, cycle: BillingCycle) -> Decimal:
    """Cost per month. One-time purchases contribute 0."""
    months = CYCLE_TO_MONTHS.get(BillingCycle(cycle))
    if months is None:
        return Decimal("0")
    return as_decimal(cost) / months


def annual_equivalent(cost: Decimal, cycle: BillingCycle) -> Decimal:
    """Cost per year. One-time purchases contribute 0."""
    months = CYCLE_TO_MONTHS.get(BillingCycle(cycle))
    if months is None:
        return Decimal("0")
    return as_decimal(cost) * 12 / months
