"""Subscription ledger package."""

from subsentry.ledger.ledger import (
    LedgerError,
    SubscriptionLedger,
    SubscriptionNotFoundError,
    SubscriptionValidationError,
)

__all__ = [
    "LedgerError",
    "SubscriptionLedger",
    "SubscriptionNotFoundError",
    "SubscriptionValidationError",
]
