"""
Shared fixtures for SubSentry tests.

Everything runs against the in-memory store; no network access.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from subsentry.audit import AuditLogger
from subsentry.config import DEFAULT_EXCHANGE_RATES, AppSettings
from subsentry.ledger import SubscriptionLedger
from subsentry.models.subscription import (
    BillingCycle,
    Category,
    Subscription,
    SubscriptionStatus,
)
from subsentry.services.storage import InMemoryKeyValueStore, StorageError


USER_ID = "user-1"


class FailingStore(InMemoryKeyValueStore):
    """In-memory store whose operations can be switched to fail."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.fail_delete = False
        self.set_calls = 0

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise StorageError(f"simulated read failure for {key}")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise StorageError(f"simulated write failure for {key}")
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise StorageError(f"simulated delete failure for {key}")
        await super().delete(key)


@pytest.fixture
def store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def rate_table() -> dict:
    return dict(DEFAULT_EXCHANGE_RATES)


@pytest.fixture
def audit_logger() -> AuditLogger:
    logger = AuditLogger()
    logger.keep_history()
    return logger


@pytest.fixture
def ledger(store, rate_table, audit_logger) -> SubscriptionLedger:
    """Ledger for USER_ID; tests await ledger.load() themselves."""
    return SubscriptionLedger(
        store=store,
        user_id=USER_ID,
        rate_table=rate_table,
        audit_logger=audit_logger,
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(storage_backend="memory")


@pytest.fixture
def make_subscription():
    """Factory for stored Subscription records with sensible defaults."""

    def _make(**overrides) -> Subscription:
        fields = {
            "user_id": USER_ID,
            "name": "Netflix",
            "cost": Decimal("649.00"),
            "billing_cycle": BillingCycle.MONTHLY,
            "renewal_date": date(2024, 1, 20),
            "category": Category.STREAMING,
            "status": SubscriptionStatus.ACTIVE,
        }
        fields.update(overrides)
        fields.setdefault("canonical_cost", fields["cost"])
        return Subscription(**fields)

    return _make


@pytest.fixture
def make_draft():
    """Raw add-form payloads, camelCase as the UI sends them."""

    def _make(**overrides) -> dict:
        data = {
            "name": "Netflix",
            "cost": "649",
            "currency": "INR",
            "billingCycle": "Monthly",
            "renewalDate": "2024-01-20",
            "category": "OTT/Streaming",
        }
        data.update(overrides)
        return data

    return _make
