"""
Subscription Ledger

Owns the in-memory list of the logged-in user's subscriptions and keeps
it in sync with the key-value store.

DESIGN DECISION: Persistence is write-through and whole-snapshot.
Every mutation:
1. Saves a reference to the current snapshot
2. Applies the change in memory (optimistic update)
3. Serializes the ENTIRE list under subs_<user_id>
4. On any store failure, puts the saved snapshot back and raises StorageError

There is no partial/delta write and no internal lock. Callers must not
run two mutations concurrently on the same ledger; if they do, the last
write wins but the in-memory list is never left half-applied.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from subsentry.audit import AuditLogger
from subsentry.finance import MoneyError, RateTable, format_amount, to_canonical
from subsentry.models.base import utc_now
from subsentry.models.subscription import (
    Currency,
    Subscription,
    SubscriptionDraft,
    SubscriptionStatus,
    SubscriptionUpdate,
    ValidationIssue,
)
from subsentry.services.storage import (
    CorruptDataError,
    KeyValueStore,
    StorageError,
    subscriptions_key,
)
from subsentry.validation import SubscriptionValidator, issues_from_pydantic


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class SubscriptionValidationError(LedgerError):
    """Input failed validation; nothing was changed."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__(SubscriptionValidator.summarize(issues) or "Invalid subscription")


class SubscriptionNotFoundError(LedgerError):
    """No subscription with this id in the current snapshot."""

    def __init__(self, subscription_id: str):
        self.subscription_id = subscription_id
        super().__init__(f"Subscription not found: {subscription_id}")


class SubscriptionLedger:
    """
    In-memory subscription list for one user, persisted write-through.

    Reads (list/get) never touch the store. Writes (add/update/remove)
    always do, and roll back on failure.
    """

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        rate_table: RateTable,
        canonical_currency: Currency = Currency.INR,
        validator: Optional[SubscriptionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._rate_table = rate_table
        self._canonical = canonical_currency
        self._validator = validator or SubscriptionValidator()
        self._audit_logger = audit_logger
        self._subscriptions: list[Subscription] = []
        self._loaded = False
        self.last_warnings: list[ValidationIssue] = []

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def storage_key(self) -> str:
        return subscriptions_key(self._user_id)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(self) -> list[Subscription]:
        """
        Rebuild the snapshot from storage (called on login/restore).

        Records written before canonical costs were stored get one
        computed on the fly.

        Raises:
            StorageError: store read failed or the stored list is unreadable
        """
        try:
            raw = await self._store.get(self.storage_key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read subscriptions: {e}")

        subscriptions = self._decode(raw) if raw else []

        self._subscriptions = subscriptions
        self._loaded = True
        if self._audit_logger:
            self._audit_logger.log_subscriptions_loaded(self._user_id, len(subscriptions))
        return self.list()

    def _decode(self, raw: str) -> list[Subscription]:
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("expected a JSON list")

            subscriptions = []
            for item in items:
                if "canonicalCost" not in item and "canonical_cost" not in item:
                    item["canonicalCost"] = str(to_canonical(
                        item.get("cost", 0),
                        item.get("currency", self._canonical),
                        self._rate_table,
                        self._canonical,
                    ))
                subscriptions.append(Subscription.model_validate(item))
        except (ValueError, TypeError, AttributeError, LookupError, MoneyError) as e:
            # json and pydantic errors are ValueErrors
            raise CorruptDataError(
                f"Stored subscriptions under '{self.storage_key}' are unreadable: {e}"
            )

        foreign = [s.id for s in subscriptions if s.user_id != self._user_id]
        if foreign:
            raise CorruptDataError(
                f"Stored subscriptions under '{self.storage_key}' belong to another user"
            )
        return subscriptions

    def discard(self) -> None:
        """Drop the snapshot (called on logout)."""
        self._subscriptions = []
        self._loaded = False
        self.last_warnings = []

    # =========================================================================
    # READS
    # =========================================================================

    def list(self) -> list[Subscription]:
        """Current snapshot in insertion order (a copy; never hits the store)."""
        return list(self._subscriptions)

    def get(self, subscription_id: str) -> Subscription:
        """
        Raises:
            SubscriptionNotFoundError: id not in the snapshot
        """
        return self._subscriptions[self._index_of(subscription_id)]

    def _index_of(self, subscription_id: str) -> int:
        for idx, subscription in enumerate(self._subscriptions):
            if subscription.id == subscription_id:
                return idx
        raise SubscriptionNotFoundError(subscription_id)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def add(
        self,
        data: Union[SubscriptionDraft, dict[str, Any]],
        today: Optional[date] = None,
    ) -> Subscription:
        """
        Validate, create and persist a new active subscription.

        Raises:
            SubscriptionValidationError: bad input (nothing changed)
            MoneyError: currency can't be converted (nothing changed)
            StorageError: persist failed (snapshot rolled back)
        """
        draft = self._parse(SubscriptionDraft, data, operation="add")
        fields = draft.model_dump()
        self._check(fields, operation="add", today=today)

        subscription = self._build(
            {
                **fields,
                "id": self._new_id(),
                "user_id": self._user_id,
                "status": SubscriptionStatus.ACTIVE,
                "created_at": utc_now(),
                "canonical_cost": to_canonical(
                    draft.cost, draft.currency, self._rate_table, self._canonical
                ),
            },
            operation="add",
        )

        await self._commit(self._subscriptions + [subscription], operation="add",
                           subscription_id=subscription.id)

        if self._audit_logger:
            self._audit_logger.log_subscription_added(
                user_id=self._user_id,
                subscription_id=subscription.id,
                name=subscription.name,
                canonical_cost=format_amount(subscription.canonical_cost, self._canonical),
            )
        return subscription

    async def update(
        self,
        subscription_id: str,
        data: Union[SubscriptionUpdate, dict[str, Any]],
        today: Optional[date] = None,
    ) -> Subscription:
        """
        Merge the explicitly provided fields into an existing subscription.

        Applying the same update twice gives the same record as applying it once.

        Raises:
            SubscriptionNotFoundError: unknown id (nothing changed)
            SubscriptionValidationError: merged record is invalid (nothing changed)
            MoneyError: currency can't be converted (nothing changed)
            StorageError: persist failed (snapshot rolled back)
        """
        index = self._index_of(subscription_id)
        current = self._subscriptions[index]

        changes = self._parse(SubscriptionUpdate, data, operation="update").changes()
        merged = {**current.model_dump(), **changes}
        self._check(merged, operation="update", today=today)

        if merged["cost"] != current.cost or merged["currency"] != current.currency:
            merged["canonical_cost"] = to_canonical(
                merged["cost"], merged["currency"], self._rate_table, self._canonical
            )

        updated = self._build(merged, operation="update")

        snapshot = list(self._subscriptions)
        snapshot[index] = updated
        await self._commit(snapshot, operation="update", subscription_id=subscription_id)

        if self._audit_logger:
            self._audit_logger.log_subscription_updated(
                user_id=self._user_id,
                subscription_id=subscription_id,
                changed_fields=sorted(changes),
            )
        return updated

    async def remove(self, subscription_id: str) -> None:
        """
        Delete a subscription.

        Raises:
            SubscriptionNotFoundError: unknown id (nothing changed)
            StorageError: persist failed (snapshot rolled back)
        """
        index = self._index_of(subscription_id)
        removed = self._subscriptions[index]

        snapshot = self._subscriptions[:index] + self._subscriptions[index + 1:]
        await self._commit(snapshot, operation="remove", subscription_id=subscription_id)

        if self._audit_logger:
            self._audit_logger.log_subscription_deleted(
                user_id=self._user_id,
                subscription_id=subscription_id,
                name=removed.name,
            )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _commit(
        self,
        snapshot: list[Subscription],
        operation: str,
        subscription_id: Optional[str] = None,
    ) -> None:
        """Apply snapshot in memory, persist it, restore the previous one on failure."""
        previous = self._subscriptions
        self._subscriptions = snapshot

        try:
            await self._store.set(self.storage_key, self._encode(snapshot))
        except Exception as e:
            self._subscriptions = previous
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    user_id=self._user_id,
                    operation=operation,
                    error_message=str(e),
                    subscription_id=subscription_id,
                )
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"Failed to save subscriptions: {e}") from e

    @staticmethod
    def _encode(snapshot: list[Subscription]) -> str:
        return json.dumps(
            [subscription.to_storage_dict() for subscription in snapshot],
            ensure_ascii=False,
        )

    def _parse(self, model, data, operation: str):
        if isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            self._reject(issues_from_pydantic(e), operation)

    def _check(self, fields: dict[str, Any], operation: str, today: Optional[date]) -> None:
        issues = self._validator.validate(fields, today=today)
        if self._validator.has_errors(issues):
            self._reject(issues, operation)
        self.last_warnings = issues

    def _build(self, fields: dict[str, Any], operation: str) -> Subscription:
        try:
            return Subscription.model_validate(fields)
        except PydanticValidationError as e:
            self._reject(issues_from_pydantic(e), operation)

    def _reject(self, issues: list[ValidationIssue], operation: str):
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                user_id=self._user_id,
                operation=operation,
                issues=[issue.model_dump() for issue in issues],
            )
        raise SubscriptionValidationError(issues)

    def _new_id(self) -> str:
        existing = {subscription.id for subscription in self._subscriptions}
        while True:
            candidate = str(uuid4())
            if candidate not in existing:
                return candidate
