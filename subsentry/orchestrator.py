"""
Main Orchestrator for SubSentry

This module ties the components together behind the small callback
surface the UI layer depends on:

    on_signup / on_login / on_logout
    on_add / on_update / on_delete
    start (restore a saved session)
    dashboard (derived view of the current snapshot)

DESIGN DECISION: Every callback returns an ActionResult instead of
raising. Known domain failures become a human-readable message suitable
for a toast; anything unexpected still propagates so it is never hidden.

The orchestrator also enforces the session/ledger lifecycle:
- The ledger is rebuilt from storage on login, signup and restore
- It is discarded on logout and when a login or signup fails
- If it could not be loaded, mutations are refused until a reload works,
  so an empty snapshot never overwrites stored data
"""

from datetime import date
from typing import Any, Optional, Union

from subsentry.analytics import AnalyticsEngine
from subsentry.audit import AuditLogger, configure_logging
from subsentry.config import AppSettings, Settings, get_settings
from subsentry.finance import MissingRateError, MoneyError, UnknownCurrencyError
from subsentry.ledger import (
    LedgerError,
    SubscriptionLedger,
    SubscriptionNotFoundError,
    SubscriptionValidationError,
)
from subsentry.models.results import ActionResult
from subsentry.models.subscription import (
    DashboardSummary,
    SortOption,
    SubscriptionDraft,
    SubscriptionUpdate,
)
from subsentry.models.user import User
from subsentry.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    StorageError,
)
from subsentry.session import SessionError, SessionManager
from subsentry.validation import SubscriptionValidator


class NotLoggedInError(Exception):
    """A ledger callback was invoked without an authenticated session."""

    def __init__(self):
        super().__init__("Please log in first.")


class SubSentryApp:
    """
    UI-facing facade over SessionManager, SubscriptionLedger and AnalyticsEngine.

    Callers are expected to serialize calls (e.g. disable the button until
    the previous callback returns); no internal locking is done.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        analytics: Optional[AnalyticsEngine] = None,
        session_manager: Optional[SessionManager] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().app
        self._audit_logger = audit_logger
        self._validator = SubscriptionValidator()
        self._analytics = analytics or AnalyticsEngine(
            alert_window_days=self._settings.renewal_alert_window_days,
            red_alert_days=self._settings.red_alert_threshold_days,
        )
        self._session = session_manager or SessionManager(store, audit_logger=audit_logger)
        self._ledger: Optional[SubscriptionLedger] = None

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def ledger(self) -> Optional[SubscriptionLedger]:
        return self._ledger

    @property
    def current_user(self) -> Optional[User]:
        return self._session.current_user

    # =========================================================================
    # SESSION CALLBACKS
    # =========================================================================

    async def start(self) -> ActionResult:
        """Restore a saved session (call once at process start)."""
        try:
            user = await self._session.restore_session()
        except StorageError as e:
            return self._failure(e, "restore_session", "Failed to load session.")

        if user is None:
            return ActionResult.ok("Please log in or sign up.")
        return await self._open_ledger(user, f"Welcome back, {user.email}!")

    async def on_signup(self, email: str, password: str) -> ActionResult:
        try:
            user = await self._session.signup(email, password)
        except (SessionError, StorageError) as e:
            self._close_ledger_if_anonymous()
            return self._failure(e, "signup", "Could not create your account. Please try again.")
        return await self._open_ledger(user, "Account created successfully!")

    async def on_login(self, email: str, password: str) -> ActionResult:
        try:
            user = await self._session.login(email, password)
        except (SessionError, StorageError) as e:
            self._close_ledger_if_anonymous()
            return self._failure(e, "login", "Could not log you in. Please try again.")
        return await self._open_ledger(user, f"Welcome, {user.email}!")

    async def on_logout(self) -> ActionResult:
        """
        Log out. The UI must have obtained the user's confirmation first.
        """
        if not self._session.is_authenticated:
            return ActionResult.fail("You are not logged in.")

        try:
            await self._session.logout()
        except StorageError as e:
            return self._failure(e, "logout", "Logout failed. Please try again.")

        self._close_ledger_if_anonymous()
        return ActionResult.ok("Logged out successfully.")

    # =========================================================================
    # LEDGER CALLBACKS
    # =========================================================================

    async def on_add(
        self,
        data: Union[SubscriptionDraft, dict[str, Any]],
        today: Optional[date] = None,
    ) -> ActionResult:
        try:
            ledger = await self._require_ledger()
            subscription = await ledger.add(data, today=today)
        except (LedgerError, MoneyError, StorageError, NotLoggedInError) as e:
            return self._failure(e, "add", "Could not save your changes.")

        return ActionResult.ok(
            self._with_warnings("Subscription added successfully!", ledger),
            subscription=subscription,
        )

    async def on_update(
        self,
        subscription_id: str,
        data: Union[SubscriptionUpdate, dict[str, Any]],
        today: Optional[date] = None,
    ) -> ActionResult:
        try:
            ledger = await self._require_ledger()
            subscription = await ledger.update(subscription_id, data, today=today)
        except (LedgerError, MoneyError, StorageError, NotLoggedInError) as e:
            return self._failure(e, "update", "Could not save your changes.")

        return ActionResult.ok(
            self._with_warnings("Subscription updated successfully!", ledger),
            subscription=subscription,
        )

    async def on_delete(self, subscription_id: str) -> ActionResult:
        try:
            ledger = await self._require_ledger()
            await ledger.remove(subscription_id)
        except (LedgerError, StorageError, NotLoggedInError) as e:
            return self._failure(e, "delete", "Could not save your changes.")

        return ActionResult.ok("Subscription deleted.")

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    def dashboard(
        self,
        today: Optional[date] = None,
        sort_option: Optional[Union[SortOption, str]] = None,
    ) -> DashboardSummary:
        """Recompute totals, breakdown and alerts from the current snapshot."""
        if self._session.is_authenticated and self._ledger is not None:
            subscriptions = self._ledger.list()
        else:
            subscriptions = []
        return self._analytics.summarize(subscriptions, today=today, sort_option=sort_option)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _new_ledger(self, user: User) -> SubscriptionLedger:
        return SubscriptionLedger(
            store=self._store,
            user_id=user.id,
            rate_table=self._settings.exchange_rates,
            canonical_currency=self._settings.canonical_currency,
            validator=self._validator,
            audit_logger=self._audit_logger,
        )

    def _close_ledger_if_anonymous(self) -> None:
        """The snapshot belongs to the active session and goes away with it."""
        if self._session.is_authenticated:
            return
        if self._ledger is not None:
            self._ledger.discard()
        self._ledger = None

    async def _open_ledger(self, user: User, message: str) -> ActionResult:
        self._ledger = self._new_ledger(user)
        try:
            await self._ledger.load()
        except StorageError as e:
            result = self._failure(e, "load_subscriptions", "Failed to load subscriptions.")
            result.user = user.profile()
            return result
        return ActionResult.ok(message, user=user.profile())

    async def _require_ledger(self) -> SubscriptionLedger:
        user = self._session.current_user
        if not self._session.is_authenticated or user is None:
            raise NotLoggedInError()

        if self._ledger is None or self._ledger.user_id != user.id:
            self._ledger = self._new_ledger(user)
        if not self._ledger.is_loaded:
            await self._ledger.load()
        return self._ledger

    @staticmethod
    def _with_warnings(message: str, ledger: SubscriptionLedger) -> str:
        warnings = SubscriptionValidator.summarize(ledger.last_warnings)
        return f"{message} Note: {warnings}" if warnings else message

    def _failure(self, error: Exception, operation: str, storage_message: str) -> ActionResult:
        """Turn a known domain error into a toast-ready failure result."""
        if isinstance(error, StorageError):
            if self._audit_logger:
                user = self._session.current_user
                self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(error),
                    user_id=user.id if user else None,
                )
            return ActionResult.fail(storage_message)

        if isinstance(error, SubscriptionNotFoundError):
            return ActionResult.fail("That subscription no longer exists.")
        if isinstance(error, MissingRateError):
            return ActionResult.fail(
                f"No exchange rate is configured for {error.currency.value}, "
                "so this subscription can't be saved."
            )
        if isinstance(error, UnknownCurrencyError):
            return ActionResult.fail(f"Unsupported currency: {error.currency}")
        if isinstance(error, SubscriptionValidationError):
            return ActionResult.fail(str(error))

        # SessionError, NotLoggedInError and anything else we chose to catch
        return ActionResult.fail(str(error))


def create_app_components(
    store: Optional[KeyValueStore] = None,
    settings: Optional[Settings] = None,
) -> SubSentryApp:
    """
    Factory function to create the application from settings.

    Args:
        store: Explicit store to use. If None, the configured backend
               (memory or google_sheets) is built.
        settings: Settings to use instead of the cached environment settings.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    if store is None:
        if app_settings.storage_backend == "google_sheets":
            store = GoogleSheetsKeyValueStore(GoogleSheetsClient(settings.google_sheets))
        else:
            store = InMemoryKeyValueStore()

    return SubSentryApp(
        store=store,
        settings=app_settings,
        audit_logger=AuditLogger(),
    )
