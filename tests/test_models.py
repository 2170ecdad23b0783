"""
Tests for SubSentry models

Test strategy:
1. Unit tests for individual components (models, validators, money)
2. Flow tests for ledger/session/app against the in-memory store
3. No real Google Sheets calls in tests (use fakes)
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from subsentry.models import (
    ActionResult,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    BillingCycle,
    Category,
    Currency,
    Session,
    Subscription,
    SubscriptionDraft,
    SubscriptionUpdate,
    User,
    UserProfile,
    ValidationIssue,
)
from subsentry.models.base import as_day


class TestSubscriptionModel:
    """Tests for the stored Subscription model."""

    def test_subscription_creation(self, make_subscription):
        """Test Subscription creation with defaults."""
        sub = make_subscription()
        assert sub.name == "Netflix"
        assert sub.currency == Currency.INR
        assert sub.is_active
        assert sub.id

    def test_subscription_ids_are_unique(self, make_subscription):
        assert make_subscription().id != make_subscription().id

    def test_one_time_rejects_renewal_date(self, make_subscription):
        """One-time purchases cannot carry a renewal date."""
        with pytest.raises(ValidationError):
            make_subscription(billing_cycle=BillingCycle.ONE_TIME, renewal_date=date(2024, 2, 1))

    def test_recurring_requires_renewal_date(self, make_subscription):
        with pytest.raises(ValidationError):
            make_subscription(billing_cycle=BillingCycle.YEARLY, renewal_date=None)

    def test_one_time_without_date(self, make_subscription):
        sub = make_subscription(billing_cycle=BillingCycle.ONE_TIME, renewal_date=None)
        assert sub.renewal_date is None

    def test_rejects_negative_cost(self, make_subscription):
        with pytest.raises(ValidationError):
            make_subscription(cost=Decimal("-1"))

    def test_renewal_date_drops_time_of_day(self, make_subscription):
        """Renewal dates are compared by day, so any time part is discarded."""
        from_string = make_subscription(renewal_date="2024-01-05T18:45:00.000Z")
        from_datetime = make_subscription(
            renewal_date=datetime(2024, 1, 5, 23, 59, tzinfo=timezone.utc)
        )
        assert from_string.renewal_date == date(2024, 1, 5)
        assert from_datetime.renewal_date == date(2024, 1, 5)

    def test_storage_dict_uses_camel_case(self, make_subscription):
        data = make_subscription().to_storage_dict()
        assert data["userId"] == "user-1"
        assert data["billingCycle"] == "Monthly"
        assert data["renewalDate"] == "2024-01-20"
        assert data["canonicalCost"] == "649.00"
        assert "user_id" not in data

    def test_storage_dict_is_json_serializable(self, make_subscription):
        encoded = json.dumps(make_subscription(name="Café ☕").to_storage_dict(), ensure_ascii=False)
        restored = Subscription.model_validate(json.loads(encoded))
        assert restored.name == "Café ☕"

    def test_accepts_numeric_cost_from_json(self):
        """Older records may store numbers instead of strings."""
        sub = Subscription.model_validate({
            "userId": "user-1",
            "name": "Spotify",
            "cost": 119,
            "canonicalCost": 119,
            "billingCycle": "Monthly",
            "renewalDate": "2024-02-01",
        })
        assert sub.cost == Decimal("119")
        assert sub.category == Category.OTHER


class TestInputModels:
    """Tests for SubscriptionDraft and SubscriptionUpdate."""

    def test_draft_accepts_camel_case(self):
        draft = SubscriptionDraft.model_validate({
            "name": "  Notion  ",
            "cost": "8",
            "currency": "USD",
            "billingCycle": "Monthly",
            "renewalDate": "2024-03-01",
            "category": "Software/SaaS",
        })
        assert draft.name == "Notion"
        assert draft.currency == Currency.USD
        assert draft.renewal_date == date(2024, 3, 1)

    def test_draft_blank_date_means_none(self):
        draft = SubscriptionDraft.model_validate({"cost": "10", "renewalDate": ""})
        assert draft.renewal_date is None

    def test_draft_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            SubscriptionDraft.model_validate({"cost": "10", "status": "inactive"})

    def test_draft_rejects_unknown_currency(self):
        with pytest.raises(ValidationError):
            SubscriptionDraft.model_validate({"cost": "10", "currency": "JPY"})

    def test_update_reports_only_set_fields(self):
        update = SubscriptionUpdate.model_validate({"cost": "199"})
        assert update.changes() == {"cost": Decimal("199")}

    def test_update_explicit_none_clears_date(self):
        update = SubscriptionUpdate.model_validate({"billingCycle": "OneTime", "renewalDate": None})
        assert update.changes() == {"billing_cycle": BillingCycle.ONE_TIME, "renewal_date": None}


class TestValidationIssue:
    def test_is_error(self):
        issue = ValidationIssue(field="name", issue_type="missing", message="x", severity="error")
        assert issue.is_error

    def test_rejects_unknown_severity(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="name", issue_type="missing", message="x", severity="fatal")


class TestUserModels:
    def test_profile_hides_password_hash(self):
        user = User(email="a@example.com", password_hash="abc")
        profile = user.profile()
        assert isinstance(profile, UserProfile)
        assert profile.id == user.id
        assert profile.email == "a@example.com"
        assert not hasattr(profile, "password_hash")
        assert "passwordHash" not in profile.to_storage_dict()

    def test_session_round_trips_through_json(self):
        session = Session(user_id="user-1", token="tok")
        restored = Session.model_validate_json(json.dumps(session.to_storage_dict()))
        assert restored.user_id == "user-1"
        assert restored.token == "tok"


class TestActionResult:
    def test_ok_carries_payload(self, make_subscription):
        sub = make_subscription()
        result = ActionResult.ok("Saved", subscription=sub)
        assert result.success
        assert result.subscription == sub

    def test_fail(self):
        result = ActionResult.fail("Nope")
        assert not result.success
        assert result.message == "Nope"
        assert result.subscription is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.SUBSCRIPTION_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Save failed",
            entity_id="sub-1",
            error_message="boom",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "save_failed"
        assert log_dict["severity"] == "error"
        assert log_dict["entity_id"] == "sub-1"
        assert log_dict["error_message"] == "boom"

    def test_builder_subscription_added(self):
        event = AuditEventBuilder.subscription_added(
            user_id="user-1",
            subscription_id="sub-1",
            name="Netflix",
            canonical_cost="649.00",
        )
        assert event.event_type == AuditEventType.SUBSCRIPTION_ADDED
        assert event.user_id == "user-1"
        assert event.entity_id == "sub-1"
        assert event.is_user_action

    def test_builder_save_failed_is_error(self):
        event = AuditEventBuilder.save_failed(
            user_id="user-1",
            operation="add",
            error_message="boom",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"


class TestAsDay:
    def test_datetime_becomes_its_date(self):
        assert as_day(datetime(2024, 1, 1, 15, 30)) == date(2024, 1, 1)

    def test_date_is_unchanged(self):
        assert as_day(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_none_means_today(self):
        assert as_day() == date.today()
