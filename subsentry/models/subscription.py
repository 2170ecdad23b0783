"""
Core Data Models for SubSentry

These models define the schemas for everything the ledger stores and
everything the analytics engine derives.

DESIGN DECISION: Stored records (Subscription) are strict - a record that
breaks an invariant cannot be constructed at all. Incoming user input
(SubscriptionDraft / SubscriptionUpdate) is only type-checked here; the
business rules are checked by the validator so the user gets a readable
list of issues instead of a pydantic traceback.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import ConfigDict, Field, model_validator

from subsentry.models.base import CamelModel, DayDate, utc_now


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Supported currencies. INR is the canonical one by default."""
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class BillingCycle(str, Enum):
    """
    How often a subscription charges.

    ONE_TIME purchases are tracked but never counted in recurring totals.
    """
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"
    ONE_TIME = "OneTime"


class Category(str, Enum):
    """
    Subscription categories.

    DESIGN DECISION: A closed set keeps the category breakdown meaningful.
    """
    STREAMING = "OTT/Streaming"
    SAAS = "Software/SaaS"
    HEALTH = "Fitness/Health"
    FOOD = "Food Delivery"
    ECOMMERCE = "E-commerce"
    OTHER = "Other"


class SubscriptionStatus(str, Enum):
    """
    Only changed by an explicit update.

    Subscriptions never go inactive just because a renewal date passed.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"


class AlertLevel(str, Enum):
    RED = "red"      # renews within a week
    AMBER = "amber"  # renews within the alert window


class SortOption(str, Enum):
    """Sort orders offered on the dashboard."""
    RENEWAL_DATE_ASC = "renewalDate_asc"
    COST_DESC = "cost_desc"
    NAME_ASC = "name_asc"
    CATEGORY_ASC = "category_asc"
    CATEGORY_DESC = "category_desc"


# =============================================================================
# CORE SUBSCRIPTION MODEL
# =============================================================================

class Subscription(CamelModel):
    """
    A subscription as held in the ledger and persisted to storage.

    canonical_cost is the cost converted to the canonical currency at the
    time the cost/currency was last set. All totals are built from it.
    """

    # Identity
    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Unique subscription ID (unique per owner)"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="ID of the owning user"
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Service name, e.g. Netflix"
    )
    cost: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Charge per billing cycle in the subscription's own currency"
    )
    currency: Currency = Currency.INR
    canonical_cost: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Cost converted to the canonical currency"
    )
    billing_cycle: BillingCycle
    renewal_date: DayDate = Field(
        default=None,
        description="Next charge date; None only for one-time purchases"
    )
    category: Category = Category.OTHER
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    notes: str = Field(
        default="",
        max_length=1000,
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the subscription was first added"
    )

    @model_validator(mode='after')
    def validate_renewal_date(self) -> 'Subscription':
        """renewal_date is None if and only if the cycle is one-time."""
        if self.billing_cycle == BillingCycle.ONE_TIME:
            if self.renewal_date is not None:
                raise ValueError("One-time purchases cannot have a renewal date")
        elif self.renewal_date is None:
            raise ValueError("Recurring subscriptions need a renewal date")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE


class SubscriptionDraft(CamelModel):
    """
    Input for adding a subscription.

    Only types are checked here; see SubscriptionValidator for the rules.
    id, user_id, status and created_at are assigned by the ledger.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = ""
    cost: Decimal
    currency: Currency = Currency.INR
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    renewal_date: DayDate = None
    category: Category = Category.OTHER
    notes: str = ""


class SubscriptionUpdate(CamelModel):
    """
    Partial update for an existing subscription.

    Only fields explicitly provided are applied. Passing renewal_date=None
    explicitly clears it (needed when switching to a one-time purchase).
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    cost: Optional[Decimal] = None
    currency: Optional[Currency] = None
    billing_cycle: Optional[BillingCycle] = None
    renewal_date: DayDate = None
    category: Optional[Category] = None
    status: Optional[SubscriptionStatus] = None
    notes: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set, keyed by Python field name."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(CamelModel):
    """A single validation issue found in subscription input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'past_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


# =============================================================================
# DERIVED / ANALYTICS MODELS
# =============================================================================

class Totals(CamelModel):
    """Recurring spend of active subscriptions, in the canonical currency."""
    monthly: Decimal
    annual: Decimal


class CategoryShare(CamelModel):
    category: Category
    monthly_amount: Decimal
    percentage_of_total: Decimal


class RenewalAlert(CamelModel):
    """An active subscription that renews inside the alert window."""
    subscription: Subscription
    days_until_renewal: int = Field(..., ge=0)
    level: AlertLevel


class DashboardSummary(CamelModel):
    """Everything the dashboard renders, computed from one snapshot."""
    generated_for: date
    totals: Totals
    category_breakdown: list[CategoryShare] = Field(default_factory=list)
    renewal_alerts: list[RenewalAlert] = Field(default_factory=list)
    subscriptions: list[Subscription] = Field(default_factory=list)
    active_count: int = Field(default=0, ge=0)
    inactive_count: int = Field(default=0, ge=0)
    sort_option: Optional[SortOption] = None
