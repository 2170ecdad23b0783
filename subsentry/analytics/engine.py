"""
Analytics Engine

DESIGN DECISION: Analytics are pure functions of (subscriptions, today).
Nothing here reads storage or mutates the ledger, so the dashboard can
be recomputed after every successful write at no risk.

Only ACTIVE subscriptions count towards totals, breakdowns and alerts.
All money is in the canonical currency (Subscription.canonical_cost)
and goes through finance.billing for cycle normalization.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from subsentry.finance import annual_equivalent, monthly_equivalent, round_money
from subsentry.models.base import as_day
from subsentry.models.subscription import (
    AlertLevel,
    Category,
    CategoryShare,
    DashboardSummary,
    RenewalAlert,
    SortOption,
    Subscription,
    Totals,
)


DEFAULT_ALERT_WINDOW_DAYS = 30
DEFAULT_RED_ALERT_DAYS = 7


class AnalyticsEngine:
    """
    Derives totals, category breakdown and renewal alerts from a snapshot.

    Args:
        alert_window_days: renewals further away than this are not reported
        red_alert_days: renewals this close (or closer) are flagged red
    """

    def __init__(
        self,
        alert_window_days: int = DEFAULT_ALERT_WINDOW_DAYS,
        red_alert_days: int = DEFAULT_RED_ALERT_DAYS,
    ):
        if alert_window_days < 0 or red_alert_days < 0:
            raise ValueError("Alert thresholds cannot be negative")
        self.alert_window_days = alert_window_days
        self.red_alert_days = red_alert_days

    # =========================================================================
    # TOTALS
    # =========================================================================

    def totals(self, subscriptions: Sequence[Subscription]) -> Totals:
        """Monthly and annual recurring spend of active subscriptions."""
        monthly = Decimal("0")
        annual = Decimal("0")
        for sub in subscriptions:
            if not sub.is_active:
                continue
            monthly += monthly_equivalent(sub.canonical_cost, sub.billing_cycle)
            annual += annual_equivalent(sub.canonical_cost, sub.billing_cycle)

        return Totals(monthly=round_money(monthly), annual=round_money(annual))

    def category_breakdown(self, subscriptions: Sequence[Subscription]) -> list[CategoryShare]:
        """
        Monthly spend per category, largest first.

        Equal amounts keep the order in which the category first appears.
        Percentages are 0 when there is no recurring spend at all.
        """
        per_category: dict[Category, Decimal] = {}
        for sub in subscriptions:
            if not sub.is_active:
                continue
            amount = monthly_equivalent(sub.canonical_cost, sub.billing_cycle)
            per_category[sub.category] = per_category.get(sub.category, Decimal("0")) + amount

        grand_total = sum(per_category.values(), Decimal("0"))

        # sorted() is stable, so ties stay in first-seen order
        ranked = sorted(per_category.items(), key=lambda item: -item[1])

        shares = []
        for category, amount in ranked:
            percentage = amount / grand_total * 100 if grand_total > 0 else Decimal("0")
            shares.append(CategoryShare(
                category=category,
                monthly_amount=round_money(amount),
                percentage_of_total=round_money(percentage),
            ))
        return shares

    # =========================================================================
    # RENEWAL ALERTS
    # =========================================================================

    def days_until_renewal(self, subscription: Subscription, today: date) -> Optional[int]:
        """Whole days from today to the renewal date; None for one-time purchases."""
        if subscription.renewal_date is None:
            return None
        return (subscription.renewal_date - as_day(today)).days

    def renewal_alerts(
        self,
        subscriptions: Sequence[Subscription],
        today: Optional[date] = None,
    ) -> list[RenewalAlert]:
        """
        Active subscriptions renewing within the alert window, soonest first.

        Renewal dates already in the past are skipped, not flagged as overdue.
        """
        today = as_day(today)

        alerts = []
        for sub in subscriptions:
            if not sub.is_active:
                continue
            days = self.days_until_renewal(sub, today)
            if days is None or days < 0 or days > self.alert_window_days:
                continue
            level = AlertLevel.RED if days <= self.red_alert_days else AlertLevel.AMBER
            alerts.append(RenewalAlert(subscription=sub, days_until_renewal=days, level=level))

        alerts.sort(key=lambda alert: alert.days_until_renewal)
        return alerts

    # =========================================================================
    # SORTING
    # =========================================================================

    def sort_subscriptions(
        self,
        subscriptions: Sequence[Subscription],
        option: Union[SortOption, str],
    ) -> list[Subscription]:
        """
        Stable sort of a snapshot by one of the dashboard's sort options.

        Raises:
            ValueError: unknown sort option
        """
        option = SortOption(option)
        subs = list(subscriptions)

        if option == SortOption.RENEWAL_DATE_ASC:
            # one-time purchases (no renewal date) go last
            return sorted(subs, key=lambda s: (s.renewal_date is None, s.renewal_date or date.max))
        if option == SortOption.COST_DESC:
            return sorted(subs, key=lambda s: -s.canonical_cost)
        if option == SortOption.NAME_ASC:
            return sorted(subs, key=lambda s: s.name.casefold())
        if option == SortOption.CATEGORY_ASC:
            return sorted(subs, key=lambda s: s.category.value)
        return sorted(subs, key=lambda s: s.category.value, reverse=True)

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def summarize(
        self,
        subscriptions: Sequence[Subscription],
        today: Optional[date] = None,
        sort_option: Optional[Union[SortOption, str]] = None,
    ) -> DashboardSummary:
        """Everything the dashboard shows, computed from one snapshot."""
        today = as_day(today)
        ordered = (
            self.sort_subscriptions(subscriptions, sort_option)
            if sort_option is not None
            else list(subscriptions)
        )
        active = sum(1 for sub in subscriptions if sub.is_active)

        return DashboardSummary(
            generated_for=today,
            totals=self.totals(subscriptions),
            category_breakdown=self.category_breakdown(subscriptions),
            renewal_alerts=self.renewal_alerts(subscriptions, today),
            subscriptions=ordered,
            active_count=active,
            inactive_count=len(subscriptions) - active,
            sort_option=SortOption(sort_option) if sort_option is not None else None,
        )
