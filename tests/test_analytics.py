"""Tests for AnalyticsEngine."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from subsentry.analytics import AnalyticsEngine
from subsentry.models.subscription import (
    AlertLevel,
    BillingCycle,
    Category,
    SortOption,
    SubscriptionStatus,
)


TODAY = date(2024, 1, 1)


@pytest.fixture
def engine() -> AnalyticsEngine:
    return AnalyticsEngine()


class TestTotals:
    """Tests for monthly/annual totals."""

    def test_inactive_excluded(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("649")),
            make_subscription(
                cost=Decimal("1499"),
                billing_cycle=BillingCycle.YEARLY,
                status=SubscriptionStatus.INACTIVE,
            ),
        ]
        totals = engine.totals(subs)
        assert totals.monthly == Decimal("649.00")
        assert totals.annual == Decimal("7788.00")

    def test_mixed_cycles(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("100")),
            make_subscription(cost=Decimal("300"), billing_cycle=BillingCycle.QUARTERLY),
            make_subscription(cost=Decimal("1200"), billing_cycle=BillingCycle.YEARLY),
            make_subscription(cost=Decimal("5000"), billing_cycle=BillingCycle.ONE_TIME, renewal_date=None),
        ]
        totals = engine.totals(subs)
        assert totals.monthly == Decimal("300.00")
        assert totals.annual == Decimal("3600.00")

    def test_uses_canonical_cost(self, engine, make_subscription):
        sub = make_subscription(cost=Decimal("10"), canonical_cost=Decimal("830"))
        assert engine.totals([sub]).monthly == Decimal("830.00")

    def test_rounds_once_at_the_end(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("100"), billing_cycle=BillingCycle.QUARTERLY)
            for _ in range(3)
        ]
        # 3 x 33.333... = 100.00, not 3 x 33.33 = 99.99
        assert engine.totals(subs).monthly == Decimal("100.00")

    def test_empty(self, engine):
        totals = engine.totals([])
        assert totals.monthly == Decimal("0.00")
        assert totals.annual == Decimal("0.00")


class TestCategoryBreakdown:
    """Tests for the per-category monthly breakdown."""

    def test_sorted_descending(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("100"), category=Category.FOOD),
            make_subscription(cost=Decimal("600"), category=Category.STREAMING),
            make_subscription(cost=Decimal("300"), category=Category.SAAS),
        ]
        breakdown = engine.category_breakdown(subs)
        assert [share.category for share in breakdown] == [
            Category.STREAMING,
            Category.SAAS,
            Category.FOOD,
        ]
        assert breakdown[0].monthly_amount == Decimal("600.00")
        assert breakdown[0].percentage_of_total == Decimal("60.00")

    def test_groups_by_category(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("649"), category=Category.STREAMING),
            make_subscription(cost=Decimal("1788"), category=Category.STREAMING,
                              billing_cycle=BillingCycle.YEARLY),
        ]
        breakdown = engine.category_breakdown(subs)
        assert len(breakdown) == 1
        assert breakdown[0].monthly_amount == Decimal("798.00")
        assert breakdown[0].percentage_of_total == Decimal("100.00")

    def test_ties_keep_first_seen_order(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("50"), category=Category.HEALTH),
            make_subscription(cost=Decimal("50"), category=Category.ECOMMERCE),
            make_subscription(cost=Decimal("50"), category=Category.OTHER),
        ]
        breakdown = engine.category_breakdown(subs)
        assert [share.category for share in breakdown] == [
            Category.HEALTH,
            Category.ECOMMERCE,
            Category.OTHER,
        ]

    def test_percentages_sum_to_100(self, engine, make_subscription):
        subs = [
            make_subscription(cost=Decimal("100"), category=Category.FOOD),
            make_subscription(cost=Decimal("100"), category=Category.SAAS),
            make_subscription(cost=Decimal("100"), category=Category.HEALTH),
        ]
        total = sum(share.percentage_of_total for share in engine.category_breakdown(subs))
        assert abs(total - Decimal("100")) <= Decimal("0.1")

    def test_zero_total_gives_zero_percentages(self, engine, make_subscription):
        subs = [make_subscription(cost=Decimal("0"))]
        breakdown = engine.category_breakdown(subs)
        assert breakdown[0].percentage_of_total == Decimal("0.00")

    def test_no_active_subscriptions(self, engine, make_subscription):
        subs = [make_subscription(status=SubscriptionStatus.INACTIVE)]
        assert engine.category_breakdown(subs) == []


class TestRenewalAlerts:
    """Tests for renewal alert computation."""

    def test_red_within_a_week(self, engine, make_subscription):
        alerts = engine.renewal_alerts(
            [make_subscription(renewal_date=date(2024, 1, 5))], today=TODAY
        )
        assert len(alerts) == 1
        assert alerts[0].days_until_renewal == 4
        assert alerts[0].level == AlertLevel.RED

    def test_amber_beyond_a_week(self, engine, make_subscription):
        alerts = engine.renewal_alerts(
            [make_subscription(renewal_date=date(2024, 1, 20))], today=TODAY
        )
        assert alerts[0].days_until_renewal == 19
        assert alerts[0].level == AlertLevel.AMBER

    def test_custom_red_threshold(self, make_subscription):
        engine = AnalyticsEngine(red_alert_days=3)
        alerts = engine.renewal_alerts(
            [
                make_subscription(name="Soon", renewal_date=date(2024, 1, 3)),
                make_subscription(name="Later", renewal_date=date(2024, 1, 5)),
            ],
            today=TODAY,
        )
        assert [(a.days_until_renewal, a.level) for a in alerts] == [
            (2, AlertLevel.RED),
            (4, AlertLevel.AMBER),
        ]

    def test_past_dates_excluded(self, engine, make_subscription):
        alerts = engine.renewal_alerts(
            [make_subscription(renewal_date=date(2023, 12, 30))], today=TODAY
        )
        assert alerts == []

    def test_window_boundaries(self, engine, make_subscription):
        subs = [
            make_subscription(name="Today", renewal_date=date(2024, 1, 1)),
            make_subscription(name="Day 7", renewal_date=date(2024, 1, 8)),
            make_subscription(name="Day 8", renewal_date=date(2024, 1, 9)),
            make_subscription(name="Day 30", renewal_date=date(2024, 1, 31)),
            make_subscription(name="Day 31", renewal_date=date(2024, 2, 1)),
        ]
        alerts = engine.renewal_alerts(subs, today=TODAY)
        assert [(a.subscription.name, a.level) for a in alerts] == [
            ("Today", AlertLevel.RED),
            ("Day 7", AlertLevel.RED),
            ("Day 8", AlertLevel.AMBER),
            ("Day 30", AlertLevel.AMBER),
        ]

    def test_sorted_by_days_then_input_order(self, engine, make_subscription):
        subs = [
            make_subscription(name="B", renewal_date=date(2024, 1, 10)),
            make_subscription(name="A", renewal_date=date(2024, 1, 2)),
            make_subscription(name="C", renewal_date=date(2024, 1, 10)),
        ]
        alerts = engine.renewal_alerts(subs, today=TODAY)
        assert [a.subscription.name for a in alerts] == ["A", "B", "C"]

    def test_inactive_and_one_time_excluded(self, engine, make_subscription):
        subs = [
            make_subscription(renewal_date=date(2024, 1, 3), status=SubscriptionStatus.INACTIVE),
            make_subscription(billing_cycle=BillingCycle.ONE_TIME, renewal_date=None),
        ]
        assert engine.renewal_alerts(subs, today=TODAY) == []

    def test_time_of_day_is_ignored(self, engine, make_subscription):
        subs = [
            make_subscription(name="Soon", renewal_date=date(2024, 1, 5)),
            make_subscription(name="Past", renewal_date=date(2023, 12, 31)),
            make_subscription(name="Today", renewal_date=date(2024, 1, 1)),
        ]
        alerts = engine.renewal_alerts(subs, today=datetime(2024, 1, 1, 15, 30))
        assert [(a.subscription.name, a.days_until_renewal) for a in alerts] == [
            ("Today", 0),
            ("Soon", 4),
        ]

    def test_negative_thresholds_rejected(self):
        with pytest.raises(ValueError):
            AnalyticsEngine(alert_window_days=-1)


class TestSorting:
    """Tests for sort_subscriptions()."""

    def test_renewal_date_nulls_last(self, engine, make_subscription):
        subs = [
            make_subscription(name="One-off", billing_cycle=BillingCycle.ONE_TIME, renewal_date=None),
            make_subscription(name="Late", renewal_date=date(2024, 3, 1)),
            make_subscription(name="Early", renewal_date=date(2024, 1, 5)),
        ]
        ordered = engine.sort_subscriptions(subs, SortOption.RENEWAL_DATE_ASC)
        assert [s.name for s in ordered] == ["Early", "Late", "One-off"]

    def test_cost_desc_uses_canonical_cost(self, engine, make_subscription):
        subs = [
            make_subscription(name="Cheap", cost=Decimal("99")),
            make_subscription(name="Dollar", cost=Decimal("10"), canonical_cost=Decimal("830")),
            make_subscription(name="Mid", cost=Decimal("499")),
        ]
        ordered = engine.sort_subscriptions(subs, "cost_desc")
        assert [s.name for s in ordered] == ["Dollar", "Mid", "Cheap"]

    def test_name_is_case_insensitive(self, engine, make_subscription):
        subs = [
            make_subscription(name="spotify"),
            make_subscription(name="Amazon Prime"),
            make_subscription(name="netflix"),
        ]
        ordered = engine.sort_subscriptions(subs, SortOption.NAME_ASC)
        assert [s.name for s in ordered] == ["Amazon Prime", "netflix", "spotify"]

    def test_category_sorts_are_stable(self, engine, make_subscription):
        subs = [
            make_subscription(name="S1", category=Category.STREAMING),
            make_subscription(name="F1", category=Category.FOOD),
            make_subscription(name="S2", category=Category.STREAMING),
            make_subscription(name="F2", category=Category.FOOD),
        ]
        asc = engine.sort_subscriptions(subs, SortOption.CATEGORY_ASC)
        desc = engine.sort_subscriptions(subs, SortOption.CATEGORY_DESC)
        assert [s.name for s in asc] == ["F1", "F2", "S1", "S2"]
        assert [s.name for s in desc] == ["S1", "S2", "F1", "F2"]

    def test_does_not_mutate_input(self, engine, make_subscription):
        subs = [make_subscription(name="B"), make_subscription(name="A")]
        engine.sort_subscriptions(subs, SortOption.NAME_ASC)
        assert [s.name for s in subs] == ["B", "A"]

    def test_unknown_option(self, engine):
        with pytest.raises(ValueError):
            engine.sort_subscriptions([], "price_asc")


class TestSummarize:
    def test_summary(self, engine, make_subscription):
        subs = [
            make_subscription(name="Netflix", renewal_date=date(2024, 1, 5)),
            make_subscription(name="Gym", cost=Decimal("1499"), category=Category.HEALTH,
                              status=SubscriptionStatus.INACTIVE),
        ]
        summary = engine.summarize(subs, today=TODAY, sort_option="name_asc")

        assert summary.generated_for == TODAY
        assert summary.totals.monthly == Decimal("649.00")
        assert summary.active_count == 1
        assert summary.inactive_count == 1
        assert [s.name for s in summary.subscriptions] == ["Gym", "Netflix"]
        assert len(summary.renewal_alerts) == 1
        assert summary.sort_option == SortOption.NAME_ASC

    def test_summary_keeps_insertion_order_without_sort(self, engine, make_subscription):
        subs = [make_subscription(name="B"), make_subscription(name="A")]
        summary = engine.summarize(subs, today=TODAY)
        assert [s.name for s in summary.subscriptions] == ["B", "A"]
        assert summary.sort_option is None

    def test_summary_for_a_datetime(self, engine, make_subscription):
        subs = [make_subscription(renewal_date=date(2024, 1, 5))]
        summary = engine.summarize(subs, today=datetime(2024, 1, 1, 15, 30))

        assert summary.generated_for == TODAY
        assert summary.renewal_alerts[0].days_until_renewal == 4
