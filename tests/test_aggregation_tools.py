"""
Unit tests for dashboard buckets and group totals.
"""
from datetime import datetime

from lrdesk.tools.aggregation_tools import (
    aggregate_by_day,
    aggregate_by_month,
    daily_payment_breakdown,
    month_label,
    revenue_by_branch,
    revenue_by_payment_type,
    revenue_by_status,
    status_distribution,
    summarize,
)

NOW = datetime(2024, 3, 15, 12, 0, 0)


def rec(created_at, total=100, status="booked", payment_type="Paid", branch="Mumbai HQ"):
    return {
        "created_at": created_at,
        "total_amount": total,
        "status": status,
        "payment_type": payment_type,
        "from_branch_details": {"name": branch} if branch else None,
    }


class TestAggregateByDay:
    """Test zero-filled daily buckets"""

    def test_returns_exactly_n_buckets_ending_today(self):
        buckets = aggregate_by_day([], days=7, now=NOW)
        assert len(buckets) == 7
        assert buckets[0].key == "2024-03-09"
        assert buckets[-1].key == "2024-03-15"
        assert all(b.count == 0 and b.revenue_sum == 0 for b in buckets)

    def test_counts_revenue_and_deliveries(self):
        records = [
            rec(datetime(2024, 3, 15, 8), 250, status="delivered"),
            rec(datetime(2024, 3, 15, 20), 150),
            rec(datetime(2024, 3, 13, 10), 75),
        ]
        buckets = {b.key: b for b in aggregate_by_day(records, days=3, now=NOW)}
        assert buckets["2024-03-15"].count == 2
        assert buckets["2024-03-15"].delivered_count == 1
        assert buckets["2024-03-15"].revenue_sum == 400
        assert buckets["2024-03-14"].count == 0
        assert buckets["2024-03-13"].revenue_sum == 75

    def test_drops_records_outside_window(self):
        records = [rec(datetime(2024, 1, 1)), rec(None)]
        assert sum(b.count for b in aggregate_by_day(records, days=30, now=NOW)) == 0

    def test_sum_of_counts_equals_records_in_window(self):
        records = [rec(datetime(2024, 3, day)) for day in range(1, 16)]
        assert sum(b.count for b in aggregate_by_day(records, days=10, now=NOW)) == 10


class TestAggregateByMonth:
    """Test monthly buckets keyed by (year, month)"""

    def test_keys_span_year_boundary(self):
        buckets = aggregate_by_month([], months=6, now=NOW)
        assert [b.key for b in buckets] == [
            (2023, 10), (2023, 11), (2023, 12), (2024, 1), (2024, 2), (2024, 3),
        ]
        assert buckets[2].label == "Dec 2023"

    def test_same_month_different_year_does_not_collide(self):
        """March 2023 is outside a 12-month window ending March 2024"""
        records = [rec(datetime(2023, 3, 10), 999), rec(datetime(2024, 3, 10), 10)]
        buckets = aggregate_by_month(records, months=12, now=NOW)
        assert buckets[-1].key == (2024, 3)
        assert buckets[-1].revenue_sum == 10
        assert sum(b.count for b in buckets) == 1

    def test_labels_are_locale_independent(self):
        assert month_label(2024, 1) == "Jan 2024"
        assert month_label(2024, 12) == "Dec 2024"


class TestPaymentBreakdown:
    def test_splits_by_payment_type(self):
        records = [
            rec(datetime(2024, 3, 15, 9), 100, payment_type="Paid"),
            rec(datetime(2024, 3, 15, 10), 40, payment_type="To Pay"),
            rec(datetime(2024, 3, 15, 11), 5, payment_type="Quotation"),
        ]
        today = daily_payment_breakdown(records, days=2, now=NOW)[-1]
        assert (today.total, today.paid, today.to_pay, today.quotation) == (145, 100, 40, 5)

    def test_unknown_payment_type_counts_only_in_total(self):
        today = daily_payment_breakdown([rec(NOW, 60, payment_type="Barter")], days=1, now=NOW)[0]
        assert today.total == 60
        assert today.paid == today.to_pay == today.quotation == 0


class TestDistributions:
    """Test status and revenue groupings"""

    def test_seeded_status_distribution(self):
        """5 booked, 3 in transit, 2 delivered, 0 cancelled"""
        records = (
            [rec(NOW, status="booked")] * 5
            + [rec(NOW, status="in_transit")] * 3
            + [rec(NOW, status="delivered")] * 2
        )
        assert status_distribution(records) == {"booked": 5, "in_transit": 3, "delivered": 2, "cancelled": 0}

    def test_mixed_statuses_and_delivered_revenue(self):
        records = [rec(NOW, 100, "delivered"), rec(NOW, 50, "booked"), rec(NOW, 30, "cancelled")]
        assert status_distribution(records) == {"booked": 1, "in_transit": 0, "delivered": 1, "cancelled": 1}
        assert revenue_by_status(records)["delivered"] == 100

    def test_unknown_status_gets_its_own_key(self):
        counts = status_distribution([rec(NOW, status="held")])
        assert counts["held"] == 1
        assert sum(counts.values()) == 1

    def test_revenue_by_status(self):
        totals = revenue_by_status([rec(NOW, 100, "delivered"), rec(NOW, 50, "delivered"), rec(NOW, 20)])
        assert totals["delivered"] == 150
        assert totals["booked"] == 20
        assert totals["cancelled"] == 0

    def test_revenue_by_branch_is_ranked_and_limited(self):
        records = [
            rec(NOW, 100, branch="Mumbai HQ"),
            rec(NOW, 300, branch="Delhi Branch"),
            rec(NOW, 50, branch="Mumbai HQ"),
            rec(NOW, 10, branch=None),
        ]
        ranked = revenue_by_branch(records)
        assert [(g.name, g.amount, g.count) for g in ranked] == [
            ("Delhi Branch", 300, 1), ("Mumbai HQ", 150, 2), ("Unknown", 10, 1),
        ]
        assert len(revenue_by_branch(records, limit=2)) == 2
        assert revenue_by_branch(records, limit=0) == []

    def test_revenue_by_payment_type_keeps_known_types(self):
        groups = revenue_by_payment_type([rec(NOW, 80, payment_type="To Pay")])
        assert groups[0].name == "To Pay"
        assert {g.name for g in groups} == {"Paid", "To Pay", "Quotation"}


class TestSummarize:
    def test_headline_numbers(self):
        records = [rec(NOW, 100, "delivered"), rec(NOW, 200, "cancelled"), rec(NOW, 300)]
        summary = summarize(records)
        assert summary.total_bookings == 3
        assert summary.revenue == 600
        assert summary.average_order_value == 200
        assert summary.delivered_count == 1
        assert summary.cancelled_count == 1
        assert summary.booked_count == 1

    def test_empty(self):
        summary = summarize([])
        assert summary.total_bookings == 0
        assert summary.average_order_value == 0
