"""Unit tests for the dashboard aggregation functions."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from desicargo.services import analytics
from desicargo.services.bookings import can_transition, compute_total

NOW = datetime(2024, 3, 15, 12, 0, 0)


def booking(created_at, status="booked", amount=100.0, payment_type="Paid", **extra):
    sender = extra.pop("sender", SimpleNamespace(name="Ravi Traders", type="company"))
    receiver = extra.pop("receiver", SimpleNamespace(name="Meena Stores", type="individual"))
    fields = dict(
        lr_number=extra.pop("lr_number", "LR-20240315-0001"),
        created_at=created_at,
        updated_at=extra.pop("updated_at", created_at),
        status=status,
        total_amount=amount,
        payment_type=payment_type,
        from_branch=extra.pop("from_branch", "b-mumbai"),
        to_branch=extra.pop("to_branch", "b-delhi"),
        from_branch_details=extra.pop("from_branch_details", SimpleNamespace(name="Mumbai Central")),
        sender_id=extra.pop("sender_id", "c-ravi"),
        receiver_id=extra.pop("receiver_id", "c-meena"),
        sender=sender,
        receiver=receiver,
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


@pytest.mark.unit
class TestTotals:

    def test_total_amount_example(self):
        draft = SimpleNamespace(
            quantity=3, freight_per_qty=100, loading_charges=20, unloading_charges=10,
            insurance_charge=0, packaging_charge=0,
        )
        assert compute_total(draft) == 330

    def test_absent_charges_count_as_zero(self):
        draft = SimpleNamespace(
            quantity=2, freight_per_qty=75.5, loading_charges=None, unloading_charges=None,
            insurance_charge=None, packaging_charge=None,
        )
        assert compute_total(draft) == 151.0

    def test_status_transitions(self):
        assert can_transition("booked", "in_transit")
        assert can_transition("in_transit", "delivered")
        assert can_transition("booked", "cancelled")
        assert can_transition("delivered", "delivered")
        assert not can_transition("delivered", "booked")
        assert not can_transition("booked", "delivered")
        assert not can_transition("cancelled", "in_transit")


@pytest.mark.unit
class TestDateFilter:

    def test_last_week_example(self):
        rows = [
            booking(NOW - timedelta(hours=2), lr_number="today"),
            booking(NOW - timedelta(days=1), lr_number="yesterday"),
            booking(NOW - timedelta(days=8), lr_number="eight-days"),
            booking(NOW - timedelta(days=40), lr_number="forty-days"),
        ]
        kept = analytics.filter_bookings(rows, "last_week", NOW)
        assert [b.lr_number for b in kept] == ["today", "yesterday"]

    def test_today_and_yesterday_use_calendar_dates(self):
        just_after_midnight = booking(datetime(2024, 3, 15, 0, 5), lr_number="a")
        late_yesterday = booking(datetime(2024, 3, 14, 23, 55), lr_number="b")
        rows = [just_after_midnight, late_yesterday]

        assert analytics.filter_bookings(rows, "today", NOW) == [just_after_midnight]
        assert analytics.filter_bookings(rows, "yesterday", NOW) == [late_yesterday]

    def test_last_month_is_one_calendar_month(self):
        inside = booking(datetime(2024, 2, 15, 12, 0))
        outside = booking(datetime(2024, 2, 15, 11, 59))
        assert analytics.filter_bookings([inside, outside], "last_month", NOW) == [inside]

    def test_months_back_clamps_day(self):
        assert analytics.months_back(datetime(2024, 3, 31, 9, 0), 1) == datetime(2024, 2, 29, 9, 0)
        assert analytics.months_back(datetime(2024, 1, 15), 3) == datetime(2023, 10, 15)

    def test_custom_range_includes_whole_end_day(self):
        rows = [
            booking(datetime(2024, 3, 1, 0, 0), lr_number="start"),
            booking(datetime(2024, 3, 10, 23, 59, 59), lr_number="end"),
            booking(datetime(2024, 3, 11, 0, 0), lr_number="after"),
        ]
        kept = analytics.filter_bookings(
            rows, "custom", NOW, start_date=date(2024, 3, 1), end_date=date(2024, 3, 10)
        )
        assert [b.lr_number for b in kept] == ["start", "end"]

    def test_custom_range_without_dates_keeps_history_to_today(self):
        rows = [booking(datetime(2001, 1, 1)), booking(NOW)]
        assert len(analytics.filter_bookings(rows, "custom", NOW)) == 2

    def test_search_matches_lr_and_party_names(self):
        rows = [
            booking(NOW, lr_number="LR-20240315-0007"),
            booking(NOW, lr_number="LR-X", sender=SimpleNamespace(name="Gupta Textiles", type="company")),
            booking(NOW, lr_number="LR-Y"),
        ]
        assert len(analytics.filter_bookings(rows, "all", NOW, search="0007")) == 1
        assert len(analytics.filter_bookings(rows, "all", NOW, search="gupta")) == 1
        assert len(analytics.filter_bookings(rows, "all", NOW, search="MEENA")) == 3


@pytest.mark.unit
class TestFigures:

    def test_status_counts_sum_to_total(self):
        rows = [booking(NOW, s) for s in ("booked", "booked", "in_transit", "delivered", "cancelled")]
        counts = analytics.status_counts(rows)
        assert counts == {"booked": 2, "in_transit": 1, "delivered": 1, "cancelled": 1}
        assert sum(counts.values()) == len(rows)

    def test_revenue_summary(self):
        rows = [booking(NOW, amount=100), booking(NOW, amount=250)]
        assert analytics.revenue_summary(rows) == {"total": 350, "average": 175}
        assert analytics.revenue_summary([]) == {"total": 0, "average": 0}

    def test_average_delivery_hours(self):
        rows = [
            booking(NOW - timedelta(hours=10), "delivered", updated_at=NOW),
            booking(NOW - timedelta(hours=20), "delivered", updated_at=NOW),
            booking(NOW - timedelta(hours=99), "in_transit", updated_at=NOW),
        ]
        assert analytics.average_delivery_hours(rows) == 15.0

    def test_average_delivery_hours_without_deliveries(self):
        assert analytics.average_delivery_hours([booking(NOW)]) == 0.0
        assert analytics.average_delivery_hours([]) == 0.0


@pytest.mark.unit
class TestSeries:

    def test_daily_trend_is_zero_filled_and_chronological(self):
        rows = [
            booking(NOW, "delivered", amount=50),
            booking(NOW - timedelta(days=2), amount=20),
            booking(NOW - timedelta(days=45), amount=999),
        ]
        trend = analytics.daily_trend(rows, NOW)
        assert len(trend) == 30
        assert trend[0]["date"] == "2024-02-15"
        assert trend[-1] == {"date": "2024-03-15", "bookings": 1, "delivered": 1, "revenue": 50.0}
        assert trend[-3]["bookings"] == 1
        assert sum(day["revenue"] for day in trend) == 70.0

    def test_monthly_revenue_trend(self):
        rows = [
            booking(datetime(2024, 3, 1), amount=10),
            booking(datetime(2023, 4, 30), amount=5),
            booking(datetime(2023, 3, 31), amount=1000),
        ]
        trend = analytics.monthly_revenue_trend(rows, NOW)
        assert len(trend) == 12
        assert trend[0] == {"month": "Apr 2023", "revenue": 5.0}
        assert trend[-1] == {"month": "Mar 2024", "revenue": 10.0}

    def test_branch_trend(self):
        rows = [
            booking(NOW, from_branch="b-mumbai", to_branch="b-delhi"),
            booking(NOW, from_branch="b-delhi", to_branch="b-mumbai"),
        ]
        trend = analytics.branch_trend(rows, "b-mumbai", NOW)
        assert trend[-1] == {"date": "2024-03-15", "inbound": 1, "outbound": 1}


@pytest.mark.unit
class TestDistributions:

    def test_status_distribution_keeps_lifecycle_order(self):
        rows = [booking(NOW, "cancelled"), booking(NOW, "cancelled"), booking(NOW, "booked")]
        names = [item["name"] for item in analytics.status_distribution(rows)]
        assert names == ["Booked", "In transit", "Delivered", "Cancelled"]

    def test_payment_types_ranked_by_revenue(self):
        rows = [
            booking(NOW, amount=100, payment_type="Paid"),
            booking(NOW, amount=300, payment_type="To Pay"),
        ]
        ranked = analytics.payment_type_distribution(rows)
        assert ranked[0] == {"name": "To Pay", "value": 300}
        assert ranked[1] == {"name": "Paid", "value": 100}

    def test_branch_revenue_by_origin_name(self):
        rows = [
            booking(NOW, amount=100),
            booking(NOW, amount=500, from_branch_details=SimpleNamespace(name="Delhi Hub")),
            booking(NOW, amount=50, from_branch_details=None),
        ]
        ranked = analytics.branch_revenue(rows)
        assert [r["name"] for r in ranked] == ["Delhi Hub", "Mumbai Central", "Unknown"]

    def test_top_customers_counts_both_roles_and_caps(self):
        rows = [
            booking(NOW, sender_id=f"c-{i}", receiver_id="c-meena",
                    sender=SimpleNamespace(name=f"Sender {i}", type="individual"))
            for i in range(7)
        ]
        top = analytics.top_customers(rows)
        assert len(top) == 5
        assert top[0] == {"id": "c-meena", "name": "Meena Stores", "type": "individual", "count": 7}

    def test_top_customers_unknown_fallback(self):
        rows = [booking(NOW, sender=None, receiver=None)]
        top = analytics.top_customers(rows)
        assert {t["name"] for t in top} == {"Unknown"}

    def test_branch_summary(self):
        rows = [
            booking(NOW, "booked", amount=100, to_branch="b-mumbai", from_branch="b-delhi"),
            booking(NOW, "delivered", amount=50, to_branch="b-mumbai", from_branch="b-delhi"),
            booking(NOW, "booked", amount=25),
        ]
        vehicles = [SimpleNamespace(status="active"), SimpleNamespace(status="maintenance")]
        summary = analytics.branch_summary(rows, vehicles, "b-mumbai")
        assert summary == {
            "total_bookings": 3,
            "revenue": 175,
            "inbound": 2,
            "outbound": 1,
            "pending_deliveries": 1,
            "active_vehicles": 1,
        }
