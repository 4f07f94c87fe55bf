"""
Unit tests for the booking, article and OGPL filters and pagination.
"""
from datetime import date, datetime

import pytest

from lrdesk.tools.filter_tools import (
    BookingCriteria,
    date_window,
    filter_articles,
    filter_bookings,
    filter_ogpls,
    get_field,
    paginate,
    shift_months,
)

NOW = datetime(2024, 3, 15, 12, 0, 0)


def make_booking(lr, created_at, status="booked", payment_type="Paid",
                 from_branch="b1", to_branch="b2", sender=None, receiver=None):
    return {
        "lr_number": lr,
        "created_at": created_at,
        "status": status,
        "payment_type": payment_type,
        "from_branch": from_branch,
        "to_branch": to_branch,
        "sender": sender,
        "receiver": receiver,
    }


@pytest.fixture
def bookings():
    return [
        make_booking("MU2403-0001", datetime(2024, 3, 15, 9, 0), sender={"name": "Sharma Textiles", "mobile": "9876543210"}),
        make_booking("MU2403-0002", datetime(2024, 3, 14, 18, 30), status="in_transit", payment_type="To Pay",
                     receiver={"name": "Rekha Iyer", "mobile": "9123456780"}),
        make_booking("DL2403-0001", datetime(2024, 3, 10), status="delivered", from_branch="b2", to_branch="b3"),
        make_booking("DL2402-0004", datetime(2024, 2, 20), status="cancelled", payment_type="Quotation",
                     from_branch="b3", to_branch="b1"),
        make_booking("MU2312-0009", datetime(2023, 12, 1), sender={"name": "Patel Traders", "mobile": "9000000001"}),
    ]


def lrs(records):
    return [r["lr_number"] for r in records]


class TestGetField:
    def test_dotted_path_on_dicts_and_objects(self):
        from types import SimpleNamespace

        record = SimpleNamespace(sender={"name": "Asha"})
        assert get_field(record, "sender.name") == "Asha"

    def test_missing_relation_returns_default(self):
        assert get_field({"sender": None}, "sender.name", "x") == "x"


class TestSearch:
    """Test free-text search"""

    def test_empty_search_matches_everything(self, bookings):
        assert filter_bookings(bookings, BookingCriteria(search=""), now=NOW) == bookings

    def test_lr_number_is_case_insensitive(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(search="dl2403"), now=NOW)) == ["DL2403-0001"]

    def test_sender_name_and_receiver_mobile(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(search="sharma"), now=NOW)) == ["MU2403-0001"]
        assert lrs(filter_bookings(bookings, BookingCriteria(search="91234"), now=NOW)) == ["MU2403-0002"]

    def test_missing_relations_do_not_match_or_raise(self, bookings):
        """Bookings without sender/receiver are simply skipped"""
        assert filter_bookings(bookings, BookingCriteria(search="nobody"), now=NOW) == []


class TestDateWindow:
    """Test date-range presets"""

    def test_today(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(date_range="today"), now=NOW)) == ["MU2403-0001"]

    def test_yesterday(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(date_range="yesterday"), now=NOW)) == ["MU2403-0002"]

    def test_last_week_is_trailing_seven_days(self, bookings):
        result = filter_bookings(bookings, BookingCriteria(date_range="last_week"), now=NOW)
        assert lrs(result) == ["MU2403-0001", "MU2403-0002", "DL2403-0001"]

    def test_last_month_uses_calendar_months(self, bookings):
        start, end = date_window("last_month", NOW)
        assert start == datetime(2024, 2, 15, 12, 0, 0)
        assert end is None
        assert "DL2402-0004" in lrs(filter_bookings(bookings, BookingCriteria(date_range="last_month"), now=NOW))

    def test_last_3_months(self, bookings):
        """Starts at 2023-12-15 12:00, so December 1st is out"""
        result = filter_bookings(bookings, BookingCriteria(date_range="last_3_months"), now=NOW)
        assert "DL2402-0004" in lrs(result)
        assert "MU2312-0009" not in lrs(result)

    def test_custom_range_includes_whole_end_day(self, bookings):
        """A record at 18:30 on the end date is inside the range"""
        criteria = BookingCriteria(date_range="custom", start_date=date(2024, 3, 14), end_date=date(2024, 3, 14))
        assert lrs(filter_bookings(bookings, criteria, now=NOW)) == ["MU2403-0002"]

    def test_custom_range_boundaries_are_inclusive(self):
        start, end = date_window("custom", NOW, date(2024, 3, 1), date(2024, 3, 14))
        records = [
            make_booking("start", datetime(2024, 3, 1, 0, 0, 0)),
            make_booking("end", datetime(2024, 3, 14, 23, 59, 59)),
            make_booking("after", datetime(2024, 3, 15, 0, 0, 0)),
        ]
        criteria = BookingCriteria(date_range="custom", start_date=date(2024, 3, 1), end_date=date(2024, 3, 14))
        assert lrs(filter_bookings(records, criteria, now=NOW)) == ["start", "end"]
        assert end == datetime(2024, 3, 14, 23, 59, 59, 999999)

    def test_custom_range_includes_late_utc_record(self):
        records = [make_booking("late", "2024-03-15T23:50:00Z")]
        criteria = BookingCriteria(date_range="custom", start_date=date(2024, 3, 15), end_date=date(2024, 3, 15))
        assert lrs(filter_bookings(records, criteria, now=NOW)) == ["late"]

    def test_custom_defaults_to_beginning_of_time_and_today(self, bookings):
        result = filter_bookings(bookings, BookingCriteria(date_range="custom"), now=NOW)
        assert result == bookings

    def test_unknown_preset_raises(self):
        with pytest.raises(ValueError):
            date_window("fortnight", NOW)

    def test_aware_timestamps_are_normalized(self):
        records = [make_booking("tz", "2024-03-15T10:00:00+05:30")]
        assert lrs(filter_bookings(records, BookingCriteria(date_range="today"), now=NOW)) == ["tz"]


class TestShiftMonths:
    def test_clamps_day_of_month(self):
        assert shift_months(datetime(2024, 3, 31), -1) == datetime(2024, 2, 29)

    def test_crosses_year_boundary(self):
        assert shift_months(datetime(2024, 1, 15), -3) == datetime(2023, 10, 15)


class TestCategoricalFilters:
    """Test status, payment type and branch filters"""

    def test_all_means_no_filter(self, bookings):
        criteria = BookingCriteria(status="all", payment_type="all", branch="all")
        assert filter_bookings(bookings, criteria, now=NOW) == bookings

    def test_status(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(status="delivered"), now=NOW)) == ["DL2403-0001"]

    def test_payment_type(self, bookings):
        assert lrs(filter_bookings(bookings, BookingCriteria(payment_type="To Pay"), now=NOW)) == ["MU2403-0002"]

    def test_branch_matches_origin_or_destination(self, bookings):
        result = filter_bookings(bookings, BookingCriteria(branch="b3"), now=NOW)
        assert lrs(result) == ["DL2403-0001", "DL2402-0004"]

    def test_predicates_are_anded(self, bookings):
        """Result equals the intersection of each filter applied alone"""
        combined = BookingCriteria(search="MU", date_range="last_week", status="booked", branch="b1")
        together = filter_bookings(bookings, combined, now=NOW)

        separately = bookings
        for single in (
            BookingCriteria(search="MU"),
            BookingCriteria(date_range="last_week"),
            BookingCriteria(status="booked"),
            BookingCriteria(branch="b1"),
        ):
            separately = filter_bookings(separately, single, now=NOW)

        assert together == separately
        assert lrs(together) == ["MU2403-0001"]

    def test_preserves_input_order(self, bookings):
        reordered = list(reversed(bookings))
        assert filter_bookings(reordered, BookingCriteria(), now=NOW) == reordered


class TestCompanionFilters:
    def test_articles_by_description_and_branch(self):
        articles = [
            {"name": "Garments", "description": "Ready-made", "branch_id": "b1"},
            {"name": "Cloth", "description": "Garment rolls", "branch_id": "b2"},
            {"name": "Steel", "description": None, "branch_id": "b1"},
        ]
        assert [a["name"] for a in filter_articles(articles, "garment")] == ["Garments", "Cloth"]
        assert [a["name"] for a in filter_articles(articles, "garment", "b2")] == ["Cloth"]

    def test_ogpls_by_vehicle_and_status(self):
        ogpls = [
            {"ogpl_number": "OGPL-20240315-0001", "vehicle_number": "MH01AB1234", "status": "in_transit",
             "from_station": "b1", "to_station": "b2"},
            {"ogpl_number": "OGPL-20240315-0002", "vehicle_number": "DL05XY9999", "status": "completed",
             "from_station": "b2", "to_station": "b3"},
        ]
        assert len(filter_ogpls(ogpls, "mh01")) == 1
        assert [o["status"] for o in filter_ogpls(ogpls, status="completed")] == ["completed"]
        assert len(filter_ogpls(ogpls, station="b2")) == 2


class TestPaginate:
    def test_slices_and_counts(self):
        page = paginate(list(range(23)), page=3, page_size=10)
        assert page.items == [20, 21, 22]
        assert page.total == 23
        assert page.total_pages == 3

    def test_page_past_end_is_empty(self):
        assert paginate([1, 2], page=5, page_size=10).items == []

    def test_empty_input(self):
        page = paginate([], page=1, page_size=10)
        assert page.total == 0 and page.total_pages == 0
