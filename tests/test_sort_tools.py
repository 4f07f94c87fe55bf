"""
Unit tests for list sorting and the header-click toggle.
"""
from datetime import datetime

from lrdesk.tools.sort_tools import SortState, default_direction, sort_records


def rec(lr, total=None, created_at=None, name=None):
    return {"lr_number": lr, "total_amount": total, "created_at": created_at, "name": name}


class TestSortRecords:
    """Test field/direction ordering"""

    def test_numeric_ascending_and_descending(self):
        records = [rec("a", 300), rec("b", 100), rec("c", 200)]
        assert [r["lr_number"] for r in sort_records(records, "total_amount", "asc")] == ["b", "c", "a"]
        assert [r["lr_number"] for r in sort_records(records, "total_amount", "desc")] == ["a", "c", "b"]

    def test_strings_ignore_case(self):
        records = [rec("x", name="banana"), rec("y", name="Apple"), rec("z", name="cherry")]
        assert [r["name"] for r in sort_records(records, "name", "asc")] == ["Apple", "banana", "cherry"]

    def test_dates(self):
        records = [
            rec("old", created_at=datetime(2024, 1, 1)),
            rec("new", created_at="2024-03-01T10:00:00Z"),
            rec("mid", created_at=datetime(2024, 2, 1)),
        ]
        assert [r["lr_number"] for r in sort_records(records, "created_at", "desc")] == ["new", "mid", "old"]

    def test_missing_values_sort_as_empty_zero_or_earliest(self):
        records = [rec("has", 10, datetime(2024, 1, 1), "Zed"), rec("none")]
        assert sort_records(records, "total_amount", "asc")[0]["lr_number"] == "none"
        assert sort_records(records, "created_at", "asc")[0]["lr_number"] == "none"
        assert sort_records(records, "name", "asc")[0]["lr_number"] == "none"

    def test_does_not_mutate_input(self):
        records = [rec("a", 3), rec("b", 1)]
        sort_records(records, "total_amount", "asc")
        assert [r["lr_number"] for r in records] == ["a", "b"]

    def test_idempotent(self):
        """Sorting a sorted list changes nothing"""
        records = [rec("a", 5), rec("b", 1), rec("c", 5), rec("d", 3)]
        once = sort_records(records, "total_amount", "desc")
        assert sort_records(once, "total_amount", "desc") == once

    def test_stable_for_equal_keys_in_both_directions(self):
        """Ties keep their input order, ascending or descending"""
        records = [rec("first", 5), rec("low", 1), rec("second", 5), rec("third", 5)]
        asc = [r["lr_number"] for r in sort_records(records, "total_amount", "asc")]
        desc = [r["lr_number"] for r in sort_records(records, "total_amount", "desc")]
        assert asc == ["low", "first", "second", "third"]
        assert desc == ["first", "second", "third", "low"]


class TestSortState:
    """Test the header-click toggle policy"""

    def test_same_field_flips_direction(self):
        state = SortState("total_amount", "desc")
        assert state.toggle("total_amount") == SortState("total_amount", "asc")
        assert state.toggle("total_amount").toggle("total_amount") == state

    def test_new_field_starts_at_its_default(self):
        state = SortState("created_at", "asc")
        assert state.toggle("lr_number") == SortState("lr_number", "asc")
        assert state.toggle("total_amount") == SortState("total_amount", "desc")

    def test_defaults(self):
        assert default_direction("name") == "asc"
        assert default_direction("base_rate") == "asc"
        assert default_direction("created_at") == "desc"
        assert default_direction("transit_date") == "desc"

    def test_default_state_is_newest_first(self):
        records = [rec("a", created_at=datetime(2024, 1, 1)), rec("b", created_at=datetime(2024, 2, 1))]
        assert [r["lr_number"] for r in SortState().apply(records)] == ["b", "a"]

    def test_for_field_uses_default_when_direction_missing(self):
        assert SortState.for_field("total_amount") == SortState("total_amount", "desc")
        assert SortState.for_field("total_amount", "asc").direction == "asc"
