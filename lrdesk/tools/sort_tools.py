"""
Sort Tools

Stable field/direction ordering for list views, plus the header-click
toggle policy with a default direction per field.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from lrdesk.tools.filter_tools import as_datetime, get_field


class FieldKind(str, Enum):
    STRING = "string"
    NUMERIC = "numeric"
    DATE = "date"


@dataclass(frozen=True)
class SortField:
    kind: FieldKind
    default_direction: str


# Names sort A→Z by default; amounts and timestamps show the largest/newest first.
SORT_FIELDS: Dict[str, SortField] = {
    "lr_number": SortField(FieldKind.STRING, "asc"),
    "name": SortField(FieldKind.STRING, "asc"),
    "ogpl_number": SortField(FieldKind.STRING, "asc"),
    "base_rate": SortField(FieldKind.NUMERIC, "asc"),
    "rate": SortField(FieldKind.NUMERIC, "asc"),
    "total_amount": SortField(FieldKind.NUMERIC, "desc"),
    "created_at": SortField(FieldKind.DATE, "desc"),
    "updated_at": SortField(FieldKind.DATE, "desc"),
    "transit_date": SortField(FieldKind.DATE, "desc"),
}


def _string_key(value: Any):
    text = "" if value is None else str(value)
    return (text.casefold(), text)


def _numeric_key(value: Any):
    return 0 if value is None else value


def _date_key(value: Any):
    return as_datetime(value) or datetime.min


_KEY_BUILDERS: Dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.STRING: _string_key,
    FieldKind.NUMERIC: _numeric_key,
    FieldKind.DATE: _date_key,
}


def sort_key(field: str) -> Callable[[Any], Any]:
    """Key function for ``field``; unregistered fields sort as strings."""
    spec = SORT_FIELDS.get(field)
    build = _KEY_BUILDERS[spec.kind if spec else FieldKind.STRING]
    return lambda record: build(get_field(record, field))


def sort_records(records: Iterable[Any], field: str, direction: str = "asc") -> List[Any]:
    """
    Return a new list ordered by ``field``.

    The sort is stable in both directions: ``reverse=True`` keeps equal keys
    in their input order.
    """
    direction = getattr(direction, "value", direction)
    return sorted(records, key=sort_key(field), reverse=(direction == "desc"))


def default_direction(field: str) -> str:
    spec = SORT_FIELDS.get(field)
    return spec.default_direction if spec else "asc"


@dataclass(frozen=True)
class SortState:
    """Current sort column and direction of a list view."""
    field: str = "created_at"
    direction: str = "desc"

    def toggle(self, field: str) -> "SortState":
        """Same field flips direction; a new field starts at its default direction."""
        if field == self.field:
            return SortState(field, "asc" if self.direction == "desc" else "desc")
        return SortState(field, default_direction(field))

    def apply(self, records: Iterable[Any]) -> List[Any]:
        return sort_records(records, self.field, self.direction)

    @classmethod
    def for_field(cls, field: str, direction: Optional[str] = None) -> "SortState":
        return cls(field, getattr(direction, "value", direction) or default_direction(field))
