"""
Filter Tools

Pure, order-preserving filters over already-loaded booking, article and
OGPL collections. Records may be ORM objects, pydantic views or plain dicts.
Missing optional relations never raise; they simply do not match.
"""
import calendar
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, List, Optional

ALL = "all"

BOOKING_SEARCH_FIELDS = (
    "lr_number",
    "sender.name",
    "receiver.name",
    "sender.mobile",
    "receiver.mobile",
)

ARTICLE_SEARCH_FIELDS = ("name", "description")

OGPL_SEARCH_FIELDS = ("ogpl_number", "name", "vehicle_number", "primary_driver_name")


def get_field(record: Any, path: str, default: Any = None) -> Any:
    """Read a dotted attribute/key path, returning ``default`` on any gap."""
    current = record
    for part in path.split("."):
        if current is None:
            return default
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return default if current is None else current


def as_datetime(value: Any) -> Optional[datetime]:
    """Normalize a timestamp to a naive UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return None


def shift_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` by whole calendar months, clamping the day of month."""
    month_index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _is_active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def matches_search(record: Any, query: str, fields: Iterable[str] = BOOKING_SEARCH_FIELDS) -> bool:
    """Case-insensitive substring match against any of ``fields``."""
    if not query:
        return True
    needle = query.lower()
    for path in fields:
        value = get_field(record, path)
        if value is not None and needle in str(value).lower():
            return True
    return False


def date_window(
    preset: str,
    now: Optional[datetime] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """
    Resolve a date-range preset to ``(start, end)`` bounds, both inclusive.

    ``today`` and ``yesterday`` are whole calendar days; ``last_week`` is the
    trailing 7 days; ``last_month``/``last_3_months`` go back whole calendar
    months from ``now``. ``custom`` ends at 23:59:59.999999 of ``end_date``.
    Returns ``(None, None)`` for ``all``.
    """
    preset = getattr(preset, "value", preset) or ALL
    now = as_datetime(now) or utcnow()
    today_start = datetime.combine(now.date(), time.min)

    if preset == ALL:
        return None, None
    if preset == "today":
        return today_start, datetime.combine(now.date(), time.max)
    if preset == "yesterday":
        day = now.date() - timedelta(days=1)
        return datetime.combine(day, time.min), datetime.combine(day, time.max)
    if preset == "last_week":
        return now - timedelta(days=7), None
    if preset == "last_month":
        return shift_months(now, -1), None
    if preset == "last_3_months":
        return shift_months(now, -3), None
    if preset == "custom":
        start = as_datetime(start_date) if start_date else datetime.min
        end_day = (as_datetime(end_date) or now).date() if end_date else now.date()
        return start, datetime.combine(end_day, time.max)
    raise ValueError(f"Unknown date range: {preset}")


def in_date_window(record: Any, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    created = as_datetime(get_field(record, "created_at"))
    if created is None:
        return False
    if start is not None and created < start:
        return False
    if end is not None and created > end:
        return False
    return True


@dataclass
class BookingCriteria:
    """Active booking filters; ``all``/empty values disable a predicate."""
    search: str = ""
    date_range: str = ALL
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = ALL
    payment_type: Optional[str] = ALL
    branch: Optional[str] = ALL


def filter_bookings(
    records: Iterable[Any],
    criteria: Optional[BookingCriteria] = None,
    now: Optional[datetime] = None,
) -> List[Any]:
    """
    Keep the bookings that satisfy every active predicate.

    search AND date range AND status AND payment type AND branch, where the
    branch predicate matches either ``from_branch`` or ``to_branch``.
    """
    criteria = criteria or BookingCriteria()
    start, end = date_window(criteria.date_range, now, criteria.start_date, criteria.end_date)
    status = getattr(criteria.status, "value", criteria.status)
    payment_type = getattr(criteria.payment_type, "value", criteria.payment_type)

    result = []
    for record in records:
        if not matches_search(record, criteria.search):
            continue
        if _is_active(status) and get_field(record, "status") != status:
            continue
        if _is_active(payment_type) and get_field(record, "payment_type") != payment_type:
            continue
        if _is_active(criteria.branch) and criteria.branch not in (
            get_field(record, "from_branch"),
            get_field(record, "to_branch"),
        ):
            continue
        if not in_date_window(record, start, end):
            continue
        result.append(record)
    return result


def filter_articles(
    records: Iterable[Any],
    search: str = "",
    branch_id: Optional[str] = ALL,
) -> List[Any]:
    """Articles whose name or description contains ``search``, optionally in one branch."""
    return [
        record for record in records
        if matches_search(record, search, ARTICLE_SEARCH_FIELDS)
        and (not _is_active(branch_id) or get_field(record, "branch_id") == branch_id)
    ]


def filter_ogpls(
    records: Iterable[Any],
    search: str = "",
    status: Optional[str] = ALL,
    station: Optional[str] = ALL,
) -> List[Any]:
    """OGPLs matching number/vehicle/driver search, status and either station."""
    return [
        record for record in records
        if matches_search(record, search, OGPL_SEARCH_FIELDS)
        and (not _is_active(status) or get_field(record, "status") == status)
        and (not _is_active(station) or station in (
            get_field(record, "from_station"),
            get_field(record, "to_station"),
        ))
    ]


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


def paginate(records: List[Any], page: int = 1, page_size: int = 10) -> Page:
    """Slice one 1-based page out of ``records``."""
    page = max(1, page)
    page_size = max(1, page_size)
    total = len(records)
    offset = (page - 1) * page_size
    return Page(
        items=records[offset:offset + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )
