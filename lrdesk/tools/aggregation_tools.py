"""
Aggregation Tools

Zero-filled time buckets and group totals that feed the dashboard charts.
All functions are pure and accept any records readable by ``get_field``.
"""
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lrdesk.tools.filter_tools import as_datetime, get_field, utcnow

KNOWN_STATUSES = ("booked", "in_transit", "delivered", "cancelled")
KNOWN_PAYMENT_TYPES = ("Paid", "To Pay", "Quotation")
UNKNOWN_LABEL = "Unknown"

# Fixed English abbreviations so labels never depend on the process locale.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_PAYMENT_FIELDS = {"Paid": "paid", "To Pay": "to_pay", "Quotation": "quotation"}


def _amount(record: Any) -> float:
    return get_field(record, "total_amount", 0) or 0


@dataclass
class DayBucket:
    key: str
    count: int = 0
    delivered_count: int = 0
    revenue_sum: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthBucket:
    year: int
    month: int
    label: str
    count: int = 0
    delivered_count: int = 0
    revenue_sum: float = 0

    @property
    def key(self) -> Tuple[int, int]:
        return (self.year, self.month)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PaymentDayBucket:
    key: str
    total: float = 0
    paid: float = 0
    to_pay: float = 0
    quotation: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GroupTotal:
    name: str
    amount: float = 0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Summary:
    total_bookings: int = 0
    revenue: float = 0
    booked_count: int = 0
    in_transit_count: int = 0
    delivered_count: int = 0
    cancelled_count: int = 0
    average_order_value: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def month_label(year: int, month: int) -> str:
    """Display label for a month bucket, e.g. ``"Mar 2024"``."""
    return f"{MONTH_ABBR[month - 1]} {year}"


def _day_keys(days: int, now: Optional[datetime]) -> List[date]:
    today = (as_datetime(now) or utcnow()).date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def _month_keys(months: int, now: Optional[datetime]) -> List[Tuple[int, int]]:
    current = as_datetime(now) or utcnow()
    index = current.year * 12 + current.month - 1
    keys = []
    for offset in range(months - 1, -1, -1):
        year, month = divmod(index - offset, 12)
        keys.append((year, month + 1))
    return keys


def aggregate_by_day(records: Iterable[Any], days: int = 30, now: Optional[datetime] = None) -> List[DayBucket]:
    """
    Count bookings, deliveries and revenue per calendar day.

    Returns ``days`` buckets keyed ``YYYY-MM-DD``, oldest first and ending
    today, including days with no bookings. Records outside the window are
    dropped.
    """
    buckets = {day: DayBucket(key=day.isoformat()) for day in _day_keys(days, now)}
    for record in records:
        created = as_datetime(get_field(record, "created_at"))
        bucket = buckets.get(created.date()) if created else None
        if bucket is None:
            continue
        bucket.count += 1
        bucket.revenue_sum += _amount(record)
        if get_field(record, "status") == "delivered":
            bucket.delivered_count += 1
    return list(buckets.values())


def aggregate_by_month(records: Iterable[Any], months: int = 12, now: Optional[datetime] = None) -> List[MonthBucket]:
    """
    Monthly counterpart of ``aggregate_by_day``.

    Buckets are keyed by ``(year, month)``; the label is for display only.
    """
    buckets = {
        (year, month): MonthBucket(year=year, month=month, label=month_label(year, month))
        for year, month in _month_keys(months, now)
    }
    for record in records:
        created = as_datetime(get_field(record, "created_at"))
        bucket = buckets.get((created.year, created.month)) if created else None
        if bucket is None:
            continue
        bucket.count += 1
        bucket.revenue_sum += _amount(record)
        if get_field(record, "status") == "delivered":
            bucket.delivered_count += 1
    return list(buckets.values())


def daily_payment_breakdown(records: Iterable[Any], days: int = 30, now: Optional[datetime] = None) -> List[PaymentDayBucket]:
    """Per-day revenue split by payment type, zero-filled like ``aggregate_by_day``."""
    buckets = {day: PaymentDayBucket(key=day.isoformat()) for day in _day_keys(days, now)}
    for record in records:
        created = as_datetime(get_field(record, "created_at"))
        bucket = buckets.get(created.date()) if created else None
        if bucket is None:
            continue
        amount = _amount(record)
        bucket.total += amount
        attr = _PAYMENT_FIELDS.get(get_field(record, "payment_type"))
        if attr:
            setattr(bucket, attr, getattr(bucket, attr) + amount)
    return list(buckets.values())


def status_distribution(records: Iterable[Any]) -> Dict[str, int]:
    """
    Booking count per status.

    The four lifecycle statuses are always present; any other status value
    gets its own key instead of being dropped.
    """
    counts = {status: 0 for status in KNOWN_STATUSES}
    for record in records:
        status = get_field(record, "status", UNKNOWN_LABEL)
        counts[status] = counts.get(status, 0) + 1
    return counts


def revenue_by_status(records: Iterable[Any]) -> Dict[str, float]:
    totals = {status: 0 for status in KNOWN_STATUSES}
    for record in records:
        status = get_field(record, "status", UNKNOWN_LABEL)
        totals[status] = totals.get(status, 0) + _amount(record)
    return totals


def _group_totals(records: Iterable[Any], path: str, seed: Iterable[str] = ()) -> Dict[str, GroupTotal]:
    groups = {name: GroupTotal(name=name) for name in seed}
    for record in records:
        name = get_field(record, path) or UNKNOWN_LABEL
        group = groups.setdefault(name, GroupTotal(name=name))
        group.amount += _amount(record)
        group.count += 1
    return groups


def revenue_by_branch(records: Iterable[Any], limit: Optional[int] = None) -> List[GroupTotal]:
    """Revenue per originating branch name, largest first."""
    groups = _group_totals(records, "from_branch_details.name")
    ranked = sorted(groups.values(), key=lambda g: g.amount, reverse=True)
    return ranked[:limit] if limit is not None else ranked


def revenue_by_payment_type(records: Iterable[Any]) -> List[GroupTotal]:
    """Revenue per payment type, largest first; known types always present."""
    groups = _group_totals(records, "payment_type", seed=KNOWN_PAYMENT_TYPES)
    return sorted(groups.values(), key=lambda g: g.amount, reverse=True)


def summarize(records: Iterable[Any]) -> Summary:
    """Headline numbers for the dashboard cards."""
    records = list(records)
    counts = status_distribution(records)
    revenue = sum(_amount(record) for record in records)
    total = len(records)
    return Summary(
        total_bookings=total,
        revenue=revenue,
        booked_count=counts["booked"],
        in_transit_count=counts["in_transit"],
        delivered_count=counts["delivered"],
        cancelled_count=counts["cancelled"],
        average_order_value=revenue / total if total else 0,
    )
