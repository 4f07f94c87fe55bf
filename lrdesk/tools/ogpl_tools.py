"""
OGPL Tools

Loading and unloading of trip manifests (OGPLs).

Loading puts ``booked`` LRs on a vehicle and moves them to ``in_transit``.
Unloading records the condition of each consignment at the destination,
delivers the ones that arrived and completes the OGPL.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, time
import uuid
import structlog

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lrdesk.errors import NotFound, PreconditionFailed, ValidationError
from lrdesk.models.booking import Booking, BookingStatus
from lrdesk.models.ogpl import OGPL, ItemCondition, LoadingRecord, OGPLStatus, UnloadingRecord
from lrdesk.schemas import BookingView, OGPLCreate, OrgContext, UnloadingRequest
from lrdesk.tools.audit_tools import record_audit
from lrdesk.tools.booking_tools import apply_transition
from lrdesk.tools.directory_tools import get_branch
from lrdesk.tools.filter_tools import filter_ogpls, utcnow
from lrdesk.tools.notification_tools import notify_quietly, send_status_update_sms
from lrdesk.tools.number_tools import generate_ogpl_number
from lrdesk.tools.sort_tools import SortState

logger = structlog.get_logger()

# Arrived consignments are delivered; missing ones stay in transit for follow-up.
DELIVERED_CONDITIONS = {ItemCondition.GOOD.value, ItemCondition.DAMAGED.value}


def _booking_options():
    return (
        selectinload(Booking.sender),
        selectinload(Booking.receiver),
        selectinload(Booking.article),
        selectinload(Booking.from_branch_details),
        selectinload(Booking.to_branch_details),
    )


def _ogpls(ctx: OrgContext):
    return (
        select(OGPL)
        .options(
            selectinload(OGPL.from_station_details),
            selectinload(OGPL.to_station_details),
            selectinload(OGPL.loading_records)
            .selectinload(LoadingRecord.booking)
            .options(*_booking_options()),
            selectinload(OGPL.unloading_records),
        )
        .where(OGPL.organization_id == ctx.organization_id)
    )


def _booking_views(ogpl: OGPL, booking_ids=None) -> List[BookingView]:
    return [
        BookingView.model_validate(record.booking)
        for record in ogpl.loading_records
        if booking_ids is None or record.booking_id in booking_ids
    ]


async def get_ogpl(db: AsyncSession, ctx: OrgContext, ogpl_id: str) -> OGPL:
    """
    Raises:
        NotFound: if the OGPL does not exist in the organization
    """
    result = await db.execute(
        _ogpls(ctx)
        .where(OGPL.id == ogpl_id)
        .execution_options(populate_existing=True)
    )
    ogpl = result.scalar_one_or_none()
    if ogpl is None:
        raise NotFound(f"OGPL {ogpl_id} not found", field="ogpl_id")
    return ogpl


async def list_ogpls(
    db: AsyncSession,
    ctx: OrgContext,
    search: str = "",
    status: Optional[str] = None,
    station: Optional[str] = None,
    sort_field: str = "created_at",
    sort_direction: Optional[str] = None,
) -> List[OGPL]:
    result = await db.execute(_ogpls(ctx))
    ogpls = filter_ogpls(result.scalars().all(), search, status, station)
    return SortState.for_field(sort_field, sort_direction).apply(ogpls)


async def list_incoming_ogpls(
    db: AsyncSession,
    ctx: OrgContext,
    branch_id: Optional[str] = None,
) -> List[OGPL]:
    """
    In-transit OGPLs headed to a branch, waiting to be unloaded.

    Raises:
        ValidationError: if neither ``branch_id`` nor a context branch is given
    """
    branch_id = branch_id or ctx.branch_id
    if not branch_id:
        raise ValidationError("Branch is required to list incoming OGPLs", field="branch_id")
    result = await db.execute(
        _ogpls(ctx).where(
            OGPL.to_station == branch_id,
            OGPL.status == OGPLStatus.IN_TRANSIT.value,
        )
    )
    return SortState.for_field("transit_date", "asc").apply(result.scalars().all())


async def create_ogpl(
    db: AsyncSession,
    ctx: OrgContext,
    data: OGPLCreate,
    notify: bool = True,
) -> OGPL:
    """
    Load booked LRs onto a new OGPL.

    Every selected booking must be ``booked``; nothing is written if any
    is not.

    Raises:
        ValidationError: same source and destination station
        NotFound: unknown station or booking
        PreconditionFailed: a selected booking is not ``booked``
    """
    if data.from_station == data.to_station:
        raise ValidationError("Source and destination stations must differ", field="to_station")
    await get_branch(db, ctx, data.from_station, field="from_station")
    await get_branch(db, ctx, data.to_station, field="to_station")

    booking_ids = list(dict.fromkeys(data.booking_ids))
    result = await db.execute(
        select(Booking).where(
            Booking.organization_id == ctx.organization_id,
            Booking.id.in_(booking_ids),
        )
    )
    bookings = {b.id: b for b in result.scalars().all()}

    missing = [booking_id for booking_id in booking_ids if booking_id not in bookings]
    if missing:
        raise NotFound(f"Bookings not found: {', '.join(missing)}", field="booking_ids", booking_ids=missing)

    not_booked = [b.lr_number for b in bookings.values() if b.status != BookingStatus.BOOKED.value]
    if not_booked:
        raise PreconditionFailed(
            f"Only booked LRs can be loaded: {', '.join(not_booked)}",
            field="booking_ids",
            lr_numbers=not_booked,
        )

    ogpl_number = await generate_ogpl_number(db, ctx)
    ogpl = OGPL(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        ogpl_number=ogpl_number,
        **{
            **data.model_dump(exclude={"booking_ids"}),
            "transit_mode": data.transit_mode.value,
            "transit_date": datetime.combine(data.transit_date, time.min),
        },
        status=OGPLStatus.IN_TRANSIT.value,
    )
    db.add(ogpl)

    for booking_id in booking_ids:
        db.add(LoadingRecord(id=str(uuid.uuid4()), ogpl_id=ogpl.id, booking_id=booking_id))
        await apply_transition(
            db, ctx, bookings[booking_id], BookingStatus.IN_TRANSIT,
            description=f"Loaded on OGPL {ogpl_number}",
        )

    await record_audit(
        db, ctx, "OGPL", ogpl.id, "CREATED",
        description=f"OGPL {ogpl_number} loaded with {len(booking_ids)} LRs",
        details={"booking_ids": booking_ids, "vehicle_number": data.vehicle_number},
    )
    await db.commit()

    logger.info(
        "OGPL created",
        ogpl_number=ogpl_number,
        vehicle_number=data.vehicle_number,
        bookings=len(booking_ids),
    )

    ogpl = await get_ogpl(db, ctx, ogpl.id)
    if notify:
        for view in _booking_views(ogpl):
            await notify_quietly(send_status_update_sms, view)
    return ogpl


async def submit_unloading(
    db: AsyncSession,
    ctx: OrgContext,
    ogpl_id: str,
    request: UnloadingRequest,
    notify: bool = True,
) -> OGPL:
    """
    Record unloading of an in-transit OGPL.

    Raises:
        PreconditionFailed: the OGPL is not in transit (already unloaded)
        ValidationError: an item is not on the OGPL, is listed twice, is
            damaged/missing without remarks, or a loaded booking is left out
    """
    ogpl = await get_ogpl(db, ctx, ogpl_id)
    if ogpl.status != OGPLStatus.IN_TRANSIT.value:
        raise PreconditionFailed(f"OGPL {ogpl.ogpl_number} is already {ogpl.status}", status=ogpl.status)

    loaded = {record.booking_id: record.booking for record in ogpl.loading_records}
    seen = set()
    for item in request.items:
        if item.booking_id not in loaded:
            raise ValidationError(
                f"Booking {item.booking_id} is not loaded on OGPL {ogpl.ogpl_number}",
                field="items",
            )
        if item.booking_id in seen:
            raise ValidationError(f"Booking {item.booking_id} is listed twice", field="items")
        seen.add(item.booking_id)
        if item.condition != ItemCondition.GOOD and not (item.remarks or "").strip():
            raise ValidationError(
                f"Remarks are required for {item.condition.value} items",
                field="remarks",
                booking_id=item.booking_id,
            )

    left_out = [booking_id for booking_id in loaded if booking_id not in seen]
    if left_out:
        raise ValidationError(
            "No unloading entry for " + ", ".join(loaded[booking_id].lr_number for booking_id in left_out),
            field="items",
            booking_ids=left_out,
        )

    delivered = set()
    conditions: Dict[str, Any] = {}
    now = utcnow()
    for item in request.items:
        condition = item.condition.value
        conditions[item.booking_id] = condition
        db.add(UnloadingRecord(
            id=str(uuid.uuid4()),
            ogpl_id=ogpl.id,
            booking_id=item.booking_id,
            condition=condition,
            remarks=item.remarks,
            photo=item.photo,
        ))
        booking = loaded[item.booking_id]
        if condition in DELIVERED_CONDITIONS and booking.status == BookingStatus.IN_TRANSIT.value:
            await apply_transition(
                db, ctx, booking, BookingStatus.DELIVERED,
                extra={"delivery_date": now},
                description=f"Unloaded from OGPL {ogpl.ogpl_number} ({condition})",
            )
            delivered.add(item.booking_id)

    ogpl.status = OGPLStatus.COMPLETED.value
    ogpl.unloaded_at = now
    await record_audit(
        db, ctx, "OGPL", ogpl.id, "UNLOADED",
        description=f"OGPL {ogpl.ogpl_number} unloaded",
        details={"conditions": conditions},
    )
    await db.commit()

    logger.info(
        "OGPL unloaded",
        ogpl_number=ogpl.ogpl_number,
        delivered=len(delivered),
        exceptions=sum(1 for c in conditions.values() if c != ItemCondition.GOOD.value),
    )

    ogpl = await get_ogpl(db, ctx, ogpl.id)
    if notify:
        for view in _booking_views(ogpl, delivered):
            await notify_quietly(send_status_update_sms, view)
    return ogpl
