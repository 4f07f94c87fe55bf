"""
Booking Tools

Tools for creating, modifying, dispatching, delivering and cancelling
lorry receipts. Every status change goes through the transition table in
``lrdesk.models.booking`` and leaves an audit entry; SMS goes out after
the change is committed and never undoes it.
"""
from typing import Dict, Any, List, Optional
from datetime import datetime
from enum import Enum
import uuid
import structlog

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lrdesk.errors import NotFound, PreconditionFailed, ValidationError
from lrdesk.models.article import Article
from lrdesk.models.booking import Booking, BookingStatus, can_transition
from lrdesk.schemas import (
    BookingCreate, BookingModify, BookingView, OrgContext, ProofOfDelivery,
)
from lrdesk.tools.article_tools import find_customer_rate
from lrdesk.tools.audit_tools import record_audit
from lrdesk.tools.directory_tools import get_branch, get_customer
from lrdesk.tools.filter_tools import (
    BookingCriteria, Page, as_datetime, filter_bookings, paginate, utcnow,
)
from lrdesk.tools.notification_tools import notify_quietly, send_booking_sms, send_status_update_sms
from lrdesk.tools.number_tools import generate_lr_number, lr_number_exists
from lrdesk.tools.pricing_tools import total_for, validate_charges
from lrdesk.tools.sort_tools import SortState

logger = structlog.get_logger()

AUDIT_ACTIONS = {
    BookingStatus.IN_TRANSIT.value: "DISPATCHED",
    BookingStatus.DELIVERED.value: "DELIVERED",
    BookingStatus.CANCELLED.value: "CANCELLED",
}


def _view_options():
    return (
        selectinload(Booking.sender),
        selectinload(Booking.receiver),
        selectinload(Booking.article),
        selectinload(Booking.from_branch_details),
        selectinload(Booking.to_branch_details),
    )


def _bookings(ctx: OrgContext):
    return (
        select(Booking)
        .options(*_view_options())
        .where(Booking.organization_id == ctx.organization_id)
    )


def _plain(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in fields.items()}


def _snapshot(booking: Booking) -> Dict[str, Any]:
    return {
        "status": booking.status,
        "total_amount": booking.total_amount,
        "payment_type": booking.payment_type,
        "to_branch": booking.to_branch,
        "receiver_id": booking.receiver_id,
    }


# ==================== Data access ====================

async def get_booking(db: AsyncSession, ctx: OrgContext, booking_id: str) -> Booking:
    """
    Load a booking with everything ``BookingView`` needs.

    Raises:
        NotFound: if the booking does not exist in the organization
    """
    result = await db.execute(
        _bookings(ctx)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found", field="booking_id")
    return booking


async def get_booking_view(db: AsyncSession, ctx: OrgContext, booking_id: str) -> BookingView:
    return BookingView.model_validate(await get_booking(db, ctx, booking_id))


async def get_booking_by_lr(db: AsyncSession, ctx: OrgContext, lr_number: str) -> BookingView:
    """Tracking lookup by LR number (case-insensitive)."""
    result = await db.execute(_bookings(ctx).where(Booking.lr_number == lr_number.strip().upper()))
    booking = result.scalars().first()
    if booking is None:
        raise NotFound(f"No booking with LR number {lr_number}", field="lr_number")
    return BookingView.model_validate(booking)


async def list_bookings(
    db: AsyncSession,
    ctx: OrgContext,
    branch_id: Optional[str] = None,
) -> List[BookingView]:
    """
    All bookings of the organization, newest first.

    With ``branch_id`` only bookings leaving from or headed to that branch
    are returned.
    """
    query = _bookings(ctx).order_by(Booking.created_at.desc())
    if branch_id:
        query = query.where(or_(Booking.from_branch == branch_id, Booking.to_branch == branch_id))
    result = await db.execute(query)
    return [BookingView.model_validate(b) for b in result.scalars().all()]


async def search_bookings(
    db: AsyncSession,
    ctx: OrgContext,
    criteria: Optional[BookingCriteria] = None,
    sort: Optional[SortState] = None,
    page: int = 1,
    page_size: int = 10,
    now: Optional[datetime] = None,
) -> Page:
    """Filter, sort and paginate the organization's bookings."""
    bookings = await list_bookings(db, ctx, branch_id=ctx.branch_id)
    matched = filter_bookings(bookings, criteria, now=now)
    return paginate((sort or SortState()).apply(matched), page, page_size)


# ==================== Create / modify ====================

async def _default_freight(db: AsyncSession, sender_id: str, article: Optional[Article]) -> float:
    if article is None:
        return 0
    customer_rate = await find_customer_rate(db, sender_id, article.id)
    return customer_rate.rate if customer_rate is not None else article.base_rate


async def create_booking(
    db: AsyncSession,
    ctx: OrgContext,
    data: BookingCreate,
    notify: bool = True,
) -> BookingView:
    """
    Book a new consignment.

    A blank ``lr_number`` gets the next system number for the origin
    branch's code; a manual one must be unused. A missing
    ``freight_per_qty`` defaults to the sender's negotiated rate for the
    article, else the article's base rate.

    Raises:
        ValidationError: negative charges, bad quantity or duplicate LR number
        NotFound: unknown branch, customer or article
    """
    fields = _plain(data.model_dump(exclude={"lr_number"}))
    validate_charges(fields)

    from_branch = await get_branch(db, ctx, data.from_branch, field="from_branch")
    await get_branch(db, ctx, data.to_branch, field="to_branch")
    await get_customer(db, ctx, data.sender_id, field="sender_id")
    await get_customer(db, ctx, data.receiver_id, field="receiver_id")

    article = None
    if data.article_id:
        article = await db.get(Article, data.article_id)
        if article is None or article.organization_id != ctx.organization_id:
            raise NotFound(f"Article {data.article_id} not found", field="article_id")

    if fields.get("freight_per_qty") is None:
        fields["freight_per_qty"] = await _default_freight(db, data.sender_id, article)
    if not fields.get("description") and article is not None:
        fields["description"] = article.name

    if data.lr_number:
        lr_number = data.lr_number.strip().upper()
        if await lr_number_exists(db, ctx, lr_number):
            raise ValidationError(f"LR number {lr_number} already exists", field="lr_number")
    else:
        lr_number = await generate_lr_number(db, ctx, from_branch.code)

    booking = Booking(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        branch_id=ctx.branch_id or data.from_branch,
        lr_number=lr_number,
        lr_type=data.lr_type.value,
        status=BookingStatus.BOOKED.value,
        total_amount=total_for(fields),
        **fields,
    )
    db.add(booking)
    await record_audit(
        db, ctx, "BOOKING", booking.id, "CREATED",
        description=f"LR {lr_number} booked",
        after_state=_snapshot(booking),
    )
    await db.commit()

    logger.info(
        "Booking created",
        booking_id=booking.id,
        lr_number=lr_number,
        total_amount=booking.total_amount,
    )

    view = await get_booking_view(db, ctx, booking.id)
    if notify:
        await notify_quietly(send_booking_sms, view)
    return view


async def modify_booking(
    db: AsyncSession,
    ctx: OrgContext,
    booking_id: str,
    changes: BookingModify,
) -> BookingView:
    """
    Edit an active booking and recompute its total.

    Raises:
        PreconditionFailed: if the booking is delivered or cancelled
        ValidationError: negative charges or bad quantity
        NotFound: unknown booking, receiver or destination branch
    """
    booking = await get_booking(db, ctx, booking_id)
    if not booking.is_modifiable:
        raise PreconditionFailed(
            f"Cannot modify booking {booking.lr_number}: it is already {booking.status}",
            status=booking.status,
        )

    updates = _plain({k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None})
    merged = {
        "quantity": booking.quantity,
        "freight_per_qty": booking.freight_per_qty,
        "loading_charges": booking.loading_charges,
        "unloading_charges": booking.unloading_charges,
        "insurance_charge": booking.insurance_charge,
        "packaging_charge": booking.packaging_charge,
        "actual_weight": booking.actual_weight,
        **updates,
    }
    validate_charges(merged)

    if "to_branch" in updates:
        await get_branch(db, ctx, updates["to_branch"], field="to_branch")
    if "receiver_id" in updates:
        await get_customer(db, ctx, updates["receiver_id"], field="receiver_id")

    before = _snapshot(booking)
    for key, value in updates.items():
        setattr(booking, key, value)
    booking.total_amount = total_for(merged)
    booking.updated_at = utcnow()

    await record_audit(
        db, ctx, "BOOKING", booking.id, "MODIFIED",
        description=f"LR {booking.lr_number} modified",
        details={"fields": sorted(updates)},
        before_state=before,
        after_state=_snapshot(booking),
    )
    await db.commit()

    logger.info("Booking modified", lr_number=booking.lr_number, fields=sorted(updates))
    return await get_booking_view(db, ctx, booking.id)


# ==================== Status transitions ====================

async def apply_transition(
    db: AsyncSession,
    ctx: OrgContext,
    booking: Booking,
    status: str,
    extra: Optional[Dict[str, Any]] = None,
    description: Optional[str] = None,
) -> Booking:
    """
    Move a loaded booking to ``status`` inside the caller's transaction.

    Raises:
        PreconditionFailed: if the transition is not allowed; the booking is
            left untouched
    """
    status = getattr(status, "value", status)
    if not can_transition(booking.status, status):
        raise PreconditionFailed(
            f"Cannot change booking {booking.lr_number} from {booking.status} to {status}",
            status=booking.status,
            target=status,
        )

    before = _snapshot(booking)
    for key, value in (extra or {}).items():
        setattr(booking, key, value)
    booking.status = status
    booking.updated_at = utcnow()

    await record_audit(
        db, ctx, "BOOKING", booking.id, AUDIT_ACTIONS.get(status, "STATUS_CHANGED"),
        description=description or f"LR {booking.lr_number} marked {status}",
        details={k: v for k, v in (extra or {}).items() if isinstance(v, (str, int, float))},
        before_state=before,
        after_state=_snapshot(booking),
    )
    return booking


async def update_booking_status(
    db: AsyncSession,
    ctx: OrgContext,
    booking_id: str,
    status: str,
    extra: Optional[Dict[str, Any]] = None,
    notify: bool = True,
    description: Optional[str] = None,
) -> BookingView:
    """
    Commit one status change, then notify both parties by SMS.

    Args:
        extra: Additional booking columns to set with the status
            (cancellation reason, proof of delivery, ...)

    Raises:
        NotFound: if the booking does not exist
        PreconditionFailed: if the transition is not allowed
    """
    booking = await get_booking(db, ctx, booking_id)
    previous = booking.status
    await apply_transition(db, ctx, booking, status, extra, description)
    await db.commit()

    logger.info(
        "Booking status changed",
        lr_number=booking.lr_number,
        from_status=previous,
        to_status=booking.status,
    )

    view = await get_booking_view(db, ctx, booking.id)
    if notify:
        await notify_quietly(send_status_update_sms, view)
    return view


async def cancel_booking(
    db: AsyncSession,
    ctx: OrgContext,
    booking_id: str,
    reason: str,
    notify: bool = True,
) -> BookingView:
    """
    Cancel a booked or in-transit consignment.

    Raises:
        ValidationError: if no reason is given
        PreconditionFailed: if the booking is already delivered or cancelled
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Cancellation reason is required", field="reason")

    view = await update_booking_status(
        db, ctx, booking_id, BookingStatus.CANCELLED,
        extra={"cancellation_reason": reason, "cancelled_at": utcnow()},
        notify=notify,
        description=f"Cancelled: {reason}",
    )
    logger.info("Booking cancelled", lr_number=view.lr_number, reason=reason)
    return view


async def dispatch_booking(
    db: AsyncSession,
    ctx: OrgContext,
    booking_id: str,
    notify: bool = True,
) -> BookingView:
    return await update_booking_status(db, ctx, booking_id, BookingStatus.IN_TRANSIT, notify=notify)


async def mark_delivered(
    db: AsyncSession,
    ctx: OrgContext,
    booking_id: str,
    pod: ProofOfDelivery,
    notify: bool = True,
) -> BookingView:
    """
    Close an in-transit booking with proof of delivery.

    Raises:
        ValidationError: if receiver name, phone or signature is missing
        PreconditionFailed: if the booking is not in transit
    """
    for name, label in (
        ("receiver_name", "Receiver name"),
        ("receiver_phone", "Receiver phone"),
        ("signature_image", "Signature"),
    ):
        if not (getattr(pod, name) or "").strip():
            raise ValidationError(f"{label} is required", field=name)

    delivered_at = as_datetime(pod.delivered_at) or utcnow()
    proof = pod.model_dump(mode="json")
    proof["delivered_at"] = delivered_at.isoformat()

    return await update_booking_status(
        db, ctx, booking_id, BookingStatus.DELIVERED,
        extra={"delivery_date": delivered_at, "proof_of_delivery": proof},
        notify=notify,
        description=f"Delivered to {pod.receiver_name}",
    )
