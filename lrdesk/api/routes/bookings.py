"""
Bookings API Routes (lorry receipts)
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
import structlog

from lrdesk.api.deps import Pagination, get_org_context
from lrdesk.db.database import get_db
from lrdesk.errors import ValidationError
from lrdesk.schemas import (
    AuditTrailResponse, BookingActionResponse, BookingCreate, BookingModify, BookingPage,
    BookingView, CancellationRequest, DateRangePreset, OrgContext, ProofOfDelivery, SortDirection,
)
from lrdesk.tools import booking_tools
from lrdesk.tools.audit_tools import get_audit_trail
from lrdesk.tools.csv_tools import export_bookings_csv
from lrdesk.tools.directory_tools import get_branch
from lrdesk.tools.filter_tools import ALL, BookingCriteria, filter_bookings
from lrdesk.tools.notification_tools import send_delivery_reminder_sms
from lrdesk.tools.number_tools import generate_lr_number
from lrdesk.tools.sort_tools import SORT_FIELDS, SortState

logger = structlog.get_logger()
router = APIRouter()

BOOKING_SORT_FIELDS = ("lr_number", "total_amount", "created_at", "updated_at")


def booking_criteria(
    search: str = Query("", description="LR number, sender/receiver name or mobile"),
    date_range: DateRangePreset = Query(DateRangePreset.ALL),
    start_date: Optional[date] = Query(None, description="Start of a custom range"),
    end_date: Optional[date] = Query(None, description="End of a custom range (inclusive)"),
    status: str = Query(ALL),
    payment_type: str = Query(ALL),
    branch: str = Query(ALL, description="Matches origin or destination branch"),
) -> BookingCriteria:
    return BookingCriteria(
        search=search,
        date_range=date_range.value,
        start_date=start_date,
        end_date=end_date,
        status=status,
        payment_type=payment_type,
        branch=branch,
    )


def booking_sort(
    sort_field: str = Query("created_at"),
    sort_direction: Optional[SortDirection] = Query(None),
) -> SortState:
    if sort_field not in BOOKING_SORT_FIELDS or sort_field not in SORT_FIELDS:
        raise ValidationError(f"Cannot sort bookings by {sort_field}", field="sort_field")
    return SortState.for_field(sort_field, sort_direction)


@router.get("/", response_model=BookingPage)
async def list_bookings(
    criteria: BookingCriteria = Depends(booking_criteria),
    sort: SortState = Depends(booking_sort),
    pagination: Pagination = Depends(),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """
    List bookings with search, date range, status, payment type and branch
    filters, sorted and paginated.
    """
    page = await booking_tools.search_bookings(
        db, ctx, criteria, sort, page=pagination.page, page_size=pagination.page_size,
    )
    return BookingPage(
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
        items=page.items,
    )


@router.get("/next-lr-number")
async def next_lr_number(
    branch_code: Optional[str] = Query(None, max_length=10),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Preview the LR number the next system-numbered booking would get."""
    if not branch_code and ctx.branch_id:
        branch_code = (await get_branch(db, ctx, ctx.branch_id)).code
    return {"lr_number": await generate_lr_number(db, ctx, branch_code)}


@router.get("/export")
async def export_bookings(
    fields: Optional[str] = Query(None, description="Comma-separated column names"),
    criteria: BookingCriteria = Depends(booking_criteria),
    sort: SortState = Depends(booking_sort),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Download the filtered bookings as CSV."""
    bookings = await booking_tools.list_bookings(db, ctx, branch_id=ctx.branch_id)
    rows = sort.apply(filter_bookings(bookings, criteria))
    selected = [f.strip() for f in fields.split(",") if f.strip()] if fields else None
    content = export_bookings_csv(rows, selected)
    logger.info("Bookings exported", rows=len(rows))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="bookings_export_{date.today().isoformat()}.csv"'},
    )


@router.get("/track/{lr_number}", response_model=BookingView)
async def track_booking(
    lr_number: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Look up a consignment by its LR number."""
    return await booking_tools.get_booking_by_lr(db, ctx, lr_number)


@router.get("/{booking_id}", response_model=BookingView)
async def get_booking(
    booking_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await booking_tools.get_booking_view(db, ctx, booking_id)


@router.get("/{booking_id}/history", response_model=List[AuditTrailResponse])
async def booking_history(
    booking_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Audit trail of a booking, oldest first."""
    await booking_tools.get_booking(db, ctx, booking_id)
    return await get_audit_trail(db, ctx, booking_id)


@router.post("/", response_model=BookingActionResponse, status_code=201)
async def create_booking(
    request: BookingCreate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_tools.create_booking(db, ctx, request)
    return BookingActionResponse(message=f"Booking created with LR {booking.lr_number}", booking=booking)


@router.put("/{booking_id}", response_model=BookingActionResponse)
async def modify_booking(
    booking_id: str,
    request: BookingModify,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_tools.modify_booking(db, ctx, booking_id, request)
    return BookingActionResponse(message=f"Booking {booking.lr_number} updated", booking=booking)


@router.post("/{booking_id}/cancel", response_model=BookingActionResponse)
async def cancel_booking(
    booking_id: str,
    request: CancellationRequest,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_tools.cancel_booking(db, ctx, booking_id, request.reason)
    return BookingActionResponse(message=f"Booking {booking.lr_number} cancelled", booking=booking)


@router.post("/{booking_id}/dispatch", response_model=BookingActionResponse)
async def dispatch_booking(
    booking_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_tools.dispatch_booking(db, ctx, booking_id)
    return BookingActionResponse(message=f"Booking {booking.lr_number} is in transit", booking=booking)


@router.post("/{booking_id}/deliver", response_model=BookingActionResponse)
async def deliver_booking(
    booking_id: str,
    request: ProofOfDelivery,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_tools.mark_delivered(db, ctx, booking_id, request)
    return BookingActionResponse(message=f"Booking {booking.lr_number} delivered", booking=booking)


@router.post("/{booking_id}/remind")
async def send_delivery_reminder(
    booking_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """SMS the receiver that an in-transit consignment is arriving soon."""
    booking = await booking_tools.get_booking_view(db, ctx, booking_id)
    result = await send_delivery_reminder_sms(booking)
    return {"success": True, "message": f"Reminder sent for LR {booking.lr_number}", "sms": result}
