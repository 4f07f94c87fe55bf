"""
Analytics API Routes (dashboard charts)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.api.deps import get_org_context
from lrdesk.db.database import get_db
from lrdesk.schemas import DateRangePreset, OrgContext
from lrdesk.tools import aggregation_tools
from lrdesk.tools.booking_tools import list_bookings
from lrdesk.tools.filter_tools import BookingCriteria, filter_bookings

router = APIRouter()


@router.get("/dashboard")
async def dashboard(
    date_range: DateRangePreset = Query(DateRangePreset.ALL, description="Window for the summary cards"),
    days: int = Query(30, ge=1, le=366),
    months: int = Query(12, ge=1, le=60),
    top_branches: int = Query(5, ge=1, le=50),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Everything the dashboard renders in one call: summary cards, daily
    trend, status split, payment-type and branch revenue, monthly revenue.
    """
    bookings = await list_bookings(db, ctx, branch_id=ctx.branch_id)
    in_range = filter_bookings(bookings, BookingCriteria(date_range=date_range.value))

    return {
        "summary": aggregation_tools.summarize(in_range).to_dict(),
        "daily": [b.to_dict() for b in aggregation_tools.aggregate_by_day(bookings, days)],
        "status_distribution": aggregation_tools.status_distribution(in_range),
        "revenue_by_status": aggregation_tools.revenue_by_status(in_range),
        "revenue_by_payment_type": [g.to_dict() for g in aggregation_tools.revenue_by_payment_type(in_range)],
        "revenue_by_branch": [g.to_dict() for g in aggregation_tools.revenue_by_branch(in_range, top_branches)],
        "monthly": [b.to_dict() for b in aggregation_tools.aggregate_by_month(bookings, months)],
    }


@router.get("/revenue-trends")
async def revenue_trends(
    days: int = Query(30, ge=1, le=366),
    months: int = Query(12, ge=1, le=60),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Daily revenue split by payment type, plus monthly totals."""
    bookings = await list_bookings(db, ctx, branch_id=ctx.branch_id)
    return {
        "daily": [b.to_dict() for b in aggregation_tools.daily_payment_breakdown(bookings, days)],
        "monthly": [b.to_dict() for b in aggregation_tools.aggregate_by_month(bookings, months)],
    }
