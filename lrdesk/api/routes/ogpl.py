"""
OGPL API Routes (loading and unloading)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from lrdesk.api.deps import get_org_context
from lrdesk.db.database import get_db
from lrdesk.errors import ValidationError
from lrdesk.schemas import OGPLCreate, OGPLResponse, OrgContext, SortDirection, UnloadingRequest
from lrdesk.tools import ogpl_tools
from lrdesk.tools.filter_tools import ALL

router = APIRouter()

OGPL_SORT_FIELDS = ("ogpl_number", "transit_date", "created_at", "updated_at")


@router.post("/", response_model=OGPLResponse, status_code=201)
async def create_ogpl(
    request: OGPLCreate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Load booked LRs onto a vehicle.

    Creates the OGPL and moves every selected booking to in transit.
    """
    return await ogpl_tools.create_ogpl(db, ctx, request)


@router.get("/", response_model=List[OGPLResponse])
async def list_ogpls(
    search: str = Query("", description="OGPL number, name, vehicle or driver"),
    status: str = Query(ALL),
    station: str = Query(ALL, description="Matches source or destination station"),
    sort_field: str = Query("created_at"),
    sort_direction: Optional[SortDirection] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    if sort_field not in OGPL_SORT_FIELDS:
        raise ValidationError(f"Cannot sort OGPLs by {sort_field}", field="sort_field")
    return await ogpl_tools.list_ogpls(db, ctx, search, status, station, sort_field, sort_direction)


@router.get("/incoming", response_model=List[OGPLResponse])
async def list_incoming_ogpls(
    branch_id: Optional[str] = Query(None, description="Destination branch; defaults to X-Branch-Id"),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """OGPLs in transit to the branch, waiting to be unloaded."""
    return await ogpl_tools.list_incoming_ogpls(db, ctx, branch_id)


@router.get("/{ogpl_id}", response_model=OGPLResponse)
async def get_ogpl(
    ogpl_id: str,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await ogpl_tools.get_ogpl(db, ctx, ogpl_id)


@router.post("/{ogpl_id}/unload", response_model=OGPLResponse)
async def unload_ogpl(
    ogpl_id: str,
    request: UnloadingRequest,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    """Record per-LR condition at the destination and complete the OGPL."""
    return await ogpl_tools.submit_unloading(db, ctx, ogpl_id, request)
