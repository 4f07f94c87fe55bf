"""
Customers API Routes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from lrdesk.api.deps import get_org_context
from lrdesk.db.database import get_db
from lrdesk.schemas import CustomerCreate, CustomerResponse, OrgContext
from lrdesk.tools import directory_tools

router = APIRouter()


@router.get("/", response_model=List[CustomerResponse])
async def list_customers(
    search: str = Query("", description="Name or mobile"),
    branch_id: Optional[str] = Query(None),
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await directory_tools.list_customers(db, ctx, search, branch_id)


@router.post("/", response_model=CustomerResponse, status_code=201)
async def create_customer(
    request: CustomerCreate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await directory_tools.create_customer(db, ctx, request)
