"""
Branches API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from lrdesk.api.deps import get_org_context
from lrdesk.db.database import get_db
from lrdesk.schemas import BranchCreate, BranchResponse, OrgContext
from lrdesk.tools import directory_tools

router = APIRouter()


@router.get("/", response_model=List[BranchResponse])
async def list_branches(
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await directory_tools.list_branches(db, ctx)


@router.post("/", response_model=BranchResponse, status_code=201)
async def create_branch(
    request: BranchCreate,
    ctx: OrgContext = Depends(get_org_context),
    db: AsyncSession = Depends(get_db),
):
    return await directory_tools.create_branch(db, ctx, request)
