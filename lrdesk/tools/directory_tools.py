"""
Directory Tools

Branches and customers: the lookup tables bookings, articles and OGPLs
point at.
"""
from typing import List, Optional
import uuid

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.errors import NotFound
from lrdesk.models.branch import Branch, Customer
from lrdesk.schemas import BranchCreate, CustomerCreate, OrgContext

logger = structlog.get_logger()


async def list_branches(db: AsyncSession, ctx: OrgContext) -> List[Branch]:
    result = await db.execute(
        select(Branch)
        .where(Branch.organization_id == ctx.organization_id)
        .order_by(Branch.name.asc())
    )
    return list(result.scalars().all())


async def get_branch(db: AsyncSession, ctx: OrgContext, branch_id: str, field: str = "branch_id") -> Branch:
    """
    Fetch a branch of the caller's organization.

    Raises:
        NotFound: if no such branch exists
    """
    result = await db.execute(
        select(Branch).where(
            Branch.id == branch_id,
            Branch.organization_id == ctx.organization_id,
        )
    )
    branch = result.scalar_one_or_none()
    if branch is None:
        raise NotFound(f"Branch {branch_id} not found", field=field)
    return branch


async def find_branch(db: AsyncSession, ctx: OrgContext, name_or_code: str) -> Optional[Branch]:
    """Case-insensitive lookup by branch name or code."""
    needle = name_or_code.strip().lower()
    if not needle:
        return None
    result = await db.execute(
        select(Branch).where(
            Branch.organization_id == ctx.organization_id,
            or_(func.lower(Branch.name) == needle, func.lower(Branch.code) == needle),
        )
    )
    return result.scalars().first()


async def create_branch(db: AsyncSession, ctx: OrgContext, data: BranchCreate) -> Branch:
    branch = Branch(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        name=data.name.strip(),
        code=(data.code or data.name[:2]).upper(),
        city=data.city,
        state=data.state,
        is_head_office=data.is_head_office,
        phone=data.phone,
        email=data.email,
    )
    db.add(branch)
    await db.flush()
    logger.info("Branch created", branch_id=branch.id, code=branch.code)
    return branch


async def list_customers(
    db: AsyncSession,
    ctx: OrgContext,
    search: str = "",
    branch_id: Optional[str] = None,
) -> List[Customer]:
    query = select(Customer).where(Customer.organization_id == ctx.organization_id)
    if branch_id:
        query = query.where(Customer.branch_id == branch_id)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(func.lower(Customer.name).like(pattern), Customer.mobile.like(pattern)))
    result = await db.execute(query.order_by(Customer.name.asc()))
    return list(result.scalars().all())


async def get_customer(db: AsyncSession, ctx: OrgContext, customer_id: str, field: str = "customer_id") -> Customer:
    """
    Fetch a customer of the caller's organization.

    Raises:
        NotFound: if no such customer exists
    """
    result = await db.execute(
        select(Customer).where(
            Customer.id == customer_id,
            Customer.organization_id == ctx.organization_id,
        )
    )
    customer = result.scalar_one_or_none()
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found", field=field)
    return customer


async def create_customer(db: AsyncSession, ctx: OrgContext, data: CustomerCreate) -> Customer:
    branch_id = data.branch_id or ctx.branch_id
    if branch_id:
        await get_branch(db, ctx, branch_id)
    customer = Customer(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        **{**data.model_dump(), "branch_id": branch_id},
    )
    db.add(customer)
    await db.flush()
    logger.info("Customer created", customer_id=customer.id)
    return customer
