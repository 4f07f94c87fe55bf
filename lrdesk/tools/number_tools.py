"""
Number Tools

Sequential LR and OGPL number generation.

LR numbers look like ``DC2403-0007``: branch code, two-digit year, month,
then a per-month sequence. OGPL numbers look like ``OGPL-20240315-0002``.
"""
from datetime import datetime
from typing import Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.config import settings
from lrdesk.models.booking import Booking
from lrdesk.models.ogpl import OGPL
from lrdesk.schemas import OrgContext
from lrdesk.tools.filter_tools import utcnow

logger = structlog.get_logger()

SEQUENCE_WIDTH = 4


def lr_prefix(branch_code: str, now: datetime) -> str:
    return f"{branch_code.upper()}{now:%y%m}"


def ogpl_prefix(now: datetime) -> str:
    return f"OGPL-{now:%Y%m%d}"


def next_sequence(existing: Iterable[str], prefix: str) -> int:
    """One past the highest ``{prefix}-NNNN`` suffix in ``existing``."""
    highest = 0
    for number in existing:
        head, _, tail = number.rpartition("-")
        if head == prefix and tail.isdigit():
            highest = max(highest, int(tail))
    return highest + 1


async def generate_lr_number(
    db: AsyncSession,
    ctx: OrgContext,
    branch_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Next system LR number for ``branch_code`` in the current month."""
    prefix = lr_prefix(branch_code or settings.default_branch_code, now or utcnow())
    result = await db.execute(
        select(Booking.lr_number).where(
            Booking.organization_id == ctx.organization_id,
            Booking.lr_number.like(f"{prefix}-%"),
        )
    )
    number = f"{prefix}-{next_sequence(result.scalars().all(), prefix):0{SEQUENCE_WIDTH}d}"
    logger.debug("Generated LR number", lr_number=number)
    return number


async def generate_ogpl_number(
    db: AsyncSession,
    ctx: OrgContext,
    now: Optional[datetime] = None,
) -> str:
    """Next OGPL number for today."""
    prefix = ogpl_prefix(now or utcnow())
    result = await db.execute(
        select(OGPL.ogpl_number).where(
            OGPL.organization_id == ctx.organization_id,
            OGPL.ogpl_number.like(f"{prefix}-%"),
        )
    )
    return f"{prefix}-{next_sequence(result.scalars().all(), prefix):0{SEQUENCE_WIDTH}d}"


async def lr_number_exists(db: AsyncSession, ctx: OrgContext, lr_number: str) -> bool:
    result = await db.execute(
        select(Booking.id).where(
            Booking.organization_id == ctx.organization_id,
            Booking.lr_number == lr_number,
        )
    )
    return result.first() is not None
