"""
Audit Tools

Append-only history of booking, article and OGPL changes.
"""
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.models.audit import AuditTrail
from lrdesk.schemas import OrgContext


async def record_audit(
    db: AsyncSession,
    ctx: OrgContext,
    entity_type: str,
    entity_id: str,
    action: str,
    description: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    before_state: Optional[Dict[str, Any]] = None,
    after_state: Optional[Dict[str, Any]] = None,
    actor: str = "system",
) -> AuditTrail:
    """Stage an audit entry in the caller's transaction."""
    entry = AuditTrail(
        id=str(uuid.uuid4()),
        organization_id=ctx.organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor=actor,
        description=description,
        details=details or {},
        before_state=before_state,
        after_state=after_state,
    )
    db.add(entry)
    return entry


async def get_audit_trail(db: AsyncSession, ctx: OrgContext, entity_id: str) -> List[AuditTrail]:
    result = await db.execute(
        select(AuditTrail)
        .where(
            AuditTrail.organization_id == ctx.organization_id,
            AuditTrail.entity_id == entity_id,
        )
        .order_by(AuditTrail.timestamp.asc(), AuditTrail.seq.asc())
    )
    return list(result.scalars().all())
