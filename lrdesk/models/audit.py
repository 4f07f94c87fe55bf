"""
Audit Trail Model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text, Index
from datetime import datetime

from lrdesk.db.database import Base


class AuditTrail(Base):
    """Audit trail for booking, article and OGPL state changes."""

    __tablename__ = "audit_trails"

    # Insertion order, breaks timestamp ties
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(50), nullable=False, unique=True)
    organization_id = Column(String(50), nullable=False, index=True)

    # Subject
    entity_type = Column(String(20), nullable=False)  # BOOKING, ARTICLE, OGPL
    entity_id = Column(String(50), nullable=False, index=True)

    # Action
    action = Column(String(50), nullable=False)  # CREATED, STATUS_CHANGED, CANCELLED, MODIFIED, RATE_ADJUSTED
    actor = Column(String(100), nullable=False, default="system")

    # Details
    description = Column(Text, nullable=True)
    details = Column(JSON, default=dict)

    # Context
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_trails_entity_action", "entity_id", "action"),
    )

    def __repr__(self):
        return f"<AuditTrail {self.entity_type}:{self.entity_id} {self.action}>"
