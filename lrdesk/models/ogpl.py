"""
OGPL (trip manifest) Database Models
"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from lrdesk.db.database import Base


class OGPLStatus(str, enum.Enum):
    """Trip manifest status."""
    CREATED = "created"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransitMode(str, enum.Enum):
    DIRECT = "direct"
    HUB = "hub"
    LOCAL = "local"


class ItemCondition(str, enum.Enum):
    """Condition of a consignment recorded at unloading."""
    GOOD = "good"
    DAMAGED = "damaged"
    MISSING = "missing"


class OGPL(Base):
    """Outbound goods pass: the bookings loaded onto one vehicle trip."""

    __tablename__ = "ogpls"

    id = Column(String(50), primary_key=True)
    organization_id = Column(String(50), nullable=False, index=True)
    ogpl_number = Column(String(50), nullable=False, index=True)
    name = Column(String(200), nullable=True)

    # Vehicle & route
    vehicle_number = Column(String(30), nullable=False)
    transit_mode = Column(String(10), default=TransitMode.DIRECT.value)
    from_station = Column(String(50), ForeignKey("branches.id"), nullable=False, index=True)
    to_station = Column(String(50), ForeignKey("branches.id"), nullable=False, index=True)

    # Schedule
    transit_date = Column(DateTime, nullable=False)
    departure_time = Column(String(10), nullable=True)
    arrival_time = Column(String(10), nullable=True)

    # Crew
    supervisor_name = Column(String(200), nullable=True)
    supervisor_mobile = Column(String(20), nullable=True)
    primary_driver_name = Column(String(200), nullable=False)
    primary_driver_mobile = Column(String(20), nullable=False)
    secondary_driver_name = Column(String(200), nullable=True)
    secondary_driver_mobile = Column(String(20), nullable=True)

    remarks = Column(Text, nullable=True)
    status = Column(String(20), default=OGPLStatus.IN_TRANSIT.value, index=True)
    unloaded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    from_station_details = relationship("Branch", foreign_keys=[from_station])
    to_station_details = relationship("Branch", foreign_keys=[to_station])
    loading_records = relationship("LoadingRecord", back_populates="ogpl", order_by="LoadingRecord.created_at")
    unloading_records = relationship("UnloadingRecord", back_populates="ogpl")

    __table_args__ = (
        UniqueConstraint("organization_id", "ogpl_number", name="uq_ogpl_org_number"),
    )

    def __repr__(self):
        return f"<OGPL {self.ogpl_number} {self.status}>"


class LoadingRecord(Base):
    """A booking loaded onto an OGPL."""

    __tablename__ = "loading_records"

    id = Column(String(50), primary_key=True)
    ogpl_id = Column(String(50), ForeignKey("ogpls.id"), nullable=False, index=True)
    booking_id = Column(String(50), ForeignKey("bookings.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    ogpl = relationship("OGPL", back_populates="loading_records")
    booking = relationship("Booking")

    __table_args__ = (
        Index("ix_loading_records_ogpl_booking", "ogpl_id", "booking_id", unique=True),
    )


class UnloadingRecord(Base):
    """Per-booking condition recorded when an OGPL is unloaded."""

    __tablename__ = "unloading_records"

    id = Column(String(50), primary_key=True)
    ogpl_id = Column(String(50), ForeignKey("ogpls.id"), nullable=False, index=True)
    booking_id = Column(String(50), ForeignKey("bookings.id"), nullable=False, index=True)

    condition = Column(String(10), nullable=False, default=ItemCondition.GOOD.value)
    remarks = Column(Text, nullable=True)
    photo = Column(Text, nullable=True)  # data URL or storage key

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    ogpl = relationship("OGPL", back_populates="unloading_records")
    booking = relationship("Booking")
