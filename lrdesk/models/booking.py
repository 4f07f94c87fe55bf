"""
Booking (Lorry Receipt) Database Model
"""
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text, JSON,
    ForeignKey, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from lrdesk.db.database import Base


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    BOOKED = "booked"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentType(str, enum.Enum):
    """Who pays the freight, and when."""
    PAID = "Paid"
    TO_PAY = "To Pay"
    QUOTATION = "Quotation"


class BookingPriority(str, enum.Enum):
    NORMAL = "Normal"
    HIGH = "High"
    URGENT = "Urgent"


class DeliveryType(str, enum.Enum):
    STANDARD = "Standard"
    EXPRESS = "Express"
    SAME_DAY = "Same Day"


class LRType(str, enum.Enum):
    """Whether the LR number was generated or typed in."""
    SYSTEM = "system"
    MANUAL = "manual"


# Forward-only lifecycle; delivered and cancelled are terminal.
ALLOWED_TRANSITIONS = {
    BookingStatus.BOOKED: {BookingStatus.IN_TRANSIT, BookingStatus.CANCELLED},
    BookingStatus.IN_TRANSIT: {BookingStatus.DELIVERED, BookingStatus.CANCELLED},
    BookingStatus.DELIVERED: set(),
    BookingStatus.CANCELLED: set(),
}

MODIFIABLE_STATUSES = {BookingStatus.BOOKED, BookingStatus.IN_TRANSIT}


def can_transition(current: str, target: str) -> bool:
    """Return True if ``current -> target`` is a legal status change."""
    try:
        current_status = BookingStatus(current)
        target_status = BookingStatus(target)
    except ValueError:
        return False
    return target_status in ALLOWED_TRANSITIONS[current_status]


class Booking(Base):
    """Lorry receipt for a consignment moving between two branches."""

    __tablename__ = "bookings"

    id = Column(String(50), primary_key=True)
    organization_id = Column(String(50), nullable=False, index=True)
    branch_id = Column(String(50), ForeignKey("branches.id"), nullable=True, index=True)

    # Identity
    lr_number = Column(String(50), nullable=False, index=True)
    lr_type = Column(String(10), default=LRType.SYSTEM.value)

    # Route
    from_branch = Column(String(50), ForeignKey("branches.id"), nullable=False, index=True)
    to_branch = Column(String(50), ForeignKey("branches.id"), nullable=False, index=True)

    # Parties
    sender_id = Column(String(50), ForeignKey("customers.id"), nullable=True, index=True)
    receiver_id = Column(String(50), ForeignKey("customers.id"), nullable=True, index=True)

    # Cargo
    article_id = Column(String(50), ForeignKey("articles.id"), nullable=True, index=True)
    description = Column(Text, nullable=True)
    uom = Column(String(30), nullable=False, default="Nos")
    quantity = Column(Integer, nullable=False, default=1)
    actual_weight = Column(Float, nullable=False, default=0)
    private_mark_number = Column(String(100), nullable=True)

    # Charges
    freight_per_qty = Column(Float, nullable=False, default=0)
    loading_charges = Column(Float, nullable=False, default=0)
    unloading_charges = Column(Float, nullable=False, default=0)
    insurance_charge = Column(Float, nullable=False, default=0)
    packaging_charge = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)

    payment_type = Column(String(20), nullable=False, default=PaymentType.PAID.value, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.BOOKED.value, index=True)

    # Options
    fragile = Column(Boolean, default=False)
    insurance_required = Column(Boolean, default=False)
    insurance_value = Column(Float, nullable=True)
    priority = Column(String(10), default=BookingPriority.NORMAL.value)
    delivery_type = Column(String(20), default=DeliveryType.STANDARD.value)
    packaging_type = Column(String(50), nullable=True)
    expected_delivery_date = Column(DateTime, nullable=True)
    special_instructions = Column(Text, nullable=True)
    reference_number = Column(String(100), nullable=True)
    remarks = Column(Text, nullable=True)

    # Invoice
    has_invoice = Column(Boolean, default=False)
    invoice_number = Column(String(100), nullable=True)
    invoice_amount = Column(Float, nullable=True)
    invoice_date = Column(DateTime, nullable=True)
    eway_bill_number = Column(String(100), nullable=True)

    # Terminal states
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    proof_of_delivery = Column(JSON, nullable=True)  # {receiver_name, receiver_phone, signature_image, ...}

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sender = relationship("Customer", foreign_keys=[sender_id])
    receiver = relationship("Customer", foreign_keys=[receiver_id])
    article = relationship("Article")
    from_branch_details = relationship("Branch", foreign_keys=[from_branch])
    to_branch_details = relationship("Branch", foreign_keys=[to_branch])

    __table_args__ = (
        UniqueConstraint("organization_id", "lr_number", name="uq_booking_org_lr_number"),
        CheckConstraint("quantity >= 1", name="ck_booking_quantity_positive"),
        CheckConstraint("actual_weight >= 0", name="ck_booking_weight_nonnegative"),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_nonnegative"),
    )

    def __repr__(self):
        return f"<Booking {self.lr_number} {self.status}>"

    @property
    def is_modifiable(self) -> bool:
        return self.status in {s.value for s in MODIFIABLE_STATUSES}

    @property
    def is_terminal(self) -> bool:
        return self.status in (BookingStatus.DELIVERED.value, BookingStatus.CANCELLED.value)
