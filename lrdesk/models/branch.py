"""
Branch and Customer Database Models
"""
from sqlalchemy import Column, String, Boolean, Float, DateTime, ForeignKey
from datetime import datetime
import enum

from lrdesk.db.database import Base


class BranchStatus(str, enum.Enum):
    """Branch operating status."""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    CLOSED = "closed"


class CustomerType(str, enum.Enum):
    """Customer classification."""
    INDIVIDUAL = "individual"
    COMPANY = "company"


class Branch(Base):
    """Branch office that books and receives consignments."""

    __tablename__ = "branches"

    id = Column(String(50), primary_key=True)
    organization_id = Column(String(50), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=True)
    is_head_office = Column(Boolean, default=False)

    phone = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    status = Column(String(20), default=BranchStatus.ACTIVE.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Branch {self.code or self.id} {self.name}>"


class Customer(Base):
    """Sender or receiver of consignments."""

    __tablename__ = "customers"

    id = Column(String(50), primary_key=True)
    organization_id = Column(String(50), nullable=False, index=True)
    branch_id = Column(String(50), ForeignKey("branches.id"), nullable=True, index=True)

    name = Column(String(200), nullable=False)
    mobile = Column(String(20), nullable=False, index=True)
    gst = Column(String(20), nullable=True)
    type = Column(String(20), default=CustomerType.INDIVIDUAL.value)

    # Contact
    email = Column(String(200), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(10), nullable=True)

    # Terms
    credit_limit = Column(Float, nullable=True)
    payment_terms = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Customer {self.name} {self.mobile}>"
