"""
Article (cargo type) and Customer Rate Database Models
"""
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from lrdesk.db.database import Base


class Article(Base):
    """Catalog entry for a cargo type, owned by one branch."""

    __tablename__ = "articles"

    id = Column(String(50), primary_key=True)
    organization_id = Column(String(50), nullable=False, index=True)
    branch_id = Column(String(50), ForeignKey("branches.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    base_rate = Column(Float, nullable=False, default=0)

    # Tax & units
    hsn_code = Column(String(20), nullable=True)
    tax_rate = Column(Float, nullable=True)
    unit_of_measure = Column(String(30), nullable=True)
    min_quantity = Column(Integer, nullable=True)

    # Handling
    is_fragile = Column(Boolean, default=False)
    requires_special_handling = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch")
    customer_rates = relationship("CustomerArticleRate", back_populates="article")

    __table_args__ = (
        CheckConstraint("base_rate >= 0", name="ck_article_base_rate_nonnegative"),
    )

    def __repr__(self):
        return f"<Article {self.name} {self.base_rate}>"

    @property
    def branch_name(self):
        return self.branch.name if self.branch is not None else None


class CustomerArticleRate(Base):
    """Negotiated per-customer rate for an article."""

    __tablename__ = "customer_article_rates"

    id = Column(String(50), primary_key=True)
    customer_id = Column(String(50), ForeignKey("customers.id"), nullable=False, index=True)
    article_id = Column(String(50), ForeignKey("articles.id"), nullable=False, index=True)
    rate = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    article = relationship("Article", back_populates="customer_rates")
    customer = relationship("Customer")

    __table_args__ = (
        UniqueConstraint("customer_id", "article_id", name="uq_customer_article_rate"),
        CheckConstraint("rate >= 0", name="ck_customer_rate_nonnegative"),
    )
