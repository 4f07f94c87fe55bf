"""
Database Models Package
"""
from lrdesk.models.branch import Branch, Customer, BranchStatus, CustomerType
from lrdesk.models.article import Article, CustomerArticleRate
from lrdesk.models.booking import (
    Booking, BookingStatus, PaymentType, BookingPriority, DeliveryType, LRType,
    ALLOWED_TRANSITIONS, MODIFIABLE_STATUSES, can_transition,
)
from lrdesk.models.ogpl import (
    OGPL, LoadingRecord, UnloadingRecord,
    OGPLStatus, TransitMode, ItemCondition,
)
from lrdesk.models.audit import AuditTrail

__all__ = [
    # Branch & customer
    "Branch", "Customer", "BranchStatus", "CustomerType",
    # Article
    "Article", "CustomerArticleRate",
    # Booking
    "Booking", "BookingStatus", "PaymentType", "BookingPriority", "DeliveryType", "LRType",
    "ALLOWED_TRANSITIONS", "MODIFIABLE_STATUSES", "can_transition",
    # OGPL
    "OGPL", "LoadingRecord", "UnloadingRecord", "OGPLStatus", "TransitMode", "ItemCondition",
    # Audit
    "AuditTrail",
]
