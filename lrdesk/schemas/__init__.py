"""
Pydantic Schemas for API Request/Response
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from enum import Enum

from lrdesk.models.booking import PaymentType, BookingPriority, DeliveryType, LRType
from lrdesk.models.ogpl import ItemCondition, TransitMode


# ==================== Enums ====================

class DateRangePreset(str, Enum):
    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CUSTOM = "custom"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class AdjustmentType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# ==================== Context ====================

class OrgContext(BaseModel):
    """Organization and branch a request operates on."""
    organization_id: str
    branch_id: Optional[str] = None

    class Config:
        frozen = True


# ==================== Branch & Customer Schemas ====================

class BranchSummary(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    city: Optional[str] = None

    class Config:
        from_attributes = True


class BranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: Optional[str] = Field(default=None, max_length=20)
    city: str = Field(min_length=1)
    state: Optional[str] = None
    is_head_office: bool = False
    phone: Optional[str] = None
    email: Optional[str] = None


class BranchResponse(BranchSummary):
    state: Optional[str] = None
    is_head_office: bool = False
    phone: Optional[str] = None
    email: Optional[str] = None
    status: str = "active"
    created_at: datetime


class CustomerSummary(BaseModel):
    id: str
    name: str
    mobile: Optional[str] = None

    class Config:
        from_attributes = True


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    mobile: str = Field(min_length=1, max_length=20)
    branch_id: Optional[str] = None
    gst: Optional[str] = None
    type: str = "individual"
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    credit_limit: Optional[float] = Field(default=None, ge=0)
    payment_terms: Optional[str] = None


class CustomerResponse(CustomerSummary):
    branch_id: Optional[str] = None
    gst: Optional[str] = None
    type: str = "individual"
    email: Optional[str] = None
    city: Optional[str] = None
    created_at: datetime


# ==================== Article Schemas ====================

class ArticleSummary(BaseModel):
    id: str
    name: str
    base_rate: float = 0

    class Config:
        from_attributes = True


class ArticleBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    base_rate: float = Field(default=0, ge=0)
    hsn_code: Optional[str] = None
    tax_rate: Optional[float] = Field(default=None, ge=0)
    unit_of_measure: Optional[str] = None
    min_quantity: Optional[int] = Field(default=None, ge=1)
    is_fragile: bool = False
    requires_special_handling: bool = False
    notes: Optional[str] = None


class ArticleCreate(ArticleBase):
    branch_id: Optional[str] = None


class ArticleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    base_rate: Optional[float] = Field(default=None, ge=0)
    branch_id: Optional[str] = None
    hsn_code: Optional[str] = None
    tax_rate: Optional[float] = Field(default=None, ge=0)
    unit_of_measure: Optional[str] = None
    min_quantity: Optional[int] = Field(default=None, ge=1)
    is_fragile: Optional[bool] = None
    requires_special_handling: Optional[bool] = None
    notes: Optional[str] = None


class ArticleResponse(ArticleBase):
    id: str
    branch_id: str
    branch_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkRateRequest(BaseModel):
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE
    adjustment_value: float = 0
    article_ids: Optional[List[str]] = None
    branch_id: Optional[str] = None
    search: str = ""


class CustomerRateUpdate(BaseModel):
    rate: float = Field(ge=0)


class CustomerRateResponse(BaseModel):
    id: str
    customer_id: str
    article_id: str
    rate: float
    customer: Optional[CustomerSummary] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ImportSkippedRow(BaseModel):
    row: int
    reason: str


class ArticleImportResult(BaseModel):
    imported: int = 0
    skipped: List[ImportSkippedRow] = []
    articles: List[ArticleResponse] = []


# ==================== Booking Schemas ====================

class BookingCreate(BaseModel):
    lr_number: Optional[str] = Field(default=None, max_length=50)
    from_branch: str
    to_branch: str
    sender_id: str
    receiver_id: str
    article_id: Optional[str] = None
    description: Optional[str] = None
    uom: str = "Nos"
    quantity: int = Field(default=1, ge=1)
    actual_weight: float = Field(default=0, ge=0)
    private_mark_number: Optional[str] = None

    freight_per_qty: Optional[float] = Field(default=None, ge=0)
    loading_charges: float = Field(default=0, ge=0)
    unloading_charges: float = Field(default=0, ge=0)
    insurance_charge: float = Field(default=0, ge=0)
    packaging_charge: float = Field(default=0, ge=0)

    payment_type: PaymentType = PaymentType.PAID
    priority: BookingPriority = BookingPriority.NORMAL
    delivery_type: DeliveryType = DeliveryType.STANDARD
    fragile: bool = False
    insurance_required: bool = False
    insurance_value: Optional[float] = Field(default=None, ge=0)
    packaging_type: Optional[str] = None
    expected_delivery_date: Optional[datetime] = None
    special_instructions: Optional[str] = None
    reference_number: Optional[str] = None
    remarks: Optional[str] = None

    has_invoice: bool = False
    invoice_number: Optional[str] = None
    invoice_amount: Optional[float] = Field(default=None, ge=0)
    invoice_date: Optional[datetime] = None
    eway_bill_number: Optional[str] = None

    @property
    def lr_type(self) -> LRType:
        return LRType.MANUAL if self.lr_number else LRType.SYSTEM


class BookingModify(BaseModel):
    to_branch: Optional[str] = None
    receiver_id: Optional[str] = None
    description: Optional[str] = None
    uom: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    actual_weight: Optional[float] = Field(default=None, ge=0)
    private_mark_number: Optional[str] = None

    freight_per_qty: Optional[float] = Field(default=None, ge=0)
    loading_charges: Optional[float] = Field(default=None, ge=0)
    unloading_charges: Optional[float] = Field(default=None, ge=0)
    insurance_charge: Optional[float] = Field(default=None, ge=0)
    packaging_charge: Optional[float] = Field(default=None, ge=0)

    payment_type: Optional[PaymentType] = None
    priority: Optional[BookingPriority] = None
    delivery_type: Optional[DeliveryType] = None
    fragile: Optional[bool] = None
    special_instructions: Optional[str] = None
    remarks: Optional[str] = None


class CancellationRequest(BaseModel):
    reason: str = ""


class ProofOfDelivery(BaseModel):
    receiver_name: str = ""
    receiver_phone: str = ""
    receiver_designation: Optional[str] = None
    signature_image: Optional[str] = None
    photo: Optional[str] = None
    remarks: Optional[str] = None
    delivered_at: Optional[datetime] = None


class BookingView(BaseModel):
    """Booking with its sender, receiver, article and branches resolved."""
    id: str
    organization_id: Optional[str] = None
    branch_id: Optional[str] = None
    lr_number: str
    lr_type: str = "system"

    from_branch: str
    to_branch: str
    from_branch_details: Optional[BranchSummary] = None
    to_branch_details: Optional[BranchSummary] = None

    sender_id: Optional[str] = None
    receiver_id: Optional[str] = None
    sender: Optional[CustomerSummary] = None
    receiver: Optional[CustomerSummary] = None

    article_id: Optional[str] = None
    article: Optional[ArticleSummary] = None
    description: Optional[str] = None
    uom: str = "Nos"
    quantity: int = 1
    actual_weight: float = 0

    freight_per_qty: float = 0
    loading_charges: float = 0
    unloading_charges: float = 0
    insurance_charge: float = 0
    packaging_charge: float = 0
    total_amount: float = 0

    payment_type: str = "Paid"
    status: str = "booked"
    priority: Optional[str] = None
    delivery_type: Optional[str] = None
    fragile: bool = False
    insurance_required: bool = False
    insurance_value: Optional[float] = None
    has_invoice: bool = False
    invoice_number: Optional[str] = None
    remarks: Optional[str] = None

    cancellation_reason: Optional[str] = None
    delivery_date: Optional[datetime] = None
    proof_of_delivery: Optional[Dict[str, Any]] = None

    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingPage(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[BookingView] = []


class BookingActionResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingView


# ==================== OGPL Schemas ====================

class OGPLCreate(BaseModel):
    name: Optional[str] = None
    vehicle_number: str = Field(min_length=1, max_length=30)
    transit_mode: TransitMode = TransitMode.DIRECT
    from_station: str
    to_station: str
    transit_date: date
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    supervisor_name: Optional[str] = None
    supervisor_mobile: Optional[str] = None
    primary_driver_name: str = Field(min_length=1)
    primary_driver_mobile: str = Field(min_length=1)
    secondary_driver_name: Optional[str] = None
    secondary_driver_mobile: Optional[str] = None
    remarks: Optional[str] = None
    booking_ids: List[str] = Field(min_length=1)


class LoadingRecordResponse(BaseModel):
    id: str
    booking_id: str
    booking: Optional[BookingView] = None

    class Config:
        from_attributes = True


class UnloadingItem(BaseModel):
    booking_id: str
    condition: ItemCondition = ItemCondition.GOOD
    remarks: Optional[str] = None
    photo: Optional[str] = None


class UnloadingRequest(BaseModel):
    items: List[UnloadingItem] = Field(min_length=1)


class UnloadingRecordResponse(BaseModel):
    id: str
    booking_id: str
    condition: str
    remarks: Optional[str] = None
    photo: Optional[str] = None

    class Config:
        from_attributes = True


class OGPLResponse(BaseModel):
    id: str
    ogpl_number: str
    name: Optional[str] = None
    vehicle_number: str
    transit_mode: str = "direct"
    from_station: str
    to_station: str
    from_station_details: Optional[BranchSummary] = None
    to_station_details: Optional[BranchSummary] = None
    transit_date: datetime
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    supervisor_name: Optional[str] = None
    primary_driver_name: str
    primary_driver_mobile: str
    status: str
    remarks: Optional[str] = None
    unloaded_at: Optional[datetime] = None
    created_at: datetime
    loading_records: List[LoadingRecordResponse] = []
    unloading_records: List[UnloadingRecordResponse] = []

    class Config:
        from_attributes = True


# ==================== Audit Trail Schemas ====================

class AuditTrailResponse(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    actor: str
    description: Optional[str] = None
    details: Dict[str, Any] = {}
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True
