"""
Vendor, vendor document, rating and performance Pydantic schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, EmailStr, Field, field_validator
from uuid import UUID

from ..database.models import VendorStatus, VendorDocumentType, WorkOrderCategory
from .common import PaginatedResponse, not_null


class VendorCreateRequest(BaseModel):
    """Vendor registration request schema."""
    company_name: str = Field(..., min_length=1, max_length=200)
    contact_person_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=30)
    trade_license_number: Optional[str] = Field(None, max_length=100)
    service_categories: List[WorkOrderCategory] = Field(..., min_length=1, description="Work the vendor takes on")
    service_areas: List[str] = Field(default_factory=list, description="Areas or property ids served")
    hourly_rate: Decimal = Field(..., ge=0)
    emergency_callout_fee: Optional[Decimal] = Field(None, ge=0)
    payment_terms: Optional[str] = Field(None, pattern="^(NET_15|NET_30|NET_45|NET_60|DUE_ON_RECEIPT)$")


class VendorUpdateRequest(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=5, max_length=30)
    trade_license_number: Optional[str] = Field(None, max_length=100)
    service_categories: Optional[List[WorkOrderCategory]] = Field(None, min_length=1)
    service_areas: Optional[List[str]] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    emergency_callout_fee: Optional[Decimal] = Field(None, ge=0)
    payment_terms: Optional[str] = Field(None, pattern="^(NET_15|NET_30|NET_45|NET_60|DUE_ON_RECEIPT)$")

    @field_validator('company_name', 'contact_person_name', 'email', 'phone', 'service_categories',
                     'service_areas', 'hourly_rate')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class VendorStatusUpdateRequest(BaseModel):
    status: VendorStatus
    reason: Optional[str] = Field(None, max_length=500)


class VendorResponse(BaseModel):
    """Vendor response schema."""
    id: UUID
    vendor_number: str
    company_name: str
    contact_person_name: str
    email: EmailStr
    phone: str
    trade_license_number: Optional[str] = None
    service_categories: List[str]
    service_areas: List[str]
    hourly_rate: Decimal
    emergency_callout_fee: Optional[Decimal] = None
    payment_terms: Optional[str] = None
    status: VendorStatus
    rating: Optional[Decimal] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VendorsListResponse(PaginatedResponse):
    items: List[VendorResponse]


class VendorDocumentCreateRequest(BaseModel):
    """Metadata for a document stored elsewhere."""
    document_type: VendorDocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: Optional[str] = Field(None, max_length=1000)
    expiry_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator('expiry_date')
    @classmethod
    def validate_expiry(cls, v):
        if v is not None and v < date.today():
            raise ValueError('expiry date cannot be in the past')
        return v


class VendorDocumentResponse(BaseModel):
    id: UUID
    vendor_id: UUID
    document_type: VendorDocumentType
    file_name: str
    file_url: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExpiringDocumentResponse(BaseModel):
    document_id: UUID
    vendor_id: UUID
    vendor_name: str
    document_type: VendorDocumentType
    expiry_date: date
    days_until_expiry: int
    is_critical: bool


class VendorRatingRequest(BaseModel):
    """Scores from 1 to 5 for a completed job."""
    quality_score: int = Field(..., ge=1, le=5)
    timeliness_score: int = Field(..., ge=1, le=5)
    communication_score: int = Field(..., ge=1, le=5)
    professionalism_score: int = Field(..., ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=1000)


class VendorRatingResponse(BaseModel):
    id: UUID
    vendor_id: UUID
    work_order_id: UUID
    quality_score: int
    timeliness_score: int
    communication_score: int
    professionalism_score: int
    overall_score: Decimal
    comments: Optional[str] = None
    rated_by: Optional[UUID] = None
    rated_at: datetime

    class Config:
        from_attributes = True


class VendorPerformanceResponse(BaseModel):
    vendor_id: UUID
    vendor_number: str
    company_name: str
    overall_rating: Optional[Decimal] = None
    total_jobs_completed: int
    average_completion_days: Optional[float] = None
    on_time_completion_rate: Optional[float] = None
    total_amount_paid: Decimal
    total_ratings: int
    average_quality: Optional[float] = None
    average_timeliness: Optional[float] = None
    average_communication: Optional[float] = None
    average_professionalism: Optional[float] = None
    rating_distribution: Dict[str, int]


class VendorComparisonItem(VendorPerformanceResponse):
    hourly_rate: Decimal
    is_best_rating: bool = False
    is_best_on_time: bool = False
    is_lowest_rate: bool = False
    is_most_jobs: bool = False


class VendorComparisonResponse(BaseModel):
    vendors: List[VendorComparisonItem]


class DashboardKpis(BaseModel):
    total_active_vendors: int
    avg_sla_compliance: Optional[float] = None
    top_performer_id: Optional[UUID] = None
    top_performer_name: Optional[str] = None
    top_performer_rating: Optional[Decimal] = None
    expiring_documents_count: int
    has_critical_expiring: bool


class SpecializationCount(BaseModel):
    category: str
    job_count: int


class PerformanceSnapshotItem(BaseModel):
    vendor_id: UUID
    company_name: str
    sla_compliance: Optional[float] = None
    rating: Optional[Decimal] = None
    job_count: int
    performance_tier: str


class TopVendorItem(BaseModel):
    vendor_id: UUID
    company_name: str
    jobs_completed_this_month: int
    rating: Optional[Decimal] = None


class VendorDashboardResponse(BaseModel):
    """Aggregates behind the vendor dashboard charts."""
    kpis: DashboardKpis
    jobs_by_specialization: List[SpecializationCount]
    performance_snapshot: List[PerformanceSnapshotItem]
    expiring_documents: List[ExpiringDocumentResponse]
    top_vendors: List[TopVendorItem]
