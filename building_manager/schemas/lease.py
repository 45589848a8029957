"""
Lease extension and renewal Pydantic schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import (
    RentAdjustmentType, RenewalType, RenewalTerm, RenewalRequestStatus, TenantStatus
)


class LeaseExtensionRequest(BaseModel):
    """Extend a tenant's lease and optionally adjust the rent."""
    new_end_date: date = Field(..., description="New lease end date")
    rent_adjustment_type: RentAdjustmentType = Field(RentAdjustmentType.NO_CHANGE)
    percentage_increase: Optional[Decimal] = Field(None, ge=0, le=100, description="Used with PERCENTAGE")
    flat_increase: Optional[Decimal] = Field(None, ge=0, description="Used with FLAT")
    custom_rent: Optional[Decimal] = Field(None, ge=1, description="Used with CUSTOM")
    renewal_type: Optional[RenewalType] = None
    auto_renewal: bool = False
    special_terms: Optional[str] = Field(None, max_length=2000)
    payment_due_date: Optional[int] = Field(None, ge=1, le=28)

    @field_validator('new_end_date')
    @classmethod
    def validate_new_end_date(cls, v):
        if v <= date.today():
            raise ValueError('new end date must be in the future')
        return v

    @model_validator(mode='after')
    def validate_adjustment_value(self):
        required = {
            RentAdjustmentType.PERCENTAGE: ('percentage_increase', self.percentage_increase),
            RentAdjustmentType.FLAT: ('flat_increase', self.flat_increase),
            RentAdjustmentType.CUSTOM: ('custom_rent', self.custom_rent),
        }
        if self.rent_adjustment_type in required:
            field, value = required[self.rent_adjustment_type]
            if value is None:
                raise ValueError(f'{field} is required for {self.rent_adjustment_type.value} adjustment')
        return self

    @property
    def adjustment_value(self) -> Optional[Decimal]:
        return {
            RentAdjustmentType.PERCENTAGE: self.percentage_increase,
            RentAdjustmentType.FLAT: self.flat_increase,
            RentAdjustmentType.CUSTOM: self.custom_rent,
        }.get(self.rent_adjustment_type)


class LeaseExtensionResponse(BaseModel):
    """Recorded lease extension."""
    id: UUID
    extension_number: str
    tenant_id: UUID
    previous_end_date: date
    new_end_date: date
    effective_date: date
    previous_rent: Decimal
    new_rent: Decimal
    adjustment_type: RentAdjustmentType
    adjustment_value: Optional[Decimal] = None
    rent_adjustment_percentage: Decimal
    renewal_type: Optional[RenewalType] = None
    auto_renewal: bool
    special_terms: Optional[str] = None
    payment_due_date: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CurrentLeaseResponse(BaseModel):
    """Lease summary shown before extending."""
    tenant_id: UUID
    tenant_number: str
    tenant_name: str
    property_id: UUID
    unit_id: UUID
    lease_start_date: date
    lease_end_date: date
    lease_duration: int
    total_monthly_rent: Decimal
    days_remaining: int
    urgency: str
    status: TenantStatus
    suggested_new_end_date: date


class ExpiringLeaseItem(BaseModel):
    tenant_id: UUID
    tenant_number: str
    tenant_name: str
    unit_id: UUID
    lease_end_date: date
    days_remaining: int
    urgency: str
    total_monthly_rent: Decimal


class ExpiringLeasesResponse(BaseModel):
    items: List[ExpiringLeaseItem]
    total: int


class RenewalRequestCreate(BaseModel):
    """Tenant-side request to renew."""
    preferred_term: RenewalTerm = Field(..., description="12_MONTHS, 24_MONTHS or OTHER")
    comments: Optional[str] = Field(None, max_length=500)


class RenewalRejectRequest(BaseModel):
    reason: str = Field(..., min_length=10, max_length=500, description="Why the renewal was declined")


class RenewalRequestResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    preferred_term: RenewalTerm
    comments: Optional[str] = None
    status: RenewalRequestStatus
    rejection_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
