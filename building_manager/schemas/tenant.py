"""
Tenant (renter) onboarding Pydantic schemas.

The onboarding wizard collects personal details, lease terms, rent
breakdown, parking and payment schedule across several screens; the API
receives the merged result in a single request and validates it as a whole.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import PaymentMethod, TenantStatus
from .common import PaginatedResponse, not_null

MINIMUM_TENANT_AGE = 18


def age_on(birth_date: date, today: date) -> int:
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


class TenantCreateRequest(BaseModel):
    """Complete onboarding payload."""
    # Personal information
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="Tenant email, unique within the organization")
    phone: str = Field(..., min_length=5, max_length=30)
    date_of_birth: date = Field(..., description="Tenant must be at least 18")
    national_id: str = Field(..., min_length=1, max_length=50, description="Emirates ID, passport or similar")
    nationality: Optional[str] = Field(None, max_length=100)
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)

    # Lease information
    property_id: UUID
    unit_id: UUID
    lease_start_date: date
    lease_end_date: date
    lease_type: Optional[str] = Field(None, max_length=50)
    renewal_option: bool = False

    # Rent breakdown
    base_rent: Decimal = Field(..., gt=0, description="Monthly base rent")
    admin_fee: Decimal = Field(Decimal("0"), ge=0)
    service_charge: Decimal = Field(Decimal("0"), ge=0)
    security_deposit: Decimal = Field(Decimal("0"), ge=0)

    # Parking
    parking_spots: int = Field(0, ge=0, le=10)
    parking_fee_per_spot: Decimal = Field(Decimal("0"), ge=0)

    # Payment schedule
    payment_frequency: str = Field("MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY)$")
    payment_due_date: int = Field(1, ge=1, le=28, description="Day of month rent is due")
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    pdc_cheque_count: Optional[int] = Field(None, ge=0, le=12)

    @field_validator('date_of_birth')
    @classmethod
    def validate_age(cls, v):
        if age_on(v, date.today()) < MINIMUM_TENANT_AGE:
            raise ValueError('tenant must be at least 18 years old')
        return v

    @field_validator('lease_start_date')
    @classmethod
    def validate_lease_start(cls, v):
        if v < date.today():
            raise ValueError('lease start date cannot be in the past')
        return v

    @model_validator(mode='after')
    def validate_lease_and_payment(self):
        if self.lease_end_date <= self.lease_start_date:
            raise ValueError('lease end date must be after lease start date')
        if self.payment_method == PaymentMethod.PDC and not self.pdc_cheque_count:
            raise ValueError('pdc_cheque_count is required when payment method is PDC')
        return self


class TenantUpdateRequest(BaseModel):
    """Contact details that may change after onboarding."""
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=5, max_length=30)
    nationality: Optional[str] = Field(None, max_length=100)
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)

    @field_validator('email', 'phone')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class TenantResponse(BaseModel):
    """Tenant response schema."""
    id: UUID
    tenant_number: str
    first_name: str
    last_name: str
    full_name: str
    email: EmailStr
    phone: str
    date_of_birth: date
    national_id: str
    nationality: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    property_id: UUID
    unit_id: UUID
    lease_start_date: date
    lease_end_date: date
    lease_duration: int = Field(..., description="Lease length in whole months")
    lease_type: Optional[str] = None
    renewal_option: bool
    base_rent: Decimal
    admin_fee: Decimal
    service_charge: Decimal
    security_deposit: Decimal
    parking_spots: int
    parking_fee_per_spot: Decimal
    parking_fee: Decimal
    total_monthly_rent: Decimal
    payment_frequency: str
    payment_due_date: int
    payment_method: PaymentMethod
    pdc_cheque_count: Optional[int] = None
    status: TenantStatus
    active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TenantsListResponse(PaginatedResponse):
    items: List[TenantResponse]
