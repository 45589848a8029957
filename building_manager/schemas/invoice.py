"""
Invoice and payment Pydantic schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import InvoiceStatus, PaymentMethod
from .common import PaginatedResponse


class ChargeItem(BaseModel):
    """Additional charge line."""
    description: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)

    class Config:
        from_attributes = True


class InvoiceCreateRequest(BaseModel):
    """
    Invoice creation request.

    Rent components default to the tenant's current rent breakdown when omitted.
    """
    tenant_id: UUID
    invoice_date: date = Field(default_factory=date.today)
    due_date: date
    base_rent: Optional[Decimal] = Field(None, ge=0)
    service_charges: Optional[Decimal] = Field(None, ge=0)
    parking_fees: Optional[Decimal] = Field(None, ge=0)
    additional_charges: List[ChargeItem] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.due_date < self.invoice_date:
            raise ValueError('due date cannot be before invoice date')
        return self


class InvoiceUpdateRequest(BaseModel):
    """Changes allowed while an invoice is a draft."""
    due_date: Optional[date] = None
    base_rent: Optional[Decimal] = Field(None, ge=0)
    service_charges: Optional[Decimal] = Field(None, ge=0)
    parking_fees: Optional[Decimal] = Field(None, ge=0)
    additional_charges: Optional[List[ChargeItem]] = None
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentCreateRequest(BaseModel):
    """Record a payment against an invoice."""
    amount: Decimal = Field(..., gt=0, description="Amount paid, at most the outstanding balance")
    payment_method: PaymentMethod
    payment_date: date = Field(default_factory=date.today)
    transaction_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('payment_date')
    @classmethod
    def validate_payment_date(cls, v):
        if v > date.today():
            raise ValueError('payment date cannot be in the future')
        return v


class PaymentResponse(BaseModel):
    id: UUID
    payment_number: str
    invoice_id: UUID
    tenant_id: UUID
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    transaction_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    """Invoice response schema."""
    id: UUID
    invoice_number: str
    tenant_id: UUID
    property_id: UUID
    unit_id: UUID
    invoice_date: date
    due_date: date
    base_rent: Decimal
    service_charges: Decimal
    parking_fees: Decimal
    additional_charges: List[ChargeItem] = Field(default_factory=list)
    late_fee: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: InvoiceStatus
    late_fee_applied: bool
    notes: Optional[str] = None
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoicesListResponse(PaginatedResponse):
    items: List[InvoiceResponse]


class TenantBalanceResponse(BaseModel):
    tenant_id: UUID
    total_invoiced: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal
    overdue_amount: Decimal
    open_invoices: int


class InvoiceSummaryResponse(BaseModel):
    """Totals for the invoicing dashboard."""
    counts_by_status: Dict[str, int]
    total_outstanding: Decimal
    total_overdue: Decimal
    collected_this_month: Decimal
