"""
Post-dated cheque Pydantic schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from uuid import UUID

from ..database.models import PDCStatus, PaymentMethod
from .common import PaginatedResponse

MAX_BULK_CHEQUES = 24


def _not_in_future(value: Optional[date], label: str) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValueError(f'{label} cannot be in the future')
    return value


class ChequeEntry(BaseModel):
    """One cheque as written on paper."""
    cheque_number: str = Field(..., min_length=3, max_length=50)
    bank_name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    cheque_date: date = Field(..., description="Date printed on the cheque")
    invoice_id: Optional[UUID] = Field(None, description="Invoice settled when the cheque clears")
    notes: Optional[str] = Field(None, max_length=500)


class ChequeCreateRequest(ChequeEntry):
    tenant_id: UUID


class ChequeBulkCreateRequest(BaseModel):
    """Register a tenant's whole set of cheques at once."""
    tenant_id: UUID
    cheques: List[ChequeEntry] = Field(..., min_length=1, max_length=MAX_BULK_CHEQUES)


class DepositChequeRequest(BaseModel):
    deposit_date: date = Field(default_factory=date.today)

    @field_validator('deposit_date')
    @classmethod
    def validate_deposit_date(cls, v):
        return _not_in_future(v, 'deposit date')


class ClearChequeRequest(BaseModel):
    cleared_date: date = Field(default_factory=date.today)

    @field_validator('cleared_date')
    @classmethod
    def validate_cleared_date(cls, v):
        return _not_in_future(v, 'cleared date')


class BounceChequeRequest(BaseModel):
    bounce_reason: str = Field(..., min_length=1, max_length=255)
    bounced_date: date = Field(default_factory=date.today)

    @field_validator('bounced_date')
    @classmethod
    def validate_bounced_date(cls, v):
        return _not_in_future(v, 'bounced date')


class ReplaceChequeRequest(BaseModel):
    """New cheque handed over for a bounced one."""
    new_cheque_number: str = Field(..., min_length=3, max_length=50)
    bank_name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    cheque_date: date
    notes: Optional[str] = Field(None, max_length=500)


class WithdrawChequeRequest(BaseModel):
    """Cheque returned to the tenant, usually against another form of payment."""
    withdrawal_reason: str = Field(..., min_length=1, max_length=255)
    withdrawal_date: date = Field(default_factory=date.today)
    new_payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = Field(None, max_length=100)

    @field_validator('withdrawal_date')
    @classmethod
    def validate_withdrawal_date(cls, v):
        return _not_in_future(v, 'withdrawal date')


class ChequeResponse(BaseModel):
    """Post-dated cheque response schema."""
    id: UUID
    tenant_id: UUID
    invoice_id: Optional[UUID] = None
    cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    status: PDCStatus
    deposit_date: Optional[date] = None
    cleared_date: Optional[date] = None
    bounced_date: Optional[date] = None
    bounce_reason: Optional[str] = None
    withdrawal_date: Optional[date] = None
    withdrawal_reason: Optional[str] = None
    new_payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    replacement_cheque_id: Optional[UUID] = None
    original_cheque_id: Optional[UUID] = None
    payment_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChequesListResponse(PaginatedResponse):
    items: List[ChequeResponse]


class ChequeDashboardResponse(BaseModel):
    """Cheque collection overview."""
    received_count: int
    due_this_week_count: int
    due_this_week_value: Decimal
    deposited_this_month_count: int
    deposited_this_month_value: Decimal
    outstanding_value: Decimal = Field(..., description="Received, due and deposited cheques not yet cleared")
    bounced_last_30_days: int
    bounce_rate: float = Field(..., description="Bounced share of processed cheques, in percent")
    upcoming: List[ChequeResponse]
    recently_deposited: List[ChequeResponse]
