"""
Asset Pydantic schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import AssetCategory, AssetStatus
from .common import PaginatedResponse, not_null


class AssetCreateRequest(BaseModel):
    """Asset registration request schema."""
    asset_name: str = Field(..., min_length=1, max_length=200, description="Asset name")
    category: AssetCategory
    property_id: UUID = Field(..., description="Property where the asset is installed")
    location: Optional[str] = Field(None, max_length=200, description="Location inside the property")
    manufacturer: Optional[str] = Field(None, max_length=100)
    model_number: Optional[str] = Field(None, max_length=100)
    serial_number: Optional[str] = Field(None, max_length=100)
    installation_date: Optional[date] = None
    purchase_date: Optional[date] = None
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    warranty_expiry_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_dates(self):
        today = date.today()
        if self.purchase_date and self.purchase_date > today:
            raise ValueError('purchase date cannot be in the future')
        if self.installation_date and self.installation_date > today:
            raise ValueError('installation date cannot be in the future')
        if self.warranty_expiry_date and self.purchase_date and self.warranty_expiry_date < self.purchase_date:
            raise ValueError('warranty expiry must be after the purchase date')
        return self


class AssetUpdateRequest(BaseModel):
    asset_name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[AssetCategory] = None
    location: Optional[str] = Field(None, max_length=200)
    manufacturer: Optional[str] = Field(None, max_length=100)
    model_number: Optional[str] = Field(None, max_length=100)
    serial_number: Optional[str] = Field(None, max_length=100)
    installation_date: Optional[date] = None
    purchase_date: Optional[date] = None
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    warranty_expiry_date: Optional[date] = None

    @field_validator('asset_name', 'category')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)

    @field_validator('purchase_date', 'installation_date')
    @classmethod
    def validate_not_in_future(cls, v):
        if v is not None and v > date.today():
            raise ValueError('date cannot be in the future')
        return v

    @model_validator(mode='after')
    def validate_warranty(self):
        if self.warranty_expiry_date and self.purchase_date and self.warranty_expiry_date < self.purchase_date:
            raise ValueError('warranty expiry must be after the purchase date')
        return self


class AssetStatusUpdateRequest(BaseModel):
    status: AssetStatus
    reason: Optional[str] = Field(None, max_length=500, description="Why the status changed")


class AssetResponse(BaseModel):
    """Asset response schema."""
    id: UUID
    asset_number: str
    asset_name: str
    category: AssetCategory
    property_id: UUID
    location: Optional[str] = None
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    installation_date: Optional[date] = None
    purchase_date: Optional[date] = None
    purchase_cost: Optional[Decimal] = None
    warranty_expiry_date: Optional[date] = None
    warranty_status: Optional[str] = None
    status: AssetStatus
    status_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssetDetailResponse(AssetResponse):
    """Asset with its maintenance summary."""
    work_order_count: int = 0
    total_maintenance_cost: Decimal = Decimal("0.00")


class AssetsListResponse(PaginatedResponse):
    items: List[AssetResponse]


class ExpiringWarrantyResponse(BaseModel):
    asset_id: UUID
    asset_number: str
    asset_name: str
    property_id: UUID
    warranty_expiry_date: date
    days_until_expiry: int


class AssetOption(BaseModel):
    """Dropdown entry for work order forms."""
    id: UUID
    asset_number: str
    asset_name: str
    category: AssetCategory
