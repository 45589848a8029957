"""
Property and unit Pydantic schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from uuid import UUID

from ..database.models import UnitStatus
from .common import PaginatedResponse, not_null


class PropertyCreateRequest(BaseModel):
    """Property creation request schema."""
    name: str = Field(..., min_length=1, max_length=200, description="Property name")
    address: str = Field(..., min_length=1, max_length=500, description="Street address")
    property_type: Optional[str] = Field(None, max_length=50, description="Residential, commercial, mixed use...")
    total_units: int = Field(0, ge=0, description="Number of units in the building")


class PropertyUpdateRequest(BaseModel):
    """Property update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    property_type: Optional[str] = Field(None, max_length=50)
    total_units: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None

    @field_validator('name', 'address', 'total_units', 'active')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class PropertyResponse(BaseModel):
    """Property response schema."""
    id: UUID
    name: str
    address: str
    property_type: Optional[str] = None
    total_units: int
    active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PropertiesListResponse(PaginatedResponse):
    items: List[PropertyResponse] = Field(..., description="Properties")


class UnitCreateRequest(BaseModel):
    """Unit creation request schema."""
    unit_number: str = Field(..., min_length=1, max_length=50, description="Unit number, unique within the property")
    floor: Optional[int] = Field(None, description="Floor number")
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_feet: Optional[int] = Field(None, gt=0)
    monthly_rent: Optional[Decimal] = Field(None, ge=0, description="Advertised monthly rent")
    status: UnitStatus = Field(UnitStatus.AVAILABLE, description="Initial status")


class UnitStatusUpdateRequest(BaseModel):
    status: UnitStatus = Field(..., description="New unit status")


class UnitResponse(BaseModel):
    """Unit response schema."""
    id: UUID
    property_id: UUID
    unit_number: str
    floor: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    square_feet: Optional[int] = None
    monthly_rent: Optional[Decimal] = None
    status: UnitStatus
    created_at: datetime

    class Config:
        from_attributes = True


class UnitsListResponse(BaseModel):
    items: List[UnitResponse]
    total: int
