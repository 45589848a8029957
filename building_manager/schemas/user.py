"""
User management-related Pydantic schemas.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator
from uuid import UUID

from ..database.models import UserRole
from .common import PaginatedResponse, not_null


class UserCreateRequest(BaseModel):
    """Staff user creation request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="Initial password")
    first_name: str = Field(..., min_length=1, max_length=100, description="User first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="User last name")
    role: UserRole = Field(UserRole.PROPERTY_MANAGER, description="User role")


class UserUpdateRequest(BaseModel):
    """User update request schema."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, description="User first name")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, description="User last name")

    @field_validator('first_name', 'last_name')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class UserRoleUpdateRequest(BaseModel):
    role: UserRole = Field(..., description="New role")


class UserResponse(BaseModel):
    """User response schema."""
    id: UUID = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email address")
    first_name: str = Field(..., description="User first name")
    last_name: str = Field(..., description="User last name")
    role: UserRole = Field(..., description="User role")
    active: bool = Field(..., description="Whether user is active")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp")
    deactivated_at: Optional[datetime] = Field(None, description="Deactivation timestamp")
    organization_id: UUID = Field(..., description="Organization ID")

    class Config:
        from_attributes = True


class UsersListResponse(PaginatedResponse):
    """Users list response schema."""
    items: List[UserResponse] = Field(..., description="List of users")
    active_count: int = Field(..., description="Number of active users")
    admin_count: int = Field(..., description="Number of admin users")
