"""
Authentication and user-related Pydantic schemas.

Defines request/response models for registration, login, password reset,
and the authenticated user's identity.
"""
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator
from uuid import UUID


def _check_password(value: str) -> str:
    if not any(c.isalpha() for c in value) or not any(c.isdigit() for c in value):
        raise ValueError('password must contain letters and digits')
    return value


class UserRegistrationRequest(BaseModel):
    """Registration of a new organization and its first administrator."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")
    first_name: str = Field(..., min_length=1, max_length=100, description="User first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="User last name")
    organization_name: str = Field(..., min_length=1, max_length=255, description="Name of the new organization")

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Validate password strength."""
        return _check_password(v)


class UserLoginRequest(BaseModel):
    """User login request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class PasswordResetRequest(BaseModel):
    """Password reset request schema."""
    email: EmailStr = Field(..., description="User email address")


class PasswordResetConfirm(BaseModel):
    """Password reset confirmation schema."""
    token: str = Field(..., description="Password reset token")
    new_password: str = Field(..., min_length=8, description="New password (minimum 8 characters)")

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)


class ChangePasswordRequest(BaseModel):
    """Change password request schema."""
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=8, description="New password (minimum 8 characters)")

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)


class OrganizationInfo(BaseModel):
    """Organization information schema."""
    id: UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")

    class Config:
        from_attributes = True


class UserInfo(BaseModel):
    """User information schema."""
    id: UUID = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email address")
    first_name: str = Field(..., description="User first name")
    last_name: str = Field(..., description="User last name")
    role: str = Field(..., description="User role")
    active: bool = Field(..., description="Whether user is active")
    organization_id: UUID = Field(..., description="Organization the user belongs to")

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Authentication response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserInfo = Field(..., description="User information")
    organizations: Optional[List[OrganizationInfo]] = Field(None, description="Accessible organizations")


class RegistrationResponse(BaseModel):
    """Registration response schema."""
    user: UserInfo = Field(..., description="Created user information")
    organization: OrganizationInfo = Field(..., description="Created organization information")
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class TokenRefreshResponse(BaseModel):
    """Token refresh response schema."""
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
