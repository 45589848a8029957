"""
Announcement Pydantic schemas.
"""
from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from uuid import UUID

from ..database.models import AnnouncementStatus
from .common import PaginatedResponse, not_null


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AnnouncementCreateRequest(BaseModel):
    """Announcement draft request schema."""
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    template_used: Optional[str] = Field(None, max_length=50, description="Template the message started from")
    expires_at: datetime = Field(..., description="When the announcement stops showing")
    attachment_url: Optional[str] = Field(None, max_length=1000)

    @field_validator('expires_at')
    @classmethod
    def validate_expires_at(cls, v):
        v = _aware(v)
        if v <= datetime.now(timezone.utc):
            raise ValueError('expiry must be in the future')
        return v


class AnnouncementUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    message: Optional[str] = Field(None, min_length=1, max_length=5000)
    template_used: Optional[str] = Field(None, max_length=50)
    expires_at: Optional[datetime] = None
    attachment_url: Optional[str] = Field(None, max_length=1000)

    @field_validator('title', 'message')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)

    @field_validator('expires_at')
    @classmethod
    def validate_expires_at(cls, v):
        v = _aware(not_null(v))
        if v <= datetime.now(timezone.utc):
            raise ValueError('expiry must be in the future')
        return v


class AnnouncementResponse(BaseModel):
    """Announcement response schema."""
    id: UUID
    announcement_number: str
    title: str
    message: str
    template_used: Optional[str] = None
    expires_at: datetime
    status: AnnouncementStatus
    attachment_url: Optional[str] = None
    published_at: Optional[datetime] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AnnouncementsListResponse(PaginatedResponse):
    items: List[AnnouncementResponse]
