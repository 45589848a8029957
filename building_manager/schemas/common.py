"""
Shared response schemas.
"""
from typing import Dict
from pydantic import BaseModel, Field


class StandardResponse(BaseModel):
    """Standard API response schema."""
    message: str = Field(..., description="Response message")


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(..., description="Error detail message")


class PaginatedResponse(BaseModel):
    """Pagination fields shared by list responses."""
    total: int = Field(..., description="Total number of matching records")
    page: int = Field(1, description="Current page number")
    per_page: int = Field(10, description="Items per page")


class AvailabilityResponse(BaseModel):
    """Result of a uniqueness check."""
    available: bool = Field(..., description="Whether the value is free to use")


class CountResponse(BaseModel):
    count: int = Field(..., description="Number of matching records")


class JobRunResponse(BaseModel):
    """Outcome of the daily maintenance jobs."""
    results: Dict[str, int] = Field(..., description="Records affected per job")


def not_null(value):
    """Reject an explicit null for a field whose column cannot be cleared."""
    if value is None:
        raise ValueError('field cannot be null')
    return value
