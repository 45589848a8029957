"""
Preventive maintenance schedule Pydantic schemas.
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import (
    WorkOrderCategory, WorkOrderPriority, WorkOrderStatus, RecurrenceType, PMScheduleStatus
)
from .common import PaginatedResponse, not_null


class PMScheduleCreateRequest(BaseModel):
    """PM schedule creation request schema."""
    schedule_name: str = Field(..., min_length=1, max_length=100)
    property_id: Optional[UUID] = Field(None, description="Property, or empty for all active properties")
    category: WorkOrderCategory
    description: str = Field(..., min_length=1, max_length=1000)
    recurrence_type: RecurrenceType
    start_date: date
    end_date: Optional[date] = None
    default_priority: WorkOrderPriority = WorkOrderPriority.MEDIUM
    default_assignee_id: Optional[UUID] = Field(None, description="Vendor assigned to generated work orders")

    @model_validator(mode='after')
    def validate_dates(self):
        if self.start_date < date.today():
            raise ValueError('start date cannot be in the past')
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError('end date must be after start date')
        return self


class PMScheduleUpdateRequest(BaseModel):
    schedule_name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[WorkOrderCategory] = None
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    recurrence_type: Optional[RecurrenceType] = None
    end_date: Optional[date] = None
    default_priority: Optional[WorkOrderPriority] = None
    default_assignee_id: Optional[UUID] = None

    @field_validator('schedule_name', 'category', 'description', 'recurrence_type', 'default_priority')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class PMScheduleStatusUpdateRequest(BaseModel):
    status: PMScheduleStatus


class PMScheduleResponse(BaseModel):
    """PM schedule response schema."""
    id: UUID
    schedule_name: str
    property_id: Optional[UUID] = None
    category: WorkOrderCategory
    description: str
    recurrence_type: RecurrenceType
    start_date: date
    end_date: Optional[date] = None
    default_priority: WorkOrderPriority
    default_assignee_id: Optional[UUID] = None
    status: PMScheduleStatus
    next_generation_date: Optional[date] = None
    last_generated_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PMSchedulesListResponse(PaginatedResponse):
    items: List[PMScheduleResponse]


class GeneratedWorkOrderItem(BaseModel):
    """Work order produced by a schedule, as shown in its history."""
    work_order_id: UUID
    work_order_number: str
    property_id: UUID
    status: WorkOrderStatus
    scheduled_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    is_overdue: bool
    days_to_complete: Optional[int] = None


class PMScheduleHistoryResponse(BaseModel):
    items: List[GeneratedWorkOrderItem]
    total: int


class PMScheduleStatisticsResponse(BaseModel):
    total_generated: int
    completed_count: int
    overdue_count: int
    average_completion_days: Optional[float] = None


class GenerationResponse(BaseModel):
    work_order_ids: List[UUID]
    next_generation_date: Optional[date] = None
