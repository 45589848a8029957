"""
Work order Pydantic schemas.

Defines request/response models for work order CRUD, assignment,
status changes, completion, comments and the timeline view.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import WorkOrderCategory, WorkOrderPriority, WorkOrderStatus
from .common import PaginatedResponse, not_null


class WorkOrderCreateRequest(BaseModel):
    """Work order creation request schema."""
    property_id: UUID = Field(..., description="Property the work is for")
    unit_id: Optional[UUID] = Field(None, description="Unit, when the work is inside one")
    asset_id: Optional[UUID] = Field(None, description="Asset being serviced")
    category: WorkOrderCategory
    priority: WorkOrderPriority = WorkOrderPriority.MEDIUM
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    scheduled_date: Optional[date] = None
    access_instructions: Optional[str] = Field(None, max_length=500)
    estimated_cost: Optional[Decimal] = Field(None, ge=0)

    @field_validator('scheduled_date')
    @classmethod
    def validate_scheduled_date(cls, v):
        if v is not None and v < date.today():
            raise ValueError('scheduled date cannot be in the past')
        return v


class WorkOrderUpdateRequest(BaseModel):
    """Work order update request schema."""
    unit_id: Optional[UUID] = None
    category: Optional[WorkOrderCategory] = None
    priority: Optional[WorkOrderPriority] = None
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    scheduled_date: Optional[date] = None
    access_instructions: Optional[str] = Field(None, max_length=500)
    estimated_cost: Optional[Decimal] = Field(None, ge=0)

    @field_validator('category', 'priority', 'title', 'description')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)

    @field_validator('scheduled_date')
    @classmethod
    def validate_scheduled_date(cls, v):
        if v is not None and v < date.today():
            raise ValueError('scheduled date cannot be in the past')
        return v


class WorkOrderStatusUpdateRequest(BaseModel):
    status: WorkOrderStatus
    notes: Optional[str] = Field(None, max_length=1000)


class AssignWorkOrderRequest(BaseModel):
    vendor_id: UUID = Field(..., description="Vendor to assign")
    assignment_notes: Optional[str] = Field(None, max_length=1000)


class ReassignWorkOrderRequest(BaseModel):
    vendor_id: UUID = Field(..., description="New vendor")
    reason: str = Field(..., min_length=1, max_length=500, description="Why the work is being reassigned")
    assignment_notes: Optional[str] = Field(None, max_length=1000)


class StartWorkRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class CompleteWorkOrderRequest(BaseModel):
    """Completion report for a work order in progress."""
    completion_notes: str = Field(..., min_length=1, max_length=2000)
    hours_spent: Decimal = Field(..., gt=0)
    total_cost: Decimal = Field(..., ge=0)
    recommendations: Optional[str] = Field(None, max_length=1000)
    follow_up_required: bool = False
    follow_up_description: Optional[str] = Field(None, max_length=500)

    @model_validator(mode='after')
    def validate_follow_up(self):
        if self.follow_up_required and not (self.follow_up_description or "").strip():
            raise ValueError('Follow-up description is required when follow-up is needed')
        return self


class CancelWorkOrderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class CommentCreateRequest(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=2000)


class ProgressUpdateRequest(BaseModel):
    """Progress note from the field while work is under way."""
    progress_notes: str = Field(..., min_length=1, max_length=1000)
    estimated_completion_date: Optional[date] = Field(
        None, description="Moves the work order's scheduled date when given"
    )

    @field_validator('estimated_completion_date')
    @classmethod
    def validate_estimated_completion_date(cls, v):
        if v is not None and v < date.today():
            raise ValueError('estimated completion date cannot be in the past')
        return v


class ProgressUpdateResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    progress_notes: str
    estimated_completion_date: Optional[date] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    comment_text: str
    is_status_change: bool
    previous_status: Optional[WorkOrderStatus] = None
    new_status: Optional[WorkOrderStatus] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    vendor_id: UUID
    previous_vendor_id: Optional[UUID] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    assigned_by: Optional[UUID] = None
    assigned_at: datetime

    class Config:
        from_attributes = True


class WorkOrderResponse(BaseModel):
    """Work order response schema."""
    id: UUID
    work_order_number: str
    property_id: UUID
    unit_id: Optional[UUID] = None
    asset_id: Optional[UUID] = None
    pm_schedule_id: Optional[UUID] = None
    requested_by: Optional[UUID] = None
    assigned_to: Optional[UUID] = None
    category: WorkOrderCategory
    priority: WorkOrderPriority
    title: str
    description: str
    status: WorkOrderStatus
    scheduled_date: Optional[date] = None
    access_instructions: Optional[str] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    estimated_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None
    total_hours_spent: Optional[Decimal] = None
    completion_notes: Optional[str] = None
    recommendations: Optional[str] = None
    follow_up_required: bool
    follow_up_description: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WorkOrdersListResponse(PaginatedResponse):
    items: List[WorkOrderResponse]


class TransitionsResponse(BaseModel):
    """Statuses a work order may move to next."""
    current_status: WorkOrderStatus
    allowed_transitions: List[WorkOrderStatus]


class TimelineEntry(BaseModel):
    type: str = Field(..., description="CREATED, ASSIGNED, REASSIGNED, STATUS_CHANGED, PROGRESS_UPDATE or COMMENT")
    timestamp: datetime
    user_id: Optional[UUID] = None
    details: Dict[str, Any] = Field(default_factory=dict)
