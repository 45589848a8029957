"""
Compliance Pydantic schemas.

Covers requirements, per-property schedules, inspections, violations and
the compliance dashboard.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import UUID

from ..database.models import (
    ComplianceCategory, ComplianceFrequency, RequirementStatus, ComplianceScheduleStatus,
    InspectionStatus, InspectionResult, FineStatus
)
from .common import PaginatedResponse, not_null


def _not_in_future(value: Optional[date], label: str) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValueError(f'{label} cannot be in the future')
    return value


class RequirementCreateRequest(BaseModel):
    """Compliance requirement creation request schema."""
    requirement_name: str = Field(..., min_length=1, max_length=200)
    category: ComplianceCategory
    description: Optional[str] = Field(None, max_length=1000)
    applicable_properties: Optional[List[UUID]] = Field(
        None, description="Property ids the requirement covers; empty means all"
    )
    frequency: ComplianceFrequency
    authority_agency: Optional[str] = Field(None, max_length=200)
    penalty_description: Optional[str] = Field(None, max_length=500)
    status: RequirementStatus = RequirementStatus.ACTIVE


class RequirementUpdateRequest(BaseModel):
    requirement_name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ComplianceCategory] = None
    description: Optional[str] = Field(None, max_length=1000)
    applicable_properties: Optional[List[UUID]] = None
    frequency: Optional[ComplianceFrequency] = None
    authority_agency: Optional[str] = Field(None, max_length=200)
    penalty_description: Optional[str] = Field(None, max_length=500)
    status: Optional[RequirementStatus] = None

    @field_validator('requirement_name', 'category', 'frequency', 'status')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class RequirementResponse(BaseModel):
    id: UUID
    requirement_number: str
    requirement_name: str
    category: ComplianceCategory
    description: Optional[str] = None
    applicable_properties: Optional[List[UUID]] = None
    frequency: ComplianceFrequency
    authority_agency: Optional[str] = None
    penalty_description: Optional[str] = None
    status: RequirementStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RequirementsListResponse(PaginatedResponse):
    items: List[RequirementResponse]


class ScheduleResponse(BaseModel):
    """Compliance schedule response schema."""
    id: UUID
    schedule_number: str
    requirement_id: UUID
    property_id: UUID
    due_date: date
    status: ComplianceScheduleStatus
    completed_date: Optional[date] = None
    completed_by: Optional[UUID] = None
    notes: Optional[str] = None
    certificate_number: Optional[str] = None
    certificate_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SchedulesListResponse(PaginatedResponse):
    items: List[ScheduleResponse]


class CompleteScheduleRequest(BaseModel):
    completed_date: Optional[date] = Field(None, description="Defaults to today")
    notes: Optional[str] = Field(None, max_length=1000)
    certificate_number: Optional[str] = Field(None, max_length=100)
    certificate_url: Optional[str] = Field(None, max_length=1000)

    @field_validator('completed_date')
    @classmethod
    def validate_completed_date(cls, v):
        return _not_in_future(v, 'completed date')


class ExemptScheduleRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class InspectionCreateRequest(BaseModel):
    """Schedule an inspection against a compliance schedule."""
    schedule_id: UUID
    inspector_name: str = Field(..., min_length=1, max_length=200)
    inspector_company: Optional[str] = Field(None, max_length=200)
    scheduled_date: date

    @field_validator('scheduled_date')
    @classmethod
    def validate_scheduled_date(cls, v):
        if v < date.today():
            raise ValueError('scheduled date cannot be in the past')
        return v


class InspectionResultRequest(BaseModel):
    """Outcome of an inspection."""
    status: InspectionStatus
    result: Optional[InspectionResult] = None
    inspection_date: Optional[date] = None
    issues_found: Optional[str] = Field(None, max_length=1000)
    recommendations: Optional[str] = Field(None, max_length=1000)
    next_inspection_date: Optional[date] = None
    create_remediation_work_order: bool = False

    @field_validator('inspection_date')
    @classmethod
    def validate_inspection_date(cls, v):
        return _not_in_future(v, 'inspection date')

    @model_validator(mode='after')
    def validate_result(self):
        if self.status in (InspectionStatus.PASSED, InspectionStatus.FAILED) and self.result is None:
            raise ValueError('result is required when the inspection is finished')
        if self.result in (InspectionResult.FAILED, InspectionResult.PARTIAL_PASS) \
                and not (self.issues_found or "").strip():
            raise ValueError('issues found are required for failed or partial results')
        return self


class InspectionCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class InspectionResponse(BaseModel):
    id: UUID
    schedule_id: UUID
    property_id: UUID
    inspector_name: str
    inspector_company: Optional[str] = None
    scheduled_date: date
    inspection_date: Optional[date] = None
    status: InspectionStatus
    result: Optional[InspectionResult] = None
    issues_found: Optional[str] = None
    recommendations: Optional[str] = None
    next_inspection_date: Optional[date] = None
    notes: Optional[str] = None
    remediation_work_order_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InspectionsListResponse(PaginatedResponse):
    items: List[InspectionResponse]


class ViolationCreateRequest(BaseModel):
    """Violation recording request schema."""
    schedule_id: UUID
    violation_date: date
    description: str = Field(..., min_length=1, max_length=1000)
    fine_amount: Decimal = Field(Decimal("0"), ge=0)
    fine_status: FineStatus = FineStatus.PENDING
    create_remediation_work_order: bool = False

    @field_validator('violation_date')
    @classmethod
    def validate_violation_date(cls, v):
        return _not_in_future(v, 'violation date')


class ViolationUpdateRequest(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    fine_amount: Optional[Decimal] = Field(None, ge=0)
    fine_status: Optional[FineStatus] = None
    remediation_work_order_id: Optional[UUID] = None
    resolution_date: Optional[date] = None

    @field_validator('description', 'fine_amount', 'fine_status')
    @classmethod
    def reject_null(cls, v):
        return not_null(v)

    @field_validator('resolution_date')
    @classmethod
    def validate_resolution_date(cls, v):
        return _not_in_future(v, 'resolution date')


class ViolationResponse(BaseModel):
    id: UUID
    violation_number: str
    schedule_id: UUID
    violation_date: date
    description: str
    fine_amount: Decimal
    fine_status: FineStatus
    remediation_work_order_id: Optional[UUID] = None
    resolution_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ViolationsListResponse(PaginatedResponse):
    items: List[ViolationResponse]


class ComplianceDashboardResponse(BaseModel):
    """Counts behind the compliance dashboard."""
    schedules_by_status: Dict[str, int]
    upcoming_within_30_days: int
    compliance_rate: Optional[float] = Field(None, description="Completed / (completed + overdue), as a percentage")
    total_fines_pending: Decimal
    recent_violations: List[ViolationResponse]
