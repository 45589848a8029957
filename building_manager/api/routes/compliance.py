"""
Compliance API routes.

Provides endpoints for regulatory requirements, per-property compliance
schedules, inspections, violations and the compliance dashboard.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    ComplianceRequirement, ComplianceCategory, ComplianceFrequency, RequirementStatus,
    ComplianceSchedule, ComplianceScheduleStatus, Inspection, InspectionStatus,
    Violation, FineStatus
)
from ...schemas.compliance import (
    RequirementCreateRequest, RequirementUpdateRequest, RequirementResponse, RequirementsListResponse,
    ScheduleResponse, SchedulesListResponse, CompleteScheduleRequest, ExemptScheduleRequest,
    InspectionCreateRequest, InspectionResultRequest, InspectionCancelRequest,
    InspectionResponse, InspectionsListResponse,
    ViolationCreateRequest, ViolationUpdateRequest, ViolationResponse, ViolationsListResponse,
    ComplianceDashboardResponse
)
from ...schemas.common import StandardResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.compliance_service import ComplianceService, DUE_SOON_DAYS

router = APIRouter(tags=["Compliance"])


# PUBLIC_INTERFACE
@router.post("/compliance-requirements", response_model=RequirementResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Create compliance requirement",
            description="Define a regulatory requirement for all or some properties.")
async def create_requirement(
    request: RequirementCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a compliance requirement.

    An empty property list makes the requirement apply to every property.
    """
    requirement = ComplianceService.create_requirement(db, org_filter.organization_id, request)
    db.commit()
    db.refresh(requirement)
    return requirement


# PUBLIC_INTERFACE
@router.get("/compliance-requirements", response_model=RequirementsListResponse,
           summary="List compliance requirements",
           description="Get a paginated list of compliance requirements with optional filtering.")
async def list_requirements(
    category: Optional[ComplianceCategory] = Query(None, description="Filter by category"),
    frequency: Optional[ComplianceFrequency] = Query(None, description="Filter by frequency"),
    requirement_status: Optional[RequirementStatus] = Query(None, alias="status", description="Filter by status"),
    q: Optional[str] = Query(None, description="Search by name or number"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List compliance requirements.
    """
    query = org_filter.filter_query(db.query(ComplianceRequirement), ComplianceRequirement).filter(
        ComplianceRequirement.is_deleted == False
    )
    if category:
        query = query.filter(ComplianceRequirement.category == category)
    if frequency:
        query = query.filter(ComplianceRequirement.frequency == frequency)
    if requirement_status:
        query = query.filter(ComplianceRequirement.status == requirement_status)
    if q:
        query = query.filter(
            (ComplianceRequirement.requirement_name.ilike(f"%{q}%")) |
            (ComplianceRequirement.requirement_number.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    requirements = query.order_by(ComplianceRequirement.requirement_name).offset(offset).limit(per_page).all()

    return RequirementsListResponse(items=requirements, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/compliance-requirements/{requirement_id}", response_model=RequirementResponse,
           summary="Get compliance requirement",
           description="Get information about a specific compliance requirement.")
async def get_requirement(
    requirement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get compliance requirement details.
    """
    return ComplianceService.get_requirement(db, org_filter.organization_id, requirement_id)


# PUBLIC_INTERFACE
@router.put("/compliance-requirements/{requirement_id}", response_model=RequirementResponse,
           summary="Update compliance requirement",
           description="Update a compliance requirement.")
async def update_requirement(
    requirement_id: UUID,
    request: RequirementUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a compliance requirement.
    """
    requirement = ComplianceService.update_requirement(db, org_filter.organization_id, requirement_id, request)
    db.commit()
    db.refresh(requirement)
    return requirement


# PUBLIC_INTERFACE
@router.delete("/compliance-requirements/{requirement_id}", response_model=StandardResponse,
              summary="Delete compliance requirement",
              description="Soft delete a compliance requirement.")
async def delete_requirement(
    requirement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Delete a compliance requirement.
    """
    ComplianceService.delete_requirement(db, org_filter.organization_id, requirement_id)
    db.commit()
    return StandardResponse(message="Compliance requirement deleted successfully")


# PUBLIC_INTERFACE
@router.post("/compliance-schedules/generate/{property_id}", response_model=List[ScheduleResponse],
            status_code=status.HTTP_201_CREATED,
            summary="Generate compliance schedules",
            description="Create schedules for every applicable requirement a property has no open schedule for.")
async def generate_schedules(
    property_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Generate compliance schedules for a property.
    """
    schedules = ComplianceService.generate_for_property(db, org_filter.organization_id, property_id)
    db.commit()
    for schedule in schedules:
        db.refresh(schedule)
    return schedules


# PUBLIC_INTERFACE
@router.get("/compliance-schedules", response_model=SchedulesListResponse,
           summary="List compliance schedules",
           description="Get a paginated list of compliance schedules ordered by due date.")
async def list_schedules(
    schedule_status: Optional[ComplianceScheduleStatus] = Query(None, alias="status", description="Filter by status"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    requirement_id: Optional[UUID] = Query(None, description="Filter by requirement"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List compliance schedules.
    """
    query = org_filter.filter_query(db.query(ComplianceSchedule), ComplianceSchedule)
    if schedule_status:
        query = query.filter(ComplianceSchedule.status == schedule_status)
    if property_id:
        query = query.filter(ComplianceSchedule.property_id == property_id)
    if requirement_id:
        query = query.filter(ComplianceSchedule.requirement_id == requirement_id)

    total = query.count()
    offset = (page - 1) * per_page
    schedules = query.order_by(ComplianceSchedule.due_date).offset(offset).limit(per_page).all()

    return SchedulesListResponse(items=schedules, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/compliance-schedules/{schedule_id}", response_model=ScheduleResponse,
           summary="Get compliance schedule",
           description="Get information about a specific compliance schedule.")
async def get_schedule(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get compliance schedule details.
    """
    return ComplianceService.get_schedule(db, org_filter.organization_id, schedule_id)


# PUBLIC_INTERFACE
@router.post("/compliance-schedules/{schedule_id}/complete", response_model=ScheduleResponse,
            summary="Complete compliance schedule",
            description="Mark a schedule complete; recurring requirements get their next schedule.")
async def complete_schedule(
    schedule_id: UUID,
    request: CompleteScheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Complete a compliance schedule.
    """
    schedule = ComplianceService.complete_schedule(
        db, org_filter.organization_id, schedule_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(schedule)
    return schedule


# PUBLIC_INTERFACE
@router.post("/compliance-schedules/{schedule_id}/exempt", response_model=ScheduleResponse,
            summary="Exempt compliance schedule",
            description="Exempt a property from a scheduled compliance check.")
async def exempt_schedule(
    schedule_id: UUID,
    request: ExemptScheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Exempt a compliance schedule.

    The reason is kept in the schedule notes.
    """
    schedule = ComplianceService.exempt_schedule(db, org_filter.organization_id, schedule_id, request.reason)
    db.commit()
    db.refresh(schedule)
    return schedule


# PUBLIC_INTERFACE
@router.post("/inspections", response_model=InspectionResponse, status_code=status.HTTP_201_CREATED,
            summary="Schedule inspection",
            description="Schedule an inspection for a compliance schedule.")
async def schedule_inspection(
    request: InspectionCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Schedule an inspection.
    """
    inspection = ComplianceService.schedule_inspection(db, org_filter.organization_id, request)
    db.commit()
    db.refresh(inspection)
    return inspection


# PUBLIC_INTERFACE
@router.get("/inspections", response_model=InspectionsListResponse,
           summary="List inspections",
           description="Get a paginated list of inspections with optional filtering.")
async def list_inspections(
    inspection_status: Optional[InspectionStatus] = Query(None, alias="status", description="Filter by status"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    schedule_id: Optional[UUID] = Query(None, description="Filter by compliance schedule"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List inspections.
    """
    query = org_filter.filter_query(db.query(Inspection), Inspection)
    if inspection_status:
        query = query.filter(Inspection.status == inspection_status)
    if property_id:
        query = query.filter(Inspection.property_id == property_id)
    if schedule_id:
        query = query.filter(Inspection.schedule_id == schedule_id)

    total = query.count()
    offset = (page - 1) * per_page
    inspections = query.order_by(Inspection.scheduled_date.desc()).offset(offset).limit(per_page).all()

    return InspectionsListResponse(items=inspections, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/inspections/upcoming", response_model=List[InspectionResponse],
           summary="Upcoming inspections",
           description="Scheduled inspections within the given number of days.")
async def list_upcoming_inspections(
    days: int = Query(DUE_SOON_DAYS, ge=1, le=365, description="Look-ahead window in days"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List upcoming inspections.
    """
    return ComplianceService.upcoming_inspections(db, org_filter.organization_id, days)


# PUBLIC_INTERFACE
@router.get("/inspections/{inspection_id}", response_model=InspectionResponse,
           summary="Get inspection",
           description="Get information about a specific inspection.")
async def get_inspection(
    inspection_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get inspection details.
    """
    return ComplianceService.get_inspection(db, org_filter.organization_id, inspection_id)


# PUBLIC_INTERFACE
@router.put("/inspections/{inspection_id}/result", response_model=InspectionResponse,
           summary="Record inspection result",
           description="Record the outcome of an inspection; failures can raise a remediation work order.")
async def record_inspection_result(
    inspection_id: UUID,
    request: InspectionResultRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Record an inspection result.
    """
    inspection = ComplianceService.record_inspection_result(
        db, org_filter.organization_id, inspection_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(inspection)
    return inspection


# PUBLIC_INTERFACE
@router.post("/inspections/{inspection_id}/cancel", response_model=InspectionResponse,
            summary="Cancel inspection",
            description="Cancel an inspection that has not finished.")
async def cancel_inspection(
    inspection_id: UUID,
    request: Optional[InspectionCancelRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Cancel an inspection.
    """
    inspection = ComplianceService.cancel_inspection(
        db, org_filter.organization_id, inspection_id, request.reason if request else None
    )
    db.commit()
    db.refresh(inspection)
    return inspection


# PUBLIC_INTERFACE
@router.post("/violations", response_model=ViolationResponse, status_code=status.HTTP_201_CREATED,
            summary="Record violation",
            description="Record a compliance violation, optionally raising a remediation work order.")
async def record_violation(
    request: ViolationCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Record a violation.
    """
    violation = ComplianceService.record_violation(
        db, org_filter.organization_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(violation)
    return violation


# PUBLIC_INTERFACE
@router.get("/violations", response_model=ViolationsListResponse,
           summary="List violations",
           description="Get a paginated list of violations with optional filtering.")
async def list_violations(
    fine_status: Optional[FineStatus] = Query(None, description="Filter by fine status"),
    schedule_id: Optional[UUID] = Query(None, description="Filter by compliance schedule"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List violations.
    """
    query = org_filter.filter_query(db.query(Violation), Violation)
    if fine_status:
        query = query.filter(Violation.fine_status == fine_status)
    if schedule_id:
        query = query.filter(Violation.schedule_id == schedule_id)

    total = query.count()
    offset = (page - 1) * per_page
    violations = query.order_by(Violation.violation_date.desc()).offset(offset).limit(per_page).all()

    return ViolationsListResponse(items=violations, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/violations/{violation_id}", response_model=ViolationResponse,
           summary="Get violation",
           description="Get information about a specific violation.")
async def get_violation(
    violation_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get violation details.
    """
    return ComplianceService.get_violation(db, org_filter.organization_id, violation_id)


# PUBLIC_INTERFACE
@router.put("/violations/{violation_id}", response_model=ViolationResponse,
           summary="Update violation",
           description="Update fine status, resolution date or remediation work order of a violation.")
async def update_violation(
    violation_id: UUID,
    request: ViolationUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a violation.
    """
    violation = ComplianceService.update_violation(db, org_filter.organization_id, violation_id, request)
    db.commit()
    db.refresh(violation)
    return violation


# PUBLIC_INTERFACE
@router.get("/compliance/dashboard", response_model=ComplianceDashboardResponse,
           summary="Compliance dashboard",
           description="Schedules per status, upcoming due dates, compliance rate, pending fines and recent violations.")
async def get_compliance_dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the compliance dashboard.
    """
    return ComplianceDashboardResponse(**ComplianceService.dashboard(db, org_filter.organization_id))
