"""
Preventive maintenance schedule API routes.

Provides endpoints for recurring maintenance schedules and the work orders
they generate.
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import PMSchedule, PMScheduleStatus, RecurrenceType
from ...schemas.pm_schedule import (
    PMScheduleCreateRequest, PMScheduleUpdateRequest, PMScheduleStatusUpdateRequest,
    PMScheduleResponse, PMSchedulesListResponse, PMScheduleHistoryResponse,
    PMScheduleStatisticsResponse, GenerationResponse
)
from ...schemas.common import StandardResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.pm_schedule_service import PMScheduleService

router = APIRouter(prefix="/pm-schedules", tags=["PM Schedules"])


# PUBLIC_INTERFACE
@router.post("/", response_model=PMScheduleResponse, status_code=status.HTTP_201_CREATED,
            summary="Create PM schedule",
            description="Create a recurring preventive maintenance schedule.")
async def create_pm_schedule(
    request: PMScheduleCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a PM schedule.

    The first work orders are generated on the start date.
    """
    schedule = PMScheduleService.create_schedule(
        db, org_filter.organization_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(schedule)
    return schedule


# PUBLIC_INTERFACE
@router.get("/", response_model=PMSchedulesListResponse,
           summary="List PM schedules",
           description="Get a paginated list of PM schedules with optional filtering.")
async def list_pm_schedules(
    schedule_status: Optional[PMScheduleStatus] = Query(None, alias="status", description="Filter by status"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    recurrence_type: Optional[RecurrenceType] = Query(None, description="Filter by recurrence"),
    q: Optional[str] = Query(None, description="Search by schedule name"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List PM schedules in the current organization.

    Deleted schedules are never listed.
    """
    query = org_filter.filter_query(db.query(PMSchedule), PMSchedule).filter(
        PMSchedule.status != PMScheduleStatus.DELETED
    )

    if schedule_status:
        query = query.filter(PMSchedule.status == schedule_status)
    if property_id:
        query = query.filter(PMSchedule.property_id == property_id)
    if recurrence_type:
        query = query.filter(PMSchedule.recurrence_type == recurrence_type)
    if q:
        query = query.filter(PMSchedule.schedule_name.ilike(f"%{q}%"))

    total = query.count()
    offset = (page - 1) * per_page
    schedules = query.order_by(PMSchedule.next_generation_date, PMSchedule.schedule_name) \
        .offset(offset).limit(per_page).all()

    return PMSchedulesListResponse(items=schedules, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/{schedule_id}", response_model=PMScheduleResponse,
           summary="Get PM schedule",
           description="Get information about a specific PM schedule.")
async def get_pm_schedule(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get PM schedule details.
    """
    return PMScheduleService.get_schedule(db, org_filter.organization_id, schedule_id)


# PUBLIC_INTERFACE
@router.put("/{schedule_id}", response_model=PMScheduleResponse,
           summary="Update PM schedule",
           description="Update an active or paused PM schedule.")
async def update_pm_schedule(
    schedule_id: UUID,
    request: PMScheduleUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a PM schedule.
    """
    schedule = PMScheduleService.update_schedule(db, org_filter.organization_id, schedule_id, request)
    db.commit()
    db.refresh(schedule)
    return schedule


# PUBLIC_INTERFACE
@router.patch("/{schedule_id}/status", response_model=PMScheduleResponse,
             summary="Update PM schedule status",
             description="Pause, resume or complete a PM schedule.")
async def update_pm_schedule_status(
    schedule_id: UUID,
    request: PMScheduleStatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update PM schedule status.
    """
    schedule = PMScheduleService.update_status(db, org_filter.organization_id, schedule_id, request.status)
    db.commit()
    db.refresh(schedule)
    return schedule


# PUBLIC_INTERFACE
@router.delete("/{schedule_id}", response_model=StandardResponse,
              summary="Delete PM schedule",
              description="Soft delete a PM schedule that has not generated any work orders.")
async def delete_pm_schedule(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Delete a PM schedule.
    """
    PMScheduleService.delete_schedule(db, org_filter.organization_id, schedule_id)
    db.commit()
    return StandardResponse(message="PM schedule deleted successfully")


# PUBLIC_INTERFACE
@router.post("/{schedule_id}/generate", response_model=GenerationResponse,
            summary="Generate work orders now",
            description="Generate work orders from an active schedule immediately.")
async def generate_work_orders_now(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Generate work orders now.

    The schedule's next generation date is left unchanged.
    """
    orders = PMScheduleService.generate_now(
        db, org_filter.organization_id, schedule_id, user_id=current_user.user_id
    )
    db.commit()
    schedule = PMScheduleService.get_schedule(db, org_filter.organization_id, schedule_id)
    return GenerationResponse(
        work_order_ids=[wo.id for wo in orders],
        next_generation_date=schedule.next_generation_date
    )


# PUBLIC_INTERFACE
@router.get("/{schedule_id}/history", response_model=PMScheduleHistoryResponse,
           summary="PM schedule history",
           description="Work orders generated by a schedule, with overdue flags.")
async def get_pm_schedule_history(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get generated work order history.
    """
    items = PMScheduleService.history(db, org_filter.organization_id, schedule_id)
    return PMScheduleHistoryResponse(items=items, total=len(items))


# PUBLIC_INTERFACE
@router.get("/{schedule_id}/statistics", response_model=PMScheduleStatisticsResponse,
           summary="PM schedule statistics",
           description="Generated, completed and overdue counts plus average completion time.")
async def get_pm_schedule_statistics(
    schedule_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get PM schedule statistics.
    """
    return PMScheduleStatisticsResponse(
        **PMScheduleService.statistics(db, org_filter.organization_id, schedule_id)
    )
