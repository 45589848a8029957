"""
Work order API routes.

Provides endpoints for the maintenance work order lifecycle: creation,
vendor assignment, status changes, progress, completion, comments and timeline.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    WorkOrder, WorkOrderAssignment, WorkOrderComment,
    WorkOrderCategory, WorkOrderPriority, WorkOrderStatus
)
from ...schemas.work_order import (
    WorkOrderCreateRequest, WorkOrderUpdateRequest, WorkOrderStatusUpdateRequest,
    AssignWorkOrderRequest, ReassignWorkOrderRequest, StartWorkRequest,
    CompleteWorkOrderRequest, CancelWorkOrderRequest, CommentCreateRequest,
    ProgressUpdateRequest, ProgressUpdateResponse,
    CommentResponse, AssignmentResponse, WorkOrderResponse, WorkOrdersListResponse,
    TransitionsResponse, TimelineEntry
)
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.work_order_service import WorkOrderService, FINISHED_STATUSES

router = APIRouter(prefix="/work-orders", tags=["Work Orders"])


def _paginate(query, page: int, per_page: int) -> WorkOrdersListResponse:
    total = query.count()
    offset = (page - 1) * per_page
    work_orders = query.order_by(WorkOrder.created_at.desc()).offset(offset).limit(per_page).all()
    return WorkOrdersListResponse(items=work_orders, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.post("/", response_model=WorkOrderResponse, status_code=status.HTTP_201_CREATED,
            summary="Create work order",
            description="Raise a maintenance work order for a property, unit or asset.")
async def create_work_order(
    request: WorkOrderCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a new work order.

    The unit and asset, when given, must belong to the property.
    """
    work_order = WorkOrderService.create_work_order(
        db, org_filter.organization_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.get("/", response_model=WorkOrdersListResponse,
           summary="List work orders",
           description="Get a paginated list of work orders with optional filtering.")
async def list_work_orders(
    work_order_status: Optional[WorkOrderStatus] = Query(None, alias="status", description="Filter by status"),
    priority: Optional[WorkOrderPriority] = Query(None, description="Filter by priority"),
    category: Optional[WorkOrderCategory] = Query(None, description="Filter by category"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    vendor_id: Optional[UUID] = Query(None, description="Filter by assigned vendor"),
    q: Optional[str] = Query(None, description="Search by number, title or description"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List work orders in the current organization.
    """
    query = org_filter.filter_query(db.query(WorkOrder), WorkOrder)

    if work_order_status:
        query = query.filter(WorkOrder.status == work_order_status)
    if priority:
        query = query.filter(WorkOrder.priority == priority)
    if category:
        query = query.filter(WorkOrder.category == category)
    if property_id:
        query = query.filter(WorkOrder.property_id == property_id)
    if vendor_id:
        query = query.filter(WorkOrder.assigned_to == vendor_id)
    if q:
        query = query.filter(
            (WorkOrder.work_order_number.ilike(f"%{q}%")) |
            (WorkOrder.title.ilike(f"%{q}%")) |
            (WorkOrder.description.ilike(f"%{q}%"))
        )

    return _paginate(query, page, per_page)


# PUBLIC_INTERFACE
@router.get("/unassigned", response_model=WorkOrdersListResponse,
           summary="List unassigned work orders",
           description="Open work orders that have no vendor yet.")
async def list_unassigned_work_orders(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List unassigned work orders.
    """
    query = org_filter.filter_query(db.query(WorkOrder), WorkOrder).filter(
        WorkOrder.assigned_to.is_(None),
        WorkOrder.status == WorkOrderStatus.OPEN
    )
    return _paginate(query, page, per_page)


# PUBLIC_INTERFACE
@router.get("/follow-ups", response_model=WorkOrdersListResponse,
           summary="List follow-ups",
           description="Completed work orders that were flagged as needing follow-up.")
async def list_follow_up_work_orders(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List work orders needing follow-up.
    """
    query = org_filter.filter_query(db.query(WorkOrder), WorkOrder).filter(
        WorkOrder.follow_up_required == True,
        WorkOrder.status.in_(FINISHED_STATUSES)
    )
    return _paginate(query, page, per_page)


# PUBLIC_INTERFACE
@router.get("/by-number/{work_order_number}", response_model=WorkOrderResponse,
           summary="Get work order by number",
           description="Look up a work order by its WO- number.")
async def get_work_order_by_number(
    work_order_number: str,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get a work order by number.
    """
    return WorkOrderService.get_by_number(db, org_filter.organization_id, work_order_number)


# PUBLIC_INTERFACE
@router.get("/{work_order_id}", response_model=WorkOrderResponse,
           summary="Get work order details",
           description="Get information about a specific work order.")
async def get_work_order(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get work order details.
    """
    return WorkOrderService.get_work_order(db, org_filter.organization_id, work_order_id)


# PUBLIC_INTERFACE
@router.put("/{work_order_id}", response_model=WorkOrderResponse,
           summary="Update work order",
           description="Update work order details; closed work orders cannot be changed.")
async def update_work_order(
    work_order_id: UUID,
    request: WorkOrderUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update work order details.

    Only provided fields will be updated.
    """
    work_order = WorkOrderService.update_work_order(db, org_filter.organization_id, work_order_id, request)
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.patch("/{work_order_id}/status", response_model=WorkOrderResponse,
             summary="Update work order status",
             description="Move a work order along its allowed status transitions.")
async def update_work_order_status(
    work_order_id: UUID,
    request: WorkOrderStatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update work order status.

    The change is recorded in the work order timeline.
    """
    work_order = WorkOrderService.update_status(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.get("/{work_order_id}/transitions", response_model=TransitionsResponse,
           summary="Allowed status transitions",
           description="Statuses the work order may move to from its current status.")
async def get_allowed_transitions(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get allowed status transitions.
    """
    work_order = WorkOrderService.get_work_order(db, org_filter.organization_id, work_order_id)
    return TransitionsResponse(
        current_status=work_order.status,
        allowed_transitions=WorkOrderService.allowed_transitions(work_order)
    )


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/assign", response_model=AssignmentResponse,
            summary="Assign vendor",
            description="Assign an active vendor to a work order.")
async def assign_work_order(
    work_order_id: UUID,
    request: AssignWorkOrderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Assign a vendor.

    An OPEN work order becomes ASSIGNED.
    """
    assignment = WorkOrderService.assign(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(assignment)
    return assignment


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/reassign", response_model=AssignmentResponse,
            summary="Reassign vendor",
            description="Hand an assigned work order to a different vendor.")
async def reassign_work_order(
    work_order_id: UUID,
    request: ReassignWorkOrderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Reassign a work order.
    """
    assignment = WorkOrderService.reassign(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(assignment)
    return assignment


# PUBLIC_INTERFACE
@router.get("/{work_order_id}/assignments", response_model=List[AssignmentResponse],
           summary="Assignment history",
           description="Every vendor assignment made on a work order, oldest first.")
async def get_assignment_history(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get assignment history.
    """
    work_order = WorkOrderService.get_work_order(db, org_filter.organization_id, work_order_id)
    return db.query(WorkOrderAssignment).filter(
        WorkOrderAssignment.work_order_id == work_order.id
    ).order_by(WorkOrderAssignment.assigned_at).all()


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/start", response_model=WorkOrderResponse,
            summary="Start work",
            description="Mark an assigned work order as in progress.")
async def start_work(
    work_order_id: UUID,
    request: Optional[StartWorkRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Start work on a work order.
    """
    work_order = WorkOrderService.start_work(
        db, org_filter.organization_id, work_order_id,
        user_id=current_user.user_id, notes=request.notes if request else None
    )
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/progress", response_model=ProgressUpdateResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Add progress update",
            description="Log progress on a work order in IN_PROGRESS status.")
async def add_progress_update(
    work_order_id: UUID,
    request: ProgressUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    progress = WorkOrderService.add_progress_update(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(progress)
    return progress


# PUBLIC_INTERFACE
@router.get("/{work_order_id}/progress", response_model=List[ProgressUpdateResponse],
           summary="List progress updates",
           description="Progress updates of a work order, newest first.")
async def list_progress_updates(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    return WorkOrderService.progress_updates(db, org_filter.organization_id, work_order_id)


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/complete", response_model=WorkOrderResponse,
            summary="Complete work order",
            description="Record the completion report of a work order in progress.")
async def complete_work_order(
    work_order_id: UUID,
    request: CompleteWorkOrderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Mark a work order complete.
    """
    work_order = WorkOrderService.mark_complete(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/cancel", response_model=WorkOrderResponse,
            summary="Cancel work order",
            description="Close a work order that has not been completed.")
async def cancel_work_order(
    work_order_id: UUID,
    request: Optional[CancelWorkOrderRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Cancel a work order.
    """
    work_order = WorkOrderService.cancel(
        db, org_filter.organization_id, work_order_id,
        user_id=current_user.user_id, reason=request.reason if request else None
    )
    db.commit()
    db.refresh(work_order)
    return work_order


# PUBLIC_INTERFACE
@router.post("/{work_order_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED,
            summary="Add comment",
            description="Add a comment to a work order.")
async def add_comment(
    work_order_id: UUID,
    request: CommentCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Add a comment.
    """
    comment = WorkOrderService.add_comment(
        db, org_filter.organization_id, work_order_id, request.comment_text, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(comment)
    return comment


# PUBLIC_INTERFACE
@router.get("/{work_order_id}/comments", response_model=List[CommentResponse],
           summary="List comments",
           description="Comments and status changes of a work order, oldest first.")
async def list_comments(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List work order comments.
    """
    work_order = WorkOrderService.get_work_order(db, org_filter.organization_id, work_order_id)
    return db.query(WorkOrderComment).filter(
        WorkOrderComment.work_order_id == work_order.id
    ).order_by(WorkOrderComment.created_at).all()


# PUBLIC_INTERFACE
@router.get("/{work_order_id}/timeline", response_model=List[TimelineEntry],
           summary="Work order timeline",
           description="Creation, assignments, status changes, progress updates and comments in time order.")
async def get_timeline(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the work order timeline.
    """
    return WorkOrderService.timeline(db, org_filter.organization_id, work_order_id)
