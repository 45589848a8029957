"""
Work Order Service - lifecycle rules for maintenance work orders.

Status moves along OPEN -> ASSIGNED -> IN_PROGRESS -> COMPLETED -> CLOSED,
and any open order may be closed early. Every change leaves a status-change
comment so the timeline can be rebuilt.
"""
import logging
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from ..database.models import (
    WorkOrder, WorkOrderStatus, WorkOrderComment, WorkOrderAssignment, WorkOrderProgress,
    Property, Unit, Asset, Vendor, VendorStatus
)
from ..schemas.work_order import (
    WorkOrderCreateRequest, WorkOrderUpdateRequest, WorkOrderStatusUpdateRequest,
    AssignWorkOrderRequest, ReassignWorkOrderRequest, CompleteWorkOrderRequest, ProgressUpdateRequest
)
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .lease_calculations import round_money
from .timeutils import utcnow, as_utc

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[WorkOrderStatus, tuple] = {
    WorkOrderStatus.OPEN: (WorkOrderStatus.ASSIGNED, WorkOrderStatus.CLOSED),
    WorkOrderStatus.ASSIGNED: (WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.CLOSED),
    WorkOrderStatus.IN_PROGRESS: (WorkOrderStatus.COMPLETED, WorkOrderStatus.CLOSED),
    WorkOrderStatus.COMPLETED: (WorkOrderStatus.CLOSED,),
    WorkOrderStatus.CLOSED: (),
}
FINISHED_STATUSES = (WorkOrderStatus.COMPLETED, WorkOrderStatus.CLOSED)
TITLE_MAX_LENGTH = 100


def truncate_title(title: str) -> str:
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_MAX_LENGTH - 3] + "..."
    return title


def validate_status_transition(current: WorkOrderStatus, new: WorkOrderStatus) -> None:
    if current == WorkOrderStatus.CLOSED:
        raise BusinessRuleError("Cannot change status of closed work order")
    if new not in ALLOWED_TRANSITIONS[current]:
        raise BusinessRuleError(f"Cannot transition from {current.value} to {new.value}")


class WorkOrderService:
    """Service class for work order business logic."""

    @staticmethod
    def get_work_order(db: Session, organization_id: UUID, work_order_id: UUID) -> WorkOrder:
        work_order = db.query(WorkOrder).filter(
            WorkOrder.id == work_order_id,
            WorkOrder.organization_id == organization_id
        ).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        return work_order

    @staticmethod
    def get_by_number(db: Session, organization_id: UUID, number: str) -> WorkOrder:
        logger.debug("Looking up work order %s", number)
        work_order = db.query(WorkOrder).filter(
            WorkOrder.work_order_number == number,
            WorkOrder.organization_id == organization_id
        ).first()
        if not work_order:
            raise NotFoundError("Work order", number)
        return work_order

    @staticmethod
    def _check_location(db: Session, organization_id: UUID, property_id: UUID,
                        unit_id: Optional[UUID], asset_id: Optional[UUID]) -> None:
        prop = db.query(Property).filter(
            Property.id == property_id,
            Property.organization_id == organization_id
        ).first()
        if not prop:
            raise NotFoundError("Property", property_id)
        if unit_id:
            unit = db.query(Unit).filter(Unit.id == unit_id, Unit.organization_id == organization_id).first()
            if not unit:
                raise NotFoundError("Unit", unit_id)
            if unit.property_id != property_id:
                raise BusinessRuleError("Unit does not belong to the specified property")
        if asset_id:
            asset = db.query(Asset).filter(
                Asset.id == asset_id,
                Asset.organization_id == organization_id,
                Asset.is_deleted == False
            ).first()
            if not asset:
                raise NotFoundError("Asset", asset_id)
            if asset.property_id != property_id:
                raise BusinessRuleError("Asset does not belong to the specified property")

    @staticmethod
    def create_work_order(db: Session, organization_id: UUID, request: WorkOrderCreateRequest,
                          user_id: Optional[UUID] = None) -> WorkOrder:
        """
        Create an OPEN work order.

        Raises:
            NotFoundError: If the property, unit or asset does not exist
            BusinessRuleError: If the unit or asset is in another property
        """
        WorkOrderService._check_location(db, organization_id, request.property_id,
                                         request.unit_id, request.asset_id)
        work_order = WorkOrder(
            organization_id=organization_id,
            work_order_number=numbering.next_number(
                db, WorkOrder, "work_order_number", organization_id, numbering.WORK_ORDER
            ),
            requested_by=user_id,
            status=WorkOrderStatus.OPEN,
            **request.model_dump(),
        )
        db.add(work_order)
        db.flush()
        logger.info("Created work order %s", work_order.work_order_number)
        return work_order

    @staticmethod
    def update_work_order(db: Session, organization_id: UUID, work_order_id: UUID,
                          request: WorkOrderUpdateRequest) -> WorkOrder:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status == WorkOrderStatus.CLOSED:
            raise BusinessRuleError("Cannot update closed work order")

        update_data = request.model_dump(exclude_unset=True)
        if "unit_id" in update_data:
            WorkOrderService._check_location(db, organization_id, work_order.property_id,
                                             update_data["unit_id"], None)
        for field, value in update_data.items():
            setattr(work_order, field, value)
        db.flush()
        return work_order

    @staticmethod
    def _record_status_change(db: Session, work_order: WorkOrder, new_status: WorkOrderStatus,
                              user_id: Optional[UUID], notes: Optional[str] = None) -> None:
        previous = work_order.status
        work_order.status = new_status

        now = utcnow()
        if new_status == WorkOrderStatus.ASSIGNED and work_order.assigned_at is None:
            work_order.assigned_at = now
        elif new_status == WorkOrderStatus.IN_PROGRESS and work_order.started_at is None:
            work_order.started_at = now
        elif new_status == WorkOrderStatus.COMPLETED and work_order.completed_at is None:
            work_order.completed_at = now
        elif new_status == WorkOrderStatus.CLOSED and work_order.closed_at is None:
            work_order.closed_at = now

        db.add(WorkOrderComment(
            work_order_id=work_order.id,
            comment_text=notes or f"Status updated to {new_status.value}",
            is_status_change=True,
            previous_status=previous,
            new_status=new_status,
            created_by=user_id,
        ))

    @staticmethod
    def update_status(db: Session, organization_id: UUID, work_order_id: UUID,
                      request: WorkOrderStatusUpdateRequest, user_id: Optional[UUID] = None) -> WorkOrder:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        validate_status_transition(work_order.status, request.status)
        if request.status == WorkOrderStatus.ASSIGNED and work_order.assigned_to is None:
            raise BusinessRuleError("Use the assign endpoint to assign a vendor")

        previous = work_order.status
        WorkOrderService._record_status_change(db, work_order, request.status, user_id, request.notes)
        db.flush()
        logger.info("Work order %s status %s -> %s", work_order.work_order_number,
                    previous.value, request.status.value)
        return work_order

    @staticmethod
    def allowed_transitions(work_order: WorkOrder) -> List[WorkOrderStatus]:
        return list(ALLOWED_TRANSITIONS[work_order.status])

    @staticmethod
    def _get_assignable_vendor(db: Session, organization_id: UUID, vendor_id: UUID) -> Vendor:
        vendor = db.query(Vendor).filter(
            Vendor.id == vendor_id,
            Vendor.organization_id == organization_id,
            Vendor.is_deleted == False
        ).first()
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        if vendor.status != VendorStatus.ACTIVE:
            raise BusinessRuleError(f"Cannot assign work order to vendor with status {vendor.status.value}")
        return vendor

    @staticmethod
    def assign(db: Session, organization_id: UUID, work_order_id: UUID,
               request: AssignWorkOrderRequest, user_id: Optional[UUID] = None) -> WorkOrderAssignment:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status in FINISHED_STATUSES:
            raise BusinessRuleError("Cannot assign completed or closed work orders")
        vendor = WorkOrderService._get_assignable_vendor(db, organization_id, request.vendor_id)

        assignment = WorkOrderAssignment(
            work_order_id=work_order.id,
            vendor_id=vendor.id,
            previous_vendor_id=work_order.assigned_to,
            notes=request.assignment_notes,
            assigned_by=user_id,
        )
        db.add(assignment)

        work_order.assigned_to = vendor.id
        work_order.assigned_at = utcnow()
        if work_order.status == WorkOrderStatus.OPEN:
            WorkOrderService._record_status_change(
                db, work_order, WorkOrderStatus.ASSIGNED, user_id,
                f"Assigned to {vendor.company_name}"
            )
        db.flush()
        logger.info("Assigned work order %s to vendor %s", work_order.work_order_number, vendor.vendor_number)
        return assignment

    @staticmethod
    def reassign(db: Session, organization_id: UUID, work_order_id: UUID,
                 request: ReassignWorkOrderRequest, user_id: Optional[UUID] = None) -> WorkOrderAssignment:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.assigned_to is None:
            raise BusinessRuleError("Work order is not currently assigned. Use assign endpoint instead.")
        if work_order.status in FINISHED_STATUSES:
            raise BusinessRuleError("Cannot reassign completed or closed work orders")
        if work_order.assigned_to == request.vendor_id:
            raise BusinessRuleError("Work order is already assigned to this vendor")
        vendor = WorkOrderService._get_assignable_vendor(db, organization_id, request.vendor_id)

        assignment = WorkOrderAssignment(
            work_order_id=work_order.id,
            vendor_id=vendor.id,
            previous_vendor_id=work_order.assigned_to,
            reason=request.reason,
            notes=request.assignment_notes,
            assigned_by=user_id,
        )
        db.add(assignment)
        work_order.assigned_to = vendor.id
        work_order.assigned_at = utcnow()
        db.flush()
        logger.info("Reassigned work order %s to vendor %s", work_order.work_order_number, vendor.vendor_number)
        return assignment

    @staticmethod
    def start_work(db: Session, organization_id: UUID, work_order_id: UUID,
                   user_id: Optional[UUID] = None, notes: Optional[str] = None) -> WorkOrder:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status != WorkOrderStatus.ASSIGNED:
            raise BusinessRuleError(
                f"Work order must be in ASSIGNED status to start work. Current status: {work_order.status.value}"
            )
        WorkOrderService._record_status_change(db, work_order, WorkOrderStatus.IN_PROGRESS, user_id,
                                               notes or "Work started")
        db.flush()
        return work_order

    @staticmethod
    def mark_complete(db: Session, organization_id: UUID, work_order_id: UUID,
                      request: CompleteWorkOrderRequest, user_id: Optional[UUID] = None) -> WorkOrder:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status != WorkOrderStatus.IN_PROGRESS:
            raise BusinessRuleError(
                "Work order must be in IN_PROGRESS status to mark complete. "
                f"Current status: {work_order.status.value}"
            )

        work_order.completion_notes = request.completion_notes
        work_order.total_hours_spent = request.hours_spent
        work_order.actual_cost = round_money(request.total_cost)
        work_order.recommendations = request.recommendations
        work_order.follow_up_required = request.follow_up_required
        work_order.follow_up_description = request.follow_up_description if request.follow_up_required else None
        WorkOrderService._record_status_change(db, work_order, WorkOrderStatus.COMPLETED, user_id,
                                               "Work completed")
        db.flush()
        logger.info("Completed work order %s", work_order.work_order_number)
        return work_order

    @staticmethod
    def cancel(db: Session, organization_id: UUID, work_order_id: UUID,
               user_id: Optional[UUID] = None, reason: Optional[str] = None) -> WorkOrder:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status in FINISHED_STATUSES:
            raise BusinessRuleError("Cannot cancel completed or closed work orders")
        WorkOrderService._record_status_change(db, work_order, WorkOrderStatus.CLOSED, user_id,
                                               reason or "Work order cancelled")
        db.flush()
        logger.info("Cancelled work order %s", work_order.work_order_number)
        return work_order

    @staticmethod
    def add_comment(db: Session, organization_id: UUID, work_order_id: UUID, text: str,
                    user_id: Optional[UUID] = None) -> WorkOrderComment:
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        comment = WorkOrderComment(work_order_id=work_order.id, comment_text=text, created_by=user_id)
        db.add(comment)
        db.flush()
        return comment

    @staticmethod
    def add_progress_update(db: Session, organization_id: UUID, work_order_id: UUID,
                            request: ProgressUpdateRequest, user_id: Optional[UUID] = None) -> WorkOrderProgress:
        """
        Log progress on a work order that is IN_PROGRESS.

        An estimated completion date also becomes the work order's scheduled date.

        Raises:
            BusinessRuleError: If work has not started or is already finished
        """
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        if work_order.status != WorkOrderStatus.IN_PROGRESS:
            raise BusinessRuleError(
                "Work order must be in IN_PROGRESS status to add progress update. "
                f"Current status: {work_order.status.value}"
            )
        progress = WorkOrderProgress(
            work_order_id=work_order.id,
            progress_notes=request.progress_notes,
            estimated_completion_date=request.estimated_completion_date,
            created_by=user_id,
        )
        db.add(progress)
        if request.estimated_completion_date is not None:
            work_order.scheduled_date = request.estimated_completion_date
        db.flush()
        logger.info("Progress update added to work order %s", work_order.work_order_number)
        return progress

    @staticmethod
    def progress_updates(db: Session, organization_id: UUID, work_order_id: UUID) -> List[WorkOrderProgress]:
        """Progress updates, newest first."""
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        return db.query(WorkOrderProgress).filter(
            WorkOrderProgress.work_order_id == work_order.id
        ).order_by(WorkOrderProgress.created_at.desc()).all()

    @staticmethod
    def timeline(db: Session, organization_id: UUID, work_order_id: UUID) -> List[Dict]:
        """Creation, assignments, status changes, progress and comments in time order."""
        work_order = WorkOrderService.get_work_order(db, organization_id, work_order_id)
        entries = [{
            "type": "CREATED",
            "timestamp": work_order.created_at,
            "user_id": work_order.requested_by,
            "details": {"title": work_order.title, "description": work_order.description},
        }]
        for assignment in work_order.assignments:
            entries.append({
                "type": "REASSIGNED" if assignment.reason else "ASSIGNED",
                "timestamp": assignment.assigned_at,
                "user_id": assignment.assigned_by,
                "details": {
                    "vendor_id": str(assignment.vendor_id),
                    "assignment_notes": assignment.notes,
                    "reassignment_reason": assignment.reason,
                },
            })
        for comment in work_order.comments:
            details = {"comment": comment.comment_text}
            if comment.is_status_change:
                details["previous_status"] = comment.previous_status.value if comment.previous_status else None
                details["new_status"] = comment.new_status.value
            entries.append({
                "type": "STATUS_CHANGED" if comment.is_status_change else "COMMENT",
                "timestamp": comment.created_at,
                "user_id": comment.created_by,
                "details": details,
            })
        for progress in work_order.progress_updates:
            details = {"progress_notes": progress.progress_notes}
            if progress.estimated_completion_date:
                details["estimated_completion_date"] = progress.estimated_completion_date.isoformat()
            entries.append({
                "type": "PROGRESS_UPDATE",
                "timestamp": progress.created_at,
                "user_id": progress.created_by,
                "details": details,
            })
        return sorted(entries, key=lambda e: as_utc(e["timestamp"]))
