"""
PM Schedule Service - recurring preventive maintenance.

An ACTIVE schedule produces work orders on its next generation date, then
moves that date forward by its recurrence. Schedules without a property
cover every active property in the organization.
"""
import logging
from datetime import date, timedelta
from statistics import mean
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from ..database.models import (
    PMSchedule, PMScheduleStatus, RecurrenceType, Property, Vendor, VendorStatus,
    WorkOrder, WorkOrderStatus, WorkOrderAssignment
)
from ..schemas.pm_schedule import PMScheduleCreateRequest, PMScheduleUpdateRequest
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .timeutils import add_months, as_utc, utcnow
from .work_order_service import truncate_title

logger = logging.getLogger(__name__)

RECURRENCE_MONTHS = {
    RecurrenceType.MONTHLY: 1,
    RecurrenceType.QUARTERLY: 3,
    RecurrenceType.SEMI_ANNUALLY: 6,
    RecurrenceType.ANNUALLY: 12,
}
ALLOWED_TRANSITIONS = {
    PMScheduleStatus.ACTIVE: (PMScheduleStatus.PAUSED, PMScheduleStatus.COMPLETED),
    PMScheduleStatus.PAUSED: (PMScheduleStatus.ACTIVE, PMScheduleStatus.COMPLETED),
    PMScheduleStatus.COMPLETED: (),
    PMScheduleStatus.DELETED: (),
}
FINAL_STATUSES = (PMScheduleStatus.COMPLETED, PMScheduleStatus.DELETED)
OPEN_WORK_STATUSES = (WorkOrderStatus.OPEN, WorkOrderStatus.ASSIGNED, WorkOrderStatus.IN_PROGRESS)
SCHEDULED_LEAD_DAYS = 7


def generated_title(schedule_name: str, property_name: Optional[str]) -> str:
    return truncate_title(f"{schedule_name} - {property_name}" if property_name else schedule_name)


def next_generation_date(schedule: PMSchedule) -> Optional[date]:
    """Following generation date, or None once it would pass the end date."""
    current = schedule.next_generation_date or schedule.start_date
    following = add_months(current, RECURRENCE_MONTHS[schedule.recurrence_type])
    if schedule.end_date is not None and following > schedule.end_date:
        return None
    return following


def is_overdue(work_order: WorkOrder, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (work_order.scheduled_date is not None
            and work_order.scheduled_date < today
            and work_order.status in OPEN_WORK_STATUSES)


class PMScheduleService:
    """Service class for preventive maintenance schedules."""

    @staticmethod
    def get_schedule(db: Session, organization_id: UUID, schedule_id: UUID) -> PMSchedule:
        schedule = db.query(PMSchedule).filter(
            PMSchedule.id == schedule_id,
            PMSchedule.organization_id == organization_id,
            PMSchedule.status != PMScheduleStatus.DELETED
        ).first()
        if not schedule:
            raise NotFoundError("PM schedule", schedule_id)
        return schedule

    @staticmethod
    def _check_references(db: Session, organization_id: UUID, property_id: Optional[UUID],
                          vendor_id: Optional[UUID]) -> None:
        if property_id is not None:
            exists = db.query(Property.id).filter(
                Property.id == property_id,
                Property.organization_id == organization_id
            ).first()
            if not exists:
                raise NotFoundError("Property", property_id)
        if vendor_id is not None:
            vendor = db.query(Vendor).filter(
                Vendor.id == vendor_id,
                Vendor.organization_id == organization_id,
                Vendor.is_deleted == False
            ).first()
            if not vendor:
                raise NotFoundError("Vendor", vendor_id)

    @staticmethod
    def create_schedule(db: Session, organization_id: UUID, request: PMScheduleCreateRequest,
                        user_id: Optional[UUID] = None) -> PMSchedule:
        PMScheduleService._check_references(db, organization_id, request.property_id,
                                            request.default_assignee_id)
        schedule = PMSchedule(
            organization_id=organization_id,
            status=PMScheduleStatus.ACTIVE,
            next_generation_date=request.start_date,
            created_by=user_id,
            **request.model_dump(),
        )
        db.add(schedule)
        db.flush()
        logger.info("Created PM schedule '%s' (%s)", schedule.schedule_name, schedule.recurrence_type.value)
        return schedule

    @staticmethod
    def update_schedule(db: Session, organization_id: UUID, schedule_id: UUID,
                        request: PMScheduleUpdateRequest) -> PMSchedule:
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        if schedule.status in FINAL_STATUSES:
            raise BusinessRuleError(f"Cannot edit a {schedule.status.value} PM schedule")

        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("end_date") is not None and update_data["end_date"] <= schedule.start_date:
            raise BusinessRuleError("End date must be after start date")
        if "default_assignee_id" in update_data:
            PMScheduleService._check_references(db, organization_id, None, update_data["default_assignee_id"])
        for field, value in update_data.items():
            setattr(schedule, field, value)
        db.flush()
        return schedule

    @staticmethod
    def update_status(db: Session, organization_id: UUID, schedule_id: UUID,
                      new_status: PMScheduleStatus) -> PMSchedule:
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        if new_status not in ALLOWED_TRANSITIONS[schedule.status]:
            raise BusinessRuleError(
                f"Invalid status transition: {schedule.status.value} -> {new_status.value}"
            )
        previous = schedule.status
        schedule.status = new_status
        db.flush()
        logger.info("PM schedule %s status %s -> %s", schedule.id, previous.value, new_status.value)
        return schedule

    @staticmethod
    def delete_schedule(db: Session, organization_id: UUID, schedule_id: UUID) -> None:
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        generated = db.query(WorkOrder.id).filter(WorkOrder.pm_schedule_id == schedule.id).first()
        if generated:
            raise BusinessRuleError("Cannot delete PM schedule that has generated work orders")
        schedule.status = PMScheduleStatus.DELETED
        db.flush()
        logger.info("Deleted PM schedule %s", schedule.id)

    @staticmethod
    def _generate_for_property(db: Session, schedule: PMSchedule, prop: Property,
                               user_id: Optional[UUID]) -> WorkOrder:
        vendor = schedule.default_assignee
        if vendor is not None and (vendor.is_deleted or vendor.status != VendorStatus.ACTIVE):
            vendor = None

        now = utcnow()
        work_order = WorkOrder(
            organization_id=schedule.organization_id,
            work_order_number=numbering.next_number(
                db, WorkOrder, "work_order_number", schedule.organization_id, numbering.WORK_ORDER
            ),
            property_id=prop.id,
            pm_schedule_id=schedule.id,
            requested_by=user_id,
            assigned_to=vendor.id if vendor else None,
            assigned_at=now if vendor else None,
            category=schedule.category,
            priority=schedule.default_priority,
            title=generated_title(schedule.schedule_name, prop.name),
            description=schedule.description,
            status=WorkOrderStatus.ASSIGNED if vendor else WorkOrderStatus.OPEN,
            scheduled_date=(now + timedelta(days=SCHEDULED_LEAD_DAYS)).date(),
        )
        db.add(work_order)
        db.flush()
        if vendor:
            db.add(WorkOrderAssignment(
                work_order_id=work_order.id,
                vendor_id=vendor.id,
                notes="Assigned from PM schedule",
                assigned_by=user_id,
            ))
            db.flush()
        return work_order

    @staticmethod
    def _target_properties(db: Session, schedule: PMSchedule) -> List[Property]:
        if schedule.property_id is not None:
            return [schedule.property]
        return db.query(Property).filter(
            Property.organization_id == schedule.organization_id,
            Property.active == True
        ).order_by(Property.name).all()

    @staticmethod
    def generate_now(db: Session, organization_id: UUID, schedule_id: UUID,
                     user_id: Optional[UUID] = None) -> List[WorkOrder]:
        """Generate work orders immediately without moving the schedule forward."""
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        if schedule.status != PMScheduleStatus.ACTIVE:
            raise BusinessRuleError("Can only generate work orders from ACTIVE schedules")
        properties = PMScheduleService._target_properties(db, schedule)
        if not properties:
            raise BusinessRuleError("No active properties to generate work orders for")

        orders = [PMScheduleService._generate_for_property(db, schedule, prop, user_id) for prop in properties]
        logger.info("Manually generated %d work order(s) from PM schedule %s", len(orders), schedule.id)
        return orders

    @staticmethod
    def process_due(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        """Generate work orders for every ACTIVE schedule whose date has come."""
        today = today or date.today()
        due = db.query(PMSchedule).filter(
            PMSchedule.organization_id == organization_id,
            PMSchedule.status == PMScheduleStatus.ACTIVE,
            PMSchedule.next_generation_date.isnot(None),
            PMSchedule.next_generation_date <= today
        ).all()

        generated = 0
        for schedule in due:
            schedule_id = schedule.id
            try:
                # A failure rolls back every work order of this schedule so the next run retries it whole
                with db.begin_nested():
                    orders = [
                        PMScheduleService._generate_for_property(db, schedule, prop, schedule.created_by)
                        for prop in PMScheduleService._target_properties(db, schedule)
                    ]
                    following = next_generation_date(schedule)
                    if following is None:
                        schedule.status = PMScheduleStatus.COMPLETED
                    schedule.next_generation_date = following
                    schedule.last_generated_date = today
                    db.flush()
            except Exception:
                logger.error("Failed to process PM schedule %s", schedule_id, exc_info=True)
                continue
            generated += len(orders)

        logger.info("Processed %d PM schedules, generated %d work orders", len(due), generated)
        return generated

    @staticmethod
    def history(db: Session, organization_id: UUID, schedule_id: UUID) -> List[Dict]:
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        orders = db.query(WorkOrder).filter(
            WorkOrder.pm_schedule_id == schedule.id
        ).order_by(WorkOrder.created_at.desc()).all()
        today = date.today()
        return [
            {
                "work_order_id": wo.id,
                "work_order_number": wo.work_order_number,
                "property_id": wo.property_id,
                "status": wo.status,
                "scheduled_date": wo.scheduled_date,
                "completed_at": wo.completed_at,
                "created_at": wo.created_at,
                "is_overdue": is_overdue(wo, today),
                "days_to_complete": (
                    (as_utc(wo.completed_at).date() - as_utc(wo.created_at).date()).days
                    if wo.completed_at else None
                ),
            }
            for wo in orders
        ]

    @staticmethod
    def statistics(db: Session, organization_id: UUID, schedule_id: UUID) -> Dict:
        schedule = PMScheduleService.get_schedule(db, organization_id, schedule_id)
        orders = db.query(WorkOrder).filter(WorkOrder.pm_schedule_id == schedule.id).all()
        completed = [wo for wo in orders if wo.status == WorkOrderStatus.COMPLETED]
        durations = [
            (as_utc(wo.completed_at) - as_utc(wo.created_at)).total_seconds() / 86400
            for wo in completed if wo.completed_at
        ]
        return {
            "total_generated": len(orders),
            "completed_count": len(completed),
            "overdue_count": sum(1 for wo in orders if is_overdue(wo)),
            "average_completion_days": round(mean(durations), 1) if durations else None,
        }
