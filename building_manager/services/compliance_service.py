"""
Compliance Service - requirements, due schedules, inspections and violations.

A requirement applies to every property unless it lists specific ones.
Each applicable property gets schedules; completing a recurring schedule
creates the next one a frequency period after the completion date.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID
from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database.models import (
    ComplianceRequirement, ComplianceSchedule, ComplianceScheduleStatus, ComplianceFrequency,
    RequirementStatus, Inspection, InspectionStatus, InspectionResult, Violation, FineStatus,
    Property, WorkOrder, WorkOrderCategory, WorkOrderPriority, WorkOrderStatus
)
from ..schemas.compliance import (
    RequirementCreateRequest, RequirementUpdateRequest, CompleteScheduleRequest,
    InspectionCreateRequest, InspectionResultRequest, ViolationCreateRequest, ViolationUpdateRequest
)
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .lease_calculations import round_money
from .work_order_service import truncate_title

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 30
FREQUENCY_PERIODS = {
    ComplianceFrequency.MONTHLY: relativedelta(months=1),
    ComplianceFrequency.QUARTERLY: relativedelta(months=3),
    ComplianceFrequency.SEMI_ANNUALLY: relativedelta(months=6),
    ComplianceFrequency.ANNUALLY: relativedelta(years=1),
    ComplianceFrequency.BIANNUALLY: relativedelta(years=2),
}
OPEN_SCHEDULE_STATUSES = (
    ComplianceScheduleStatus.UPCOMING, ComplianceScheduleStatus.DUE, ComplianceScheduleStatus.OVERDUE
)
FINISHED_INSPECTION_STATUSES = (InspectionStatus.PASSED, InspectionStatus.FAILED)


def next_due_date(from_date: date, frequency: ComplianceFrequency) -> Optional[date]:
    """Due date of the following schedule, or None for one-time requirements."""
    period = FREQUENCY_PERIODS.get(frequency)
    return from_date + period if period else None


class ComplianceService:
    """Service class for compliance requirements and schedules."""

    # Requirements

    @staticmethod
    def get_requirement(db: Session, organization_id: UUID, requirement_id: UUID) -> ComplianceRequirement:
        requirement = db.query(ComplianceRequirement).filter(
            ComplianceRequirement.id == requirement_id,
            ComplianceRequirement.organization_id == organization_id,
            ComplianceRequirement.is_deleted == False
        ).first()
        if not requirement:
            raise NotFoundError("Compliance requirement", requirement_id)
        return requirement

    @staticmethod
    def create_requirement(db: Session, organization_id: UUID,
                           request: RequirementCreateRequest) -> ComplianceRequirement:
        data = request.model_dump()
        if data["applicable_properties"] is not None:
            data["applicable_properties"] = [str(p) for p in data["applicable_properties"]]
        requirement = ComplianceRequirement(
            organization_id=organization_id,
            requirement_number=numbering.next_number(
                db, ComplianceRequirement, "requirement_number", organization_id, numbering.COMPLIANCE
            ),
            **data,
        )
        db.add(requirement)
        db.flush()
        logger.info("Created compliance requirement %s", requirement.requirement_number)
        return requirement

    @staticmethod
    def update_requirement(db: Session, organization_id: UUID, requirement_id: UUID,
                           request: RequirementUpdateRequest) -> ComplianceRequirement:
        requirement = ComplianceService.get_requirement(db, organization_id, requirement_id)
        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("applicable_properties") is not None:
            update_data["applicable_properties"] = [str(p) for p in update_data["applicable_properties"]]
        for field, value in update_data.items():
            setattr(requirement, field, value)
        db.flush()
        return requirement

    @staticmethod
    def delete_requirement(db: Session, organization_id: UUID, requirement_id: UUID) -> None:
        requirement = ComplianceService.get_requirement(db, organization_id, requirement_id)
        requirement.is_deleted = True
        requirement.status = RequirementStatus.INACTIVE
        db.flush()
        logger.info("Deleted compliance requirement %s", requirement.requirement_number)

    # Schedules

    @staticmethod
    def get_schedule(db: Session, organization_id: UUID, schedule_id: UUID) -> ComplianceSchedule:
        schedule = db.query(ComplianceSchedule).filter(
            ComplianceSchedule.id == schedule_id,
            ComplianceSchedule.organization_id == organization_id
        ).first()
        if not schedule:
            raise NotFoundError("Compliance schedule", schedule_id)
        return schedule

    @staticmethod
    def _create_schedule(db: Session, requirement: ComplianceRequirement, property_id: UUID,
                         due_date: date) -> ComplianceSchedule:
        schedule = ComplianceSchedule(
            organization_id=requirement.organization_id,
            schedule_number=numbering.next_number(
                db, ComplianceSchedule, "schedule_number", requirement.organization_id,
                numbering.COMPLIANCE_SCHEDULE
            ),
            requirement_id=requirement.id,
            property_id=property_id,
            due_date=due_date,
            status=ComplianceScheduleStatus.UPCOMING,
        )
        db.add(schedule)
        db.flush()
        return schedule

    @staticmethod
    def generate_for_property(db: Session, organization_id: UUID, property_id: UUID,
                              today: Optional[date] = None) -> List[ComplianceSchedule]:
        """One schedule due in 30 days per applicable requirement lacking an open one."""
        today = today or date.today()
        prop = db.query(Property).filter(
            Property.id == property_id,
            Property.organization_id == organization_id
        ).first()
        if not prop:
            raise NotFoundError("Property", property_id)

        requirements = db.query(ComplianceRequirement).filter(
            ComplianceRequirement.organization_id == organization_id,
            ComplianceRequirement.is_deleted == False,
            ComplianceRequirement.status == RequirementStatus.ACTIVE
        ).all()

        created = []
        for requirement in requirements:
            if not requirement.applies_to(prop.id):
                continue
            existing = db.query(ComplianceSchedule.id).filter(
                ComplianceSchedule.property_id == prop.id,
                ComplianceSchedule.requirement_id == requirement.id,
                ComplianceSchedule.status.in_(OPEN_SCHEDULE_STATUSES)
            ).first()
            if existing:
                continue
            created.append(ComplianceService._create_schedule(
                db, requirement, prop.id, today + timedelta(days=DUE_SOON_DAYS)
            ))
        logger.info("Generated %d compliance schedules for property %s", len(created), prop.name)
        return created

    @staticmethod
    def complete_schedule(db: Session, organization_id: UUID, schedule_id: UUID,
                          request: CompleteScheduleRequest, user_id: Optional[UUID] = None) -> ComplianceSchedule:
        schedule = ComplianceService.get_schedule(db, organization_id, schedule_id)
        if schedule.status == ComplianceScheduleStatus.COMPLETED:
            raise BusinessRuleError("Schedule is already completed")
        if schedule.status == ComplianceScheduleStatus.EXEMPT:
            raise BusinessRuleError("Exempt schedule cannot be completed")

        schedule.status = ComplianceScheduleStatus.COMPLETED
        schedule.completed_date = request.completed_date or date.today()
        schedule.completed_by = user_id
        schedule.notes = request.notes
        schedule.certificate_number = request.certificate_number
        schedule.certificate_url = request.certificate_url
        db.flush()
        logger.info("Completed compliance schedule %s", schedule.schedule_number)

        following = next_due_date(schedule.completed_date, schedule.requirement.frequency)
        if following is not None:
            exists = db.query(ComplianceSchedule.id).filter(
                ComplianceSchedule.property_id == schedule.property_id,
                ComplianceSchedule.requirement_id == schedule.requirement_id,
                ComplianceSchedule.due_date == following
            ).first()
            if not exists:
                ComplianceService._create_schedule(db, schedule.requirement, schedule.property_id, following)
                logger.info("Created next compliance schedule due %s", following)
        return schedule

    @staticmethod
    def exempt_schedule(db: Session, organization_id: UUID, schedule_id: UUID, reason: str) -> ComplianceSchedule:
        schedule = ComplianceService.get_schedule(db, organization_id, schedule_id)
        if schedule.status == ComplianceScheduleStatus.COMPLETED:
            raise BusinessRuleError("Completed schedule cannot be exempted")
        schedule.status = ComplianceScheduleStatus.EXEMPT
        schedule.notes = reason
        db.flush()
        return schedule

    @staticmethod
    def update_schedule_statuses(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        """Move schedules to DUE inside the 30 day window and to OVERDUE once past due."""
        today = today or date.today()
        schedules = db.query(ComplianceSchedule).filter(
            ComplianceSchedule.organization_id == organization_id,
            ComplianceSchedule.status.in_((ComplianceScheduleStatus.UPCOMING, ComplianceScheduleStatus.DUE))
        ).all()

        changed = 0
        for schedule in schedules:
            if schedule.due_date < today:
                schedule.status = ComplianceScheduleStatus.OVERDUE
                changed += 1
            elif (schedule.status == ComplianceScheduleStatus.UPCOMING
                  and schedule.due_date <= today + timedelta(days=DUE_SOON_DAYS)):
                schedule.status = ComplianceScheduleStatus.DUE
                changed += 1
        db.flush()
        logger.info("Updated %d compliance schedule statuses", changed)
        return changed

    # Inspections

    @staticmethod
    def get_inspection(db: Session, organization_id: UUID, inspection_id: UUID) -> Inspection:
        inspection = db.query(Inspection).filter(
            Inspection.id == inspection_id,
            Inspection.organization_id == organization_id
        ).first()
        if not inspection:
            raise NotFoundError("Inspection", inspection_id)
        return inspection

    @staticmethod
    def schedule_inspection(db: Session, organization_id: UUID, request: InspectionCreateRequest) -> Inspection:
        schedule = ComplianceService.get_schedule(db, organization_id, request.schedule_id)
        inspection = Inspection(
            organization_id=organization_id,
            property_id=schedule.property_id,
            status=InspectionStatus.SCHEDULED,
            **request.model_dump(),
        )
        db.add(inspection)
        db.flush()
        logger.info("Scheduled inspection for compliance schedule %s on %s",
                    schedule.schedule_number, inspection.scheduled_date)
        return inspection

    @staticmethod
    def _remediation_work_order(db: Session, schedule: ComplianceSchedule, title_prefix: str,
                                description: str, priority: WorkOrderPriority,
                                user_id: Optional[UUID]) -> WorkOrder:
        work_order = WorkOrder(
            organization_id=schedule.organization_id,
            work_order_number=numbering.next_number(
                db, WorkOrder, "work_order_number", schedule.organization_id, numbering.WORK_ORDER
            ),
            property_id=schedule.property_id,
            requested_by=user_id,
            category=WorkOrderCategory.INSPECTION,
            priority=priority,
            title=truncate_title(
                f"{title_prefix}: {schedule.requirement.requirement_name} - {schedule.property.name}"
            ),
            description=description,
            status=WorkOrderStatus.OPEN,
        )
        db.add(work_order)
        db.flush()
        logger.info("Created remediation work order %s", work_order.work_order_number)
        return work_order

    @staticmethod
    def record_inspection_result(db: Session, organization_id: UUID, inspection_id: UUID,
                                 request: InspectionResultRequest, user_id: Optional[UUID] = None) -> Inspection:
        inspection = ComplianceService.get_inspection(db, organization_id, inspection_id)
        if inspection.status == InspectionStatus.CANCELLED:
            raise BusinessRuleError("Cancelled inspection cannot be updated")

        data = request.model_dump(exclude={"create_remediation_work_order"})
        for field, value in data.items():
            setattr(inspection, field, value)
        if inspection.status in FINISHED_INSPECTION_STATUSES and inspection.inspection_date is None:
            inspection.inspection_date = date.today()

        if (request.result == InspectionResult.FAILED and request.create_remediation_work_order
                and inspection.remediation_work_order_id is None):
            description = (
                "Remediation work order created for failed inspection.\n\n"
                f"Inspection Date: {inspection.inspection_date}\n"
                f"Inspector: {inspection.inspector_name}\n"
                f"Issues Found: {inspection.issues_found}"
            )
            work_order = ComplianceService._remediation_work_order(
                db, inspection.schedule, "Remediation", description, WorkOrderPriority.HIGH, user_id
            )
            inspection.remediation_work_order_id = work_order.id
        db.flush()
        return inspection

    @staticmethod
    def cancel_inspection(db: Session, organization_id: UUID, inspection_id: UUID,
                          reason: Optional[str] = None) -> Inspection:
        inspection = ComplianceService.get_inspection(db, organization_id, inspection_id)
        if inspection.status in FINISHED_INSPECTION_STATUSES:
            raise BusinessRuleError("Completed inspection cannot be cancelled")
        inspection.status = InspectionStatus.CANCELLED
        inspection.notes = reason
        db.flush()
        return inspection

    @staticmethod
    def upcoming_inspections(db: Session, organization_id: UUID, days: int,
                             today: Optional[date] = None) -> List[Inspection]:
        today = today or date.today()
        return db.query(Inspection).filter(
            Inspection.organization_id == organization_id,
            Inspection.status == InspectionStatus.SCHEDULED,
            Inspection.scheduled_date >= today,
            Inspection.scheduled_date <= today + timedelta(days=days)
        ).order_by(Inspection.scheduled_date).all()

    # Violations

    @staticmethod
    def get_violation(db: Session, organization_id: UUID, violation_id: UUID) -> Violation:
        violation = db.query(Violation).filter(
            Violation.id == violation_id,
            Violation.organization_id == organization_id
        ).first()
        if not violation:
            raise NotFoundError("Violation", violation_id)
        return violation

    @staticmethod
    def record_violation(db: Session, organization_id: UUID, request: ViolationCreateRequest,
                         user_id: Optional[UUID] = None) -> Violation:
        schedule = ComplianceService.get_schedule(db, organization_id, request.schedule_id)
        violation = Violation(
            organization_id=organization_id,
            violation_number=numbering.next_number(
                db, Violation, "violation_number", organization_id, numbering.VIOLATION
            ),
            schedule_id=schedule.id,
            violation_date=request.violation_date,
            description=request.description,
            fine_amount=round_money(request.fine_amount),
            fine_status=request.fine_status,
        )
        db.add(violation)
        db.flush()

        if request.create_remediation_work_order:
            description = (
                "Remediation work order created for compliance violation.\n\n"
                f"Violation Date: {violation.violation_date}\n"
                f"Description: {violation.description}\n"
                f"Fine Amount: {violation.fine_amount}"
            )
            work_order = ComplianceService._remediation_work_order(
                db, schedule, "Violation Remediation", description, WorkOrderPriority.HIGH, user_id
            )
            violation.remediation_work_order_id = work_order.id
            db.flush()
        logger.info("Recorded violation %s", violation.violation_number)
        return violation

    @staticmethod
    def update_violation(db: Session, organization_id: UUID, violation_id: UUID,
                         request: ViolationUpdateRequest) -> Violation:
        violation = ComplianceService.get_violation(db, organization_id, violation_id)
        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("remediation_work_order_id") is not None:
            work_order = db.query(WorkOrder.id).filter(
                WorkOrder.id == update_data["remediation_work_order_id"],
                WorkOrder.organization_id == organization_id
            ).first()
            if not work_order:
                raise NotFoundError("Work order", update_data["remediation_work_order_id"])
        if update_data.get("fine_amount") is not None:
            update_data["fine_amount"] = round_money(update_data["fine_amount"])
        for field, value in update_data.items():
            setattr(violation, field, value)
        db.flush()
        return violation

    # Dashboard

    @staticmethod
    def dashboard(db: Session, organization_id: UUID, today: Optional[date] = None) -> Dict:
        today = today or date.today()
        counts = dict(db.query(ComplianceSchedule.status, func.count(ComplianceSchedule.id)).filter(
            ComplianceSchedule.organization_id == organization_id
        ).group_by(ComplianceSchedule.status).all())
        by_status = {status.value: counts.get(status, 0) for status in ComplianceScheduleStatus}

        upcoming = db.query(func.count(ComplianceSchedule.id)).filter(
            ComplianceSchedule.organization_id == organization_id,
            ComplianceSchedule.status.in_((ComplianceScheduleStatus.UPCOMING, ComplianceScheduleStatus.DUE)),
            ComplianceSchedule.due_date >= today,
            ComplianceSchedule.due_date <= today + timedelta(days=DUE_SOON_DAYS)
        ).scalar()

        completed = by_status[ComplianceScheduleStatus.COMPLETED.value]
        overdue = by_status[ComplianceScheduleStatus.OVERDUE.value]
        rate = round(completed * 100.0 / (completed + overdue), 1) if completed + overdue else None

        pending_fines = db.query(func.coalesce(func.sum(Violation.fine_amount), 0)).filter(
            Violation.organization_id == organization_id,
            Violation.fine_status == FineStatus.PENDING
        ).scalar()

        recent = db.query(Violation).filter(
            Violation.organization_id == organization_id
        ).order_by(Violation.violation_date.desc(), Violation.created_at.desc()).limit(5).all()

        return {
            "schedules_by_status": by_status,
            "upcoming_within_30_days": upcoming or 0,
            "compliance_rate": rate,
            "total_fines_pending": round_money(Decimal(pending_fines or 0)),
            "recent_violations": recent,
        }
