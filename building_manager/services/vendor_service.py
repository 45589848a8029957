"""
Vendor Service - vendor registry, documents, ratings and performance.

Performance figures are derived from the vendor's completed work orders:
completion time runs from creation to completion, and a job is on time
when it finished no later than its scheduled date.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from statistics import mean
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from ..database.models import (
    Vendor, VendorStatus, VendorDocument, VendorDocumentType, VendorRating,
    WorkOrder, WorkOrderStatus
)
from ..schemas.vendor import (
    VendorCreateRequest, VendorUpdateRequest, VendorDocumentCreateRequest, VendorRatingRequest
)
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError, ConflictError
from .lease_calculations import round_money
from .timeutils import as_utc, utcnow, month_bounds

logger = logging.getLogger(__name__)

RATING_UPDATE_WINDOW_DAYS = 7
DOCUMENT_EXPIRY_WARNING_DAYS = 30
CRITICAL_DOCUMENT_TYPES = (VendorDocumentType.TRADE_LICENSE, VendorDocumentType.INSURANCE)
DONE_STATUSES = (WorkOrderStatus.COMPLETED, WorkOrderStatus.CLOSED)
GREEN_RATING, GREEN_SLA = Decimal("4"), 80.0
YELLOW_RATING, YELLOW_SLA = Decimal("3"), 60.0


def performance_tier(rating: Optional[Decimal], sla_compliance: Optional[float]) -> str:
    """GREEN, YELLOW or RED band for the dashboard scatter chart."""
    rating = Decimal(rating) if rating is not None else Decimal("0")
    sla = sla_compliance or 0.0
    if rating >= GREEN_RATING and sla >= GREEN_SLA:
        return "GREEN"
    if rating >= YELLOW_RATING or sla >= YELLOW_SLA:
        return "YELLOW"
    return "RED"


def average_completion_days(orders: List[WorkOrder]) -> Optional[float]:
    durations = [
        (as_utc(wo.completed_at) - as_utc(wo.created_at)).total_seconds() / 86400
        for wo in orders if wo.completed_at and wo.created_at
    ]
    if not durations:
        return None
    return round(mean(durations), 2)


def on_time_rate(orders: List[WorkOrder]) -> Optional[float]:
    if not orders:
        return None
    on_time = sum(
        1 for wo in orders
        if wo.completed_at and wo.scheduled_date and as_utc(wo.completed_at).date() <= wo.scheduled_date
    )
    return round(on_time * 100.0 / len(orders), 2)


class VendorService:
    """Service class for vendor business logic."""

    @staticmethod
    def get_vendor(db: Session, organization_id: UUID, vendor_id: UUID) -> Vendor:
        vendor = db.query(Vendor).filter(
            Vendor.id == vendor_id,
            Vendor.organization_id == organization_id,
            Vendor.is_deleted == False
        ).first()
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        return vendor

    @staticmethod
    def is_email_available(db: Session, organization_id: UUID, email: str,
                           exclude_id: Optional[UUID] = None) -> bool:
        logger.debug("Checking vendor email availability for %s", email)
        query = db.query(Vendor.id).filter(
            Vendor.organization_id == organization_id,
            Vendor.email == email.lower()
        )
        if exclude_id:
            query = query.filter(Vendor.id != exclude_id)
        return query.first() is None

    @staticmethod
    def create_vendor(db: Session, organization_id: UUID, request: VendorCreateRequest) -> Vendor:
        data = request.model_dump()
        data["email"] = data["email"].lower()
        if not VendorService.is_email_available(db, organization_id, data["email"]):
            raise ConflictError("Vendor with this email already exists")

        data["service_categories"] = [c.value for c in request.service_categories]
        data["hourly_rate"] = round_money(request.hourly_rate)
        if request.emergency_callout_fee is not None:
            data["emergency_callout_fee"] = round_money(request.emergency_callout_fee)

        vendor = Vendor(
            organization_id=organization_id,
            vendor_number=numbering.next_number(db, Vendor, "vendor_number", organization_id, numbering.VENDOR),
            status=VendorStatus.ACTIVE,
            **data,
        )
        db.add(vendor)
        db.flush()
        logger.info("Registered vendor %s (%s)", vendor.vendor_number, vendor.company_name)
        return vendor

    @staticmethod
    def update_vendor(db: Session, organization_id: UUID, vendor_id: UUID,
                      request: VendorUpdateRequest) -> Vendor:
        vendor = VendorService.get_vendor(db, organization_id, vendor_id)
        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("service_categories"):
            update_data["service_categories"] = [c.value for c in update_data["service_categories"]]
        if update_data.get("email"):
            update_data["email"] = update_data["email"].lower()
            if not VendorService.is_email_available(db, organization_id, update_data["email"], vendor.id):
                raise ConflictError("Vendor with this email already exists")
        for money_field in ("hourly_rate", "emergency_callout_fee"):
            if update_data.get(money_field) is not None:
                update_data[money_field] = round_money(update_data[money_field])

        for field, value in update_data.items():
            setattr(vendor, field, value)
        db.flush()
        return vendor

    @staticmethod
    def delete_vendor(db: Session, organization_id: UUID, vendor_id: UUID) -> None:
        vendor = VendorService.get_vendor(db, organization_id, vendor_id)
        open_jobs = db.query(WorkOrder.id).filter(
            WorkOrder.assigned_to == vendor.id,
            WorkOrder.status.in_((WorkOrderStatus.ASSIGNED, WorkOrderStatus.IN_PROGRESS))
        ).first()
        if open_jobs:
            raise BusinessRuleError("Cannot delete vendor with active work orders")
        vendor.is_deleted = True
        vendor.status = VendorStatus.INACTIVE
        db.flush()
        logger.info("Deleted vendor %s", vendor.vendor_number)

    @staticmethod
    def update_status(db: Session, organization_id: UUID, vendor_id: UUID, new_status: VendorStatus) -> Vendor:
        vendor = VendorService.get_vendor(db, organization_id, vendor_id)
        if vendor.status == new_status:
            raise BusinessRuleError(f"Vendor already has status {new_status.value}")
        if vendor.status == VendorStatus.INACTIVE and new_status == VendorStatus.SUSPENDED:
            raise BusinessRuleError("Cannot suspend an inactive vendor")
        previous = vendor.status
        vendor.status = new_status
        db.flush()
        logger.info("Vendor %s status %s -> %s", vendor.vendor_number, previous.value, new_status.value)
        return vendor

    # Documents

    @staticmethod
    def add_document(db: Session, organization_id: UUID, vendor_id: UUID,
                     request: VendorDocumentCreateRequest, user_id: Optional[UUID] = None) -> VendorDocument:
        vendor = VendorService.get_vendor(db, organization_id, vendor_id)
        document = VendorDocument(
            organization_id=organization_id,
            vendor_id=vendor.id,
            uploaded_by=user_id,
            **request.model_dump(),
        )
        db.add(document)
        db.flush()
        return document

    @staticmethod
    def expiring_documents(db: Session, organization_id: UUID, days: int = DOCUMENT_EXPIRY_WARNING_DAYS,
                           today: Optional[date] = None, limit: Optional[int] = None) -> List[Dict]:
        today = today or date.today()
        query = db.query(VendorDocument, Vendor).join(Vendor, VendorDocument.vendor_id == Vendor.id).filter(
            VendorDocument.organization_id == organization_id,
            Vendor.is_deleted == False,
            VendorDocument.expiry_date.isnot(None),
            VendorDocument.expiry_date <= today + timedelta(days=days)
        ).order_by(VendorDocument.expiry_date)
        if limit:
            query = query.limit(limit)
        return [
            {
                "document_id": document.id,
                "vendor_id": vendor.id,
                "vendor_name": vendor.company_name,
                "document_type": document.document_type,
                "expiry_date": document.expiry_date,
                "days_until_expiry": (document.expiry_date - today).days,
                "is_critical": document.document_type in CRITICAL_DOCUMENT_TYPES,
            }
            for document, vendor in query.all()
        ]

    # Ratings

    @staticmethod
    def _refresh_vendor_rating(db: Session, vendor: Vendor) -> None:
        db.flush()
        scores = [Decimal(r.overall_score) for r in
                  db.query(VendorRating).filter(VendorRating.vendor_id == vendor.id).all()]
        vendor.rating = round_money(sum(scores) / len(scores)) if scores else None

    @staticmethod
    def _overall(request: VendorRatingRequest) -> Decimal:
        total = (request.quality_score + request.timeliness_score
                 + request.communication_score + request.professionalism_score)
        return round_money(Decimal(total) / 4)

    @staticmethod
    def submit_rating(db: Session, organization_id: UUID, work_order_id: UUID,
                      request: VendorRatingRequest, user_id: Optional[UUID] = None) -> VendorRating:
        work_order = db.query(WorkOrder).filter(
            WorkOrder.id == work_order_id,
            WorkOrder.organization_id == organization_id
        ).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        if work_order.status != WorkOrderStatus.COMPLETED:
            raise BusinessRuleError("Only completed work orders can be rated")
        if work_order.assigned_to is None:
            raise BusinessRuleError("Work order has no assigned vendor to rate")
        existing = db.query(VendorRating.id).filter(VendorRating.work_order_id == work_order.id).first()
        if existing:
            raise ConflictError("This work order has already been rated")

        vendor = VendorService.get_vendor(db, organization_id, work_order.assigned_to)
        rating = VendorRating(
            organization_id=organization_id,
            vendor_id=vendor.id,
            work_order_id=work_order.id,
            overall_score=VendorService._overall(request),
            rated_by=user_id,
            **request.model_dump(),
        )
        db.add(rating)
        VendorService._refresh_vendor_rating(db, vendor)
        db.flush()
        logger.info("Rated vendor %s %s for work order %s",
                    vendor.vendor_number, rating.overall_score, work_order.work_order_number)
        return rating

    @staticmethod
    def get_rating(db: Session, organization_id: UUID, work_order_id: UUID) -> VendorRating:
        rating = db.query(VendorRating).filter(
            VendorRating.work_order_id == work_order_id,
            VendorRating.organization_id == organization_id
        ).first()
        if not rating:
            raise NotFoundError("Rating for work order", work_order_id)
        return rating

    @staticmethod
    def update_rating(db: Session, organization_id: UUID, work_order_id: UUID,
                      request: VendorRatingRequest, user_id: Optional[UUID] = None) -> VendorRating:
        rating = VendorService.get_rating(db, organization_id, work_order_id)
        if utcnow() - as_utc(rating.rated_at) > timedelta(days=RATING_UPDATE_WINDOW_DAYS):
            raise BusinessRuleError("Rating update window has expired (7 days)")

        for field, value in request.model_dump().items():
            setattr(rating, field, value)
        rating.overall_score = VendorService._overall(request)
        rating.rated_by = user_id or rating.rated_by
        VendorService._refresh_vendor_rating(db, rating.vendor)
        db.flush()
        return rating

    # Performance

    @staticmethod
    def _completed_orders(db: Session, vendor_id: UUID) -> List[WorkOrder]:
        return db.query(WorkOrder).filter(
            WorkOrder.assigned_to == vendor_id,
            WorkOrder.status.in_(DONE_STATUSES),
            WorkOrder.completed_at.isnot(None)
        ).all()

    @staticmethod
    def performance(db: Session, organization_id: UUID, vendor_id: UUID) -> Dict:
        vendor = VendorService.get_vendor(db, organization_id, vendor_id)
        orders = VendorService._completed_orders(db, vendor.id)
        ratings = db.query(VendorRating).filter(VendorRating.vendor_id == vendor.id).all()

        def avg(attr):
            return round(mean(getattr(r, attr) for r in ratings), 2) if ratings else None

        distribution = {str(stars): 0 for stars in range(1, 6)}
        for r in ratings:
            stars = int(Decimal(r.overall_score).to_integral_value())
            distribution[str(min(5, max(1, stars)))] += 1

        return {
            "vendor_id": vendor.id,
            "vendor_number": vendor.vendor_number,
            "company_name": vendor.company_name,
            "overall_rating": vendor.rating,
            "total_jobs_completed": len(orders),
            "average_completion_days": average_completion_days(orders),
            "on_time_completion_rate": on_time_rate(orders),
            "total_amount_paid": round_money(sum((Decimal(wo.actual_cost) for wo in orders
                                                  if wo.actual_cost is not None), Decimal("0"))),
            "total_ratings": len(ratings),
            "average_quality": avg("quality_score"),
            "average_timeliness": avg("timeliness_score"),
            "average_communication": avg("communication_score"),
            "average_professionalism": avg("professionalism_score"),
            "rating_distribution": distribution,
        }

    @staticmethod
    def top_rated(db: Session, organization_id: UUID, category: Optional[str] = None,
                  limit: int = 5) -> List[Vendor]:
        vendors = db.query(Vendor).filter(
            Vendor.organization_id == organization_id,
            Vendor.is_deleted == False,
            Vendor.status == VendorStatus.ACTIVE,
            Vendor.rating.isnot(None)
        ).order_by(Vendor.rating.desc()).all()
        if category:
            vendors = [v for v in vendors if category in (v.service_categories or [])]
        return vendors[:limit]

    @staticmethod
    def compare(db: Session, organization_id: UUID, vendor_ids: List[UUID]) -> List[Dict]:
        """Side by side performance for two to four vendors with best-value flags."""
        unique_ids = list(dict.fromkeys(vendor_ids))
        if not 2 <= len(unique_ids) <= 4:
            raise BusinessRuleError("Select between 2 and 4 vendors to compare")

        entries = []
        for vendor_id in unique_ids:
            entry = VendorService.performance(db, organization_id, vendor_id)
            entry["hourly_rate"] = VendorService.get_vendor(db, organization_id, vendor_id).hourly_rate
            entries.append(entry)

        ratings = [e["overall_rating"] for e in entries if e["overall_rating"] is not None]
        on_time = [e["on_time_completion_rate"] for e in entries if e["on_time_completion_rate"] is not None]
        best_rating = max(ratings) if ratings else None
        best_on_time = max(on_time) if on_time else None
        lowest_rate = min(e["hourly_rate"] for e in entries)
        most_jobs = max(e["total_jobs_completed"] for e in entries)

        for e in entries:
            e["is_best_rating"] = best_rating is not None and e["overall_rating"] == best_rating
            e["is_best_on_time"] = best_on_time is not None and e["on_time_completion_rate"] == best_on_time
            e["is_lowest_rate"] = e["hourly_rate"] == lowest_rate
            e["is_most_jobs"] = most_jobs > 0 and e["total_jobs_completed"] == most_jobs
        return entries

    @staticmethod
    def dashboard(db: Session, organization_id: UUID, today: Optional[date] = None) -> Dict:
        """KPIs, specialization counts, performance tiers and expiring documents."""
        today = today or date.today()
        vendors = db.query(Vendor).filter(
            Vendor.organization_id == organization_id,
            Vendor.is_deleted == False
        ).all()
        active = [v for v in vendors if v.status == VendorStatus.ACTIVE]

        snapshot = []
        sla_values = []
        for vendor in active:
            orders = VendorService._completed_orders(db, vendor.id)
            sla = on_time_rate(orders)
            if sla is not None:
                sla_values.append(sla)
            snapshot.append({
                "vendor_id": vendor.id,
                "company_name": vendor.company_name,
                "sla_compliance": sla,
                "rating": vendor.rating,
                "job_count": len(orders),
                "performance_tier": performance_tier(vendor.rating, sla),
            })

        rated = [v for v in active if v.rating is not None]
        top = max(rated, key=lambda v: v.rating) if rated else None

        all_expiring = VendorService.expiring_documents(db, organization_id, today=today)

        specialization: Dict[str, int] = {}
        vendor_ids = [v.id for v in vendors]
        if vendor_ids:
            for (category,) in db.query(WorkOrder.category).filter(
                WorkOrder.organization_id == organization_id,
                WorkOrder.assigned_to.in_(vendor_ids)
            ).all():
                specialization[category.value] = specialization.get(category.value, 0) + 1

        first, next_first = month_bounds(today)
        monthly = []
        for vendor in active:
            count = sum(
                1 for wo in VendorService._completed_orders(db, vendor.id)
                if first <= as_utc(wo.completed_at).date() < next_first
            )
            if count:
                monthly.append({
                    "vendor_id": vendor.id,
                    "company_name": vendor.company_name,
                    "jobs_completed_this_month": count,
                    "rating": vendor.rating,
                })
        monthly.sort(key=lambda item: item["jobs_completed_this_month"], reverse=True)

        return {
            "kpis": {
                "total_active_vendors": len(active),
                "avg_sla_compliance": round(mean(sla_values), 1) if sla_values else None,
                "top_performer_id": top.id if top else None,
                "top_performer_name": top.company_name if top else None,
                "top_performer_rating": top.rating if top else None,
                "expiring_documents_count": len(all_expiring),
                "has_critical_expiring": any(d["is_critical"] for d in all_expiring),
            },
            "jobs_by_specialization": [
                {"category": category, "job_count": count}
                for category, count in sorted(specialization.items(), key=lambda kv: kv[1], reverse=True)
            ],
            "performance_snapshot": snapshot,
            "expiring_documents": all_expiring[:10],
            "top_vendors": monthly[:5],
        }
