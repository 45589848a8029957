"""
Tenant Service - onboarding, lease extension and renewal rules.

Methods flush but never commit; the calling route owns the transaction.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from ..database.models import (
    Tenant, TenantStatus, Property, Unit, UnitStatus, LeaseExtension,
    RenewalRequest, RenewalRequestStatus
)
from ..schemas.tenant import TenantCreateRequest, TenantUpdateRequest
from ..schemas.lease import LeaseExtensionRequest, RenewalRequestCreate
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError, ConflictError
from .lease_calculations import (
    calculate_lease_duration, calculate_total_monthly_rent, calculate_new_rent,
    calculate_rent_adjustment_percentage, round_money
)
from .timeutils import utcnow

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 60
EXTENDABLE_STATUSES = (TenantStatus.ACTIVE, TenantStatus.EXPIRING_SOON)


class TenantService:
    """Service class for renter onboarding and profile changes."""

    @staticmethod
    def get_tenant(db: Session, organization_id: UUID, tenant_id: UUID) -> Tenant:
        tenant = db.query(Tenant).filter(
            Tenant.id == tenant_id,
            Tenant.organization_id == organization_id
        ).first()
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    @staticmethod
    def is_email_available(db: Session, organization_id: UUID, email: str,
                           exclude_id: Optional[UUID] = None) -> bool:
        query = db.query(Tenant.id).filter(
            Tenant.organization_id == organization_id,
            Tenant.email == email.lower()
        )
        if exclude_id:
            query = query.filter(Tenant.id != exclude_id)
        return query.first() is None

    @staticmethod
    def create_tenant(db: Session, organization_id: UUID, request: TenantCreateRequest) -> Tenant:
        """
        Onboard a tenant onto an available unit.

        Args:
            db: SQLAlchemy database session
            organization_id: Owning organization
            request: Merged onboarding wizard data, already schema-validated

        Returns:
            Created Tenant, with its unit marked occupied

        Raises:
            ConflictError: If the email is already registered
            NotFoundError: If the property or unit does not exist
            BusinessRuleError: If the unit is elsewhere or not available
        """
        email = request.email.lower()
        if not TenantService.is_email_available(db, organization_id, email):
            raise ConflictError("Tenant with this email already exists")

        prop = db.query(Property).filter(
            Property.id == request.property_id,
            Property.organization_id == organization_id
        ).first()
        if not prop:
            raise NotFoundError("Property", request.property_id)

        unit = db.query(Unit).filter(
            Unit.id == request.unit_id,
            Unit.organization_id == organization_id
        ).first()
        if not unit:
            raise NotFoundError("Unit", request.unit_id)
        if unit.property_id != prop.id:
            raise BusinessRuleError("Unit does not belong to the selected property")
        if unit.status != UnitStatus.AVAILABLE:
            raise BusinessRuleError(f"Unit {unit.unit_number} is not available")

        tenant = Tenant(
            organization_id=organization_id,
            tenant_number=numbering.next_number(db, Tenant, "tenant_number", organization_id, numbering.TENANT),
            first_name=request.first_name,
            last_name=request.last_name,
            email=email,
            phone=request.phone,
            date_of_birth=request.date_of_birth,
            national_id=request.national_id,
            nationality=request.nationality,
            emergency_contact_name=request.emergency_contact_name,
            emergency_contact_phone=request.emergency_contact_phone,
            property_id=prop.id,
            unit_id=unit.id,
            lease_start_date=request.lease_start_date,
            lease_end_date=request.lease_end_date,
            lease_duration=calculate_lease_duration(request.lease_start_date, request.lease_end_date),
            lease_type=request.lease_type,
            renewal_option=request.renewal_option,
            base_rent=round_money(request.base_rent),
            admin_fee=round_money(request.admin_fee),
            service_charge=round_money(request.service_charge),
            security_deposit=round_money(request.security_deposit),
            parking_spots=request.parking_spots,
            parking_fee_per_spot=round_money(request.parking_fee_per_spot),
            total_monthly_rent=calculate_total_monthly_rent(
                request.base_rent, request.service_charge,
                request.parking_spots, request.parking_fee_per_spot
            ),
            payment_frequency=request.payment_frequency,
            payment_due_date=request.payment_due_date,
            payment_method=request.payment_method,
            pdc_cheque_count=request.pdc_cheque_count,
            status=TenantStatus.ACTIVE,
        )
        unit.status = UnitStatus.OCCUPIED

        db.add(tenant)
        db.flush()
        logger.info("Onboarded tenant %s into unit %s", tenant.tenant_number, unit.unit_number)
        return tenant

    @staticmethod
    def update_tenant(db: Session, organization_id: UUID, tenant_id: UUID,
                      request: TenantUpdateRequest) -> Tenant:
        tenant = TenantService.get_tenant(db, organization_id, tenant_id)
        update_data = request.model_dump(exclude_unset=True)

        if update_data.get("email"):
            update_data["email"] = update_data["email"].lower()
            if not TenantService.is_email_available(db, organization_id, update_data["email"], tenant.id):
                raise ConflictError("Tenant with this email already exists")

        for field, value in update_data.items():
            setattr(tenant, field, value)
        db.flush()
        return tenant

    @staticmethod
    def refresh_lease_statuses(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        """Move tenants to EXPIRING_SOON or EXPIRED based on their lease end date."""
        today = today or date.today()
        changed = 0

        expired = db.query(Tenant).filter(
            Tenant.organization_id == organization_id,
            Tenant.status.in_(EXTENDABLE_STATUSES),
            Tenant.lease_end_date < today
        ).all()
        for tenant in expired:
            tenant.status = TenantStatus.EXPIRED
            changed += 1

        expiring = db.query(Tenant).filter(
            Tenant.organization_id == organization_id,
            Tenant.status == TenantStatus.ACTIVE,
            Tenant.lease_end_date >= today,
            Tenant.lease_end_date <= today + timedelta(days=EXPIRING_SOON_DAYS)
        ).all()
        for tenant in expiring:
            tenant.status = TenantStatus.EXPIRING_SOON
            changed += 1

        db.flush()
        if changed:
            logger.info("Updated lease status for %d tenants", changed)
        return changed


class LeaseService:
    """Service class for lease extensions and renewal requests."""

    @staticmethod
    def expiring_leases(db: Session, organization_id: UUID, days: int,
                        today: Optional[date] = None) -> List[Tenant]:
        today = today or date.today()
        return db.query(Tenant).filter(
            Tenant.organization_id == organization_id,
            Tenant.status.in_(EXTENDABLE_STATUSES),
            Tenant.lease_end_date >= today,
            Tenant.lease_end_date <= today + timedelta(days=days)
        ).order_by(Tenant.lease_end_date).all()

    @staticmethod
    def extend_lease(db: Session, organization_id: UUID, tenant_id: UUID,
                     request: LeaseExtensionRequest, user_id: Optional[UUID] = None) -> LeaseExtension:
        """
        Extend a lease and apply the rent adjustment.

        The base rent is recomputed so that base rent, service charge and
        parking still add up to the new total.
        """
        tenant = TenantService.get_tenant(db, organization_id, tenant_id)
        if tenant.status not in EXTENDABLE_STATUSES:
            raise BusinessRuleError(
                f"Lease can only be extended for active tenants (current status: {tenant.status.value})"
            )
        if request.new_end_date <= tenant.lease_end_date:
            raise BusinessRuleError("New end date must be after the current lease end date")

        previous_rent = round_money(tenant.total_monthly_rent)
        new_rent = calculate_new_rent(previous_rent, request.rent_adjustment_type, request.adjustment_value)
        previous_end = tenant.lease_end_date

        extension = LeaseExtension(
            organization_id=organization_id,
            extension_number=numbering.next_number(
                db, LeaseExtension, "extension_number", organization_id, numbering.EXTENSION
            ),
            tenant_id=tenant.id,
            previous_end_date=previous_end,
            new_end_date=request.new_end_date,
            effective_date=previous_end + timedelta(days=1),
            previous_rent=previous_rent,
            new_rent=new_rent,
            adjustment_type=request.rent_adjustment_type,
            adjustment_value=request.adjustment_value,
            rent_adjustment_percentage=calculate_rent_adjustment_percentage(previous_rent, new_rent),
            renewal_type=request.renewal_type,
            auto_renewal=request.auto_renewal,
            special_terms=request.special_terms,
            payment_due_date=request.payment_due_date,
            extended_by=user_id,
        )
        db.add(extension)

        tenant.lease_end_date = request.new_end_date
        tenant.lease_duration = calculate_lease_duration(tenant.lease_start_date, request.new_end_date)
        tenant.total_monthly_rent = new_rent
        tenant.base_rent = round_money(new_rent - tenant.service_charge - tenant.parking_fee)
        if request.payment_due_date:
            tenant.payment_due_date = request.payment_due_date
        if tenant.status == TenantStatus.EXPIRING_SOON:
            tenant.status = TenantStatus.ACTIVE

        db.flush()
        logger.info("Extended lease for tenant %s to %s (%s)",
                    tenant.tenant_number, request.new_end_date, extension.extension_number)
        return extension

    @staticmethod
    def extension_history(db: Session, organization_id: UUID, tenant_id: UUID) -> List[LeaseExtension]:
        TenantService.get_tenant(db, organization_id, tenant_id)
        return db.query(LeaseExtension).filter(
            LeaseExtension.organization_id == organization_id,
            LeaseExtension.tenant_id == tenant_id
        ).order_by(LeaseExtension.created_at.desc()).all()

    @staticmethod
    def create_renewal_request(db: Session, organization_id: UUID, tenant_id: UUID,
                               request: RenewalRequestCreate) -> RenewalRequest:
        tenant = TenantService.get_tenant(db, organization_id, tenant_id)
        if tenant.status not in EXTENDABLE_STATUSES:
            raise BusinessRuleError("Only tenants with an active lease can request renewal")

        pending = db.query(RenewalRequest.id).filter(
            RenewalRequest.tenant_id == tenant.id,
            RenewalRequest.status == RenewalRequestStatus.PENDING
        ).first()
        if pending:
            raise ConflictError("A renewal request is already pending for this tenant")

        renewal = RenewalRequest(
            organization_id=organization_id,
            tenant_id=tenant.id,
            preferred_term=request.preferred_term,
            comments=request.comments,
        )
        db.add(renewal)
        db.flush()
        return renewal

    @staticmethod
    def get_renewal_request(db: Session, organization_id: UUID, request_id: UUID) -> RenewalRequest:
        renewal = db.query(RenewalRequest).filter(
            RenewalRequest.id == request_id,
            RenewalRequest.organization_id == organization_id
        ).first()
        if not renewal:
            raise NotFoundError("Renewal request", request_id)
        return renewal

    @staticmethod
    def process_renewal_request(db: Session, organization_id: UUID, request_id: UUID, approve: bool,
                                user_id: Optional[UUID] = None, reason: Optional[str] = None) -> RenewalRequest:
        renewal = LeaseService.get_renewal_request(db, organization_id, request_id)
        if renewal.status != RenewalRequestStatus.PENDING:
            raise BusinessRuleError("Renewal request has already been processed")

        renewal.status = RenewalRequestStatus.APPROVED if approve else RenewalRequestStatus.REJECTED
        renewal.rejection_reason = None if approve else reason
        renewal.processed_by = user_id
        renewal.processed_at = utcnow()
        db.flush()
        return renewal
