"""
Cheque Service - post-dated cheques collected from tenants.

A cheque is RECEIVED on registration, becomes DUE within a week of its
date, then DEPOSITED and finally CLEARED or BOUNCED. A bounced cheque is
REPLACED by a new one; a cheque not yet deposited may be WITHDRAWN, and
one still RECEIVED may be CANCELLED.
"""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database.models import Invoice, PaymentMethod, PDCStatus, PostDatedCheque, Tenant
from ..schemas.cheque import (
    ChequeBulkCreateRequest, ChequeCreateRequest, ChequeEntry, DepositChequeRequest,
    ClearChequeRequest, BounceChequeRequest, ReplaceChequeRequest, WithdrawChequeRequest
)
from ..schemas.invoice import PaymentCreateRequest
from .exceptions import NotFoundError, BusinessRuleError, ConflictError, ServiceError
from .invoice_service import InvoiceService
from .lease_calculations import round_money
from .timeutils import month_bounds

logger = logging.getLogger(__name__)

DUE_WINDOW_DAYS = 7
BOUNCE_LOOKBACK_DAYS = 30
DASHBOARD_LIST_LIMIT = 10
OUTSTANDING_STATUSES = (PDCStatus.RECEIVED, PDCStatus.DUE, PDCStatus.DEPOSITED)
WITHDRAWABLE_STATUSES = (PDCStatus.RECEIVED, PDCStatus.DUE)


def _require_status(cheque: PostDatedCheque, action: str, *allowed: PDCStatus) -> None:
    if cheque.status not in allowed:
        raise BusinessRuleError(f"Cheque cannot be {action} in current status: {cheque.status.value}")


class ChequeService:
    """Service class for post-dated cheque business logic."""

    @staticmethod
    def get_cheque(db: Session, organization_id: UUID, cheque_id: UUID) -> PostDatedCheque:
        cheque = db.query(PostDatedCheque).filter(
            PostDatedCheque.id == cheque_id,
            PostDatedCheque.organization_id == organization_id
        ).first()
        if not cheque:
            raise NotFoundError("Cheque", cheque_id)
        return cheque

    @staticmethod
    def _get_tenant(db: Session, organization_id: UUID, tenant_id: UUID) -> Tenant:
        tenant = db.query(Tenant).filter(
            Tenant.id == tenant_id,
            Tenant.organization_id == organization_id
        ).first()
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    @staticmethod
    def _check_invoice(db: Session, organization_id: UUID, tenant: Tenant, invoice_id: Optional[UUID]) -> None:
        if invoice_id is None:
            return
        invoice = db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.organization_id == organization_id
        ).first()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        if invoice.tenant_id != tenant.id:
            raise BusinessRuleError("Invoice belongs to a different tenant")

    @staticmethod
    def cheque_number_exists(db: Session, tenant_id: UUID, cheque_number: str) -> bool:
        return db.query(PostDatedCheque.id).filter(
            PostDatedCheque.tenant_id == tenant_id,
            PostDatedCheque.cheque_number == cheque_number
        ).first() is not None

    @staticmethod
    def _build_cheque(organization_id: UUID, tenant: Tenant, entry: ChequeEntry,
                      user_id: Optional[UUID]) -> PostDatedCheque:
        return PostDatedCheque(
            organization_id=organization_id,
            tenant_id=tenant.id,
            invoice_id=entry.invoice_id,
            cheque_number=entry.cheque_number,
            bank_name=entry.bank_name,
            amount=round_money(entry.amount),
            cheque_date=entry.cheque_date,
            status=PDCStatus.RECEIVED,
            notes=entry.notes,
            created_by=user_id,
        )

    @staticmethod
    def register(db: Session, organization_id: UUID, request: ChequeCreateRequest,
                 user_id: Optional[UUID] = None) -> PostDatedCheque:
        """
        Register a cheque received from a tenant.

        Raises:
            NotFoundError: If the tenant or linked invoice doesn't exist
            ConflictError: If the tenant already handed over a cheque with this number
        """
        tenant = ChequeService._get_tenant(db, organization_id, request.tenant_id)
        if ChequeService.cheque_number_exists(db, tenant.id, request.cheque_number):
            raise ConflictError(f"Cheque number already exists for this tenant: {request.cheque_number}")
        ChequeService._check_invoice(db, organization_id, tenant, request.invoice_id)

        cheque = ChequeService._build_cheque(organization_id, tenant, request, user_id)
        db.add(cheque)
        db.flush()
        logger.info("Registered cheque %s for tenant %s", cheque.cheque_number, tenant.tenant_number)
        return cheque

    @staticmethod
    def register_bulk(db: Session, organization_id: UUID, request: ChequeBulkCreateRequest,
                      user_id: Optional[UUID] = None) -> List[PostDatedCheque]:
        """Register several cheques for one tenant; either all are stored or none."""
        tenant = ChequeService._get_tenant(db, organization_id, request.tenant_id)
        numbers = [entry.cheque_number for entry in request.cheques]
        if len(set(numbers)) != len(numbers):
            raise BusinessRuleError("Duplicate cheque numbers within submission")
        duplicates = [n for n in numbers if ChequeService.cheque_number_exists(db, tenant.id, n)]
        if duplicates:
            raise ConflictError(f"Cheque numbers already exist for this tenant: {', '.join(duplicates)}")
        for entry in request.cheques:
            ChequeService._check_invoice(db, organization_id, tenant, entry.invoice_id)

        cheques = [ChequeService._build_cheque(organization_id, tenant, entry, user_id)
                   for entry in request.cheques]
        db.add_all(cheques)
        db.flush()
        logger.info("Registered %d cheques for tenant %s", len(cheques), tenant.tenant_number)
        return cheques

    @staticmethod
    def deposit(db: Session, organization_id: UUID, cheque_id: UUID,
                request: DepositChequeRequest) -> PostDatedCheque:
        cheque = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(cheque, "deposited", PDCStatus.DUE)
        cheque.deposit_date = request.deposit_date
        cheque.status = PDCStatus.DEPOSITED
        db.flush()
        logger.info("Deposited cheque %s on %s", cheque.cheque_number, request.deposit_date)
        return cheque

    @staticmethod
    def clear(db: Session, organization_id: UUID, cheque_id: UUID, request: ClearChequeRequest,
              user_id: Optional[UUID] = None) -> PostDatedCheque:
        """
        Mark a deposited cheque as cleared.

        When the cheque is linked to an invoice a payment is recorded on it.
        The clearance stands even if the invoice no longer accepts the payment.
        """
        cheque = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(cheque, "cleared", PDCStatus.DEPOSITED)
        if cheque.deposit_date and request.cleared_date < cheque.deposit_date:
            raise BusinessRuleError("Cleared date cannot be before the deposit date")
        cheque.cleared_date = request.cleared_date
        cheque.status = PDCStatus.CLEARED
        db.flush()

        if cheque.invoice_id is not None:
            payment_request = PaymentCreateRequest(
                amount=cheque.amount,
                payment_method=PaymentMethod.PDC,
                payment_date=request.cleared_date,
                transaction_reference=f"PDC-{cheque.cheque_number}",
                notes=f"Payment from cheque {cheque.cheque_number}",
            )
            try:
                with db.begin_nested():
                    payment = InvoiceService.record_payment(
                        db, organization_id, cheque.invoice_id, payment_request, user_id=user_id
                    )
                cheque.payment_id = payment.id
                db.flush()
            except ServiceError as exc:
                logger.warning("Cheque %s cleared without payment on invoice %s: %s",
                               cheque.cheque_number, cheque.invoice_id, exc.message)

        logger.info("Cleared cheque %s", cheque.cheque_number)
        return cheque

    @staticmethod
    def bounce(db: Session, organization_id: UUID, cheque_id: UUID,
               request: BounceChequeRequest) -> PostDatedCheque:
        cheque = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(cheque, "bounced", PDCStatus.DEPOSITED)
        cheque.bounced_date = request.bounced_date
        cheque.bounce_reason = request.bounce_reason
        cheque.status = PDCStatus.BOUNCED
        db.flush()
        logger.info("Cheque %s bounced: %s", cheque.cheque_number, request.bounce_reason)
        return cheque

    @staticmethod
    def replace(db: Session, organization_id: UUID, cheque_id: UUID, request: ReplaceChequeRequest,
                user_id: Optional[UUID] = None) -> PostDatedCheque:
        """Register a new cheque for a bounced one and link the two."""
        original = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(original, "replaced", PDCStatus.BOUNCED)
        if ChequeService.cheque_number_exists(db, original.tenant_id, request.new_cheque_number):
            raise ConflictError(f"Cheque number already exists for this tenant: {request.new_cheque_number}")

        replacement = PostDatedCheque(
            organization_id=organization_id,
            tenant_id=original.tenant_id,
            invoice_id=original.invoice_id,
            cheque_number=request.new_cheque_number,
            bank_name=request.bank_name,
            amount=round_money(request.amount),
            cheque_date=request.cheque_date,
            status=PDCStatus.RECEIVED,
            original_cheque_id=original.id,
            notes=request.notes,
            created_by=user_id,
        )
        db.add(replacement)
        db.flush()
        original.replacement_cheque_id = replacement.id
        original.status = PDCStatus.REPLACED
        db.flush()
        logger.info("Replaced cheque %s with %s", original.cheque_number, replacement.cheque_number)
        return replacement

    @staticmethod
    def withdraw(db: Session, organization_id: UUID, cheque_id: UUID,
                 request: WithdrawChequeRequest) -> PostDatedCheque:
        cheque = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(cheque, "withdrawn", *WITHDRAWABLE_STATUSES)
        cheque.withdrawal_date = request.withdrawal_date
        cheque.withdrawal_reason = request.withdrawal_reason
        cheque.new_payment_method = request.new_payment_method
        cheque.transaction_id = request.transaction_id
        cheque.status = PDCStatus.WITHDRAWN
        db.flush()
        logger.info("Withdrew cheque %s", cheque.cheque_number)
        return cheque

    @staticmethod
    def cancel(db: Session, organization_id: UUID, cheque_id: UUID) -> PostDatedCheque:
        cheque = ChequeService.get_cheque(db, organization_id, cheque_id)
        _require_status(cheque, "cancelled", PDCStatus.RECEIVED)
        cheque.status = PDCStatus.CANCELLED
        db.flush()
        logger.info("Cancelled cheque %s", cheque.cheque_number)
        return cheque

    @staticmethod
    def mark_due(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        """Move received cheques dated within the next week, or earlier, to DUE."""
        today = today or date.today()
        cheques = db.query(PostDatedCheque).filter(
            PostDatedCheque.organization_id == organization_id,
            PostDatedCheque.status == PDCStatus.RECEIVED,
            PostDatedCheque.cheque_date <= today + timedelta(days=DUE_WINDOW_DAYS)
        ).all()
        for cheque in cheques:
            cheque.status = PDCStatus.DUE
        db.flush()
        if cheques:
            logger.info("Marked %d cheques due", len(cheques))
        return len(cheques)

    @staticmethod
    def dashboard(db: Session, organization_id: UUID, today: Optional[date] = None) -> Dict:
        today = today or date.today()
        week_end = today + timedelta(days=DUE_WINDOW_DAYS)
        month_start, next_month = month_bounds(today)
        base = db.query(PostDatedCheque).filter(PostDatedCheque.organization_id == organization_id)

        def count_and_value(query):
            count, value = query.with_entities(
                func.count(PostDatedCheque.id), func.coalesce(func.sum(PostDatedCheque.amount), 0)
            ).one()
            return count, round_money(value or 0)

        upcoming_query = base.filter(
            PostDatedCheque.status.in_(WITHDRAWABLE_STATUSES),
            PostDatedCheque.cheque_date >= today,
            PostDatedCheque.cheque_date <= week_end
        )
        due_count, due_value = count_and_value(upcoming_query)
        deposited_query = base.filter(
            PostDatedCheque.deposit_date >= month_start,
            PostDatedCheque.deposit_date < next_month
        )
        deposited_count, deposited_value = count_and_value(deposited_query)
        _, outstanding_value = count_and_value(base.filter(PostDatedCheque.status.in_(OUTSTANDING_STATUSES)))

        cleared = base.filter(PostDatedCheque.cleared_date.isnot(None)).count()
        bounced = base.filter(PostDatedCheque.bounced_date.isnot(None)).count()
        processed = cleared + bounced

        return {
            "received_count": base.filter(PostDatedCheque.status == PDCStatus.RECEIVED).count(),
            "due_this_week_count": due_count,
            "due_this_week_value": due_value,
            "deposited_this_month_count": deposited_count,
            "deposited_this_month_value": deposited_value,
            "outstanding_value": outstanding_value,
            "bounced_last_30_days": base.filter(
                PostDatedCheque.bounced_date >= today - timedelta(days=BOUNCE_LOOKBACK_DAYS)
            ).count(),
            "bounce_rate": round(bounced / processed * 100, 2) if processed else 0.0,
            "upcoming": upcoming_query.order_by(PostDatedCheque.cheque_date).limit(DASHBOARD_LIST_LIMIT).all(),
            "recently_deposited": base.filter(
                PostDatedCheque.deposit_date >= today - timedelta(days=BOUNCE_LOOKBACK_DAYS)
            ).order_by(PostDatedCheque.deposit_date.desc()).limit(DASHBOARD_LIST_LIMIT).all(),
        }
