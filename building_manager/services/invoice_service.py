"""
Invoice Service - Business logic layer for invoices and payments.

This service handles invoice creation, status changes, payment recording
and the scheduled overdue, late fee and generation jobs.
"""
import logging
import os
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database.models import (
    Invoice, InvoiceCharge, InvoiceStatus, Payment, Tenant, TenantStatus
)
from ..schemas.invoice import InvoiceCreateRequest, InvoiceUpdateRequest, PaymentCreateRequest
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .lease_calculations import round_money, HUNDRED
from .timeutils import utcnow, month_bounds

logger = logging.getLogger(__name__)

LATE_FEE_PERCENTAGE = Decimal(os.getenv("LATE_FEE_PERCENTAGE", "5"))
INVOICE_DUE_DAYS = 30

PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)
OPEN_STATUSES = PAYABLE_STATUSES


def recalculate_totals(invoice: Invoice) -> None:
    """Recompute total and balance from the invoice components."""
    extras = sum((Decimal(c.amount) for c in invoice.additional_charges), Decimal("0"))
    invoice.total_amount = round_money(
        Decimal(invoice.base_rent or 0)
        + Decimal(invoice.service_charges or 0)
        + Decimal(invoice.parking_fees or 0)
        + extras
        + Decimal(invoice.late_fee or 0)
    )
    invoice.balance_amount = round_money(invoice.total_amount - Decimal(invoice.paid_amount or 0))


class InvoiceService:
    """Service class for invoice-related business logic."""

    @staticmethod
    def get_invoice(db: Session, organization_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.organization_id == organization_id
        ).first()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    @staticmethod
    def create_invoice(db: Session, organization_id: UUID, request: InvoiceCreateRequest,
                       user_id: Optional[UUID] = None) -> Invoice:
        """
        Create a draft invoice for a tenant.

        Args:
            db: SQLAlchemy database session
            organization_id: Owning organization
            request: Invoice data; missing rent components come from the tenant
            user_id: Staff member creating the invoice

        Returns:
            Created Invoice object

        Raises:
            NotFoundError: If the tenant doesn't exist
            BusinessRuleError: If the tenant is not active
        """
        tenant = db.query(Tenant).filter(
            Tenant.id == request.tenant_id,
            Tenant.organization_id == organization_id
        ).first()
        if not tenant:
            raise NotFoundError("Tenant", request.tenant_id)
        if not tenant.active or tenant.status != TenantStatus.ACTIVE:
            raise BusinessRuleError("Cannot create invoice for inactive tenant")

        invoice = InvoiceService._build_invoice(
            db, organization_id, tenant, request.invoice_date, request.due_date,
            base_rent=request.base_rent, service_charges=request.service_charges,
            parking_fees=request.parking_fees, notes=request.notes, user_id=user_id,
        )
        for charge in request.additional_charges:
            invoice.additional_charges.append(
                InvoiceCharge(description=charge.description, amount=round_money(charge.amount))
            )
        recalculate_totals(invoice)
        db.flush()
        logger.info("Created invoice %s for tenant %s", invoice.invoice_number, tenant.tenant_number)
        return invoice

    @staticmethod
    def _build_invoice(db: Session, organization_id: UUID, tenant: Tenant, invoice_date: date,
                       due_date: date, base_rent=None, service_charges=None, parking_fees=None,
                       notes=None, user_id=None) -> Invoice:
        invoice = Invoice(
            organization_id=organization_id,
            invoice_number=numbering.next_number(
                db, Invoice, "invoice_number", organization_id, numbering.INVOICE, invoice_date
            ),
            tenant_id=tenant.id,
            property_id=tenant.property_id,
            unit_id=tenant.unit_id,
            invoice_date=invoice_date,
            due_date=due_date,
            base_rent=round_money(tenant.base_rent if base_rent is None else base_rent),
            service_charges=round_money(tenant.service_charge if service_charges is None else service_charges),
            parking_fees=round_money(tenant.parking_fee if parking_fees is None else parking_fees),
            late_fee=Decimal("0.00"),
            paid_amount=Decimal("0.00"),
            status=InvoiceStatus.DRAFT,
            notes=notes,
            created_by=user_id,
        )
        db.add(invoice)
        return invoice

    @staticmethod
    def update_invoice(db: Session, organization_id: UUID, invoice_id: UUID,
                       request: InvoiceUpdateRequest) -> Invoice:
        invoice = InvoiceService.get_invoice(db, organization_id, invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise BusinessRuleError("Only draft invoices can be updated")

        update_data = request.model_dump(exclude_unset=True, exclude={"additional_charges"})
        for field, value in update_data.items():
            if value is not None:
                setattr(invoice, field, value)
        if invoice.due_date < invoice.invoice_date:
            raise BusinessRuleError("Due date cannot be before invoice date")

        if request.additional_charges is not None:
            invoice.additional_charges.clear()
            for charge in request.additional_charges:
                invoice.additional_charges.append(
                    InvoiceCharge(description=charge.description, amount=round_money(charge.amount))
                )
        recalculate_totals(invoice)
        db.flush()
        return invoice

    @staticmethod
    def send_invoice(db: Session, organization_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = InvoiceService.get_invoice(db, organization_id, invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise BusinessRuleError("Only draft invoices can be sent")
        invoice.status = InvoiceStatus.SENT
        invoice.sent_at = utcnow()
        db.flush()
        logger.info("Sent invoice %s", invoice.invoice_number)
        return invoice

    @staticmethod
    def cancel_invoice(db: Session, organization_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = InvoiceService.get_invoice(db, organization_id, invoice_id)
        cancellable = invoice.status == InvoiceStatus.DRAFT or (
            invoice.status == InvoiceStatus.SENT and Decimal(invoice.paid_amount or 0) == 0
        )
        if not cancellable:
            raise BusinessRuleError("Only draft or unpaid sent invoices can be cancelled")
        invoice.status = InvoiceStatus.CANCELLED
        db.flush()
        logger.info("Cancelled invoice %s", invoice.invoice_number)
        return invoice

    @staticmethod
    def record_payment(db: Session, organization_id: UUID, invoice_id: UUID,
                       request: PaymentCreateRequest, user_id: Optional[UUID] = None) -> Payment:
        """
        Record a payment and move the invoice to PAID or PARTIALLY_PAID.

        Raises:
            BusinessRuleError: If the invoice is not payable or the amount exceeds the balance
        """
        invoice = InvoiceService.get_invoice(db, organization_id, invoice_id)
        if invoice.status not in PAYABLE_STATUSES:
            raise BusinessRuleError(f"Cannot record payment for invoice with status {invoice.status.value}")

        amount = round_money(request.amount)
        if amount <= 0:
            raise BusinessRuleError("Payment amount must be at least 0.01")
        if amount > Decimal(invoice.balance_amount):
            raise BusinessRuleError(
                f"Payment amount {amount} exceeds outstanding balance {invoice.balance_amount}"
            )

        payment = Payment(
            organization_id=organization_id,
            payment_number=numbering.next_number(
                db, Payment, "payment_number", organization_id, numbering.PAYMENT, request.payment_date
            ),
            invoice_id=invoice.id,
            tenant_id=invoice.tenant_id,
            amount=amount,
            payment_method=request.payment_method,
            payment_date=request.payment_date,
            transaction_reference=request.transaction_reference,
            notes=request.notes,
            recorded_by=user_id,
        )
        db.add(payment)

        invoice.paid_amount = round_money(Decimal(invoice.paid_amount or 0) + amount)
        recalculate_totals(invoice)
        if invoice.balance_amount <= 0:
            invoice.status = InvoiceStatus.PAID
            invoice.paid_at = utcnow()
        else:
            invoice.status = InvoiceStatus.PARTIALLY_PAID

        db.flush()
        logger.info("Recorded payment %s of %s on invoice %s",
                    payment.payment_number, amount, invoice.invoice_number)
        return payment

    @staticmethod
    def tenant_balance(db: Session, organization_id: UUID, tenant_id: UUID) -> Dict:
        invoices = db.query(Invoice).filter(
            Invoice.organization_id == organization_id,
            Invoice.tenant_id == tenant_id,
            Invoice.status != InvoiceStatus.CANCELLED,
            Invoice.status != InvoiceStatus.DRAFT
        ).all()
        zero = Decimal("0.00")
        return {
            "tenant_id": tenant_id,
            "total_invoiced": round_money(sum((Decimal(i.total_amount) for i in invoices), zero)),
            "total_paid": round_money(sum((Decimal(i.paid_amount) for i in invoices), zero)),
            "outstanding_balance": round_money(sum((Decimal(i.balance_amount) for i in invoices), zero)),
            "overdue_amount": round_money(sum(
                (Decimal(i.balance_amount) for i in invoices if i.status == InvoiceStatus.OVERDUE), zero
            )),
            "open_invoices": sum(1 for i in invoices if i.status in OPEN_STATUSES),
        }

    @staticmethod
    def summary(db: Session, organization_id: UUID, today: Optional[date] = None) -> Dict:
        today = today or date.today()
        rows = db.query(Invoice.status, func.count(Invoice.id)).filter(
            Invoice.organization_id == organization_id
        ).group_by(Invoice.status).all()
        counts = {status.value: 0 for status in InvoiceStatus}
        counts.update({status.value: count for status, count in rows})

        open_invoices = db.query(Invoice).filter(
            Invoice.organization_id == organization_id,
            Invoice.status.in_(OPEN_STATUSES)
        ).all()
        first, next_first = month_bounds(today)
        collected = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.organization_id == organization_id,
            Payment.payment_date >= first,
            Payment.payment_date < next_first
        ).scalar()

        zero = Decimal("0.00")
        return {
            "counts_by_status": counts,
            "total_outstanding": round_money(sum((Decimal(i.balance_amount) for i in open_invoices), zero)),
            "total_overdue": round_money(sum(
                (Decimal(i.balance_amount) for i in open_invoices if i.status == InvoiceStatus.OVERDUE), zero
            )),
            "collected_this_month": round_money(collected or 0),
        }

    @staticmethod
    def mark_overdue(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        today = today or date.today()
        invoices = db.query(Invoice).filter(
            Invoice.organization_id == organization_id,
            Invoice.status.in_((InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)),
            Invoice.due_date < today
        ).all()
        for invoice in invoices:
            invoice.status = InvoiceStatus.OVERDUE
        db.flush()
        if invoices:
            logger.info("Marked %d invoices overdue", len(invoices))
        return len(invoices)

    @staticmethod
    def apply_late_fees(db: Session, organization_id: UUID,
                        percentage: Decimal = LATE_FEE_PERCENTAGE) -> int:
        """Charge a one-off late fee of ``percentage`` of the total on overdue invoices."""
        invoices = db.query(Invoice).filter(
            Invoice.organization_id == organization_id,
            Invoice.status == InvoiceStatus.OVERDUE,
            Invoice.late_fee_applied == False
        ).all()
        for invoice in invoices:
            invoice.late_fee = round_money(Decimal(invoice.total_amount) * Decimal(percentage) / HUNDRED)
            invoice.late_fee_applied = True
            recalculate_totals(invoice)
        db.flush()
        if invoices:
            logger.info("Applied late fees to %d invoices", len(invoices))
        return len(invoices)

    @staticmethod
    def generate_scheduled_invoices(db: Session, organization_id: UUID, today: Optional[date] = None) -> int:
        """Draft this month's invoice for tenants whose rent falls due today."""
        today = today or date.today()
        first, next_first = month_bounds(today)
        tenants = db.query(Tenant).filter(
            Tenant.organization_id == organization_id,
            Tenant.active == True,
            Tenant.status == TenantStatus.ACTIVE,
            Tenant.payment_due_date == today.day
        ).all()

        created = 0
        for tenant in tenants:
            already_invoiced = db.query(Invoice.id).filter(
                Invoice.tenant_id == tenant.id,
                Invoice.invoice_date >= first,
                Invoice.invoice_date < next_first,
                Invoice.status != InvoiceStatus.CANCELLED
            ).first()
            if already_invoiced:
                continue
            try:
                with db.begin_nested():
                    invoice = InvoiceService._build_invoice(
                        db, organization_id, tenant, today, today + timedelta(days=INVOICE_DUE_DAYS)
                    )
                    recalculate_totals(invoice)
                    # Flush so the next number allocation sees this invoice
                    db.flush()
            except Exception:
                logger.error("Failed to generate scheduled invoice for tenant %s",
                             tenant.tenant_number, exc_info=True)
                continue
            created += 1

        if created:
            logger.info("Generated %d scheduled invoices", created)
        return created
