"""
Invoice API routes.

Provides endpoints for rent invoicing, payments and collection summaries.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Invoice, InvoiceStatus, Payment
from ...schemas.invoice import (
    InvoiceCreateRequest, InvoiceUpdateRequest, InvoiceResponse, InvoicesListResponse,
    PaymentCreateRequest, PaymentResponse, TenantBalanceResponse, InvoiceSummaryResponse
)
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.invoice_service import InvoiceService, OPEN_STATUSES
from ...services.tenant_service import TenantService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


# PUBLIC_INTERFACE
@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED,
            summary="Create invoice",
            description="Create a draft invoice for an active tenant.")
async def create_invoice(
    request: InvoiceCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a new draft invoice.

    Rent components not given in the request are copied from the tenant.
    """
    invoice = InvoiceService.create_invoice(
        db, org_filter.organization_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(invoice)
    return invoice


# PUBLIC_INTERFACE
@router.get("/", response_model=InvoicesListResponse,
           summary="List invoices",
           description="Get a paginated list of invoices with optional filtering.")
async def list_invoices(
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status", description="Filter by status"),
    tenant_id: Optional[UUID] = Query(None, description="Filter by tenant"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    overdue_only: bool = Query(False, description="Only open invoices past their due date"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List invoices in the current organization.
    """
    query = org_filter.filter_query(db.query(Invoice), Invoice)

    if invoice_status:
        query = query.filter(Invoice.status == invoice_status)
    if tenant_id:
        query = query.filter(Invoice.tenant_id == tenant_id)
    if property_id:
        query = query.filter(Invoice.property_id == property_id)
    if overdue_only:
        query = query.filter(
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.due_date < date.today()
        )

    total = query.count()
    offset = (page - 1) * per_page
    invoices = query.order_by(Invoice.invoice_date.desc(), Invoice.invoice_number.desc()) \
        .offset(offset).limit(per_page).all()

    return InvoicesListResponse(items=invoices, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/summary", response_model=InvoiceSummaryResponse,
           summary="Invoice summary",
           description="Invoice counts per status, outstanding and overdue totals, and this month's collections.")
async def get_invoice_summary(
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the invoicing summary.
    """
    return InvoiceSummaryResponse(**InvoiceService.summary(db, org_filter.organization_id))


# PUBLIC_INTERFACE
@router.get("/tenant-balance/{tenant_id}", response_model=TenantBalanceResponse,
           summary="Tenant balance",
           description="Invoiced, paid and outstanding amounts for a tenant.")
async def get_tenant_balance(
    tenant_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get a tenant's balance.

    Draft and cancelled invoices are not counted.
    """
    TenantService.get_tenant(db, org_filter.organization_id, tenant_id)
    return TenantBalanceResponse(**InvoiceService.tenant_balance(db, org_filter.organization_id, tenant_id))


# PUBLIC_INTERFACE
@router.get("/{invoice_id}", response_model=InvoiceResponse,
           summary="Get invoice details",
           description="Get a specific invoice with its charges.")
async def get_invoice(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get invoice details.
    """
    return InvoiceService.get_invoice(db, org_filter.organization_id, invoice_id)


# PUBLIC_INTERFACE
@router.put("/{invoice_id}", response_model=InvoiceResponse,
           summary="Update invoice",
           description="Update a draft invoice; totals are recalculated.")
async def update_invoice(
    invoice_id: UUID,
    request: InvoiceUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a draft invoice.
    """
    invoice = InvoiceService.update_invoice(db, org_filter.organization_id, invoice_id, request)
    db.commit()
    db.refresh(invoice)
    return invoice


# PUBLIC_INTERFACE
@router.post("/{invoice_id}/send", response_model=InvoiceResponse,
            summary="Send invoice",
            description="Mark a draft invoice as sent to the tenant.")
async def send_invoice(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Send an invoice.
    """
    invoice = InvoiceService.send_invoice(db, org_filter.organization_id, invoice_id)
    db.commit()
    db.refresh(invoice)
    return invoice


# PUBLIC_INTERFACE
@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse,
            summary="Cancel invoice",
            description="Cancel a draft invoice or a sent invoice with nothing paid.")
async def cancel_invoice(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Cancel an invoice.
    """
    invoice = InvoiceService.cancel_invoice(db, org_filter.organization_id, invoice_id)
    db.commit()
    db.refresh(invoice)
    return invoice


# PUBLIC_INTERFACE
@router.post("/{invoice_id}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED,
            summary="Record payment",
            description="Record a payment against a sent, partially paid or overdue invoice.")
async def record_payment(
    invoice_id: UUID,
    request: PaymentCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Record a payment.

    The amount may not exceed the outstanding balance.
    """
    payment = InvoiceService.record_payment(
        db, org_filter.organization_id, invoice_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(payment)
    return payment


# PUBLIC_INTERFACE
@router.get("/{invoice_id}/payments", response_model=List[PaymentResponse],
           summary="List payments",
           description="List the payments recorded against an invoice.")
async def list_payments(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List payments of an invoice.
    """
    invoice = InvoiceService.get_invoice(db, org_filter.organization_id, invoice_id)
    return db.query(Payment).filter(Payment.invoice_id == invoice.id) \
        .order_by(Payment.payment_date, Payment.created_at).all()
