"""
Post-dated cheque API routes.

Provides endpoints for registering tenant cheques and following them
through deposit, clearance, bounce and replacement.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import PDCStatus, PostDatedCheque
from ...schemas.cheque import (
    ChequeCreateRequest, ChequeBulkCreateRequest, ChequeResponse, ChequesListResponse,
    ChequeDashboardResponse, DepositChequeRequest, ClearChequeRequest, BounceChequeRequest,
    ReplaceChequeRequest, WithdrawChequeRequest
)
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.cheque_service import ChequeService

router = APIRouter(prefix="/cheques", tags=["Cheques"])


# PUBLIC_INTERFACE
@router.post("/", response_model=ChequeResponse, status_code=status.HTTP_201_CREATED,
            summary="Register cheque",
            description="Register a post-dated cheque received from a tenant.")
async def register_cheque(
    request: ChequeCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Register a cheque.

    Cheque numbers are unique per tenant.
    """
    cheque = ChequeService.register(db, org_filter.organization_id, request, user_id=current_user.user_id)
    db.commit()
    db.refresh(cheque)
    return cheque


# PUBLIC_INTERFACE
@router.post("/bulk", response_model=List[ChequeResponse], status_code=status.HTTP_201_CREATED,
            summary="Register cheques in bulk",
            description="Register up to 24 cheques for one tenant in a single request.")
async def register_cheques_bulk(
    request: ChequeBulkCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Register a tenant's cheques at once.
    """
    cheques = ChequeService.register_bulk(db, org_filter.organization_id, request, user_id=current_user.user_id)
    db.commit()
    for cheque in cheques:
        db.refresh(cheque)
    return cheques


# PUBLIC_INTERFACE
@router.get("/", response_model=ChequesListResponse,
           summary="List cheques",
           description="Get a paginated list of cheques with optional filtering.")
async def list_cheques(
    cheque_status: Optional[PDCStatus] = Query(None, alias="status", description="Filter by status"),
    tenant_id: Optional[UUID] = Query(None, description="Filter by tenant"),
    bank_name: Optional[str] = Query(None, description="Filter by bank name"),
    from_date: Optional[date] = Query(None, description="Cheque date on or after"),
    to_date: Optional[date] = Query(None, description="Cheque date on or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List cheques in the current organization, earliest cheque date first.
    """
    query = org_filter.filter_query(db.query(PostDatedCheque), PostDatedCheque)

    if cheque_status:
        query = query.filter(PostDatedCheque.status == cheque_status)
    if tenant_id:
        query = query.filter(PostDatedCheque.tenant_id == tenant_id)
    if bank_name:
        query = query.filter(PostDatedCheque.bank_name.ilike(f"%{bank_name}%"))
    if from_date:
        query = query.filter(PostDatedCheque.cheque_date >= from_date)
    if to_date:
        query = query.filter(PostDatedCheque.cheque_date <= to_date)

    total = query.count()
    offset = (page - 1) * per_page
    cheques = query.order_by(PostDatedCheque.cheque_date, PostDatedCheque.cheque_number) \
        .offset(offset).limit(per_page).all()

    return ChequesListResponse(items=cheques, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/dashboard", response_model=ChequeDashboardResponse,
           summary="Cheque dashboard",
           description="Cheques due this week, deposits this month, outstanding value and bounce rate.")
async def get_cheque_dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the cheque collection dashboard.
    """
    return ChequeDashboardResponse(**ChequeService.dashboard(db, org_filter.organization_id))


# PUBLIC_INTERFACE
@router.get("/{cheque_id}", response_model=ChequeResponse,
           summary="Get cheque details",
           description="Get a specific cheque.")
async def get_cheque(
    cheque_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get cheque details.
    """
    return ChequeService.get_cheque(db, org_filter.organization_id, cheque_id)


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/deposit", response_model=ChequeResponse,
            summary="Deposit cheque",
            description="Record that a due cheque was deposited at the bank.")
async def deposit_cheque(
    cheque_id: UUID,
    request: DepositChequeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Deposit a cheque.
    """
    cheque = ChequeService.deposit(db, org_filter.organization_id, cheque_id, request)
    db.commit()
    db.refresh(cheque)
    return cheque


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/clear", response_model=ChequeResponse,
            summary="Clear cheque",
            description="Mark a deposited cheque as cleared and pay its linked invoice.")
async def clear_cheque(
    cheque_id: UUID,
    request: ClearChequeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Clear a cheque.
    """
    cheque = ChequeService.clear(db, org_filter.organization_id, cheque_id, request,
                                 user_id=current_user.user_id)
    db.commit()
    db.refresh(cheque)
    return cheque


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/bounce", response_model=ChequeResponse,
            summary="Bounce cheque",
            description="Record that a deposited cheque was returned unpaid.")
async def bounce_cheque(
    cheque_id: UUID,
    request: BounceChequeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Bounce a cheque.
    """
    cheque = ChequeService.bounce(db, org_filter.organization_id, cheque_id, request)
    db.commit()
    db.refresh(cheque)
    return cheque


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/replace", response_model=ChequeResponse, status_code=status.HTTP_201_CREATED,
            summary="Replace cheque",
            description="Register a replacement for a bounced cheque.")
async def replace_cheque(
    cheque_id: UUID,
    request: ReplaceChequeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Replace a bounced cheque.

    Returns the new cheque; the bounced one moves to REPLACED.
    """
    replacement = ChequeService.replace(db, org_filter.organization_id, cheque_id, request,
                                        user_id=current_user.user_id)
    db.commit()
    db.refresh(replacement)
    return replacement


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/withdraw", response_model=ChequeResponse,
            summary="Withdraw cheque",
            description="Return a cheque that has not been deposited to the tenant.")
async def withdraw_cheque(
    cheque_id: UUID,
    request: WithdrawChequeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Withdraw a cheque.
    """
    cheque = ChequeService.withdraw(db, org_filter.organization_id, cheque_id, request)
    db.commit()
    db.refresh(cheque)
    return cheque


# PUBLIC_INTERFACE
@router.post("/{cheque_id}/cancel", response_model=ChequeResponse,
            summary="Cancel cheque",
            description="Cancel a cheque registered by mistake.")
async def cancel_cheque(
    cheque_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Cancel a received cheque.
    """
    cheque = ChequeService.cancel(db, org_filter.organization_id, cheque_id)
    db.commit()
    db.refresh(cheque)
    return cheque
