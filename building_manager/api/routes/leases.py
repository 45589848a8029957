"""
Lease API routes.

Provides endpoints for lease extension, extension history, expiring lease
tracking and tenant renewal requests.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import RenewalRequest, RenewalRequestStatus
from ...schemas.lease import (
    LeaseExtensionRequest, LeaseExtensionResponse, CurrentLeaseResponse,
    ExpiringLeaseItem, ExpiringLeasesResponse,
    RenewalRequestCreate, RenewalRejectRequest, RenewalRequestResponse
)
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.tenant_service import TenantService, LeaseService
from ...services.lease_calculations import (
    days_until_expiry, expiry_urgency_level, default_new_end_date
)

router = APIRouter(prefix="/leases", tags=["Leases"])


# PUBLIC_INTERFACE
@router.get("/expiring", response_model=ExpiringLeasesResponse,
           summary="List expiring leases",
           description="Leases ending within the given number of days, soonest first, with urgency.")
async def list_expiring_leases(
    days: int = Query(60, ge=1, le=365, description="Look-ahead window in days"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List leases that expire soon.
    """
    items = []
    for tenant in LeaseService.expiring_leases(db, org_filter.organization_id, days):
        remaining = days_until_expiry(tenant.lease_end_date)
        items.append(ExpiringLeaseItem(
            tenant_id=tenant.id,
            tenant_number=tenant.tenant_number,
            tenant_name=tenant.full_name,
            unit_id=tenant.unit_id,
            lease_end_date=tenant.lease_end_date,
            days_remaining=remaining,
            urgency=expiry_urgency_level(remaining),
            total_monthly_rent=tenant.total_monthly_rent
        ))
    return ExpiringLeasesResponse(items=items, total=len(items))


# PUBLIC_INTERFACE
@router.get("/renewal-requests", response_model=List[RenewalRequestResponse],
           summary="List renewal requests",
           description="List renewal requests, optionally filtered by status.")
async def list_renewal_requests(
    request_status: Optional[RenewalRequestStatus] = Query(None, alias="status", description="Filter by status"),
    tenant_id: Optional[UUID] = Query(None, description="Filter by tenant"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List renewal requests.
    """
    query = org_filter.filter_query(db.query(RenewalRequest), RenewalRequest)
    if request_status:
        query = query.filter(RenewalRequest.status == request_status)
    if tenant_id:
        query = query.filter(RenewalRequest.tenant_id == tenant_id)
    return query.order_by(RenewalRequest.created_at.desc()).all()


# PUBLIC_INTERFACE
@router.post("/renewal-requests/{request_id}/approve", response_model=RenewalRequestResponse,
            summary="Approve renewal request",
            description="Approve a pending renewal request.")
async def approve_renewal_request(
    request_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Approve a renewal request.

    Approval only marks the request; the lease itself is extended
    separately.
    """
    renewal = LeaseService.process_renewal_request(
        db, org_filter.organization_id, request_id, approve=True, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(renewal)
    return renewal


# PUBLIC_INTERFACE
@router.post("/renewal-requests/{request_id}/reject", response_model=RenewalRequestResponse,
            summary="Reject renewal request",
            description="Reject a pending renewal request with a reason.")
async def reject_renewal_request(
    request_id: UUID,
    request: RenewalRejectRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Reject a renewal request.
    """
    renewal = LeaseService.process_renewal_request(
        db, org_filter.organization_id, request_id, approve=False,
        user_id=current_user.user_id, reason=request.reason
    )
    db.commit()
    db.refresh(renewal)
    return renewal


# PUBLIC_INTERFACE
@router.get("/{tenant_id}/current", response_model=CurrentLeaseResponse,
           summary="Get current lease",
           description="Current lease summary with days remaining and a suggested new end date.")
async def get_current_lease(
    tenant_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the current lease of a tenant.
    """
    tenant = TenantService.get_tenant(db, org_filter.organization_id, tenant_id)
    remaining = days_until_expiry(tenant.lease_end_date)
    return CurrentLeaseResponse(
        tenant_id=tenant.id,
        tenant_number=tenant.tenant_number,
        tenant_name=tenant.full_name,
        property_id=tenant.property_id,
        unit_id=tenant.unit_id,
        lease_start_date=tenant.lease_start_date,
        lease_end_date=tenant.lease_end_date,
        lease_duration=tenant.lease_duration,
        total_monthly_rent=tenant.total_monthly_rent,
        days_remaining=remaining,
        urgency=expiry_urgency_level(remaining),
        status=tenant.status,
        suggested_new_end_date=default_new_end_date(tenant.lease_end_date)
    )


# PUBLIC_INTERFACE
@router.post("/{tenant_id}/extend", response_model=LeaseExtensionResponse, status_code=status.HTTP_201_CREATED,
            summary="Extend lease",
            description="Extend a tenant's lease and apply a rent adjustment.")
async def extend_lease(
    tenant_id: UUID,
    request: LeaseExtensionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Extend a lease.

    Only ACTIVE and EXPIRING_SOON tenants can be extended, and the new end
    date must fall after the current one.
    """
    extension = LeaseService.extend_lease(
        db, org_filter.organization_id, tenant_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(extension)
    return extension


# PUBLIC_INTERFACE
@router.get("/{tenant_id}/extensions", response_model=List[LeaseExtensionResponse],
           summary="Get extension history",
           description="List every extension recorded for a tenant, newest first.")
async def get_extension_history(
    tenant_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get lease extension history.
    """
    return LeaseService.extension_history(db, org_filter.organization_id, tenant_id)


# PUBLIC_INTERFACE
@router.post("/{tenant_id}/renewal-requests", response_model=RenewalRequestResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Request renewal",
            description="Submit a renewal request on behalf of a tenant.")
async def create_renewal_request(
    tenant_id: UUID,
    request: RenewalRequestCreate,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a renewal request.

    A tenant can only have one pending request at a time.
    """
    renewal = LeaseService.create_renewal_request(db, org_filter.organization_id, tenant_id, request)
    db.commit()
    db.refresh(renewal)
    return renewal
