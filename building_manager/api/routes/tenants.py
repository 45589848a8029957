"""
Tenant (renter) API routes.

Provides endpoints for onboarding renters onto units and maintaining their
profiles.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from pydantic import EmailStr
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Tenant, TenantStatus
from ...schemas.tenant import (
    TenantCreateRequest, TenantUpdateRequest, TenantResponse, TenantsListResponse
)
from ...schemas.common import AvailabilityResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.tenant_service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants", tags=["Tenants"])


# PUBLIC_INTERFACE
@router.post("/", response_model=TenantResponse, status_code=status.HTTP_201_CREATED,
            summary="Onboard tenant",
            description="Create a tenant from the merged onboarding wizard data and occupy the unit.")
async def create_tenant(
    request: TenantCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Onboard a new tenant.

    The unit must belong to the selected property and be available; it
    becomes occupied once the tenant is created.
    """
    tenant = TenantService.create_tenant(db, org_filter.organization_id, request)
    db.commit()
    db.refresh(tenant)
    return tenant


# PUBLIC_INTERFACE
@router.get("/", response_model=TenantsListResponse,
           summary="List tenants",
           description="Get a paginated list of tenants with search and filters.")
async def list_tenants(
    tenant_status: Optional[TenantStatus] = Query(None, alias="status", description="Filter by tenant status"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    q: Optional[str] = Query(None, description="Search by name, email or tenant number"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List tenants in the current organization.
    """
    query = org_filter.filter_query(db.query(Tenant), Tenant)

    if tenant_status:
        query = query.filter(Tenant.status == tenant_status)

    if property_id:
        query = query.filter(Tenant.property_id == property_id)

    if q:
        query = query.filter(
            (Tenant.first_name.ilike(f"%{q}%")) |
            (Tenant.last_name.ilike(f"%{q}%")) |
            (Tenant.email.ilike(f"%{q}%")) |
            (Tenant.tenant_number.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    tenants = query.order_by(Tenant.created_at.desc()).offset(offset).limit(per_page).all()

    return TenantsListResponse(items=tenants, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/email-availability", response_model=AvailabilityResponse,
           summary="Check tenant email",
           description="Check whether an email is free for a new tenant in this organization.")
async def check_email_availability(
    email: EmailStr = Query(..., description="Email to check"),
    exclude_id: Optional[UUID] = Query(None, description="Tenant to ignore when editing"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Check tenant email availability.
    """
    available = TenantService.is_email_available(db, org_filter.organization_id, email, exclude_id)
    return AvailabilityResponse(available=available)


# PUBLIC_INTERFACE
@router.get("/by-property/{property_id}", response_model=TenantsListResponse,
           summary="List tenants of a property",
           description="Get the tenants living in a property.")
async def list_property_tenants(
    property_id: UUID,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List tenants of a property.
    """
    query = org_filter.filter_query(db.query(Tenant), Tenant).filter(Tenant.property_id == property_id)

    total = query.count()
    offset = (page - 1) * per_page
    tenants = query.order_by(Tenant.last_name, Tenant.first_name).offset(offset).limit(per_page).all()

    return TenantsListResponse(items=tenants, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/{tenant_id}", response_model=TenantResponse,
           summary="Get tenant details",
           description="Get the full profile, lease and rent breakdown of a tenant.")
async def get_tenant(
    tenant_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get tenant details.
    """
    return TenantService.get_tenant(db, org_filter.organization_id, tenant_id)


# PUBLIC_INTERFACE
@router.put("/{tenant_id}", response_model=TenantResponse,
           summary="Update tenant",
           description="Update a tenant's contact information.")
async def update_tenant(
    tenant_id: UUID,
    request: TenantUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update tenant contact information.

    Lease and rent terms change through lease extension, not here.
    """
    tenant = TenantService.update_tenant(db, org_filter.organization_id, tenant_id, request)
    db.commit()
    db.refresh(tenant)
    return tenant
