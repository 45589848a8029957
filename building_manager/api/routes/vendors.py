"""
Vendor API routes.

Provides endpoints for the vendor registry, compliance documents, job
ratings, performance analytics and the vendor dashboard.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from pydantic import EmailStr
from sqlalchemy import String, cast
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    Vendor, VendorStatus, VendorDocument, WorkOrder, WorkOrderCategory, WorkOrderStatus
)
from ...schemas.vendor import (
    VendorCreateRequest, VendorUpdateRequest, VendorStatusUpdateRequest,
    VendorResponse, VendorsListResponse,
    VendorDocumentCreateRequest, VendorDocumentResponse, ExpiringDocumentResponse,
    VendorRatingRequest, VendorRatingResponse,
    VendorPerformanceResponse, VendorComparisonResponse, VendorComparisonItem,
    VendorDashboardResponse
)
from ...schemas.work_order import WorkOrdersListResponse
from ...schemas.common import AvailabilityResponse, StandardResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.vendor_service import VendorService, DOCUMENT_EXPIRY_WARNING_DAYS

router = APIRouter(prefix="/vendors", tags=["Vendors"])


# PUBLIC_INTERFACE
@router.post("/", response_model=VendorResponse, status_code=status.HTTP_201_CREATED,
            summary="Register vendor",
            description="Register a new maintenance vendor.")
async def create_vendor(
    request: VendorCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Register a vendor.

    Vendor emails are unique within the organization.
    """
    vendor = VendorService.create_vendor(db, org_filter.organization_id, request)
    db.commit()
    db.refresh(vendor)
    return vendor


# PUBLIC_INTERFACE
@router.get("/", response_model=VendorsListResponse,
           summary="List vendors",
           description="Get a paginated list of vendors with optional filtering.")
async def list_vendors(
    vendor_status: Optional[VendorStatus] = Query(None, alias="status", description="Filter by status"),
    category: Optional[WorkOrderCategory] = Query(None, description="Filter by service category"),
    q: Optional[str] = Query(None, description="Search by company, contact or email"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List vendors in the current organization.
    """
    query = org_filter.filter_query(db.query(Vendor), Vendor).filter(Vendor.is_deleted == False)

    if vendor_status:
        query = query.filter(Vendor.status == vendor_status)

    if category:
        query = query.filter(cast(Vendor.service_categories, String).like(f'%"{category.value}"%'))

    if q:
        query = query.filter(
            (Vendor.company_name.ilike(f"%{q}%")) |
            (Vendor.contact_person_name.ilike(f"%{q}%")) |
            (Vendor.email.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    vendors = query.order_by(Vendor.company_name).offset(offset).limit(per_page).all()

    return VendorsListResponse(items=vendors, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/email-availability", response_model=AvailabilityResponse,
           summary="Check vendor email",
           description="Check whether an email is free for a vendor in this organization.")
async def check_email_availability(
    email: EmailStr = Query(..., description="Email to check"),
    exclude_id: Optional[UUID] = Query(None, description="Vendor to ignore when editing"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Check vendor email availability.
    """
    available = VendorService.is_email_available(db, org_filter.organization_id, email, exclude_id)
    return AvailabilityResponse(available=available)


# PUBLIC_INTERFACE
@router.get("/dashboard", response_model=VendorDashboardResponse,
           summary="Vendor dashboard",
           description="KPIs, jobs by specialization, performance tiers, expiring documents and top vendors.")
async def get_vendor_dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get the vendor dashboard.
    """
    return VendorDashboardResponse(**VendorService.dashboard(db, org_filter.organization_id))


# PUBLIC_INTERFACE
@router.get("/top-rated", response_model=List[VendorResponse],
           summary="Top rated vendors",
           description="Highest rated active vendors, optionally for one service category.")
async def get_top_rated_vendors(
    category: Optional[WorkOrderCategory] = Query(None, description="Service category"),
    limit: int = Query(5, ge=1, le=20, description="Number of vendors"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get top rated vendors.
    """
    return VendorService.top_rated(
        db, org_filter.organization_id, category.value if category else None, limit
    )


# PUBLIC_INTERFACE
@router.get("/compare", response_model=VendorComparisonResponse,
           summary="Compare vendors",
           description="Side by side performance of two to four vendors.")
async def compare_vendors(
    vendor_ids: List[UUID] = Query(..., description="Vendors to compare"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Compare vendors.

    Each entry is flagged when it has the best rating, the best on-time
    rate, the lowest hourly rate or the most completed jobs.
    """
    entries = VendorService.compare(db, org_filter.organization_id, vendor_ids)
    return VendorComparisonResponse(vendors=[VendorComparisonItem(**entry) for entry in entries])


# PUBLIC_INTERFACE
@router.get("/documents/expiring", response_model=List[ExpiringDocumentResponse],
           summary="Expiring vendor documents",
           description="Vendor documents expiring within the given number of days, expired ones included.")
async def list_expiring_documents(
    days: int = Query(DOCUMENT_EXPIRY_WARNING_DAYS, ge=1, le=365, description="Look-ahead window in days"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List expiring vendor documents.
    """
    return VendorService.expiring_documents(db, org_filter.organization_id, days=days)


# PUBLIC_INTERFACE
@router.post("/ratings/{work_order_id}", response_model=VendorRatingResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Rate vendor",
            description="Rate the vendor who completed a work order.")
async def submit_rating(
    work_order_id: UUID,
    request: VendorRatingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Submit a rating for a completed work order.

    Each work order can be rated once; the vendor's overall rating is
    recalculated.
    """
    rating = VendorService.submit_rating(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(rating)
    return rating


# PUBLIC_INTERFACE
@router.get("/ratings/{work_order_id}", response_model=VendorRatingResponse,
           summary="Get rating",
           description="Get the vendor rating given for a work order.")
async def get_rating(
    work_order_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get a work order's rating.
    """
    return VendorService.get_rating(db, org_filter.organization_id, work_order_id)


# PUBLIC_INTERFACE
@router.put("/ratings/{work_order_id}", response_model=VendorRatingResponse,
           summary="Update rating",
           description="Change a rating within seven days of submitting it.")
async def update_rating(
    work_order_id: UUID,
    request: VendorRatingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a rating.
    """
    rating = VendorService.update_rating(
        db, org_filter.organization_id, work_order_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(rating)
    return rating


# PUBLIC_INTERFACE
@router.get("/{vendor_id}", response_model=VendorResponse,
           summary="Get vendor details",
           description="Get information about a specific vendor.")
async def get_vendor(
    vendor_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get vendor details.
    """
    return VendorService.get_vendor(db, org_filter.organization_id, vendor_id)


# PUBLIC_INTERFACE
@router.put("/{vendor_id}", response_model=VendorResponse,
           summary="Update vendor",
           description="Update vendor information.")
async def update_vendor(
    vendor_id: UUID,
    request: VendorUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update vendor information.

    Only provided fields will be updated.
    """
    vendor = VendorService.update_vendor(db, org_filter.organization_id, vendor_id, request)
    db.commit()
    db.refresh(vendor)
    return vendor


# PUBLIC_INTERFACE
@router.delete("/{vendor_id}", response_model=StandardResponse,
              summary="Delete vendor",
              description="Soft delete a vendor without active work orders.")
async def delete_vendor(
    vendor_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Delete a vendor.

    The record is kept for history and marked inactive.
    """
    VendorService.delete_vendor(db, org_filter.organization_id, vendor_id)
    db.commit()
    return StandardResponse(message="Vendor deleted successfully")


# PUBLIC_INTERFACE
@router.patch("/{vendor_id}/status", response_model=VendorResponse,
             summary="Update vendor status",
             description="Activate, deactivate or suspend a vendor.")
async def update_vendor_status(
    vendor_id: UUID,
    request: VendorStatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update vendor status.
    """
    vendor = VendorService.update_status(db, org_filter.organization_id, vendor_id, request.status)
    db.commit()
    db.refresh(vendor)
    return vendor


# PUBLIC_INTERFACE
@router.get("/{vendor_id}/work-orders", response_model=WorkOrdersListResponse,
           summary="Vendor work orders",
           description="Work orders currently assigned to a vendor.")
async def list_vendor_work_orders(
    vendor_id: UUID,
    work_order_status: Optional[WorkOrderStatus] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List a vendor's work orders.
    """
    vendor = VendorService.get_vendor(db, org_filter.organization_id, vendor_id)
    query = db.query(WorkOrder).filter(WorkOrder.assigned_to == vendor.id)
    if work_order_status:
        query = query.filter(WorkOrder.status == work_order_status)

    total = query.count()
    offset = (page - 1) * per_page
    work_orders = query.order_by(WorkOrder.created_at.desc()).offset(offset).limit(per_page).all()

    return WorkOrdersListResponse(items=work_orders, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.post("/{vendor_id}/documents", response_model=VendorDocumentResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Add vendor document",
            description="Record a trade license, insurance, certification or ID document.")
async def add_vendor_document(
    vendor_id: UUID,
    request: VendorDocumentCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Add a vendor document.

    Only the file reference is stored.
    """
    document = VendorService.add_document(
        db, org_filter.organization_id, vendor_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(document)
    return document


# PUBLIC_INTERFACE
@router.get("/{vendor_id}/documents", response_model=List[VendorDocumentResponse],
           summary="List vendor documents",
           description="List the documents of a vendor.")
async def list_vendor_documents(
    vendor_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List vendor documents.
    """
    vendor = VendorService.get_vendor(db, org_filter.organization_id, vendor_id)
    return db.query(VendorDocument).filter(VendorDocument.vendor_id == vendor.id) \
        .order_by(VendorDocument.created_at.desc()).all()


# PUBLIC_INTERFACE
@router.get("/{vendor_id}/performance", response_model=VendorPerformanceResponse,
           summary="Vendor performance",
           description="Completion, on-time, payment and rating statistics for a vendor.")
async def get_vendor_performance(
    vendor_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get vendor performance.
    """
    return VendorPerformanceResponse(**VendorService.performance(db, org_filter.organization_id, vendor_id))
