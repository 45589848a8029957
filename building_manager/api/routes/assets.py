"""
Asset API routes.

Provides endpoints for the equipment register, warranty tracking and asset
maintenance history.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Asset, AssetCategory, AssetStatus
from ...schemas.asset import (
    AssetCreateRequest, AssetUpdateRequest, AssetStatusUpdateRequest,
    AssetResponse, AssetDetailResponse, AssetsListResponse,
    ExpiringWarrantyResponse, AssetOption
)
from ...schemas.work_order import WorkOrderResponse
from ...schemas.common import StandardResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.asset_service import AssetService, WARRANTY_WARNING_DAYS

router = APIRouter(prefix="/assets", tags=["Assets"])


def _detail(db: Session, asset: Asset) -> AssetDetailResponse:
    return AssetDetailResponse(
        **AssetResponse.model_validate(asset).model_dump(),
        **AssetService.maintenance_summary(db, asset)
    )


# PUBLIC_INTERFACE
@router.post("/", response_model=AssetResponse, status_code=status.HTTP_201_CREATED,
            summary="Register asset",
            description="Register equipment installed in a property.")
async def create_asset(
    request: AssetCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Register a new asset.
    """
    asset = AssetService.create_asset(db, org_filter.organization_id, request, user_id=current_user.user_id)
    db.commit()
    db.refresh(asset)
    return asset


# PUBLIC_INTERFACE
@router.get("/", response_model=AssetsListResponse,
           summary="List assets",
           description="Get a paginated list of assets with search and filters.")
async def list_assets(
    category: Optional[AssetCategory] = Query(None, description="Filter by category"),
    asset_status: Optional[AssetStatus] = Query(None, alias="status", description="Filter by status"),
    property_id: Optional[UUID] = Query(None, description="Filter by property"),
    q: Optional[str] = Query(None, description="Search by name, number, manufacturer or serial number"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List assets in the current organization.
    """
    query = org_filter.filter_query(db.query(Asset), Asset).filter(Asset.is_deleted == False)

    if category:
        query = query.filter(Asset.category == category)
    if asset_status:
        query = query.filter(Asset.status == asset_status)
    if property_id:
        query = query.filter(Asset.property_id == property_id)
    if q:
        query = query.filter(
            (Asset.asset_name.ilike(f"%{q}%")) |
            (Asset.asset_number.ilike(f"%{q}%")) |
            (Asset.manufacturer.ilike(f"%{q}%")) |
            (Asset.serial_number.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    assets = query.order_by(Asset.created_at.desc()).offset(offset).limit(per_page).all()

    return AssetsListResponse(items=assets, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/expiring-warranties", response_model=List[ExpiringWarrantyResponse],
           summary="Expiring warranties",
           description="Assets whose warranty ends within the given number of days.")
async def list_expiring_warranties(
    days: int = Query(WARRANTY_WARNING_DAYS, ge=1, le=365, description="Look-ahead window in days"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List assets with expiring warranties.
    """
    return AssetService.expiring_warranties(db, org_filter.organization_id, days=days)


# PUBLIC_INTERFACE
@router.get("/options", response_model=List[AssetOption],
           summary="Asset dropdown options",
           description="Assets of a property for selection in work order forms.")
async def list_asset_options(
    property_id: UUID = Query(..., description="Property to list assets for"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List asset options for a property.

    Disposed assets are left out.
    """
    return AssetService.dropdown_options(db, org_filter.organization_id, property_id)


# PUBLIC_INTERFACE
@router.get("/{asset_id}", response_model=AssetDetailResponse,
           summary="Get asset details",
           description="Get an asset with its work order count and total maintenance cost.")
async def get_asset(
    asset_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get asset details.
    """
    asset = AssetService.get_asset(db, org_filter.organization_id, asset_id)
    return _detail(db, asset)


# PUBLIC_INTERFACE
@router.put("/{asset_id}", response_model=AssetResponse,
           summary="Update asset",
           description="Update asset information; disposed assets cannot be edited.")
async def update_asset(
    asset_id: UUID,
    request: AssetUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update asset information.
    """
    asset = AssetService.update_asset(db, org_filter.organization_id, asset_id, request)
    db.commit()
    db.refresh(asset)
    return asset


# PUBLIC_INTERFACE
@router.patch("/{asset_id}/status", response_model=AssetResponse,
             summary="Update asset status",
             description="Change an asset's status and record the reason.")
async def update_asset_status(
    asset_id: UUID,
    request: AssetStatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update asset status.
    """
    asset = AssetService.update_status(
        db, org_filter.organization_id, asset_id, request.status, request.reason
    )
    db.commit()
    db.refresh(asset)
    return asset


# PUBLIC_INTERFACE
@router.delete("/{asset_id}", response_model=StandardResponse,
              summary="Delete asset",
              description="Soft delete an asset.")
async def delete_asset(
    asset_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Delete an asset.
    """
    AssetService.delete_asset(db, org_filter.organization_id, asset_id)
    db.commit()
    return StandardResponse(message="Asset deleted successfully")


# PUBLIC_INTERFACE
@router.get("/{asset_id}/maintenance-history", response_model=List[WorkOrderResponse],
           summary="Asset maintenance history",
           description="Work orders raised against an asset, newest first.")
async def get_maintenance_history(
    asset_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get asset maintenance history.
    """
    return AssetService.maintenance_history(db, org_filter.organization_id, asset_id)
