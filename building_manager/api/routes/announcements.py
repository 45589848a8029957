"""
Announcement API routes.

Provides endpoints for drafting, publishing, archiving and copying tenant
announcements.
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Announcement, AnnouncementStatus
from ...schemas.announcement import (
    AnnouncementCreateRequest, AnnouncementUpdateRequest, AnnouncementResponse, AnnouncementsListResponse
)
from ...schemas.common import StandardResponse, CountResponse
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.announcement_service import AnnouncementService

router = APIRouter(prefix="/announcements", tags=["Announcements"])


# PUBLIC_INTERFACE
@router.post("/", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED,
            summary="Create announcement",
            description="Create a draft announcement.")
async def create_announcement(
    request: AnnouncementCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a draft announcement.
    """
    announcement = AnnouncementService.create_announcement(
        db, org_filter.organization_id, request, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(announcement)
    return announcement


# PUBLIC_INTERFACE
@router.get("/", response_model=AnnouncementsListResponse,
           summary="List announcements",
           description="Get a paginated list of announcements with optional filtering.")
async def list_announcements(
    announcement_status: Optional[AnnouncementStatus] = Query(None, alias="status", description="Filter by status"),
    q: Optional[str] = Query(None, description="Search by title or message"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List announcements in the current organization.
    """
    query = org_filter.filter_query(db.query(Announcement), Announcement)
    if announcement_status:
        query = query.filter(Announcement.status == announcement_status)
    if q:
        query = query.filter(
            (Announcement.title.ilike(f"%{q}%")) |
            (Announcement.message.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    announcements = query.order_by(Announcement.created_at.desc()).offset(offset).limit(per_page).all()

    return AnnouncementsListResponse(items=announcements, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/active", response_model=AnnouncementsListResponse,
           summary="Active announcements",
           description="Published announcements that have not expired, as tenants see them.")
async def list_active_announcements(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List active announcements.
    """
    query = AnnouncementService.active_query(db, org_filter.organization_id)

    total = query.count()
    offset = (page - 1) * per_page
    announcements = query.order_by(Announcement.published_at.desc()).offset(offset).limit(per_page).all()

    return AnnouncementsListResponse(items=announcements, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/active/count", response_model=CountResponse,
           summary="Active announcement count",
           description="Number of published announcements that have not expired.")
async def count_active_announcements(
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Count active announcements.
    """
    return CountResponse(count=AnnouncementService.active_count(db, org_filter.organization_id))


# PUBLIC_INTERFACE
@router.get("/{announcement_id}", response_model=AnnouncementResponse,
           summary="Get announcement",
           description="Get information about a specific announcement.")
async def get_announcement(
    announcement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get announcement details.
    """
    return AnnouncementService.get_announcement(db, org_filter.organization_id, announcement_id)


# PUBLIC_INTERFACE
@router.put("/{announcement_id}", response_model=AnnouncementResponse,
           summary="Update announcement",
           description="Update a draft announcement.")
async def update_announcement(
    announcement_id: UUID,
    request: AnnouncementUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update a draft announcement.
    """
    announcement = AnnouncementService.update_announcement(
        db, org_filter.organization_id, announcement_id, request
    )
    db.commit()
    db.refresh(announcement)
    return announcement


# PUBLIC_INTERFACE
@router.delete("/{announcement_id}", response_model=StandardResponse,
              summary="Delete announcement",
              description="Delete a draft announcement.")
async def delete_announcement(
    announcement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Delete a draft announcement.
    """
    AnnouncementService.delete_announcement(db, org_filter.organization_id, announcement_id)
    db.commit()
    return StandardResponse(message="Announcement deleted successfully")


# PUBLIC_INTERFACE
@router.post("/{announcement_id}/publish", response_model=AnnouncementResponse,
            summary="Publish announcement",
            description="Publish a draft announcement whose expiry is still in the future.")
async def publish_announcement(
    announcement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Publish an announcement.
    """
    announcement = AnnouncementService.publish(db, org_filter.organization_id, announcement_id)
    db.commit()
    db.refresh(announcement)
    return announcement


# PUBLIC_INTERFACE
@router.post("/{announcement_id}/archive", response_model=AnnouncementResponse,
            summary="Archive announcement",
            description="Archive a published or expired announcement.")
async def archive_announcement(
    announcement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Archive an announcement.
    """
    announcement = AnnouncementService.archive(db, org_filter.organization_id, announcement_id)
    db.commit()
    db.refresh(announcement)
    return announcement


# PUBLIC_INTERFACE
@router.post("/{announcement_id}/copy", response_model=AnnouncementResponse,
            status_code=status.HTTP_201_CREATED,
            summary="Copy announcement",
            description="Create a new draft from an existing announcement.")
async def copy_announcement(
    announcement_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Copy an announcement.

    The copy expires 30 days from now.
    """
    announcement = AnnouncementService.copy(
        db, org_filter.organization_id, announcement_id, user_id=current_user.user_id
    )
    db.commit()
    db.refresh(announcement)
    return announcement
