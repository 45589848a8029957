"""
Announcement Service - drafting, publishing and expiring tenant notices.
"""
import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

from ..database.models import Announcement, AnnouncementStatus
from ..schemas.announcement import AnnouncementCreateRequest, AnnouncementUpdateRequest
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

COPY_EXPIRY_DAYS = 30
TITLE_MAX_LENGTH = 200
ARCHIVABLE_STATUSES = (AnnouncementStatus.PUBLISHED, AnnouncementStatus.EXPIRED)


class AnnouncementService:
    """Service class for announcement business logic."""

    @staticmethod
    def get_announcement(db: Session, organization_id: UUID, announcement_id: UUID) -> Announcement:
        announcement = db.query(Announcement).filter(
            Announcement.id == announcement_id,
            Announcement.organization_id == organization_id
        ).first()
        if not announcement:
            raise NotFoundError("Announcement", announcement_id)
        return announcement

    @staticmethod
    def _require_draft(announcement: Announcement, action: str) -> None:
        if announcement.status != AnnouncementStatus.DRAFT:
            raise BusinessRuleError(f"Cannot {action} announcement in status: {announcement.status.value}")

    @staticmethod
    def create_announcement(db: Session, organization_id: UUID, request: AnnouncementCreateRequest,
                            user_id: Optional[UUID] = None) -> Announcement:
        announcement = Announcement(
            organization_id=organization_id,
            announcement_number=numbering.next_number(
                db, Announcement, "announcement_number", organization_id, numbering.ANNOUNCEMENT
            ),
            status=AnnouncementStatus.DRAFT,
            created_by=user_id,
            **request.model_dump(),
        )
        db.add(announcement)
        db.flush()
        logger.info("Created announcement %s", announcement.announcement_number)
        return announcement

    @staticmethod
    def update_announcement(db: Session, organization_id: UUID, announcement_id: UUID,
                            request: AnnouncementUpdateRequest) -> Announcement:
        announcement = AnnouncementService.get_announcement(db, organization_id, announcement_id)
        AnnouncementService._require_draft(announcement, "edit")
        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(announcement, field, value)
        db.flush()
        return announcement

    @staticmethod
    def delete_announcement(db: Session, organization_id: UUID, announcement_id: UUID) -> None:
        announcement = AnnouncementService.get_announcement(db, organization_id, announcement_id)
        AnnouncementService._require_draft(announcement, "delete")
        db.delete(announcement)
        db.flush()
        logger.info("Deleted announcement %s", announcement.announcement_number)

    @staticmethod
    def publish(db: Session, organization_id: UUID, announcement_id: UUID) -> Announcement:
        announcement = AnnouncementService.get_announcement(db, organization_id, announcement_id)
        AnnouncementService._require_draft(announcement, "publish")
        now = utcnow()
        if as_utc(announcement.expires_at) <= now:
            raise BusinessRuleError("Cannot publish announcement with past expiry date")
        announcement.status = AnnouncementStatus.PUBLISHED
        announcement.published_at = now
        db.flush()
        logger.info("Published announcement %s", announcement.announcement_number)
        return announcement

    @staticmethod
    def archive(db: Session, organization_id: UUID, announcement_id: UUID) -> Announcement:
        announcement = AnnouncementService.get_announcement(db, organization_id, announcement_id)
        if announcement.status not in ARCHIVABLE_STATUSES:
            raise BusinessRuleError(f"Cannot archive announcement in status: {announcement.status.value}")
        announcement.status = AnnouncementStatus.ARCHIVED
        db.flush()
        logger.info("Archived announcement %s", announcement.announcement_number)
        return announcement

    @staticmethod
    def copy(db: Session, organization_id: UUID, announcement_id: UUID,
             user_id: Optional[UUID] = None) -> Announcement:
        """New draft with the same content; the expiry restarts 30 days out."""
        original = AnnouncementService.get_announcement(db, organization_id, announcement_id)
        copy = Announcement(
            organization_id=organization_id,
            announcement_number=numbering.next_number(
                db, Announcement, "announcement_number", organization_id, numbering.ANNOUNCEMENT
            ),
            title=f"Copy of {original.title}"[:TITLE_MAX_LENGTH],
            message=original.message,
            template_used=original.template_used,
            expires_at=utcnow() + timedelta(days=COPY_EXPIRY_DAYS),
            status=AnnouncementStatus.DRAFT,
            attachment_url=original.attachment_url,
            created_by=user_id,
        )
        db.add(copy)
        db.flush()
        logger.info("Copied announcement %s as %s", original.announcement_number, copy.announcement_number)
        return copy

    @staticmethod
    def active_query(db: Session, organization_id: UUID):
        """Published announcements that have not yet expired."""
        return db.query(Announcement).filter(
            Announcement.organization_id == organization_id,
            Announcement.status == AnnouncementStatus.PUBLISHED,
            Announcement.expires_at > utcnow()
        )

    @staticmethod
    def active_count(db: Session, organization_id: UUID) -> int:
        return AnnouncementService.active_query(db, organization_id).count()

    @staticmethod
    def expire_announcements(db: Session, organization_id: UUID) -> int:
        now = utcnow()
        published = db.query(Announcement).filter(
            Announcement.organization_id == organization_id,
            Announcement.status == AnnouncementStatus.PUBLISHED
        ).all()
        count = 0
        for announcement in published:
            if as_utc(announcement.expires_at) <= now:
                announcement.status = AnnouncementStatus.EXPIRED
                count += 1
        db.flush()
        logger.info("Expired %d announcements", count)
        return count
