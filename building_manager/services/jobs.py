"""
Daily maintenance jobs for one organization.

Each job runs on its own; a failing job is logged and the rest still run.
"""
import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session

from .announcement_service import AnnouncementService
from .cheque_service import ChequeService
from .compliance_service import ComplianceService
from .invoice_service import InvoiceService
from .pm_schedule_service import PMScheduleService
from .tenant_service import TenantService

logger = logging.getLogger(__name__)


def _daily_jobs(today: date) -> List[Tuple[str, Callable[[Session, UUID], int]]]:
    return [
        ("lease_statuses", lambda db, org: TenantService.refresh_lease_statuses(db, org, today)),
        ("overdue_invoices", lambda db, org: InvoiceService.mark_overdue(db, org, today)),
        ("late_fees", lambda db, org: InvoiceService.apply_late_fees(db, org)),
        ("scheduled_invoices", lambda db, org: InvoiceService.generate_scheduled_invoices(db, org, today)),
        ("pdc_due", lambda db, org: ChequeService.mark_due(db, org, today)),
        ("compliance_statuses", lambda db, org: ComplianceService.update_schedule_statuses(db, org, today)),
        ("pm_work_orders", lambda db, org: PMScheduleService.process_due(db, org, today)),
        ("expired_announcements", lambda db, org: AnnouncementService.expire_announcements(db, org)),
    ]


def run_daily_jobs(db: Session, organization_id: UUID, today: Optional[date] = None) -> Dict[str, int]:
    """
    Run every daily job and commit after each one.

    Returns:
        Records affected per job; -1 marks a job that failed
    """
    today = today or date.today()
    results = {}
    for name, job in _daily_jobs(today):
        try:
            results[name] = job(db, organization_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.error("Daily job %s failed for organization %s", name, organization_id, exc_info=True)
            results[name] = -1
    logger.info("Daily jobs finished for organization %s: %s", organization_id, results)
    return results
