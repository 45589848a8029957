"""
Scheduled job API routes.

Lets an administrator trigger the daily maintenance jobs for their
organization.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...schemas.common import JobRunResponse
from ...auth.dependencies import get_current_admin_user, get_org_filter, CurrentUser, OrganizationFilter
from ...services.jobs import run_daily_jobs

router = APIRouter(prefix="/jobs", tags=["Jobs"])


# PUBLIC_INTERFACE
@router.post("/daily", response_model=JobRunResponse,
            summary="Run daily jobs",
            description="Refresh lease and compliance statuses, process invoices, mark cheques due, "
                        "generate PM work orders "
                        "and expire announcements (admin only).")
async def run_daily(
    current_user: CurrentUser = Depends(get_current_admin_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Run the daily jobs.

    Each job commits on its own; a failed job is reported as -1.
    """
    return JobRunResponse(results=run_daily_jobs(db, org_filter.organization_id))
