"""
Human-readable document numbers.

Numbers look like ``INV-2026-0042``: a prefix, the year, and a sequence
that restarts every year and is scoped to one organization.
"""
from datetime import date
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

WORK_ORDER = "WO"
INVOICE = "INV"
PAYMENT = "PMT"
TENANT = "TNT"
EXTENSION = "EXT"
ASSET = "AST"
VENDOR = "VND"
ANNOUNCEMENT = "ANN"
VIOLATION = "VIO"
COMPLIANCE = "CMP"
COMPLIANCE_SCHEDULE = "CMS"


def format_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:04d}"


def next_number(db: Session, model, field: str, organization_id: UUID, prefix: str,
                on_date: Optional[date] = None) -> str:
    """
    Allocate the next number for ``model.field``.

    Pending objects must be flushed before calling this again in the same
    transaction, since the session does not autoflush.
    """
    year = (on_date or date.today()).year
    stem = f"{prefix}-{year}-"
    column = getattr(model, field)
    existing = db.query(column).filter(
        model.organization_id == organization_id,
        column.like(f"{stem}%")
    ).all()

    highest = 0
    for (value,) in existing:
        suffix = value[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return format_number(prefix, year, highest + 1)
