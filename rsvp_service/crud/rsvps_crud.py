# rsvp_service/crud/rsvps_crud.py

# =================================================================================
# 💌 RSVP CRUD (Directory Maintainer, RSVP side)
# - create_rsvp(): the single insert used by the admission gate.
# - Paged listing with attendance filter, search and summary counters.
# - Admin update / delete, reminder bookkeeping.
# =================================================================================

from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from rsvp_service.crud.query_helpers import (
    PAGE_SIZE,
    apply_search,
    apply_sort,
    name_matches,
    paginate,
)
from rsvp_service.models import ATTENDANCE_TYPES, AttendanceTypeEnum, RSVP
from rsvp_service.schemas import (
    ActionResult,
    RSVPCounts,
    RSVPOut,
    RSVPPage,
    RSVPResult,
    RSVPUpdate,
)

RSVP_SORT_COLUMNS = (
    "first_name", "last_name", "email", "attending", "attendance_type",
    "reminder_sent", "created_at", "updated_at",
)

# ---------------------------------------------------------------------------------
# 🔎 Lookups
# ---------------------------------------------------------------------------------

def find_rsvp_by_name(db: Session, first_name: str, last_name: str) -> Optional[RSVP]:
    """Case-insensitive (first_name, last_name) lookup. Database errors propagate."""
    return db.query(RSVP).filter(name_matches(RSVP, first_name, last_name)).first()


def get_by_id(db: Session, rsvp_id: str) -> Optional[RSVP]:
    if not rsvp_id:
        return None
    return db.get(RSVP, rsvp_id)


def create_rsvp(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    attending: bool,
    attendance_type: str,
) -> RSVP:
    """Inserts one already-validated RSVP. Raises on store failure after rolling back."""
    rsvp = RSVP(
        first_name=first_name,
        last_name=last_name,
        email=email,
        attending=attending,
        attendance_type=AttendanceTypeEnum(attendance_type),
    )
    try:
        db.add(rsvp)
        db.commit()
        db.refresh(rsvp)
    except Exception:
        db.rollback()
        raise
    return rsvp

# ---------------------------------------------------------------------------------
# 📄 Listing, counters and export
# ---------------------------------------------------------------------------------

def _apply_attendance_filter(query, attendance_filter: Optional[str]):
    if attendance_filter in ATTENDANCE_TYPES:
        return query.filter(
            RSVP.attending.is_(True),
            RSVP.attendance_type == AttendanceTypeEnum(attendance_filter),
        )
    return query


def rsvp_counts(db: Session) -> RSVPCounts:
    """Summary counters over the whole RSVP table (not affected by filter or search)."""
    def attending_of(kind: AttendanceTypeEnum):
        return func.sum(case((RSVP.attending.is_(True) & (RSVP.attendance_type == kind), 1), else_=0))

    row = db.query(
        func.count(RSVP.id),
        func.sum(case((RSVP.attending.is_(True), 1), else_=0)),
        attending_of(AttendanceTypeEnum.church),
        attending_of(AttendanceTypeEnum.reception),
        attending_of(AttendanceTypeEnum.both),
    ).one()
    total, attending, church, reception, both = (int(v or 0) for v in row)
    return RSVPCounts(
        total=total,
        attending=attending,
        not_attending=total - attending,
        church=church,
        reception=reception,
        both=both,
    )


def list_rsvps(
    db: Session,
    page: int = 0,
    sort: Optional[str] = "created_at",
    direction: Optional[str] = "desc",
    search: Optional[str] = None,
    attendance_filter: Optional[str] = "all",
    page_size: int = PAGE_SIZE,
) -> RSVPPage:
    """One page of RSVPs plus the summary counters."""
    try:
        q = _apply_attendance_filter(apply_search(db.query(RSVP), RSVP, search), attendance_filter)
        total = q.count()
        rows = paginate(apply_sort(q, RSVP, sort, direction, RSVP_SORT_COLUMNS), page, page_size).all()
        return RSVPPage(
            data=[RSVPOut.model_validate(r) for r in rows],
            total=total,
            page=max(0, page),
            page_size=page_size,
            counts=rsvp_counts(db),
        )
    except Exception as e:
        logger.exception("RSVPs → error fetching page {}: {}", page, e)
        return RSVPPage(page=max(0, page), page_size=page_size, error="Failed to load RSVPs.")


def export_rsvps(
    db: Session,
    search: Optional[str] = None,
    attendance_filter: Optional[str] = "all",
) -> RSVPPage:
    """Every RSVP matching filter + search, ignoring pagination."""
    try:
        q = _apply_attendance_filter(apply_search(db.query(RSVP), RSVP, search), attendance_filter)
        q = apply_sort(q, RSVP, "created_at", "desc", RSVP_SORT_COLUMNS)
        rows = [RSVPOut.model_validate(r) for r in q.all()]
        return RSVPPage(data=rows, total=len(rows), page=0, page_size=len(rows))
    except Exception as e:
        logger.exception("RSVPs → error fetching export: {}", e)
        return RSVPPage(error="Failed to export RSVPs.")

# ---------------------------------------------------------------------------------
# ✏️ Update / delete
# ---------------------------------------------------------------------------------

def update_rsvp(db: Session, rsvp_id: str, updates: RSVPUpdate) -> RSVPResult:
    """Applies recognized fields; an attendance_type outside the allowed set is ignored."""
    changes = updates.model_dump(exclude_unset=True)
    try:
        rsvp = get_by_id(db, rsvp_id)
        if rsvp is None:
            return RSVPResult(success=False, error="RSVP not found.", reason="not_found")

        if isinstance(changes.get("first_name"), str):
            rsvp.first_name = changes["first_name"].strip()
        if isinstance(changes.get("last_name"), str):
            rsvp.last_name = changes["last_name"].strip()
        if isinstance(changes.get("email"), str):
            rsvp.email = changes["email"].strip().lower()
        if isinstance(changes.get("attending"), bool):
            rsvp.attending = changes["attending"]
        if changes.get("attendance_type") in ATTENDANCE_TYPES:
            rsvp.attendance_type = AttendanceTypeEnum(changes["attendance_type"])
        rsvp.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(rsvp)
    except Exception as e:
        db.rollback()
        logger.exception("RSVPs → error updating id={}: {}", rsvp_id, e)
        return RSVPResult(success=False, error="Failed to update RSVP.", reason="store_error")

    logger.info("RSVPs → updated | id={} | fields={}", rsvp_id, sorted(changes))
    return RSVPResult(success=True, data=RSVPOut.model_validate(rsvp))


def delete_rsvp(db: Session, rsvp_id: str) -> ActionResult:
    try:
        rsvp = get_by_id(db, rsvp_id)
        if rsvp is None:
            return ActionResult(success=False, error="RSVP not found.", reason="not_found")
        db.delete(rsvp)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("RSVPs → error deleting id={}: {}", rsvp_id, e)
        return ActionResult(success=False, error="Failed to delete RSVP.", reason="store_error")

    logger.info("RSVPs → deleted | id={}", rsvp_id)
    return ActionResult(success=True)

# ---------------------------------------------------------------------------------
# ⏰ Reminder bookkeeping
# ---------------------------------------------------------------------------------

def list_pending_reminders(db: Session) -> List[RSVP]:
    """Attending RSVPs that have not received a reminder yet, oldest first."""
    return (
        db.query(RSVP)
        .filter(RSVP.attending.is_(True), RSVP.reminder_sent.is_(False))
        .order_by(RSVP.created_at.asc(), RSVP.id.asc())
        .all()
    )


def mark_reminder_sent(db: Session, rsvp: RSVP) -> None:
    """Flags the reminder as delivered. Raises on store failure after rolling back."""
    now = datetime.utcnow()
    rsvp.reminder_sent = True
    rsvp.reminder_sent_at = now
    rsvp.updated_at = now
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
