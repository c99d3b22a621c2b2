# rsvp_service/crud/guests_crud.py

# =================================================================================
# 🧩 Guest list CRUD (Directory Maintainer, guest side)
# - find_guest_by_name(): the ONE soft-join lookup used by admission,
#   confirmation and reminders.
# - Paged listing / export with allow-listed sort and name search.
# - create / update / delete with uniform result objects.
# - import_guests_csv(): best-effort line-by-line CSV import.
# =================================================================================

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from rsvp_service.csv_io import iter_import_lines
from rsvp_service.crud.query_helpers import (
    PAGE_SIZE,
    apply_search,
    apply_sort,
    name_matches,
    paginate,
)
from rsvp_service.models import Guest, RSVP
from rsvp_service.schemas import (
    ActionResult,
    GuestCreate,
    GuestOut,
    GuestPage,
    GuestResult,
    GuestUpdate,
    ImportResult,
)

GUEST_SORT_COLUMNS = ("first_name", "last_name", "enabled", "is_inc", "created_at", "updated_at")

# ---------------------------------------------------------------------------------
# 🔎 Lookups
# ---------------------------------------------------------------------------------

def find_guest_by_name(
    db: Session,
    first_name: str,
    last_name: str,
    *,
    enabled_only: bool = False,
) -> Optional[Guest]:
    """
    Returns the guest whose (first_name, last_name) matches case-insensitively, or None.
    Database errors propagate; each caller decides how a failed lookup is reported.
    """
    q = db.query(Guest).filter(name_matches(Guest, first_name, last_name))
    if enabled_only:
        q = q.filter(Guest.enabled.is_(True))
    return q.order_by(Guest.created_at.asc(), Guest.id.asc()).first()


def rsvp_exists_for_name(db: Session, first_name: str, last_name: str) -> bool:
    return (
        db.query(RSVP.id)
        .filter(name_matches(RSVP, first_name, last_name))
        .first()
        is not None
    )


def get_by_id(db: Session, guest_id: str) -> Optional[Guest]:
    if not guest_id:
        return None
    return db.get(Guest, guest_id)

# ---------------------------------------------------------------------------------
# 📄 Listing and export
# ---------------------------------------------------------------------------------

def list_guests(
    db: Session,
    page: int = 0,
    sort: Optional[str] = "created_at",
    direction: Optional[str] = "desc",
    search: Optional[str] = None,
    page_size: int = PAGE_SIZE,
) -> GuestPage:
    """One page of the guest list, filtered by name search and sorted by an allowed column."""
    try:
        q = apply_search(db.query(Guest), Guest, search)
        total = q.count()
        rows = paginate(apply_sort(q, Guest, sort, direction, GUEST_SORT_COLUMNS), page, page_size).all()
        return GuestPage(
            data=[GuestOut.model_validate(g) for g in rows],
            total=total,
            page=max(0, page),
            page_size=page_size,
        )
    except Exception as e:
        logger.exception("Guests → error fetching page {}: {}", page, e)
        return GuestPage(page=max(0, page), page_size=page_size, error="Failed to load guests.")


def export_guests(db: Session, search: Optional[str] = None) -> GuestPage:
    """Every guest matching `search`, ignoring pagination."""
    try:
        q = apply_sort(apply_search(db.query(Guest), Guest, search), Guest, "created_at", "desc", GUEST_SORT_COLUMNS)
        rows = [GuestOut.model_validate(g) for g in q.all()]
        return GuestPage(data=rows, total=len(rows), page=0, page_size=len(rows))
    except Exception as e:
        logger.exception("Guests → error fetching export: {}", e)
        return GuestPage(error="Failed to export guests.")

# ---------------------------------------------------------------------------------
# ✏️ Create / update / delete
# ---------------------------------------------------------------------------------

def _name_collision(db: Session, first_name: str, last_name: str) -> Optional[str]:
    """Reason code when the name is already taken by a guest or an RSVP."""
    if find_guest_by_name(db, first_name, last_name) is not None:
        return "guest_exists"
    if rsvp_exists_for_name(db, first_name, last_name):
        return "rsvp_exists"
    return None


def create_guest(db: Session, payload: GuestCreate) -> GuestResult:
    """Adds one guest, refusing names already present in the guest list or in the RSVPs."""
    first = (payload.first_name or "").strip()
    last = (payload.last_name or "").strip()
    if not first or not last:
        return GuestResult(success=False, error="First and last name are required.", reason="missing_fields")

    try:
        collision = _name_collision(db, first, last)
        if collision == "guest_exists":
            return GuestResult(success=False, error="Guest already exists in the list.", reason="duplicate")
        if collision == "rsvp_exists":
            return GuestResult(success=False, error="This guest has already submitted an RSVP.", reason="duplicate")

        guest = Guest(first_name=first, last_name=last, enabled=payload.enabled, is_inc=payload.is_inc)
        db.add(guest)
        db.commit()
        db.refresh(guest)
    except Exception as e:
        db.rollback()
        logger.exception("Guests → error adding '{} {}': {}", first, last, e)
        return GuestResult(success=False, error="Failed to add guest.", reason="store_error")

    logger.info("Guests → created | id={} | name='{} {}'", guest.id, first, last)
    return GuestResult(success=True, data=GuestOut.model_validate(guest))


def update_guest(db: Session, guest_id: str, updates: GuestUpdate) -> GuestResult:
    """Applies the recognized fields that were sent; anything else is ignored."""
    changes = updates.model_dump(exclude_unset=True)
    try:
        guest = get_by_id(db, guest_id)
        if guest is None:
            return GuestResult(success=False, error="Guest not found.", reason="not_found")

        if isinstance(changes.get("first_name"), str):
            guest.first_name = changes["first_name"].strip()
        if isinstance(changes.get("last_name"), str):
            guest.last_name = changes["last_name"].strip()
        if isinstance(changes.get("enabled"), bool):
            guest.enabled = changes["enabled"]
        if isinstance(changes.get("is_inc"), bool):
            guest.is_inc = changes["is_inc"]
        guest.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(guest)
    except Exception as e:
        db.rollback()
        logger.exception("Guests → error updating id={}: {}", guest_id, e)
        return GuestResult(success=False, error="Failed to update guest.", reason="store_error")

    logger.info("Guests → updated | id={} | fields={}", guest_id, sorted(changes))
    return GuestResult(success=True, data=GuestOut.model_validate(guest))


def delete_guest(db: Session, guest_id: str) -> ActionResult:
    try:
        guest = get_by_id(db, guest_id)
        if guest is None:
            return ActionResult(success=False, error="Guest not found.", reason="not_found")
        db.delete(guest)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Guests → error deleting id={}: {}", guest_id, e)
        return ActionResult(success=False, error="Failed to delete guest.", reason="store_error")

    logger.info("Guests → deleted | id={}", guest_id)
    return ActionResult(success=True)

# ---------------------------------------------------------------------------------
# 📥 CSV import
# ---------------------------------------------------------------------------------

def import_guests_csv(db: Session, raw_text: str) -> ImportResult:
    """
    Imports `first_name,last_name` lines.
    - Never aborts the batch on one bad line: the error is accumulated.
    - Names already present as guest or RSVP (earlier lines included) are skipped silently.
    - Each accepted line is committed on its own; there is no batch transaction.
    """
    result = ImportResult()

    for line_no, fields in iter_import_lines(raw_text):
        if len(fields) < 2:
            result.skipped += 1
            result.errors.append(f"Line {line_no}: expected first_name,last_name.")
            continue

        first, last = fields[0], fields[1]
        if not first or not last:
            result.skipped += 1
            result.errors.append(f"Line {line_no}: missing first or last name.")
            continue

        try:
            if _name_collision(db, first, last) is not None:
                result.skipped += 1
                continue
            db.add(Guest(first_name=first, last_name=last))
            db.commit()
            result.imported += 1
        except Exception as e:
            db.rollback()
            logger.exception("Guests/import → line {} failed: {}", line_no, e)
            result.skipped += 1
            result.errors.append(f"Line {line_no}: failed to import.")

    logger.info(
        "Guests/import → imported={} | skipped={} | errors={}",
        result.imported, result.skipped, len(result.errors),
    )
    return result
