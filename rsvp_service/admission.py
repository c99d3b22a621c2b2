# rsvp_service/admission.py

# =================================================================================
# 🚪 RSVP ADMISSION GATE
# ---------------------------------------------------------------------------------
# Sequential guard clauses; the first failure wins and nothing is written:
#   1) first_name, last_name, email present as text (after trim); attending is a boolean
#   2) no RSVP already stored under the same name (case-insensitive)
#   3) email has a `local@domain.tld` shape
#   4) an ENABLED guest with the same name exists (checked even when not attending)
#   5) attending ⇒ attendance_type in {church, reception, both}
# On success the submission is normalized, inserted once, and a confirmation
# token is derived from the new id.
# Duplicate prevention is read-then-write without a lock: two concurrent
# submissions for the same name may both pass check 2.
# =================================================================================

import re
from typing import Optional

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.orm import Session

from rsvp_service.confirmation import encode_token
from rsvp_service.crud import rsvps_crud
from rsvp_service.crud.guests_crud import find_guest_by_name
from rsvp_service.models import ATTENDANCE_TYPES, AttendanceTypeEnum
from rsvp_service.schemas import RSVPOut, RSVPSubmission
from rsvp_service.utils.pii import mask_email

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Reason code → user-facing message.
MESSAGES = {
    "missing_fields": "First name, last name, and email are required.",
    "duplicate": "We have already received an RSVP under this name.",
    "invalid_email": "Invalid email format.",
    "not_on_guest_list": (
        "Your name is not in our guest list. Please contact us if you believe this is an error."
    ),
    "invalid_attendance_type": "Invalid attendance type.",
    "invalid_attending": "Please let us know whether you will attend (true or false).",
    "persistence_error": "Failed to save RSVP. Please try again.",
}


class AdmissionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    reason: Optional[str] = None
    rsvp: Optional[RSVPOut] = None
    token: Optional[str] = None


def _reject(reason: str) -> AdmissionResult:
    return AdmissionResult(success=False, error=MESSAGES[reason], reason=reason)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def admit_rsvp(db: Session, submission: RSVPSubmission) -> AdmissionResult:
    """Runs the admission checks and, when all pass, stores the RSVP."""
    first = _text(submission.first_name)
    last = _text(submission.last_name)
    email = _text(submission.email)
    attendance_type = submission.attendance_type

    # 1) Presence and shape of the answer
    if not first or not last or not email:
        return _reject("missing_fields")
    if submission.attending is None:
        attending = False
    elif isinstance(submission.attending, bool):
        attending = submission.attending
    else:
        return _reject("invalid_attending")

    try:
        # 2) Duplicate name
        if rsvps_crud.find_rsvp_by_name(db, first, last) is not None:
            logger.info("Admission → duplicate | name='{} {}'", first, last)
            return _reject("duplicate")

        # 3) Email shape
        if not EMAIL_RE.match(email):
            return _reject("invalid_email")

        # 4) Guest list membership
        if find_guest_by_name(db, first, last, enabled_only=True) is None:
            logger.info("Admission → not on guest list | name='{} {}'", first, last)
            return _reject("not_on_guest_list")

        # 5) Attendance type consistency
        if attending:
            if attendance_type not in ATTENDANCE_TYPES:
                return _reject("invalid_attendance_type")
        else:
            attendance_type = AttendanceTypeEnum.both.value

        rsvp = rsvps_crud.create_rsvp(
            db,
            first_name=first,
            last_name=last,
            email=email.lower(),
            attending=attending,
            attendance_type=attendance_type,
        )
    except Exception as e:
        db.rollback()
        logger.exception("Admission → store failure | name='{} {}': {}", first, last, e)
        return _reject("persistence_error")

    logger.info(
        "Admission → accepted | id={} | email={} | attending={} | type={}",
        rsvp.id, mask_email(rsvp.email), attending, attendance_type,
    )
    return AdmissionResult(
        success=True,
        rsvp=RSVPOut.model_validate(rsvp),
        token=encode_token(rsvp.id),
    )
