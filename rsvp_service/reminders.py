# rsvp_service/reminders.py

# =================================================================================
# ⏰ Reminder dispatcher
# ---------------------------------------------------------------------------------
# - send_reminder(): one RSVP by id, always (re)sends.
# - send_pending_reminders(): every attending RSVP without a reminder yet,
#   sequentially; a failed recipient is recorded and the loop continues.
# Only records whose email was accepted get reminder_sent = true.
# =================================================================================

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from rsvp_service import mailer
from rsvp_service.crud import rsvps_crud
from rsvp_service.crud.guests_crud import find_guest_by_name
from rsvp_service.models import RSVP
from rsvp_service.schemas import ActionResult, ReminderBulkResult
from rsvp_service.utils.pii import mask_email


def _dispatch(db: Session, rsvp: RSVP, days_away: int) -> bool:
    """Looks up INC membership, sends, and flags the record. Raises on store errors."""
    guest = find_guest_by_name(db, rsvp.first_name, rsvp.last_name)
    is_inc = bool(guest.is_inc) if guest is not None else False
    ok = mailer.send_reminder_email(
        to_email=rsvp.email,
        first_name=rsvp.first_name,
        attendance_type=rsvp.attendance_type,
        is_inc=is_inc,
        days_away=days_away,
    )
    if not ok:
        return False
    rsvps_crud.mark_reminder_sent(db, rsvp)
    return True


def send_reminder(db: Session, rsvp_id: str, days_away: Optional[int] = None) -> ActionResult:
    """Sends one reminder regardless of reminder_sent. Reasons: not_found | not_attending | send_failed."""
    try:
        rsvp = rsvps_crud.get_by_id(db, rsvp_id)
    except Exception as e:
        db.rollback()
        logger.exception("Reminders → lookup failed for id={}: {}", rsvp_id, e)
        return ActionResult(success=False, error="Failed to send email.", reason="send_failed")

    if rsvp is None:
        return ActionResult(success=False, error="RSVP not found.", reason="not_found")
    if not rsvp.attending:
        return ActionResult(
            success=False,
            error="This guest is not attending and will not receive a reminder.",
            reason="not_attending",
        )

    if days_away is None:
        days_away = mailer.days_until_event()
    try:
        ok = _dispatch(db, rsvp, days_away)
    except Exception as e:
        db.rollback()
        logger.exception("Reminders → error sending to {}: {}", mask_email(rsvp.email), e)
        ok = False

    if not ok:
        logger.error("Reminders → send failed | id={} | to={}", rsvp_id, mask_email(rsvp.email))
        return ActionResult(success=False, error="Failed to send email.", reason="send_failed")

    logger.info("Reminders → sent | id={} | to={}", rsvp_id, mask_email(rsvp.email))
    return ActionResult(success=True)


def _summary(sent: int, failed: int) -> str:
    message = f"Sent {sent} reminder{'s' if sent != 1 else ''}."
    if failed:
        message += f" {failed} failed."
    return message


def send_pending_reminders(db: Session, days_away: Optional[int] = None) -> ReminderBulkResult:
    """Bulk dispatch over attending RSVPs with reminder_sent = false."""
    try:
        candidates = rsvps_crud.list_pending_reminders(db)
    except Exception as e:
        db.rollback()
        logger.exception("Reminders → error fetching pending RSVPs: {}", e)
        return ReminderBulkResult(error="Failed to fetch RSVPs.")

    if not candidates:
        return ReminderBulkResult(message="No pending reminders to send.")

    if days_away is None:
        days_away = mailer.days_until_event()

    result = ReminderBulkResult()
    for rsvp in candidates:
        try:
            ok = _dispatch(db, rsvp, days_away)
        except Exception as e:
            db.rollback()
            logger.exception("Reminders → error sending to {}: {}", mask_email(rsvp.email), e)
            ok = False

        if ok:
            result.sent += 1
        else:
            result.failed += 1
            result.failed_recipients.append(rsvp.email)

    result.message = _summary(result.sent, result.failed)
    logger.info("Reminders → bulk done | sent={} | failed={}", result.sent, result.failed)
    if result.failed:
        mailer.send_alert_webhook(
            "⚠️ Reminder run finished with failures",
            f"{result.sent} sent, {result.failed} failed.",
        )
    return result
