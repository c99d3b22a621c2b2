# rsvp_service/routers/reminders.py
# =============================================================================
# ⏰ Reminder routes (admin only)
# - POST /api/reminders/send        → every attending RSVP still without a reminder
# - POST /api/reminders/send/{id}   → one RSVP, always resends
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import rsvp_service.schemas as schemas
from rsvp_service import reminders
from rsvp_service.core.security import require_admin
from rsvp_service.db import get_db

router = APIRouter(prefix="/api/reminders", tags=["reminders"], dependencies=[Depends(require_admin)])

REASON_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "not_attending": status.HTTP_400_BAD_REQUEST,
    "send_failed": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post("/send", response_model=schemas.ReminderBulkResult)
def send_pending(db: Session = Depends(get_db)):
    result = reminders.send_pending_reminders(db)
    if result.error:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return result


@router.post("/send/{rsvp_id}")
def send_one(rsvp_id: str, db: Session = Depends(get_db)):
    result = reminders.send_reminder(db, rsvp_id)
    if not result.success:
        raise HTTPException(
            status_code=REASON_STATUS.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error,
        )
    return {"sent": True, "message": "Reminder sent successfully."}
