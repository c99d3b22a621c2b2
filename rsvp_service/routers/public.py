# rsvp_service/routers/public.py
# =============================================================================
# 💌 Public routes: RSVP submission and confirmation views
# - POST /api/rsvp                  → admission gate (201 / 400 / 403 / 409 / 500)
# - GET  /api/confirmation/{token}  → JSON view (404 on any failure)
# - GET  /confirmation/{token}      → minimal HTML view (303 to ENTRY_URL on failure)
# =============================================================================

import html
import os

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

import rsvp_service.schemas as schemas
from rsvp_service import rate_limit
from rsvp_service.admission import admit_rsvp
from rsvp_service.confirmation import resolve_confirmation
from rsvp_service.db import get_db
from rsvp_service.mailer import event_date, format_event_date

router = APIRouter(tags=["public"])

# Admission reason → HTTP status.
REASON_STATUS = {
    "missing_fields": status.HTTP_400_BAD_REQUEST,
    "invalid_email": status.HTTP_400_BAD_REQUEST,
    "invalid_attendance_type": status.HTTP_400_BAD_REQUEST,
    "invalid_attending": status.HTTP_400_BAD_REQUEST,
    "not_on_guest_list": status.HTTP_403_FORBIDDEN,
    "duplicate": status.HTTP_409_CONFLICT,
    "persistence_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ATTENDANCE_DESCRIPTIONS = {
    "both": "Both Church & Reception",
    "church": "Church Ceremony Only",
    "reception": "Reception Only",
}


def confirmation_url(token: str) -> str:
    base = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
    return f"{base}/confirmation/{token}"

# --------------------------------- Submission ---------------------------------

@router.post(
    "/api/rsvp",
    response_model=schemas.RSVPCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_rsvp(
    payload: schemas.RSVPSubmission,
    request: Request,
    db: Session = Depends(get_db),
):
    rate_limit.enforce(request, "rsvp", "RSVP_RL", 10, 60)

    result = admit_rsvp(db, payload)
    if not result.success:
        raise HTTPException(
            status_code=REASON_STATUS.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error,
        )

    return schemas.RSVPCreatedResponse(
        data=result.rsvp,
        token=result.token,
        confirmation_url=confirmation_url(result.token),
    )

# -------------------------------- Confirmation --------------------------------

@router.get("/api/confirmation/{token}", response_model=schemas.RSVPWithGuest)
def get_confirmation(token: str, db: Session = Depends(get_db)):
    view = resolve_confirmation(db, token)
    if view is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RSVP not found")
    return view


def render_confirmation_page(view: schemas.RSVPWithGuest) -> str:
    """Small server-rendered summary; the rich site lives elsewhere."""
    esc = html.escape
    title = "RSVP Confirmed!" if view.attending else "Response Received"
    lead = "Your RSVP has been successfully recorded." if view.attending else "Thank you for letting us know."
    rows = [
        ("Name", f"{view.first_name} {view.last_name}"),
        ("Email", view.email),
        ("Status", "Attending" if view.attending else "Not Attending"),
    ]
    if view.attending:
        rows.append(("Attending", ATTENDANCE_DESCRIPTIONS.get(view.attendance_type, "")))
        rows.append(("Date", format_event_date(event_date())))
    details = "".join(f"<dt>{esc(k)}</dt><dd>{esc(v)}</dd>" for k, v in rows)
    inc_note = ""
    if view.attending and view.attendance_type in ("church", "both") and not view.guest_is_inc:
        inc_note = "<p>Please review the church reminders we will send before the ceremony.</p>"
    entry = esc(os.getenv("ENTRY_URL", "/"))
    return (
        "<!doctype html><html lang=\"en\"><head><meta charset=\"utf-8\">"
        f"<title>{esc(title)}</title></head><body>"
        f"<h1>{esc(title)}</h1><p>{esc(lead)}</p>"
        f"<h2>Your Details</h2><dl>{details}</dl>{inc_note}"
        "<p>If you need to make changes to your RSVP, please contact us directly.</p>"
        f"<p><a href=\"{entry}\">Back to Home</a></p>"
        "</body></html>"
    )


@router.get("/confirmation/{token}", response_class=HTMLResponse)
def confirmation_page(token: str, db: Session = Depends(get_db)):
    view = resolve_confirmation(db, token)
    if view is None:
        return RedirectResponse(url=os.getenv("ENTRY_URL", "/"), status_code=status.HTTP_303_SEE_OTHER)
    return HTMLResponse(render_confirmation_page(view))
