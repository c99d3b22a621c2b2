# rsvp_service/routers/admin.py
# =============================================================================
# 👑 Admin routes: session, guest list and RSVP directory
# - /api/admin/login | logout | session  → password login with HTTP-only cookie
# - /api/admin/guests…                   → list / create / update / delete / import / export
# - /api/admin/rsvps…                    → list (filter + counters) / update / delete / export
# Every directory route depends on `require_admin` (401 "Not authenticated").
# =============================================================================

import os
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response, status
from loguru import logger
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

import rsvp_service.schemas as schemas
from rsvp_service import rate_limit
from rsvp_service.auth import (
    ADMIN_SESSION_COOKIE,
    create_admin_session_token,
    session_max_age_seconds,
)
from rsvp_service.core.security import is_admin_session, require_admin, verify_admin_password
from rsvp_service.crud import guests_crud, rsvps_crud
from rsvp_service.csv_io import guests_to_csv, rsvps_to_csv
from rsvp_service.db import get_db

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Result reason → HTTP status.
REASON_STATUS = {
    "missing_fields": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "store_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# ------------------------------- Local helpers --------------------------------

def _raise_for(result: schemas.ActionResult) -> None:
    if not result.success:
        raise HTTPException(
            status_code=REASON_STATUS.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error,
        )


def _raise_for_page(page) -> None:
    if page.error:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=page.error)


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _cookie_secure() -> bool:
    return os.getenv("COOKIE_SECURE", "1") == "1"

# --------------------------------- Session ------------------------------------

@router.post("/login", response_model=schemas.AdminSessionStatus)
def admin_login(payload: schemas.AdminLoginRequest, request: Request, response: Response):
    rate_limit.enforce(request, "admin-login", "ADMIN_LOGIN_RL", 5, 60)

    if not verify_admin_password(payload.password):
        logger.warning("Admin login → rejected | ip={}", rate_limit.client_ip(request))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    response.set_cookie(
        key=ADMIN_SESSION_COOKIE,
        value=create_admin_session_token(),
        max_age=session_max_age_seconds(),
        httponly=True,
        secure=_cookie_secure(),
        samesite="lax",
        path="/",
    )
    logger.info("Admin login → ok | ip={}", rate_limit.client_ip(request))
    return schemas.AdminSessionStatus(authenticated=True)


@router.post("/logout", response_model=schemas.AdminSessionStatus)
def admin_logout(response: Response):
    response.delete_cookie(key=ADMIN_SESSION_COOKIE, path="/")
    return schemas.AdminSessionStatus(authenticated=False)


@router.get("/session", response_model=schemas.AdminSessionStatus)
def admin_session(admin_session: Optional[str] = Cookie(default=None, alias=ADMIN_SESSION_COOKIE)):
    return schemas.AdminSessionStatus(authenticated=is_admin_session(admin_session))

# ------------------------------- Guest list -----------------------------------

@router.get("/guests", response_model=schemas.GuestPage, dependencies=[Depends(require_admin)])
def list_guests(
    page: int = 0,
    sort: str = "created_at",
    direction: schemas.SortDirection = "desc",
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    result = guests_crud.list_guests(db, page=max(0, page), sort=sort, direction=direction, search=search)
    _raise_for_page(result)
    return result


@router.post(
    "/guests",
    response_model=schemas.GuestOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_guest(payload: schemas.GuestCreate, db: Session = Depends(get_db)):
    result = guests_crud.create_guest(db, payload)
    _raise_for(result)
    return result.data


@router.post("/guests/import", response_model=schemas.ImportResult, dependencies=[Depends(require_admin)])
async def import_guests(request: Request, db: Session = Depends(get_db)):
    """
    Body: raw CSV text (`text/csv` or `text/plain`), columns first_name,last_name.
    Best-effort: bad lines are reported in `errors`, good lines are kept.
    """
    raw = (await request.body()).decode("utf-8-sig", errors="replace")
    return await run_in_threadpool(guests_crud.import_guests_csv, db, raw)          # Sync SQLAlchemy off the event loop.


@router.get("/guests/export", dependencies=[Depends(require_admin)])
def export_guests(search: Optional[str] = None, db: Session = Depends(get_db)):
    result = guests_crud.export_guests(db, search=search)
    _raise_for_page(result)
    return _csv_response(guests_to_csv(result.data), "guest_list.csv")


@router.patch("/guests/{guest_id}", response_model=schemas.GuestOut, dependencies=[Depends(require_admin)])
def update_guest(guest_id: str, payload: schemas.GuestUpdate, db: Session = Depends(get_db)):
    result = guests_crud.update_guest(db, guest_id, payload)
    _raise_for(result)
    return result.data


@router.delete("/guests/{guest_id}", response_model=schemas.ActionResult, dependencies=[Depends(require_admin)])
def delete_guest(guest_id: str, db: Session = Depends(get_db)):
    result = guests_crud.delete_guest(db, guest_id)
    _raise_for(result)
    return result

# --------------------------------- RSVPs --------------------------------------

@router.get("/rsvps", response_model=schemas.RSVPPage, dependencies=[Depends(require_admin)])
def list_rsvps(
    page: int = 0,
    sort: str = "created_at",
    direction: schemas.SortDirection = "desc",
    search: Optional[str] = None,
    filter: schemas.AttendanceFilter = "all",
    db: Session = Depends(get_db),
):
    result = rsvps_crud.list_rsvps(
        db, page=max(0, page), sort=sort, direction=direction, search=search, attendance_filter=filter,
    )
    _raise_for_page(result)
    return result


@router.get("/rsvps/export", dependencies=[Depends(require_admin)])
def export_rsvps(
    search: Optional[str] = None,
    filter: schemas.AttendanceFilter = "all",
    db: Session = Depends(get_db),
):
    result = rsvps_crud.export_rsvps(db, search=search, attendance_filter=filter)
    _raise_for_page(result)
    return _csv_response(rsvps_to_csv(result.data), "rsvps.csv")


@router.patch("/rsvps/{rsvp_id}", response_model=schemas.RSVPOut, dependencies=[Depends(require_admin)])
def update_rsvp(rsvp_id: str, payload: schemas.RSVPUpdate, db: Session = Depends(get_db)):
    result = rsvps_crud.update_rsvp(db, rsvp_id, payload)
    _raise_for(result)
    return result.data


@router.delete("/rsvps/{rsvp_id}", response_model=schemas.ActionResult, dependencies=[Depends(require_admin)])
def delete_rsvp(rsvp_id: str, db: Session = Depends(get_db)):
    result = rsvps_crud.delete_rsvp(db, rsvp_id)
    _raise_for(result)
    return result
