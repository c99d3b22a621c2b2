# rsvp_service/core/security.py
import os
import secrets
from typing import Optional

from fastapi import Cookie, HTTPException, status
from loguru import logger

from rsvp_service.auth import ADMIN_SESSION_COOKIE, signing_key, verify_admin_session_token


def verify_admin_password(password: Optional[str]) -> bool:
    """
    Constant-time check against ADMIN_PASSWORD.
    Always False when ADMIN_PASSWORD or SECRET_KEY is unset: no session could be issued.
    """
    expected = os.getenv("ADMIN_PASSWORD", "")
    if not expected:
        logger.warning("Admin login attempted but ADMIN_PASSWORD is not configured.")
        return False
    if signing_key() is None:
        logger.error("Admin login attempted but SECRET_KEY is not configured.")
        return False
    return secrets.compare_digest((password or "").encode("utf-8"), expected.encode("utf-8"))


def is_admin_session(token: Optional[str]) -> bool:
    return verify_admin_session_token(token) is not None


def require_admin(
    admin_session: Optional[str] = Cookie(default=None, alias=ADMIN_SESSION_COOKIE),
) -> None:
    if not is_admin_session(admin_session):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
