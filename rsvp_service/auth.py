# rsvp_service/auth.py  # Admin session tokens.

# =================================================================================
# 🔐 ADMIN SESSION (JWT)
# ---------------------------------------------------------------------------------
# - Creates and verifies the signed session token stored in the admin cookie.
# - Uses python-jose (jose.jwt) to sign/decode.
# - The token carries `type: "admin"` so other signed values are never accepted
#   as a session.
# - SECRET_KEY has no fallback: while it is unset (or a known placeholder) no
#   session is issued and every presented token is rejected.
# =================================================================================

# 🐍 Imports
import os                                                     # Environment variables (.env).
from datetime import datetime, timedelta                      # Issue/expiry times.
from typing import Any, Dict, Optional                        # Type hints.

from jose import jwt, JWTError                                # JWT implementation (python-jose).
from loguru import logger                                     # Logging.

# ⚙️ Security settings (from .env)
ALGORITHM = os.getenv("ALGORITHM", "HS256")                   # Signing algorithm.
ADMIN_SESSION_HOURS = int(os.getenv("ADMIN_SESSION_HOURS", "24"))  # Session lifetime.
ADMIN_SESSION_COOKIE = "admin_session"                        # Cookie name.

# Values copied from sample .env files; never accepted as a real key.
PLACEHOLDER_SECRET_KEYS = frozenset({"dev_secret", "changeme", "change-me", "secret"})

# 🔒 Fail fast on critical config
if not ALGORITHM:
    raise ValueError("ALGORITHM is not configured.")


def signing_key() -> Optional[str]:
    """SECRET_KEY from the environment, or None when it is unset or a placeholder."""
    key = os.getenv("SECRET_KEY", "").strip()
    if not key or key in PLACEHOLDER_SECRET_KEYS:
        return None
    return key


def _utcnow() -> datetime:
    return datetime.utcnow()


def session_max_age_seconds() -> int:
    return ADMIN_SESSION_HOURS * 3600

# =================================================================================
# ✨ CREATE / VERIFY
# =================================================================================

def create_admin_session_token(subject: str = "admin") -> str:
    """Signed session token (type 'admin') valid for ADMIN_SESSION_HOURS."""
    key = signing_key()
    if key is None:
        raise RuntimeError("SECRET_KEY is not configured.")
    now = _utcnow()
    exp = now + timedelta(hours=ADMIN_SESSION_HOURS)
    payload: Dict[str, Any] = {
        "sub": subject,
        "type": "admin",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, key, algorithm=ALGORITHM)


def verify_admin_session_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Checks signature, expiry and token type.
    Returns the payload, or None when the token is missing or invalid,
    or when no usable SECRET_KEY is configured.
    """
    if not token:
        return None
    key = signing_key()
    if key is None:
        logger.error("Admin session rejected: SECRET_KEY is not configured.")
        return None
    try:
        payload = jwt.decode(token, key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "admin":
        return None
    return payload
