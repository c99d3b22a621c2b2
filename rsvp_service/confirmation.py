# rsvp_service/confirmation.py

# =================================================================================
# 🎫 Confirmation tokens and resolver
# ---------------------------------------------------------------------------------
# - encode_token(): compact JWS (python-jose) whose payload is the raw RSVP id.
#   Reversible with the key, unforgeable without it. No key, no tokens.
# - decode_token(): returns the id or None; never raises.
# - resolve_confirmation(): token → RSVP + `guest_is_inc` recomputed from the
#   guest list on every view. Any failure is a uniform "not found" (None).
# =================================================================================

from typing import Optional

from jose import jws
from jose.exceptions import JWSError
from loguru import logger
from sqlalchemy.orm import Session

from rsvp_service.auth import ALGORITHM, signing_key
from rsvp_service.crud import rsvps_crud
from rsvp_service.crud.guests_crud import find_guest_by_name
from rsvp_service.schemas import RSVPWithGuest


def encode_token(rsvp_id: str) -> str:
    if not rsvp_id:
        raise ValueError("rsvp_id must be a non-empty string")
    key = signing_key()
    if key is None:
        raise RuntimeError("SECRET_KEY is not configured.")
    return jws.sign(rsvp_id.encode("utf-8"), key, algorithm=ALGORITHM)


def decode_token(token: Optional[str]) -> Optional[str]:
    """Id carried by `token`, or None when the token is malformed or not ours."""
    if not token or not isinstance(token, str):
        return None
    key = signing_key()
    if key is None:
        logger.error("Confirmation token rejected: SECRET_KEY is not configured.")
        return None
    try:
        payload = jws.verify(token, key, algorithms=[ALGORITHM])
        rsvp_id = payload.decode("utf-8")
    except (JWSError, UnicodeDecodeError, ValueError, TypeError):
        return None
    return rsvp_id or None


def resolve_confirmation(db: Session, token: Optional[str]) -> Optional[RSVPWithGuest]:
    rsvp_id = decode_token(token)
    if rsvp_id is None:
        logger.info("Confirmation → invalid token")
        return None

    try:
        rsvp = rsvps_crud.get_by_id(db, rsvp_id)
        if rsvp is None:
            logger.info("Confirmation → no RSVP for id={}", rsvp_id)
            return None
        guest = find_guest_by_name(db, rsvp.first_name, rsvp.last_name)
    except Exception as e:
        db.rollback()
        logger.exception("Confirmation → lookup failed for id={}: {}", rsvp_id, e)
        return None

    view = RSVPWithGuest.model_validate(rsvp)
    view.guest_is_inc = bool(guest.is_inc) if guest is not None else False
    return view
