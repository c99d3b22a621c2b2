# rsvp_service/meta.py  # Metadata router for the frontend.

from typing import Dict, List, Union

from fastapi import APIRouter

from rsvp_service.mailer import days_until_event, event_date
from rsvp_service.models import ATTENDANCE_TYPES

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/meta/options")
def get_meta_options() -> Dict[str, Union[str, int, List[str]]]:
    """
    Catalog values for the RSVP form: attendance type CODES (the frontend
    labels them) plus the configured event date.
    """
    return {
        "attendance_types": list(ATTENDANCE_TYPES),
        "event_date": event_date().isoformat(),
        "days_until_event": days_until_event(),
    }


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
