# rsvp_service/schemas.py  # Pydantic schemas.

# =================================================================================
# 📦 Schemas (Pydantic DATA MODELS)
# ---------------------------------------------------------------------------------
# Request/response models used by the API and by the service layer.
# - Public RSVP submission is accepted loosely: the admission gate decides
#   which field is missing or invalid, so the schema does not reject early.
# - Admin update payloads ignore unknown fields (Pydantic default) and only
#   carry what the client actually sent (exclude_unset).
# - ORM objects serialize with from_attributes=True and enums by value.
# =================================================================================

from datetime import datetime
from typing import Any, Optional, List, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from rsvp_service.models import AttendanceTypeEnum

SortDirection = Literal["asc", "desc"]
AttendanceFilter = Literal["all", "church", "reception", "both"]


def _clean_str(v):
    """Trims strings; non-string values are left to the caller's checks."""
    if isinstance(v, str):
        return v.strip()
    return v


# =================================================================================
# 💌 Public RSVP submission
# =================================================================================
class RSVPSubmission(BaseModel):
    # Values and types are checked by the admission gate (400), never here (422).
    first_name: Any = None
    last_name: Any = None
    email: Any = None
    attending: Any = False
    attendance_type: Any = None


class RSVPOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    attending: bool
    attendance_type: AttendanceTypeEnum
    created_at: datetime
    updated_at: Optional[datetime] = None
    reminder_sent: bool = False
    reminder_sent_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class RSVPWithGuest(RSVPOut):
    guest_is_inc: bool = False  # Recomputed from the guest list on every view.


class RSVPCreatedResponse(BaseModel):
    data: RSVPOut
    token: str
    confirmation_url: str
    message: str = "RSVP submitted successfully"


# =================================================================================
# 🎟️ Guest list
# =================================================================================
class GuestOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    enabled: bool
    is_inc: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GuestCreate(BaseModel):
    first_name: str = ""
    last_name: str = ""
    enabled: bool = True
    is_inc: bool = False

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _trim(cls, v):
        return _clean_str(v) if v is not None else ""


class GuestUpdate(BaseModel):
    """Partial update; fields not listed here are ignored."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    enabled: Optional[bool] = None
    is_inc: Optional[bool] = None


class RSVPUpdate(BaseModel):
    """Partial update; fields not listed here are ignored."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    attending: Optional[bool] = None
    attendance_type: Optional[str] = None


# =================================================================================
# 📄 Paging and uniform results
# =================================================================================
class ActionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    reason: Optional[str] = None  # Machine-readable cause, mapped to an HTTP status by the routers.


class GuestResult(ActionResult):
    data: Optional[GuestOut] = None


class RSVPResult(ActionResult):
    data: Optional[RSVPOut] = None


class GuestPage(BaseModel):
    data: List[GuestOut] = Field(default_factory=list)
    total: int = 0
    page: int = 0
    page_size: int = 0
    error: Optional[str] = None


class RSVPCounts(BaseModel):
    total: int = 0
    attending: int = 0
    not_attending: int = 0
    church: int = 0
    reception: int = 0
    both: int = 0


class RSVPPage(BaseModel):
    data: List[RSVPOut] = Field(default_factory=list)
    total: int = 0  # Rows matching filter + search.
    page: int = 0
    page_size: int = 0
    counts: RSVPCounts = Field(default_factory=RSVPCounts)
    error: Optional[str] = None


class ImportResult(BaseModel):
    imported: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)


class ReminderBulkResult(BaseModel):
    sent: int = 0
    failed: int = 0
    failed_recipients: List[str] = Field(default_factory=list)
    message: str = ""
    error: Optional[str] = None


# =================================================================================
# 🔐 Admin session
# =================================================================================
class AdminLoginRequest(BaseModel):
    password: str = ""


class AdminSessionStatus(BaseModel):
    authenticated: bool
