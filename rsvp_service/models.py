# rsvp_service/models.py  # ORM models module.

# =================================================================================
# 🏛️ DATABASE MODELS (ORM)
# ---------------------------------------------------------------------------------
# Table structure defined with SQLAlchemy ORM.
# - `guest_list`: pre-approved invitees that gate RSVP eligibility.
# - `rsvps`: attendance responses submitted by the public form.
# The two tables are linked by a case-insensitive (first_name, last_name) match,
# not by a foreign key (see crud.guests_crud.find_guest_by_name).
# =================================================================================

# 🐍 Python and SQLAlchemy imports
# ---------------------------------------------------------------------------------
from datetime import datetime  # Timestamps.
import enum  # Typed enumerations.
import uuid  # Opaque record identities.

from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    Enum as SQLAlchemyEnum,
    Index,
)

from rsvp_service.db import Base  # Project declarative base (ORM metadata).

# 🗂️ ENUMS
# ---------------------------------------------------------------------------------
class AttendanceTypeEnum(str, enum.Enum):  # Which part of the event the guest attends.
    church = "church"  # Church ceremony only.
    reception = "reception"  # Reception only.
    both = "both"  # Ceremony + reception (also the stored default when not attending).

ATTENDANCE_TYPES = tuple(t.value for t in AttendanceTypeEnum)  # ('church', 'reception', 'both')


def _new_id() -> str:
    return str(uuid.uuid4())


# 🎟️ GUEST LIST (TABLE 'guest_list')
# ---------------------------------------------------------------------------------
class Guest(Base):  # Pre-approved invitee.
    __tablename__ = "guest_list"

    __table_args__ = (
        Index("ix_guest_list_name", "last_name", "first_name"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)

    # --- Gates and display flags ---
    enabled = Column(Boolean, default=True, nullable=False)  # Disabled guests fail admission.
    is_inc = Column(Boolean, default=False, nullable=False)  # Only changes confirmation/reminder content.

    # --- Audit ---
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)


# 💌 RSVP RESPONSES (TABLE 'rsvps')
# ---------------------------------------------------------------------------------
class RSVP(Base):
    __tablename__ = "rsvps"

    __table_args__ = (
        Index("ix_rsvps_name", "last_name", "first_name"),
        Index("ix_rsvps_pending_reminder", "attending", "reminder_sent"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(254), nullable=False)  # Stored trimmed + lower-cased.

    # --- Attendance ---
    attending = Column(Boolean, default=True, nullable=False)
    attendance_type = Column(
        SQLAlchemyEnum(AttendanceTypeEnum, name="attendance_type_enum"),
        default=AttendanceTypeEnum.both,
        nullable=False,
    )

    # --- Audit and reminders ---
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)
