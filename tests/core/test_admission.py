# tests/core/test_admission.py
# =======================
# Admission gate: check order, normalization and single insert
# =======================
import pytest

from rsvp_service.admission import MESSAGES, admit_rsvp
from rsvp_service.confirmation import decode_token
from rsvp_service.models import RSVP
from rsvp_service.schemas import RSVPSubmission


def _submit(db, **overrides):
    data = {
        "first_name": "Ana",
        "last_name": "Cruz",
        "email": "ana@example.com",
        "attending": True,
        "attendance_type": "church",
    }
    data.update(overrides)
    return admit_rsvp(db, RSVPSubmission(**data))


def test_accepts_guest_on_list_and_returns_token(db_session, make_guest):
    make_guest("Ana", "Cruz")

    result = _submit(db_session)

    assert result.success is True
    assert result.rsvp.attendance_type == "church"
    assert decode_token(result.token) == result.rsvp.id
    assert db_session.query(RSVP).count() == 1


def test_normalizes_names_and_email(db_session, make_guest):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, first_name="  Ana ", last_name=" Cruz  ", email="  Ana.Cruz@Example.COM ")

    assert result.success is True
    stored = db_session.get(RSVP, result.rsvp.id)
    assert stored.first_name == "Ana"
    assert stored.last_name == "Cruz"
    assert stored.email == "ana.cruz@example.com"


@pytest.mark.parametrize("field", ["first_name", "last_name", "email"])
def test_missing_fields_rejected_first(db_session, field):
    # No guest exists: presence must fail before the guest list is consulted.
    result = _submit(db_session, **{field: "   "})

    assert result.success is False
    assert result.reason == "missing_fields"
    assert result.error == MESSAGES["missing_fields"]


def test_duplicate_name_rejected_regardless_of_case_and_email(db_session, make_guest):
    make_guest("Ana", "Cruz")
    assert _submit(db_session).success is True

    result = _submit(db_session, first_name="ANA", last_name="cruz", email="other@example.org")

    assert result.success is False
    assert result.reason == "duplicate"
    assert result.error == "We have already received an RSVP under this name."
    assert db_session.query(RSVP).count() == 1


def test_duplicate_checked_before_email_format(db_session, make_guest):
    make_guest("Ana", "Cruz")
    _submit(db_session)

    result = _submit(db_session, email="not-an-email")

    assert result.reason == "duplicate"


@pytest.mark.parametrize("email", ["ana", "ana@example", "ana @example.com", "@example.com"])
def test_invalid_email_rejected(db_session, make_guest, email):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, email=email)

    assert result.reason == "invalid_email"
    assert db_session.query(RSVP).count() == 0


def test_not_on_guest_list_rejected_even_when_not_attending(db_session):
    result = _submit(db_session, attending=False, attendance_type=None)

    assert result.success is False
    assert result.reason == "not_on_guest_list"
    assert db_session.query(RSVP).count() == 0


def test_disabled_guest_is_rejected(db_session, make_guest):
    make_guest("Ana", "Cruz", enabled=False)

    result = _submit(db_session)

    assert result.reason == "not_on_guest_list"


def test_guest_match_is_case_insensitive(db_session, make_guest):
    make_guest("ANA", "cruz")

    assert _submit(db_session).success is True


@pytest.mark.parametrize("attendance_type", [None, "", "party", "BOTH"])
def test_attending_requires_valid_attendance_type(db_session, make_guest, attendance_type):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, attendance_type=attendance_type)

    assert result.reason == "invalid_attendance_type"
    assert db_session.query(RSVP).count() == 0


@pytest.mark.parametrize("attendance_type", [None, "church", "reception", "garbage"])
def test_not_attending_forces_both(db_session, make_guest, attendance_type):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, attending=False, attendance_type=attendance_type)

    assert result.success is True
    assert result.rsvp.attending is False
    assert result.rsvp.attendance_type == "both"


def test_store_failure_is_reported_as_persistence_error(db_session, make_guest, monkeypatch):
    make_guest("Ana", "Cruz")

    def _boom(*args, **kwargs):
        raise RuntimeError("database is gone")

    monkeypatch.setattr("rsvp_service.crud.rsvps_crud.create_rsvp", _boom)

    result = _submit(db_session)

    assert result.success is False
    assert result.reason == "persistence_error"
    assert result.error == "Failed to save RSVP. Please try again."
    assert "database" not in result.error


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"first_name": 123}, "missing_fields"),
        ({"email": ["ana@example.com"]}, "missing_fields"),
        ({"attending": "maybe"}, "invalid_attending"),
        ({"attending": 1}, "invalid_attending"),
        ({"attendance_type": 7}, "invalid_attendance_type"),
    ],
)
def test_wrong_types_are_rejected_by_the_gate(db_session, make_guest, overrides, reason):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, **overrides)

    assert result.success is False
    assert result.reason == reason
    assert db_session.query(RSVP).count() == 0


def test_missing_attending_means_not_attending(db_session, make_guest):
    make_guest("Ana", "Cruz")

    result = _submit(db_session, attending=None)

    assert result.success is True
    assert result.rsvp.attending is False
    assert result.rsvp.attendance_type == "both"
