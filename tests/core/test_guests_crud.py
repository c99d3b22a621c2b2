# tests/core/test_guests_crud.py
# =======================
# Guest list maintenance: lookup, create, update, delete, CSV import, paging
# =======================
from rsvp_service.crud import guests_crud
from rsvp_service.models import Guest
from rsvp_service.schemas import GuestCreate, GuestUpdate


def test_find_guest_by_name_ignores_case_and_whitespace(db_session, make_guest):
    guest = make_guest("María", "Santos")

    assert guests_crud.find_guest_by_name(db_session, " maría ", "SANTOS").id == guest.id
    assert guests_crud.find_guest_by_name(db_session, "Maria", "Santos") is None


def test_find_guest_by_name_enabled_only(db_session, make_guest):
    make_guest("Ana", "Cruz", enabled=False)

    assert guests_crud.find_guest_by_name(db_session, "Ana", "Cruz") is not None
    assert guests_crud.find_guest_by_name(db_session, "Ana", "Cruz", enabled_only=True) is None

# -----------------------
# create
# -----------------------

def test_create_guest_trims_names(db_session):
    result = guests_crud.create_guest(db_session, GuestCreate(first_name="  Ana ", last_name=" Cruz", is_inc=True))

    assert result.success is True
    assert result.data.first_name == "Ana"
    assert result.data.last_name == "Cruz"
    assert result.data.is_inc is True
    assert result.data.enabled is True


def test_create_guest_requires_both_names(db_session):
    result = guests_crud.create_guest(db_session, GuestCreate(first_name="Ana", last_name="   "))

    assert result.success is False
    assert result.reason == "missing_fields"
    assert db_session.query(Guest).count() == 0


def test_create_guest_rejects_existing_guest(db_session, make_guest):
    make_guest("Ana", "Cruz")

    result = guests_crud.create_guest(db_session, GuestCreate(first_name="ana", last_name="CRUZ"))

    assert result.success is False
    assert result.reason == "duplicate"
    assert db_session.query(Guest).count() == 1


def test_create_guest_rejects_name_with_existing_rsvp(db_session, make_rsvp):
    make_rsvp("Ana", "Cruz")

    result = guests_crud.create_guest(db_session, GuestCreate(first_name="Ana", last_name="Cruz"))

    assert result.success is False
    assert result.reason == "duplicate"
    assert "RSVP" in result.error

# -----------------------
# update / delete
# -----------------------

def test_update_guest_applies_only_sent_fields(db_session, make_guest):
    guest = make_guest("Ana", "Cruz")
    assert guest.updated_at is None

    result = guests_crud.update_guest(db_session, guest.id, GuestUpdate(is_inc=True, last_name=" Reyes "))

    assert result.success is True
    assert result.data.first_name == "Ana"
    assert result.data.last_name == "Reyes"
    assert result.data.is_inc is True
    assert result.data.enabled is True
    assert result.data.updated_at is not None


def test_update_guest_ignores_unknown_fields(db_session, make_guest):
    guest = make_guest("Ana", "Cruz")

    payload = GuestUpdate.model_validate({"enabled": False, "id": "hijack", "created_at": "2000-01-01"})
    result = guests_crud.update_guest(db_session, guest.id, payload)

    assert result.success is True
    assert result.data.id == guest.id
    assert result.data.enabled is False


def test_update_unknown_guest_is_not_found(db_session):
    result = guests_crud.update_guest(db_session, "missing", GuestUpdate(enabled=False))

    assert result.success is False
    assert result.reason == "not_found"
    assert result.error == "Guest not found."


def test_delete_guest(db_session, make_guest):
    guest = make_guest("Ana", "Cruz")

    assert guests_crud.delete_guest(db_session, guest.id).success is True
    assert db_session.query(Guest).count() == 0
    assert guests_crud.delete_guest(db_session, guest.id).reason == "not_found"

# -----------------------
# CSV import
# -----------------------

def test_import_reference_example(db_session):
    result = guests_crud.import_guests_csv(db_session, "first_name,last_name\nJohn,Doe\n,Smith\nJohn,Doe")

    assert result.imported == 1
    assert result.skipped == 2
    assert result.errors == ["Line 3: missing first or last name."]
    assert db_session.query(Guest).count() == 1


def test_import_without_header_and_with_blank_lines(db_session):
    raw = "\nAna,Cruz\n\n  \nBen,Reyes\n"

    result = guests_crud.import_guests_csv(db_session, raw)

    assert result.imported == 2
    assert result.skipped == 0
    assert result.errors == []


def test_import_reports_short_lines(db_session):
    result = guests_crud.import_guests_csv(db_session, "first,last\nAna\nBen,Reyes")

    assert result.imported == 1
    assert result.skipped == 1
    assert result.errors == ["Line 2: expected first_name,last_name."]


def test_import_accepts_quoted_fields(db_session):
    result = guests_crud.import_guests_csv(db_session, '"Mary Ann", "Dela Cruz"\n"Jose, Jr.",Rizal')

    assert result.imported == 2
    names = {(g.first_name, g.last_name) for g in db_session.query(Guest).all()}
    assert names == {("Mary Ann", "Dela Cruz"), ("Jose, Jr.", "Rizal")}


def test_import_skips_existing_guests_and_rsvps_silently(db_session, make_guest, make_rsvp):
    make_guest("Ana", "Cruz")
    make_rsvp("Ben", "Reyes")

    result = guests_crud.import_guests_csv(db_session, "ANA,cruz\nben,REYES\nCarla,Diaz")

    assert result.imported == 1
    assert result.skipped == 2
    assert result.errors == []


def test_import_keeps_going_after_store_failure(db_session, monkeypatch):
    real_collision = guests_crud._name_collision

    def _flaky(db, first, last):
        if first == "Bad":
            raise RuntimeError("insert exploded")
        return real_collision(db, first, last)

    monkeypatch.setattr(guests_crud, "_name_collision", _flaky)

    result = guests_crud.import_guests_csv(db_session, "Ana,Cruz\nBad,Row\nCarla,Diaz")

    assert result.imported == 2
    assert result.skipped == 1
    assert result.errors == ["Line 2: failed to import."]

# -----------------------
# listing
# -----------------------

def test_list_guests_pages_are_contiguous_slices(db_session, make_guest):
    for i in range(45):
        make_guest(f"Guest{i:02d}", "Alpha")

    pages = [
        guests_crud.list_guests(db_session, page=k, sort="first_name", direction="asc")
        for k in range(3)
    ]

    assert [len(p.data) for p in pages] == [20, 20, 5]
    assert all(p.total == 45 for p in pages)
    seen = [g.first_name for p in pages for g in p.data]
    assert seen == [f"Guest{i:02d}" for i in range(45)]
    assert guests_crud.list_guests(db_session, page=3).data == []


def test_list_guests_search_and_unknown_sort(db_session, make_guest):
    make_guest("Ana", "Cruz")
    make_guest("Ben", "Cruzado")
    make_guest("Carla", "Diaz")

    page = guests_crud.list_guests(db_session, search="cRUz", sort="password; drop table", direction="asc")

    assert page.error is None
    assert page.total == 2
    assert {g.first_name for g in page.data} == {"Ana", "Ben"}


def test_search_treats_wildcards_literally(db_session, make_guest):
    make_guest("Ana", "Cruz")

    assert guests_crud.list_guests(db_session, search="%").total == 0
    assert guests_crud.list_guests(db_session, search="_na").total == 0


def test_export_ignores_pagination(db_session, make_guest):
    for i in range(25):
        make_guest(f"G{i}", "Export")

    result = guests_crud.export_guests(db_session, search="export")

    assert result.total == 25
    assert len(result.data) == 25
