# rsvp_service/csv_io.py

# =================================================================================
# 📑 CSV helpers for the admin directory
# ---------------------------------------------------------------------------------
# - iter_import_lines(): line-oriented reader for `first_name,last_name` uploads.
#   Each physical line is parsed on its own (quoted fields allowed), blank
#   lines are dropped and a first line mentioning "first" is treated as header.
# - guests_to_csv() / rsvps_to_csv(): export with a fixed column set per entity.
# =================================================================================

import csv
import io
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple

GUEST_EXPORT_HEADERS = ["First Name", "Last Name", "Enabled", "Is INC", "Created At", "Updated At"]
RSVP_EXPORT_HEADERS = [
    "First Name", "Last Name", "Email", "Attending", "Attendance Type", "Reminder Sent", "Submitted At",
]

ATTENDANCE_LABELS = {"church": "Church", "reception": "Reception", "both": "Both"}


def _parse_line(line: str) -> List[str]:
    row = next(csv.reader([line], skipinitialspace=True), [])
    return [field.strip() for field in row]


def iter_import_lines(raw_text: str) -> Iterator[Tuple[int, List[str]]]:
    """Yields (line_number, fields) for every data line; line numbers are 1-based."""
    header_checked = False
    for line_no, line in enumerate((raw_text or "").splitlines(), start=1):
        if not line.strip():
            continue
        if not header_checked:
            header_checked = True
            if "first" in line.lower():
                continue
        yield line_no, _parse_line(line)


# ---------------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------------
def _fmt_dt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "—"


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _enum_value(value) -> str:
    return getattr(value, "value", value) or ""


def _write(headers: List[str], rows: Iterable[List[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buf.getvalue()


def guests_to_csv(guests) -> str:
    return _write(
        GUEST_EXPORT_HEADERS,
        (
            [g.first_name, g.last_name, _yes_no(g.enabled), _yes_no(g.is_inc),
             _fmt_dt(g.created_at), _fmt_dt(g.updated_at)]
            for g in guests
        ),
    )


def rsvps_to_csv(rsvps) -> str:
    return _write(
        RSVP_EXPORT_HEADERS,
        (
            [r.first_name, r.last_name, r.email, _yes_no(r.attending),
             ATTENDANCE_LABELS.get(_enum_value(r.attendance_type), "Both"),
             _yes_no(r.reminder_sent), _fmt_dt(r.created_at)]
            for r in rsvps
        ),
    )
