# scripts/import_guests.py
# =============================================================================
# 🚚 Bulk guest import from a CSV file (first_name,last_name).
# - Same rules as the admin endpoint: header detection, per-line errors,
#   duplicates against the guest list and the RSVPs skipped silently.
# - Writes straight to the database configured in .env (DATABASE_URL).
# =============================================================================

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

# The project root must be importable when the script runs from scripts/.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

load_dotenv()

from rsvp_service.crud.guests_crud import import_guests_csv  # noqa: E402
from rsvp_service.csv_io import iter_import_lines  # noqa: E402
from rsvp_service.db import SessionLocal  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Bulk guest list import (CSV: first_name,last_name).")
    parser.add_argument("file", help="Path to the .csv file")
    parser.add_argument("--encoding", default="utf-8-sig", help="File encoding (default utf-8-sig)")
    parser.add_argument("--dry-run", action="store_true", help="Parse and preview only; nothing is written")
    args = parser.parse_args()

    path = Path(args.file)
    print(f"📥 Loading file: {path}")
    try:
        raw = path.read_text(encoding=args.encoding)
    except (OSError, UnicodeDecodeError) as e:
        print(f"❌ Could not read file: {e}")
        return 1

    if args.dry_run:
        lines = list(iter_import_lines(raw))
        print(f"🧪 DRY-RUN: {len(lines)} data line(s) found. Preview (first 3):")
        for line_no, fields in lines[:3]:
            print(f"   Line {line_no}: {fields}")
        return 0

    db = SessionLocal()
    try:
        result = import_guests_csv(db, raw)
    finally:
        db.close()

    print(f"✅ Imported: {result.imported} | Skipped: {result.skipped}")
    if result.errors:
        print("⚠️  Line errors:")
        print(" - " + "\n - ".join(result.errors))
    return 0


if __name__ == "__main__":
    sys.exit(main())
