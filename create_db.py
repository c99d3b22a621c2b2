# create_db.py

# =================================================================================
# 🏗️ DATABASE CREATION SCRIPT
# ---------------------------------------------------------------------------------
# Creates every table declared in rsvp_service.models (guest_list, rsvps).
# Meant for local SQLite setups; production schemas go through Alembic.
# =================================================================================

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from rsvp_service.db import engine, Base  # noqa: E402

# Importing the models registers their tables on Base.metadata.
from rsvp_service import models  # noqa: E402,F401


def create_database_tables():
    """Creates all tables bound to `Base`."""
    logger.info("Creating tables on {}", engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=engine)
    logger.info("✔️ Tables ready: {}", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    create_database_tables()
