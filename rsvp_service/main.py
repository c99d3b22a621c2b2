# rsvp_service/main.py                                                                # Main API module.

# =================================================================================
# 🧠 API CORE (FastAPI)
# ---------------------------------------------------------------------------------
# - Loads .env and configures logging
# - Creates the FastAPI instance and CORS
# - Registers routers (public, admin, reminders, meta)
# Schema management in production belongs to Alembic (see migrations/);
# create_db.py covers local SQLite setups.
# =================================================================================

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

env_path = Path(".") / ".env"
load_dotenv(dotenv_path=env_path)                                                     # Must run before modules read os.getenv at import.

from rsvp_service import meta                                                          # noqa: E402
from rsvp_service.auth import signing_key                                              # noqa: E402
from rsvp_service.db import log_db_path_on_startup                                     # noqa: E402
from rsvp_service.routers import admin, public, reminders                              # noqa: E402

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

LOG_FILE = os.getenv("LOG_FILE", "").strip()
if LOG_FILE:
    logger.add(LOG_FILE, rotation="1 week", retention="4 weeks", level="INFO")       # Optional file sink.


def _cors_origins() -> list:
    raw = os.getenv("CORS_ORIGINS", "").strip()
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


logger.info(
    "[BOOT] DRY_RUN={} | EMAIL_PROVIDER={} | EMAIL_FROM={} | SG_KEY_SET={} | EVENT_DATE={}",
    os.getenv("DRY_RUN", "1"),
    os.getenv("EMAIL_PROVIDER", "sendgrid"),
    os.getenv("EMAIL_FROM"),
    "yes" if os.getenv("SENDGRID_API_KEY") else "no",
    os.getenv("EVENT_DATE", "2026-05-02"),
)
if signing_key() is None:
    raise RuntimeError("SECRET_KEY is not configured (unset or a placeholder value).")    # Sessions and tokens need it.
if not os.getenv("ADMIN_PASSWORD"):
    logger.warning("[BOOT] ADMIN_PASSWORD is not set: admin login is disabled.")

app = FastAPI(
    title="Wedding RSVP API",
    description="RSVP admission against the guest list, admin directory and reminder emails",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,                                                            # Admin session cookie.
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup_db_trace() -> None:
    log_db_path_on_startup()


app.include_router(public.router)
app.include_router(admin.router)
app.include_router(reminders.router)
app.include_router(meta.router)
