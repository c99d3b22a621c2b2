# rsvp_service/db.py
# =================================================================================
# 🗄️ DATABASE CONFIGURATION AND CONNECTION
# ---------------------------------------------------------------------------------
# Centralizes the SQLAlchemy connection, with conditional setup for
# SQLite (local development / tests) and PostgreSQL (hosted production store).
# =================================================================================

# --- Imports ---
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from loguru import logger

# --- Database URL resolution ---
DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

# #####################################################################################
# ### Fail-safe boot: never fall back to SQLite in production by accident           ###
# #####################################################################################

# 1. Engine the deployment insists on ('postgres' unless told otherwise).
FORCE_DB = os.getenv("FORCE_DB", "postgres").strip().lower()

# 2. Unresolved platform placeholders count as empty.
if DATABASE_URL.startswith("${{") and DATABASE_URL.endswith("}}"):
    logger.warning("DATABASE_URL looks like an unresolved placeholder: {}", DATABASE_URL)
    DATABASE_URL = ""

# 3. Empty URL: abort in production, SQLite file locally.
if not DATABASE_URL:
    if FORCE_DB == "postgres":
        raise RuntimeError(
            "FATAL: DATABASE_URL is not set and FORCE_DB=postgres. "
            "Aborting to avoid an accidental SQLite fallback in production."
        )
    logger.warning("DATABASE_URL is empty. Falling back to local SQLite.")
    current_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.abspath(os.path.join(current_dir, ".."))
    db_path = os.path.join(project_root, "rsvp.db")
    DATABASE_URL = f"sqlite:///{db_path}"

# Some hosts still hand out the legacy scheme, which SQLAlchemy 2.x rejects.
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql://" + DATABASE_URL[len("postgres://"):]


# --- Engine creation ---
engine = None

if DATABASE_URL.startswith("sqlite"):
    # SQLite needs `check_same_thread` off because FastAPI serves sync routes from a threadpool.
    logger.info("DB in use → SQLite")
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True
    )
else:
    logger.info("DB in use → PostgreSQL (or non-SQLite)")
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True
    )

# --- Session factory and declarative base ---
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """FastAPI dependency that yields one DB session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# =================================================================================
# 🔎 STARTUP TRACE: WHICH DATABASE ARE WE TALKING TO
# =================================================================================
def log_db_path_on_startup() -> None:
    """Logs the database driver (and file path for SQLite) at startup."""
    try:
        url = engine.url
        logger.info("DB driver in use → {}", url.drivername)
        if url.drivername == "sqlite":
            db_file = getattr(url, "database", None)
            abs_path = os.path.abspath(db_file) if db_file else "<memory>"
            logger.info("DB path → {} (abs={})", db_file, abs_path)
    except Exception as e:
        logger.warning("Could not resolve database info: {}", e)
