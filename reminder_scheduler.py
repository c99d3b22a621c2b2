# reminder_scheduler.py                                                                   # Script name.

# ====================================================================================== #
# ⏰ AUTOMATIC REMINDER SCHEDULER
# -------------------------------------------------------------------------------------- #
# - Runs the bulk reminder dispatch once at start and then daily at SCHED_HOUR:SCHED_MINUTE.
# - Only attending RSVPs without a reminder are contacted (see rsvp_service.reminders).
# - Process lockfile, rotating log file, and a webhook alert on failures.
# ====================================================================================== #

import os
from zoneinfo import ZoneInfo

from apscheduler.schedulers.blocking import BlockingScheduler
from dotenv import load_dotenv
from loguru import logger

# Load .env as early as possible.
load_dotenv()

from rsvp_service.db import SessionLocal                                                # noqa: E402
from rsvp_service.mailer import send_alert_webhook                                      # noqa: E402
from rsvp_service.reminders import send_pending_reminders                               # noqa: E402

# -------------------------------------------------------------------------------------- # Log file.
os.makedirs("logs", exist_ok=True)
logger.add("logs/scheduler_{time}.log", rotation="1 week", retention="4 weeks", level="INFO")

if os.getenv("DRY_RUN", "1") != "1" and os.getenv("EMAIL_PROVIDER", "sendgrid").lower() == "sendgrid":
    if not os.getenv("SENDGRID_API_KEY") or not os.getenv("EMAIL_FROM"):
        logger.warning("SENDGRID_API_KEY or EMAIL_FROM not set: sends will fail.")

# -------------------------------------------------------------------------------------- # Timezone and timing.
EVENT_TZ_NAME = os.getenv("SCHED_TZ", "Asia/Manila")
EVENT_TIMEZONE = ZoneInfo(EVENT_TZ_NAME)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


SCHED_HOUR = _env_int("SCHED_HOUR", 9)                                                    # Local hour (0-23).
SCHED_MINUTE = _env_int("SCHED_MINUTE", 0)                                                # Minute (0-59).

# -------------------------------------------------------------------------------------- # Lockfile against concurrent instances.
LOCKFILE_PATH = "scheduler.lock"


def acquire_lock() -> bool:
    try:
        fd = os.open(LOCKFILE_PATH, os.O_CREAT | os.O_EXCL | os.O_WRONLY)                 # Exclusive create.
        os.write(fd, str(os.getpid()).encode("utf-8"))
        os.close(fd)
        logger.info("Lock acquired ({}). PID={}", LOCKFILE_PATH, os.getpid())
        return True
    except FileExistsError:
        logger.error("A scheduler is already running (lock: {}).", LOCKFILE_PATH)
        return False


def release_lock() -> None:
    try:
        os.remove(LOCKFILE_PATH)
        logger.info("Lock released.")
    except FileNotFoundError:
        pass

# -------------------------------------------------------------------------------------- # Main job.
def send_pending_reminders_job() -> None:
    """One bulk run in its own DB session; alerts the admin webhook on a crash."""
    logger.info("Starting reminder job...")
    db = SessionLocal()
    try:
        result = send_pending_reminders(db)
        if result.error:
            logger.error("Reminder job could not run: {}", result.error)
            send_alert_webhook("⚠️ Reminder scheduler", result.error)
        else:
            logger.info("Job finished. {} | failed: {}", result.message, result.failed)
    except Exception as e:
        logger.exception("Fatal error during the reminder job: {}", e)
        db.rollback()
        send_alert_webhook("⚠️ Reminder scheduler: critical failure", f"Exception in the reminder job.\n\nDetail: {e}")
    finally:
        db.close()

# -------------------------------------------------------------------------------------- # Entry point.
if __name__ == "__main__":
    if not acquire_lock():
        raise SystemExit(1)

    try:
        logger.info("Initializing the reminder scheduler...")

        scheduler = BlockingScheduler(
            timezone=EVENT_TIMEZONE,
            job_defaults={
                "coalesce": True,                                                          # Collapse missed runs into one.
                "max_instances": 1,
                "misfire_grace_time": 3600,
            },
        )
        scheduler.add_job(send_pending_reminders_job, "cron", hour=SCHED_HOUR, minute=SCHED_MINUTE)

        logger.info("Scheduler configured → {:02d}:{:02d} {}", SCHED_HOUR, SCHED_MINUTE, EVENT_TZ_NAME)
        logger.info("Immediate run…")
        send_pending_reminders_job()

        scheduler.start()                                                                   # Blocks.
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped.")
    finally:
        release_lock()
