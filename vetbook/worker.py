"""
ARQ Background Worker for Async Jobs
Runs the appointment reminder sweep on a one-minute cron
"""

import logging
import os
import sys

from arq import run_worker
from arq.cron import cron

from . import models  # noqa: F401 - register models before any database operations
from .database import SessionLocal
from .redis_client import get_redis_settings

logger = logging.getLogger(__name__)


async def appointment_reminders_task(ctx):
    """
    Cron job (every minute) sending one-day and five-hour reminders
    for confirmed appointments
    """
    from .services.reminder_service import send_appointment_reminders

    db = SessionLocal()
    try:
        return await send_appointment_reminders(db)
    except Exception as e:
        logger.error(f"❌ Reminder sweep failed: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [appointment_reminders_task]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "300"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))  # Keep job results for 1 hour

    # Health check settings
    health_check_interval = 60

    # Reminder flags make the sweep safe to retry
    max_tries = 3

    cron_jobs = [
        # second=0 of every minute; unique so overlapping workers don't double-run a tick
        cron(appointment_reminders_task, unique=True),
    ]

    logger.info(f"🔧 ARQ Worker configured: max_jobs={max_jobs}, timeout={job_timeout}s")


def main():
    """Console entry point: run the reminder worker until interrupted"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info("🚀 Starting VetBook reminder worker...")
    try:
        run_worker(WorkerSettings)
    except KeyboardInterrupt:
        logger.info("👋 Reminder worker stopped by user")
    except Exception as e:
        logger.error(f"❌ Reminder worker crashed: {e}")
        sys.exit(1)
