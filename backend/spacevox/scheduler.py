import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from spacevox.config import settings
from spacevox.db import SessionLocal
from spacevox.services.queue_service import QueueService

log = logging.getLogger("scheduler")

SWEEP_JOB_ID = "sweep_missed_buyers"


def sweep_job():
    db = SessionLocal()
    try:
        missed = QueueService(db).sweep_missed()
        if missed:
            log.info("sweep marked %d buyer interest(s) missed", len(missed))
    except Exception:
        # keep the scheduler alive; the next run retries
        log.exception("sweep job failed")
    finally:
        db.close()


def create_scheduler(interval_seconds: Optional[int] = None) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        sweep_job,
        "interval",
        seconds=interval_seconds or settings.SWEEP_INTERVAL_SECONDS,
        id=SWEEP_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
