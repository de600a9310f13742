"""Standalone worker that runs document housekeeping on an interval.

Run with ``python -m app.worker.scheduler_main``. The API process never
schedules anything itself.
"""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.observability.metrics import log_metric
from app.services.maintenance import run_maintenance

logger = logging.getLogger(__name__)

MAINTENANCE_JOB_ID = "document_maintenance_job"


def run_maintenance_job() -> None:
    """One maintenance pass in its own session."""
    with SessionLocal() as session:
        try:
            result = run_maintenance(session)
        except Exception:  # pragma: no cover - the next tick retries
            session.rollback()
            logger.exception("Document maintenance failed")
            return
    log_metric("maintenance.expired_analyses", result.expired_analyses)
    log_metric("maintenance.purged_documents", result.purged_documents)
    logger.info("Document maintenance: %s expired, %s purged", result.expired_analyses, result.purged_documents)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_maintenance_job,
        "interval",
        id=MAINTENANCE_JOB_ID,
        minutes=settings.maintenance_interval_minutes,
        coalesce=True,
        max_instances=1,
        replace_existing=True,
    )
    logger.info(
        "Scheduled %s every %s min (stale after %s min, keep %s days)",
        MAINTENANCE_JOB_ID,
        settings.maintenance_interval_minutes,
        settings.stale_analysis_minutes,
        settings.document_retention_days,
    )


def _wait_for_signal(scheduler: BackgroundScheduler) -> None:
    stopped = threading.Event()

    def _stop(signum, _frame):  # pragma: no cover - signal handler
        logger.info("Worker stopping on signal %s", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stopped.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _stop)
    try:
        stopped.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        _stop(signal.SIGINT, None)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if not settings.scheduler_enabled:
        logger.warning("SCHEDULER_ENABLED is false; the worker will idle")
    else:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            run_maintenance_job()

    _wait_for_signal(scheduler)


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
