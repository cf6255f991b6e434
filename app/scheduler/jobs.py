"""
app/scheduler/jobs.py

APScheduler-based in-process trigger for the daily alert scrape.

Schedule (UTC)
--------------
  daily_alert_scrape: SCRAPER_SCHEDULE_HOUR:SCRAPER_SCHEDULE_MINUTE every day
                      (09:00 by default)

The job goes through the same ScrapeOrchestrator as the HTTP triggers, so
it competes for the same busy flag: if a cron or manual run is in flight the
scheduled run is rejected and simply logged.

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import ScheduleSettings, get_schedule_settings, get_trigger_settings
from app.domain.alerts import ScrapeOutcome
from app.services.scrape_orchestrator import get_scrape_orchestrator

logger = logging.getLogger(__name__)

DAILY_SCRAPE_JOB_ID = "daily_alert_scrape"


def run_scheduled_scrape() -> None:
    """
    Run one capped scrape. Failures are logged and never propagate into
    the scheduler thread.
    """
    logger.info("Scheduler: daily_alert_scrape starting")
    try:
        result = get_scrape_orchestrator().run(max_alerts=get_trigger_settings().cron_limit)
    except Exception as exc:  # noqa: BLE001
        logger.error("Scheduler: daily_alert_scrape failed: %s", exc)
        return

    if result.outcome == ScrapeOutcome.REJECTED:
        logger.warning("Scheduler: daily_alert_scrape skipped, another run is in progress")
        return

    logger.info(
        "Scheduler: daily_alert_scrape complete success=%s new_alerts=%s total_processed=%s errors=%s",
        result.success,
        result.new_alerts,
        result.total_processed,
        len(result.errors),
    )


def build_scheduler(settings: ScheduleSettings | None = None) -> BackgroundScheduler:
    """
    Build the scheduler and register the daily scrape job.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    When scheduling is disabled the scheduler carries no jobs.
    """
    settings = settings or get_schedule_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    if not settings.enabled:
        logger.info("Scheduler: daily_alert_scrape disabled via SCRAPER_SCHEDULE_ENABLED")
        return scheduler

    scheduler.add_job(
        run_scheduled_scrape,
        trigger="cron",
        hour=settings.hour,
        minute=settings.minute,
        id=DAILY_SCRAPE_JOB_ID,
        name="Daily regulatory alert scrape",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )

    return scheduler
