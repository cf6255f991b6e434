"""
app/api/routers/scraper.py

Scrape trigger, status and alert statistics endpoints.

Trigger endpoints always answer with a ScrapeTriggerResponse: 200 when the
run executed (its ``success`` flag tells how it went), 409 when another run
holds the busy flag, 500 when the run itself blew up. A run that could not
even claim the flag leaves the stored status untouched.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import require_cron_secret
from app.config import TriggerSettings, get_trigger_settings
from app.domain.alerts import RunOutcome, ScrapeOutcome, ScrapeResult
from app.schemas.scraper import (
    AlertStatsResponse,
    ScrapeStatsResponse,
    ScrapeTriggerResponse,
    ScraperStatusResponse,
)
from app.scraping.logging_utils import describe_error
from app.services.scrape_orchestrator import ScrapeOrchestrator, get_scrape_orchestrator
from app.services.status_register import StatusRegister, get_status_register
from db.base import utcnow
from db.repositories.alert_repository import AlertRepository
from db.repositories.errors import RunAcquisitionError, StatusPersistenceError
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scraper", tags=["scraper"])

MAX_MANUAL_LIMIT = 50


@router.post(
    "/cron",
    response_model=ScrapeTriggerResponse,
    dependencies=[Depends(require_cron_secret)],
)
def trigger_scheduled_scrape(
    response: Response,
    settings: TriggerSettings = Depends(get_trigger_settings),
    orchestrator: ScrapeOrchestrator = Depends(get_scrape_orchestrator),
    register: StatusRegister = Depends(get_status_register),
) -> ScrapeTriggerResponse:
    """
    Entry point for the external scheduler (e.g. a platform cron job).
    """

    return _run_scrape(
        response=response,
        orchestrator=orchestrator,
        register=register,
        limit=settings.cron_limit,
        trigger="cron",
    )


@router.post(
    "/run",
    response_model=ScrapeTriggerResponse,
    dependencies=[Depends(require_cron_secret)],
)
def trigger_manual_scrape(
    response: Response,
    limit: int | None = Query(
        default=None,
        ge=1,
        le=MAX_MANUAL_LIMIT,
        description="Max alerts to fetch; defaults to SCRAPER_MANUAL_LIMIT",
    ),
    settings: TriggerSettings = Depends(get_trigger_settings),
    orchestrator: ScrapeOrchestrator = Depends(get_scrape_orchestrator),
    register: StatusRegister = Depends(get_status_register),
) -> ScrapeTriggerResponse:
    return _run_scrape(
        response=response,
        orchestrator=orchestrator,
        register=register,
        limit=limit or settings.manual_limit,
        trigger="manual",
    )


@router.get("/status", response_model=ScraperStatusResponse)
def get_scraper_status(
    register: StatusRegister = Depends(get_status_register),
) -> ScraperStatusResponse:
    try:
        snapshot = register.read_status()
    except StatusPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to check scraper status",
        ) from exc

    return ScraperStatusResponse(
        is_scraping=snapshot.is_scraping,
        last_scraped_at=snapshot.last_scraped_at,
        last_error=snapshot.last_error,
        last_updated=snapshot.last_updated,
    )


@router.get("/stats", response_model=AlertStatsResponse)
def get_alert_stats(db: Session = Depends(get_db)) -> AlertStatsResponse:
    repository = AlertRepository(db)
    try:
        distribution = repository.severity_distribution()
        response = AlertStatsResponse(
            total_alerts=repository.count(),
            active_alerts=repository.count_active(),
            severity_distribution=distribution,
            most_common_severity=max(distribution, key=distribution.__getitem__) if distribution else None,
            last_scraped_at=repository.latest_scraped_at(),
        )
    except SQLAlchemyError as exc:
        logger.exception("Alert statistics query failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to get alert statistics",
        ) from exc
    return response


def _run_scrape(
    *,
    response: Response,
    orchestrator: ScrapeOrchestrator,
    register: StatusRegister,
    limit: int,
    trigger: str,
) -> ScrapeTriggerResponse:
    logger.info("Scrape trigger received trigger=%s limit=%s", trigger, limit)
    try:
        result = orchestrator.run(max_alerts=limit)
    except RunAcquisitionError:
        logger.exception("Scrape trigger could not acquire the run flag trigger=%s", trigger)
        return _failed_trigger_response(response)
    except Exception as exc:
        logger.exception("Scrape trigger failed trigger=%s", trigger)
        _mark_failed_quietly(register=register, error=f"Scrape job failed: {describe_error(exc)}")
        return _failed_trigger_response(response)

    if result.outcome == ScrapeOutcome.REJECTED:
        response.status_code = status.HTTP_409_CONFLICT
    return _to_trigger_response(result)


def _failed_trigger_response(response: Response) -> ScrapeTriggerResponse:
    response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return ScrapeTriggerResponse(
        success=False,
        message="Scrape job failed",
        outcome=ScrapeOutcome.FAILED,
        stats=None,
        timestamp=utcnow(),
    )


def _mark_failed_quietly(*, register: StatusRegister, error: str) -> None:
    try:
        register.complete_run(RunOutcome.failure(error))
    except Exception:
        logger.exception("Failed to reset scraper status after trigger failure")


def _to_trigger_response(result: ScrapeResult) -> ScrapeTriggerResponse:
    if result.outcome == ScrapeOutcome.REJECTED:
        message = "Scrape already in progress"
    elif result.success:
        message = "Regulatory alerts scraped and stored successfully"
    else:
        message = "Scrape completed with errors"

    return ScrapeTriggerResponse(
        success=result.success,
        message=message,
        outcome=result.outcome,
        stats=ScrapeStatsResponse(
            new_alerts=result.new_alerts,
            total_processed=result.total_processed,
            error_count=len(result.errors),
            errors=result.errors,
        ),
        timestamp=result.finished_at or utcnow(),
    )
