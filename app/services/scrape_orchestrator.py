"""
app/services/scrape_orchestrator.py

Drives one end-to-end alert ingestion pass:

    StatusRegister.try_begin_run -> AlertSource -> dedup -> AlertStore
    -> StatusRegister.complete_run

complete_run sits in a ``finally`` wrapping the whole run body, so no exit
path (success, source failure, unexpected fault, interpreter shutdown) can
leave the register in Running. Source and per-alert faults are converted into
ScrapeResult fields; only StatusPersistenceError leaves ``run``. A failure
while acquiring the flag is raised as RunAcquisitionError, because this run
never owned the flag and must not release it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache

from sqlalchemy.orm import Session

from app.config import get_scraper_settings
from app.domain.alerts import AlertCandidate, RunOutcome, ScrapeOutcome, ScrapeResult
from app.scraping.base import AlertSource
from app.scraping.logging_utils import describe_error, log_event
from app.scraping.sources import NafdacAlertSource
from app.scraping.storage import AlertStore, SQLAlchemyAlertStore
from app.services.status_register import StatusRegister
from db.base import utcnow
from db.repositories.errors import RunAcquisitionError, StatusPersistenceError

logger = logging.getLogger(__name__)

INTERRUPTED_RUN_ERROR = "Scrape run was interrupted before completion."

StoreFactory = Callable[[Session], AlertStore]


def _sqlalchemy_store_factory(db: Session) -> AlertStore:
    return SQLAlchemyAlertStore(session=db)


@dataclass
class _RunProgress:
    new_alerts: int = 0
    total_processed: int = 0
    errors: list[str] = field(default_factory=list)
    fatal_error: str | None = None
    outcome: str = ScrapeOutcome.COMPLETED

    def fail(self, outcome: str, message: str) -> None:
        self.outcome = outcome
        if self.fatal_error is None:
            self.fatal_error = message
        self.errors.append(message)

    def run_outcome(self) -> RunOutcome:
        if self.fatal_error is None:
            return RunOutcome.success()
        return RunOutcome.failure(self.fatal_error)

    def to_result(self, *, started_at: datetime, finished_at: datetime) -> ScrapeResult:
        return ScrapeResult(
            success=self.fatal_error is None,
            outcome=self.outcome,
            new_alerts=self.new_alerts,
            total_processed=self.total_processed,
            errors=list(self.errors),
            started_at=started_at,
            finished_at=finished_at,
        )


class ScrapeOrchestrator:
    """
    Coordinates the busy flag, the alert source and the alert store.
    """

    def __init__(
        self,
        *,
        source: AlertSource,
        session_factory: Callable[[], Session] | None = None,
        register: StatusRegister | None = None,
        store_factory: StoreFactory | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._source = source
        self._register = register or StatusRegister(session_factory=self._session_factory)
        self._store_factory = store_factory or _sqlalchemy_store_factory

    @property
    def register(self) -> StatusRegister:
        return self._register

    def run(self, *, max_alerts: int) -> ScrapeResult:
        """
        Execute one ingestion pass over at most ``max_alerts`` candidates.
        """

        if max_alerts < 1:
            raise ValueError("max_alerts must be a positive integer.")

        try:
            accepted = self._register.try_begin_run()
        except StatusPersistenceError as exc:
            raise RunAcquisitionError(f"Unable to acquire the scrape run flag: {exc}") from exc

        if not accepted:
            log_event(logger, logging.WARNING, "scrape_run_rejected", max_alerts=max_alerts)
            return ScrapeResult.rejected()

        started_at = utcnow()
        log_event(logger, logging.INFO, "scrape_run_started", max_alerts=max_alerts)

        progress = _RunProgress()
        outcome = RunOutcome.failure(INTERRUPTED_RUN_ERROR)
        try:
            self._ingest(max_alerts=max_alerts, progress=progress)
            outcome = progress.run_outcome()
        except Exception as exc:
            progress.fail(ScrapeOutcome.FAILED, f"Unexpected scrape failure: {describe_error(exc)}")
            outcome = progress.run_outcome()
            logger.exception("Scrape run aborted by unexpected failure")
        finally:
            self._register.complete_run(outcome)

        result = progress.to_result(started_at=started_at, finished_at=utcnow())
        log_event(
            logger,
            logging.INFO if result.success else logging.ERROR,
            "scrape_run_completed",
            success=result.success,
            outcome=result.outcome,
            new_alerts=result.new_alerts,
            total_processed=result.total_processed,
            error_count=len(result.errors),
        )
        return result

    def _ingest(self, *, max_alerts: int, progress: _RunProgress) -> None:
        try:
            batch = self._source.fetch_alerts(limit=max_alerts)
        except Exception as exc:
            message = f"Source fetch failed: {describe_error(exc)}"
            progress.fail(ScrapeOutcome.SOURCE_FAILED, message)
            log_event(logger, logging.ERROR, "scrape_source_failed", error=message)
            return

        candidates = list(batch.candidates)[:max_alerts]
        skipped = list(batch.skipped)[: max_alerts - len(candidates)]
        log_event(
            logger,
            logging.INFO,
            "scrape_candidates_fetched",
            candidates=len(candidates),
            skipped=len(skipped),
        )

        for entry in skipped:
            progress.total_processed += 1
            progress.errors.append(
                f"Failed to extract alert: {entry.title} ({entry.url}): {entry.error}"
            )

        with self._session_factory() as db:
            store = self._store_factory(db)
            for position, candidate in enumerate(candidates, start=1):
                progress.total_processed += 1
                try:
                    if self._ingest_candidate(store=store, candidate=candidate):
                        progress.new_alerts += 1
                except Exception as exc:
                    message = (
                        f"Failed to ingest alert #{position} ({getattr(candidate, 'url', None)}): "
                        f"{describe_error(exc)}"
                    )
                    progress.errors.append(message)
                    log_event(
                        logger,
                        logging.WARNING,
                        "scrape_candidate_failed",
                        position=position,
                        error=message,
                    )

    @staticmethod
    def _ingest_candidate(*, store: AlertStore, candidate: AlertCandidate) -> bool:
        dedup_key = candidate.dedup_key
        if store.exists(dedup_key):
            return False
        return store.insert(candidate)


@lru_cache(maxsize=1)
def get_scrape_orchestrator() -> ScrapeOrchestrator:
    """
    Build and cache the orchestrator wired to the configured upstream source.
    """

    return ScrapeOrchestrator(source=NafdacAlertSource(settings=get_scraper_settings()))
