"""
Persisted scraper state machine: Idle <-> Running.

Every operation runs in its own short-lived session and commits before
returning, so other processes observe the new state immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.alerts import RunOutcome, StatusSnapshot
from app.scraping.logging_utils import MAX_ERROR_LENGTH, log_event
from db.base import utcnow
from db.repositories.errors import StatusPersistenceError
from db.repositories.scraper_status_repository import ScraperStatusRepository

logger = logging.getLogger(__name__)


class StatusRegister:
    """
    Sole writer of the singleton scraper status row.
    """

    def __init__(self, *, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

    def initialize(self) -> None:
        """
        Create the idle status row if it does not exist yet.
        """

        with self._session_scope("initialize") as db:
            self._ensure_row(db)

    def try_begin_run(self) -> bool:
        """
        Atomically move Idle -> Running. Returns False, without writing
        anything, when a run is already in flight.
        """

        with self._session_scope("try_begin_run") as db:
            self._ensure_row(db)
            accepted = ScraperStatusRepository(db).acquire(now=utcnow())
            db.commit()

        log_event(
            logger,
            logging.INFO if accepted else logging.WARNING,
            "scraper_status_begin",
            accepted=accepted,
        )
        return accepted

    def complete_run(self, outcome: RunOutcome) -> None:
        """
        Move to Idle unconditionally and record the run outcome.
        """

        error = None
        if not outcome.succeeded:
            error = (outcome.error or "Unknown error")[:MAX_ERROR_LENGTH]

        with self._session_scope("complete_run") as db:
            self._ensure_row(db)
            ScraperStatusRepository(db).release(
                now=utcnow(),
                succeeded=outcome.succeeded,
                error=error,
            )
            db.commit()

        log_event(
            logger,
            logging.INFO if outcome.succeeded else logging.WARNING,
            "scraper_status_complete",
            succeeded=outcome.succeeded,
            error=error,
        )

    def read_status(self) -> StatusSnapshot:
        with self._session_scope("read_status") as db:
            row = ScraperStatusRepository(db).get()
            if row is None:
                return StatusSnapshot.never_run()
            return StatusSnapshot(
                is_scraping=row.is_scraping,
                last_scraped_at=row.last_scraped_at,
                last_error=row.last_error,
                last_updated=row.last_updated,
            )

    def _ensure_row(self, db: Session) -> None:
        repository = ScraperStatusRepository(db)
        try:
            repository.create_if_missing(now=utcnow())
            db.commit()
        except IntegrityError:
            # Another caller created the row between our read and insert.
            db.rollback()

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        try:
            db = self._session_factory()
        except SQLAlchemyError as exc:
            raise StatusPersistenceError(f"Scraper status {operation} failed: {exc}") from exc

        try:
            yield db
        except SQLAlchemyError as exc:
            logger.exception("Scraper status persistence failed operation=%s", operation)
            try:
                db.rollback()
            except SQLAlchemyError:
                logger.exception("Scraper status rollback failed operation=%s", operation)
            raise StatusPersistenceError(f"Scraper status {operation} failed: {exc}") from exc
        finally:
            db.close()


@lru_cache(maxsize=1)
def get_status_register() -> StatusRegister:
    return StatusRegister()
