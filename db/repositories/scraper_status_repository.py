"""
Repository for the singleton scraper status row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from db.models.scraper_status import SCRAPER_STATUS_ID, ScraperStatus


class ScraperStatusRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self) -> ScraperStatus | None:
        return self._session.get(ScraperStatus, SCRAPER_STATUS_ID)

    def create_if_missing(self, *, now: datetime) -> bool:
        """
        Flush a fresh idle row when none exists. Returns True if one was added.

        A concurrent creator surfaces as IntegrityError on flush or commit.
        """

        if self.get() is not None:
            return False
        self._session.add(
            ScraperStatus(
                id=SCRAPER_STATUS_ID,
                is_scraping=False,
                last_scraped_at=None,
                last_error=None,
                last_updated=now,
            )
        )
        self._session.flush()
        return True

    def acquire(self, *, now: datetime) -> bool:
        """
        Flip is_scraping false -> true in one conditional UPDATE.

        Returns True only for the caller whose statement matched the idle row.
        """

        stmt = (
            update(ScraperStatus)
            .where(
                ScraperStatus.id == SCRAPER_STATUS_ID,
                ScraperStatus.is_scraping.is_(False),
            )
            .values(is_scraping=True, last_error=None, last_updated=now)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return result.rowcount == 1

    def release(
        self,
        *,
        now: datetime,
        succeeded: bool,
        error: str | None = None,
    ) -> None:
        values: dict[str, Any] = {"is_scraping": False, "last_updated": now}
        if succeeded:
            values["last_scraped_at"] = now
            values["last_error"] = None
        else:
            values["last_error"] = error

        stmt = (
            update(ScraperStatus)
            .where(ScraperStatus.id == SCRAPER_STATUS_ID)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)
