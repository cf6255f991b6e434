"""
app/domain/alerts.py

Domain models for regulatory alert scraping and the scraper state machine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from app.scraping.dedup import build_dedup_key

REJECTED_RUN_ERROR = "scrape already in progress"


class ScrapeOutcome:
    COMPLETED = "completed"
    REJECTED = "rejected"
    SOURCE_FAILED = "source_failed"
    FAILED = "failed"


@dataclass(frozen=True)
class AlertCandidate:
    """
    One alert as returned by an AlertSource, before dedup.
    """

    url: str
    title: str
    excerpt: str = ""
    published_date: date | None = None
    batch_number: str | None = None
    alert_type: str | None = None
    image: str | None = None
    full_content: str | None = None
    product_names: list[str] = field(default_factory=list)
    batch_numbers: list[str] = field(default_factory=list)

    @property
    def dedup_key(self) -> str:
        return build_dedup_key(self.url)


@dataclass(frozen=True)
class SkippedAlert:
    """
    A listed alert whose detail page could not be fetched or parsed.
    """

    url: str
    title: str
    error: str


@dataclass(frozen=True)
class AlertBatch:
    """
    What one fetch produced: parsed candidates in listing order, plus the
    listed alerts that were skipped.
    """

    candidates: list[AlertCandidate] = field(default_factory=list)
    skipped: list[SkippedAlert] = field(default_factory=list)


@dataclass(frozen=True)
class ScrapeResult:
    """
    Outcome of one orchestrator run. Never persisted.
    """

    success: bool
    outcome: str
    new_alerts: int = 0
    total_processed: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @classmethod
    def rejected(cls) -> "ScrapeResult":
        return cls(
            success=False,
            outcome=ScrapeOutcome.REJECTED,
            errors=[REJECTED_RUN_ERROR],
        )


@dataclass(frozen=True)
class RunOutcome:
    """
    What a finished run reports back to the status register.
    """

    succeeded: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "RunOutcome":
        return cls(succeeded=True)

    @classmethod
    def failure(cls, error: str) -> "RunOutcome":
        return cls(succeeded=False, error=error)


@dataclass(frozen=True)
class StatusSnapshot:
    """
    Read model of the scraper status row.
    """

    is_scraping: bool
    last_scraped_at: datetime | None
    last_error: str | None
    last_updated: datetime | None

    @classmethod
    def never_run(cls) -> "StatusSnapshot":
        return cls(
            is_scraping=False,
            last_scraped_at=None,
            last_error=None,
            last_updated=None,
        )
