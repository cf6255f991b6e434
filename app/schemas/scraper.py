"""
app/schemas/scraper.py

Request/response schemas for scrape triggers, status and alert statistics.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScrapeStatsResponse(BaseModel):
    new_alerts: int = Field(..., ge=0)
    total_processed: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)


class ScrapeTriggerResponse(BaseModel):
    """
    Structured reply for every scrape trigger, including failures.
    """

    success: bool
    message: str
    outcome: str | None = None
    stats: ScrapeStatsResponse | None = None
    timestamp: datetime


class ScraperStatusResponse(BaseModel):
    is_scraping: bool
    last_scraped_at: datetime | None = None
    last_error: str | None = None
    last_updated: datetime | None = None


class AlertStatsResponse(BaseModel):
    total_alerts: int = Field(..., ge=0)
    active_alerts: int = Field(..., ge=0)
    severity_distribution: dict[str, int] = Field(default_factory=dict)
    most_common_severity: str | None = None
    last_scraped_at: datetime | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
