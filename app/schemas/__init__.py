"""
app/schemas package marker.
"""

from app.schemas.scraper import (
    AlertStatsResponse,
    HealthResponse,
    ScrapeStatsResponse,
    ScrapeTriggerResponse,
    ScraperStatusResponse,
)

__all__ = [
    "AlertStatsResponse",
    "HealthResponse",
    "ScrapeStatsResponse",
    "ScrapeTriggerResponse",
    "ScraperStatusResponse",
]
