"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.regulatory_alert import AlertCategory, AlertSeverity, AlertType, RegulatoryAlert
from db.models.scraper_status import SCRAPER_STATUS_ID, ScraperStatus

__all__ = [
    "AlertCategory",
    "AlertSeverity",
    "AlertType",
    "RegulatoryAlert",
    "SCRAPER_STATUS_ID",
    "ScraperStatus",
]
