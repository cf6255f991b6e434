"""
Repository layer exports.
"""

from db.repositories.alert_repository import AlertRepository
from db.repositories.errors import (
    AlertRepositoryError,
    RunAcquisitionError,
    StatusPersistenceError,
)
from db.repositories.scraper_status_repository import ScraperStatusRepository

__all__ = [
    "AlertRepository",
    "AlertRepositoryError",
    "RunAcquisitionError",
    "ScraperStatusRepository",
    "StatusPersistenceError",
]
