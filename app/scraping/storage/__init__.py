"""
Storage layer exports.
"""

from app.scraping.storage.base import AlertStore
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyAlertStore

__all__ = ["AlertStore", "SQLAlchemyAlertStore"]
