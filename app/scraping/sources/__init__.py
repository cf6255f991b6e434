"""
Concrete alert source exports.
"""

from app.scraping.sources.nafdac import NafdacAlertSource

__all__ = ["NafdacAlertSource"]
