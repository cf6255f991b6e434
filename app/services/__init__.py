"""
Service layer exports.
"""

from app.services.scrape_orchestrator import ScrapeOrchestrator, get_scrape_orchestrator
from app.services.status_register import StatusRegister, get_status_register

__all__ = [
    "ScrapeOrchestrator",
    "StatusRegister",
    "get_scrape_orchestrator",
    "get_status_register",
]
