"""
Repository-layer exceptions for alert and status persistence.
"""

from __future__ import annotations


class AlertRepositoryError(Exception):
    """Base exception for alert database failures."""


class StatusPersistenceError(AlertRepositoryError, RuntimeError):
    """
    Raised when the scraper status row cannot be read or written.

    This is the only failure allowed to escape a scrape run, since nothing
    else can vouch for the busy flag.
    """


class RunAcquisitionError(StatusPersistenceError):
    """
    Raised when the busy flag could not be read or claimed for a new run.

    The caller never owned the flag, so it must leave the stored status alone.
    """
