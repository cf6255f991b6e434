"""
Storage layer interface for ingested regulatory alerts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.alerts import AlertCandidate


class AlertStore(ABC):
    """
    Persisted alert collection keyed by dedup key.
    """

    @abstractmethod
    def exists(self, dedup_key: str) -> bool:
        """
        Return True when an alert with this dedup key is already stored.
        """

    @abstractmethod
    def insert(self, candidate: AlertCandidate) -> bool:
        """
        Persist one candidate. Returns False when another writer stored the
        same dedup key first.
        """
