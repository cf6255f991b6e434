"""
app/domain package marker.
"""

from app.domain.alerts import (
    REJECTED_RUN_ERROR,
    AlertBatch,
    AlertCandidate,
    RunOutcome,
    ScrapeOutcome,
    ScrapeResult,
    SkippedAlert,
    StatusSnapshot,
)

__all__ = [
    "AlertBatch",
    "AlertCandidate",
    "REJECTED_RUN_ERROR",
    "RunOutcome",
    "ScrapeOutcome",
    "ScrapeResult",
    "SkippedAlert",
    "StatusSnapshot",
]
