"""
Repository for regulatory alert existence checks, inserts and statistics.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.regulatory_alert import RegulatoryAlert


class AlertRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, dedup_key: str) -> bool:
        stmt = select(RegulatoryAlert.id).where(RegulatoryAlert.dedup_key == dedup_key).limit(1)
        return self._session.scalar(stmt) is not None

    def add(self, alert: RegulatoryAlert) -> RegulatoryAlert:
        self._session.add(alert)
        self._session.flush()
        return alert

    def count(self) -> int:
        return self._session.scalar(select(func.count()).select_from(RegulatoryAlert)) or 0

    def count_active(self) -> int:
        stmt = select(func.count()).select_from(RegulatoryAlert).where(RegulatoryAlert.active.is_(True))
        return self._session.scalar(stmt) or 0

    def severity_distribution(self) -> dict[str, int]:
        stmt = (
            select(RegulatoryAlert.severity, func.count(RegulatoryAlert.id))
            .where(RegulatoryAlert.active.is_(True))
            .group_by(RegulatoryAlert.severity)
        )
        return {severity: int(total) for severity, total in self._session.execute(stmt).all()}

    def latest_scraped_at(self) -> datetime | None:
        stmt = select(func.max(RegulatoryAlert.scraped_at)).where(RegulatoryAlert.active.is_(True))
        return self._session.scalar(stmt)
