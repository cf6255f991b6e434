"""
SQLAlchemy-backed alert store.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.alerts import AlertCandidate
from app.scraping.errors import RecordIngestError
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import AlertStore
from db.base import utcnow
from db.models.regulatory_alert import AlertCategory, AlertSeverity, AlertType, RegulatoryAlert
from db.repositories.alert_repository import AlertRepository

logger = logging.getLogger(__name__)


class SQLAlchemyAlertStore(AlertStore):
    """
    Persist alerts through the repository, committing each insert on its own
    so one failed candidate never rolls back the others.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._repository = AlertRepository(session)

    def exists(self, dedup_key: str) -> bool:
        try:
            return self._repository.exists(dedup_key)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordIngestError(f"Existence check failed for {dedup_key}: {exc}") from exc

    def insert(self, candidate: AlertCandidate) -> bool:
        dedup_key = candidate.dedup_key
        try:
            self._repository.add(self._to_model(candidate, dedup_key=dedup_key))
            self._session.commit()
            return True
        except IntegrityError:
            self._session.rollback()
            log_event(
                logger,
                logging.INFO,
                "alert_insert_race_ignored",
                dedup_key=dedup_key,
            )
            return False
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordIngestError(f"Insert failed for {dedup_key}: {exc}") from exc

    @staticmethod
    def _to_model(candidate: AlertCandidate, *, dedup_key: str) -> RegulatoryAlert:
        return RegulatoryAlert(
            dedup_key=dedup_key,
            url=candidate.url,
            title=candidate.title,
            excerpt=candidate.excerpt,
            published_date=candidate.published_date,
            batch_number=candidate.batch_number,
            alert_type=candidate.alert_type or AlertType.PUBLIC_ALERT,
            image=candidate.image,
            full_content=candidate.full_content,
            product_names=list(candidate.product_names),
            batch_numbers=list(candidate.batch_numbers),
            manufacturer=candidate.product_names[0] if candidate.product_names else None,
            category=AlertCategory.RECALLS,
            severity=AlertSeverity.MEDIUM,
            active=True,
            scraped_at=utcnow(),
        )
