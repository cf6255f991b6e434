"""
db/models/regulatory_alert.py

Insert-only record for one ingested regulatory alert.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Index, String, Text, UniqueConstraint, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin, PortableJSON, utcnow


class AlertType:
    PUBLIC_ALERT = "PUBLIC_ALERT"
    RECALL = "RECALL"


class AlertSeverity:
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertCategory:
    RECALLS = "recalls"


class RegulatoryAlert(Base, CreatedAtMixin):
    __tablename__ = "regulatory_alerts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    dedup_key: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
        comment="Canonical source URL; the sole identity of an alert",
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    alert_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="PUBLIC_ALERT, RECALL",
    )
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_names: Mapped[list[Any]] = mapped_column(PortableJSON, nullable=False, default=list)
    batch_numbers: Mapped[list[Any]] = mapped_column(PortableJSON, nullable=False, default=list)
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=AlertCategory.RECALLS,
    )
    severity: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=AlertSeverity.MEDIUM,
        comment="LOW, MEDIUM, HIGH, CRITICAL",
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )
    scraped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("dedup_key", name="uq_regulatory_alerts_dedup_key"),
        Index("ix_regulatory_alerts_published_date", "published_date"),
        Index("ix_regulatory_alerts_severity", "severity"),
        Index("ix_regulatory_alerts_active_scraped_at", "active", "scraped_at"),
    )
