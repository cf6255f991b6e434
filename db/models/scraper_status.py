"""
db/models/scraper_status.py

Singleton status row describing the alert scraping state machine.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, utcnow

SCRAPER_STATUS_ID = 1


class ScraperStatus(Base):
    """
    Exactly one row exists (id = 1). Only StatusRegister writes to it.
    """

    __tablename__ = "scraper_status"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        default=SCRAPER_STATUS_ID,
    )
    is_scraping: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="True only while a scrape run is in flight",
    )
    last_scraped_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Completion time of the last successful run",
    )
    last_error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Fatal error of the last failed run",
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(f"id = {SCRAPER_STATUS_ID}", name="ck_scraper_status_singleton"),
    )
