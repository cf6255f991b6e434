"""create regulatory_alerts and scraper_status tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "regulatory_alerts",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "dedup_key",
            sa.String(length=2048),
            nullable=False,
            comment="Canonical source URL; the sole identity of an alert",
        ),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=False),
        sa.Column("published_date", sa.Date(), nullable=True),
        sa.Column("batch_number", sa.String(length=120), nullable=True),
        sa.Column("alert_type", sa.String(length=50), nullable=True, comment="PUBLIC_ALERT, RECALL"),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("full_content", sa.Text(), nullable=True),
        sa.Column("product_names", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("batch_numbers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("manufacturer", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False, comment="LOW, MEDIUM, HIGH, CRITICAL"),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dedup_key", name="uq_regulatory_alerts_dedup_key"),
    )
    op.create_index(
        "ix_regulatory_alerts_published_date",
        "regulatory_alerts",
        ["published_date"],
        unique=False,
    )
    op.create_index("ix_regulatory_alerts_severity", "regulatory_alerts", ["severity"], unique=False)
    op.create_index(
        "ix_regulatory_alerts_active_scraped_at",
        "regulatory_alerts",
        ["active", "scraped_at"],
        unique=False,
    )

    op.create_table(
        "scraper_status",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column(
            "is_scraping",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
            comment="True only while a scrape run is in flight",
        ),
        sa.Column(
            "last_scraped_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Completion time of the last successful run",
        ),
        sa.Column("last_error", sa.Text(), nullable=True, comment="Fatal error of the last failed run"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("id = 1", name="ck_scraper_status_singleton"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.execute("INSERT INTO scraper_status (id, is_scraping) VALUES (1, false)")


def downgrade() -> None:
    op.drop_table("scraper_status")
    op.drop_index("ix_regulatory_alerts_active_scraped_at", table_name="regulatory_alerts")
    op.drop_index("ix_regulatory_alerts_severity", table_name="regulatory_alerts")
    op.drop_index("ix_regulatory_alerts_published_date", table_name="regulatory_alerts")
    op.drop_table("regulatory_alerts")
