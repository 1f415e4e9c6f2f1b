"""Create daily link statistics table.

Revision ID: 004
Revises: 003
Create Date: 2025-06-16

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the link_stats_daily table."""
    op.create_table(
        "link_stats_daily",
        sa.Column("link_id", sa.Uuid(), nullable=False, comment="UUID of the link"),
        sa.Column("date", sa.Date(), nullable=False, comment="Date of the stats"),
        sa.Column(
            "click_count",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="Total clicks on this date",
        ),
        sa.Column(
            "unique_visitors",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="Unique visitors (distinct IPs)",
        ),
        sa.Column("countries", sa.JSON(), nullable=False, comment="Clicks per country: {country: count}"),
        sa.Column(
            "referrers",
            sa.JSON(),
            nullable=False,
            comment="Clicks per referrer domain ('Direct' when absent)",
        ),
        sa.Column("devices", sa.JSON(), nullable=False, comment="Clicks per device type"),
        sa.Column("browsers", sa.JSON(), nullable=False, comment="Clicks per browser"),
        sa.PrimaryKeyConstraint("link_id", "date", name=op.f("pk_link_stats_daily")),
    )


def downgrade() -> None:
    """Drop the link_stats_daily table."""
    op.drop_table("link_stats_daily")
