"""Create clicks table.

Revision ID: 003
Revises: 002
Create Date: 2025-06-09

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the clicks table."""
    op.create_table(
        "clicks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "link_id",
            sa.Uuid(),
            nullable=False,
            comment="Link that was resolved",
        ),
        sa.Column(
            "clicked_at",
            sa.DateTime(),
            nullable=False,
            comment="Timestamp when the click occurred",
        ),
        sa.Column("referrer", sa.Text(), nullable=True, comment="HTTP Referer header"),
        sa.Column("user_agent", sa.Text(), nullable=True, comment="HTTP User-Agent header"),
        sa.Column(
            "ip_address",
            sa.String(45),
            nullable=True,
            comment="Client IP address (IPv4 or IPv6)",
        ),
        sa.Column("country", sa.String(100), nullable=True, comment="Country name (from GeoIP)"),
        sa.Column("city", sa.String(255), nullable=True, comment="City name (from GeoIP)"),
        sa.Column(
            "device",
            sa.String(20),
            nullable=True,
            comment="Desktop / Mobile / Tablet (from User-Agent)",
        ),
        sa.Column("browser", sa.String(50), nullable=True, comment="Browser family (from User-Agent)"),
        sa.Column("os", sa.String(50), nullable=True, comment="Operating system (from User-Agent)"),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
            comment="When this record was created",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_clicks")),
        sa.ForeignKeyConstraint(
            ["link_id"],
            ["links.id"],
            name=op.f("fk_clicks_link_id_links"),
            ondelete="CASCADE",
        ),
    )

    # Create indexes
    op.create_index(op.f("ix_clicks_link_id"), "clicks", ["link_id"])
    op.create_index(op.f("ix_clicks_clicked_at"), "clicks", ["clicked_at"])
    op.create_index(
        "ix_clicks_link_id_clicked_at",
        "clicks",
        ["link_id", "clicked_at"],
    )


def downgrade() -> None:
    """Drop the clicks table."""
    op.drop_index("ix_clicks_link_id_clicked_at", table_name="clicks")
    op.drop_index(op.f("ix_clicks_clicked_at"), table_name="clicks")
    op.drop_index(op.f("ix_clicks_link_id"), table_name="clicks")
    op.drop_table("clicks")
