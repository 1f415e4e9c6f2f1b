"""Create links table.

Revision ID: 002
Revises: 001
Create Date: 2025-06-02

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the links table."""
    op.create_table(
        "links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            nullable=True,
            comment="Owner of the link (NULL for anonymous links)",
        ),
        sa.Column(
            "short_code",
            sa.String(50),
            nullable=False,
            comment="Short code for the URL (e.g., 'aB3_x9Qz' or 'my-custom-slug')",
        ),
        sa.Column(
            "original_url",
            sa.Text(),
            nullable=False,
            comment="The original URL to redirect to",
        ),
        sa.Column(
            "title",
            sa.String(255),
            nullable=True,
            comment="Optional title for the link",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=True,
            comment="bcrypt hash; when set, redirects require the password",
        ),
        sa.Column(
            "is_custom",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
            comment="Whether the short code was custom (user-provided)",
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
            comment="Whether the link is active (soft delete)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(),
            nullable=True,
            comment="Optional expiration timestamp",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_links_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("short_code", name=op.f("uq_links_short_code")),
    )

    op.create_index(op.f("ix_links_user_id"), "links", ["user_id"])


def downgrade() -> None:
    """Drop the links table."""
    op.drop_index(op.f("ix_links_user_id"), table_name="links")
    op.drop_table("links")
