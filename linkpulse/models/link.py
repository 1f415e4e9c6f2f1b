"""Link SQLAlchemy model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from linkpulse.core.database import Base
from linkpulse.core.timeutils import utcnow


class Link(Base):
    """Link model for shortened URLs."""

    __tablename__ = "links"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Owner of the link (NULL for anonymous links)",
    )
    short_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        comment="Short code for the URL (e.g., 'aB3_x9Qz' or 'my-custom-slug')",
    )
    original_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="The original URL to redirect to",
    )
    title: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Optional title for the link",
    )
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="bcrypt hash; when set, redirects require the password",
    )
    is_custom: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Whether the short code was custom (user-provided)",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the link is active (soft delete)",
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
        comment="Optional expiration timestamp",
    )

    def __repr__(self) -> str:
        return f"<Link {self.short_code} -> {self.original_url[:50]}>"

    @property
    def is_password_protected(self) -> bool:
        return self.password_hash is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the link has expired."""
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at
