"""Click SQLAlchemy model for storing raw click events."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from linkpulse.core.database import Base
from linkpulse.core.timeutils import utcnow


class Click(Base):
    """Click model for storing raw click/redirect events.

    Each row represents a single successful redirect through a link.
    Rows are append-only: the service never updates or deletes them.
    """

    __tablename__ = "clicks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    link_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Link that was resolved",
    )
    clicked_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
        index=True,
        comment="Timestamp when the click occurred",
    )
    referrer: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP Referer header",
    )
    user_agent: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP User-Agent header",
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(45),
        nullable=True,
        comment="Client IP address (IPv4 or IPv6)",
    )
    country: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Country name (from GeoIP)",
    )
    city: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="City name (from GeoIP)",
    )
    device: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Desktop / Mobile / Tablet (from User-Agent)",
    )
    browser: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Browser family (from User-Agent)",
    )
    os: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Operating system (from User-Agent)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        comment="When this record was created",
    )

    # Composite index for common queries
    __table_args__ = (
        Index("ix_clicks_link_id_clicked_at", "link_id", "clicked_at"),
    )

    def __repr__(self) -> str:
        return f"<Click {self.id} link={self.link_id} at={self.clicked_at}>"
