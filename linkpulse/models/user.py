"""User SQLAlchemy model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from linkpulse.core.database import Base
from linkpulse.core.timeutils import utcnow


class User(Base):
    """Account that owns links.

    Users are provisioned by the external account service; this service
    only reads the plan tier and active flag.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[str] = mapped_column(
        String(20),
        default="FREE",
        nullable=False,
        comment="Subscription tier: 'FREE', 'PRO' or 'ENTERPRISE'",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
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

    def __repr__(self) -> str:
        return f"<User {self.email} plan={self.plan}>"
