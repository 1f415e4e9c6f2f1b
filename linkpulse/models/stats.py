"""Aggregated statistics SQLAlchemy models."""

from datetime import date as calendar_date
from uuid import UUID

from sqlalchemy import JSON, Date, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from linkpulse.core.database import Base


class LinkStatsDaily(Base):
    """Daily rollup of clicks for one link.

    Primary key is (link_id, date) so reruns for the same day overwrite
    the previous row. Frequency tables map value -> click count.
    """

    __tablename__ = "link_stats_daily"

    link_id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        comment="UUID of the link",
    )
    date: Mapped[calendar_date] = mapped_column(
        Date,
        primary_key=True,
        comment="Date of the stats",
    )
    click_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Total clicks on this date",
    )
    unique_visitors: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Unique visitors (distinct IPs)",
    )
    countries: Mapped[dict[str, int]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Clicks per country: {country: count}",
    )
    referrers: Mapped[dict[str, int]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Clicks per referrer domain ('Direct' when absent)",
    )
    devices: Mapped[dict[str, int]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Clicks per device type",
    )
    browsers: Mapped[dict[str, int]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Clicks per browser",
    )

    def __repr__(self) -> str:
        return f"<LinkStatsDaily {self.link_id} date={self.date} clicks={self.click_count}>"
