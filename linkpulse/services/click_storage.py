"""Click storage service for appending click events to the click store."""

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.observability import record_click_recorded
from linkpulse.core.timeutils import utcnow
from linkpulse.models.click import Click
from linkpulse.schemas.click import Visitor
from linkpulse.services.geoip import GeoIPService, GeoLocation
from linkpulse.services.user_agent import parse_user_agent

logger = structlog.get_logger()


class ClickStorageService:
    """Appends click events, enriching them with geo and client attributes.

    Geo lookup failures degrade to empty fields; they never block the
    redirect that triggered the click. Clicks are written through the
    caller's session so they commit together with the request.

    Usage:
        service = ClickStorageService(GeoIPService())
        click = await service.record_click(session, link.id, visitor)
        service.close()
    """

    def __init__(self, geoip: GeoIPService):
        self._geoip = geoip
        self._clicks_stored = 0

    async def _locate(self, ip_address: str | None) -> GeoLocation:
        try:
            return await self._geoip.lookup(ip_address)
        except Exception as e:  # enrichment must never fail a redirect
            logger.warning("Geo lookup failed", ip=ip_address, error=str(e))
            return GeoLocation()

    async def record_click(
        self,
        session: AsyncSession,
        link_id: UUID,
        visitor: Visitor,
        clicked_at: datetime | None = None,
    ) -> Click:
        """Append one click event for a link."""
        location = await self._locate(visitor.ip_address)

        click = Click(
            link_id=link_id,
            clicked_at=clicked_at or utcnow(),
            referrer=visitor.referrer or None,
            user_agent=visitor.user_agent or None,
            ip_address=visitor.ip_address,
            country=location.country,
            city=location.city,
        )
        if visitor.user_agent:
            client = parse_user_agent(visitor.user_agent)
            click.device = client.device
            click.browser = client.browser
            click.os = client.os

        session.add(click)
        await session.flush()

        self._clicks_stored += 1
        record_click_recorded()
        logger.debug("Click stored", link_id=str(link_id), country=click.country)
        return click

    @property
    def stats(self) -> dict:
        """Get storage statistics."""
        return {"clicks_stored": self._clicks_stored}

    def close(self) -> None:
        self._geoip.close()
