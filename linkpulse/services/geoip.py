"""GeoIP service for IP to location lookup."""

from dataclasses import dataclass
from pathlib import Path

import geoip2.database
import geoip2.errors
import httpx
import structlog

logger = structlog.get_logger()

# Common private/loopback/link-local ranges
PRIVATE_PREFIXES = (
    "10.",
    "172.16.",
    "172.17.",
    "172.18.",
    "172.19.",
    "172.20.",
    "172.21.",
    "172.22.",
    "172.23.",
    "172.24.",
    "172.25.",
    "172.26.",
    "172.27.",
    "172.28.",
    "172.29.",
    "172.30.",
    "172.31.",
    "192.168.",
    "127.",
    "169.254.",
    "::1",
    "fc00:",
    "fe80:",
)


@dataclass
class GeoLocation:
    """Geographic location data from IP lookup."""

    country: str | None = None  # Country name, e.g. "United States"
    city: str | None = None


class GeoIPService:
    """Service for looking up geographic location from IP addresses.

    Supports two backends:
    1. GeoIP2 database (MaxMind) - for production use
    2. IP-API.com - free API fallback for development

    Lookups never raise: any failure yields an empty GeoLocation.

    Usage:
        service = GeoIPService()
        location = await service.lookup("8.8.8.8")
        print(location.country, location.city)
    """

    def __init__(self, geoip_database_path: str | None = None, enabled: bool = True):
        """Initialize the GeoIP service.

        Args:
            geoip_database_path: Path to GeoIP2 database file.
                If not provided, falls back to IP-API.com.
            enabled: When False every lookup returns an empty location.
        """
        self._geoip_reader: geoip2.database.Reader | None = None
        self._database_path = geoip_database_path
        self._enabled = enabled

        if enabled and self._database_path:
            self._init_geoip2()

    def _init_geoip2(self) -> None:
        """Initialize GeoIP2 database reader."""
        path = Path(self._database_path)
        if not path.exists():
            logger.warning("GeoIP2 database not found", path=str(path))
            return
        try:
            self._geoip_reader = geoip2.database.Reader(str(path))
            logger.info("GeoIP2 database loaded", path=str(path))
        except (OSError, RuntimeError) as e:  # InvalidDatabaseError is a RuntimeError
            logger.error("Failed to load GeoIP2 database", error=str(e))

    async def lookup(self, ip_address: str | None) -> GeoLocation:
        """Look up geographic location for an IP address."""
        if not self._enabled or not ip_address:
            return GeoLocation()

        if self._is_private_ip(ip_address):
            return GeoLocation()

        if self._geoip_reader:
            return self._lookup_geoip2(ip_address)

        return await self._lookup_ip_api(ip_address)

    def _is_private_ip(self, ip_address: str) -> bool:
        """Check if an IP address is private/local."""
        return ip_address.startswith(PRIVATE_PREFIXES)

    def _lookup_geoip2(self, ip_address: str) -> GeoLocation:
        """Look up location using GeoIP2 database."""
        try:
            response = self._geoip_reader.city(ip_address)
            return GeoLocation(
                country=response.country.name,
                city=response.city.name,
            )
        except (geoip2.errors.AddressNotFoundError, ValueError) as e:
            logger.debug("GeoIP2 lookup failed", ip=ip_address, error=str(e))
            return GeoLocation()

    async def _lookup_ip_api(self, ip_address: str) -> GeoLocation:
        """Look up location using IP-API.com (free tier).

        Note: IP-API has rate limits (45 requests/minute for free tier).
        Use GeoIP2 database for production.
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"http://ip-api.com/json/{ip_address}",
                    params={"fields": "status,country,city"},
                    timeout=2.0,
                )
                if response.status_code == 200:
                    data = response.json()
                    if data.get("status") == "success":
                        return GeoLocation(
                            country=data.get("country") or None,
                            city=data.get("city") or None,
                        )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("IP-API lookup failed", ip=ip_address, error=str(e))

        return GeoLocation()

    def close(self) -> None:
        """Close the GeoIP2 database reader."""
        if self._geoip_reader:
            self._geoip_reader.close()
            self._geoip_reader = None
