"""Business logic services."""

from linkpulse.services.click_storage import ClickStorageService
from linkpulse.services.geoip import GeoIPService, GeoLocation
from linkpulse.services.redirect import ResolveOutcome, ResolveStatus, resolve

__all__ = [
    # Click storage
    "ClickStorageService",
    # GeoIP
    "GeoIPService",
    "GeoLocation",
    # Redirect
    "ResolveOutcome",
    "ResolveStatus",
    "resolve",
]
