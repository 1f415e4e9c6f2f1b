"""Redis-backed cache of link redirect data."""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from uuid import UUID

import redis.asyncio as redis
import structlog

from linkpulse.models.link import Link

logger = structlog.get_logger()

# Cache key prefixes
LINK_CACHE_PREFIX = "link:"
LINK_CACHE_TTL = 3600  # 1 hour


@dataclass(frozen=True)
class CachedLink:
    """The fields the redirect path needs, as stored in the cache."""

    link_id: UUID
    original_url: str
    is_active: bool
    expires_at: datetime | None
    password_hash: str | None

    @classmethod
    def from_link(cls, link: Link) -> "CachedLink":
        return cls(
            link_id=link.id,
            original_url=link.original_url,
            is_active=link.is_active,
            expires_at=link.expires_at,
            password_hash=link.password_hash,
        )

    def to_json(self) -> str:
        data = asdict(self)
        data["link_id"] = str(self.link_id)
        data["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "CachedLink":
        data = json.loads(raw)
        expires_at = data.get("expires_at")
        return cls(
            link_id=UUID(data["link_id"]),
            original_url=data["original_url"],
            is_active=data.get("is_active", True),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            password_hash=data.get("password_hash"),
        )


def _link_cache_key(short_code: str) -> str:
    """Generate cache key for a link."""
    return f"{LINK_CACHE_PREFIX}{short_code}"


class LinkCache:
    """Short code -> CachedLink cache.

    Redis failures are logged and treated as cache misses so the redirect
    path falls back to the database.

    Usage:
        cache = LinkCache.from_url(settings.redis_url)
        await cache.set("abc123", CachedLink.from_link(link))
        cached = await cache.get("abc123")
        await cache.close()
    """

    def __init__(self, client: redis.Redis, ttl: int = LINK_CACHE_TTL):
        self._client = client
        self._ttl = ttl

    @classmethod
    def from_url(cls, redis_url: str, ttl: int = LINK_CACHE_TTL) -> "LinkCache":
        client = redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Redis client initialized", url=redis_url)
        return cls(client, ttl=ttl)

    async def get(self, short_code: str) -> CachedLink | None:
        """Get a link from cache by short code.

        Returns None if not found in cache.
        """
        try:
            data = await self._client.get(_link_cache_key(short_code))
        except redis.RedisError as e:
            logger.warning("Redis get error", short_code=short_code, error=str(e))
            return None

        if not data:
            logger.debug("Cache miss", short_code=short_code)
            return None

        logger.debug("Cache hit", short_code=short_code)
        try:
            return CachedLink.from_json(data)
        except (ValueError, KeyError) as e:
            logger.warning("Corrupt cache entry", short_code=short_code, error=str(e))
            return None

    async def set(self, short_code: str, link: CachedLink) -> None:
        """Cache a link by short code."""
        try:
            await self._client.setex(_link_cache_key(short_code), self._ttl, link.to_json())
            logger.debug("Link cached", short_code=short_code, ttl=self._ttl)
        except redis.RedisError as e:
            logger.warning("Redis set error", short_code=short_code, error=str(e))

    async def invalidate(self, short_code: str) -> None:
        """Invalidate (delete) a link from cache."""
        try:
            await self._client.delete(_link_cache_key(short_code))
            logger.debug("Cache invalidated", short_code=short_code)
        except redis.RedisError as e:
            logger.warning("Redis delete error", short_code=short_code, error=str(e))

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
        logger.info("Redis connection closed")
