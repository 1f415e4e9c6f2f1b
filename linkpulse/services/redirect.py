"""Short code resolution for the redirect endpoint."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.errors import translate_storage_errors
from linkpulse.core.observability import record_redirect_outcome
from linkpulse.core.redis import CachedLink, LinkCache
from linkpulse.core.security import verify_password
from linkpulse.core.timeutils import utcnow
from linkpulse.schemas.click import Visitor
from linkpulse.services import link as link_service
from linkpulse.services.click_storage import ClickStorageService

logger = structlog.get_logger()


class ResolveStatus(str, Enum):
    REDIRECT = "redirect"
    PASSWORD_REQUIRED = "password_required"
    UNAUTHORIZED = "unauthorized"
    GONE = "gone"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResolveOutcome:
    """Result of resolving a short code.

    ``original_url`` is only set for REDIRECT; ``reason`` distinguishes
    deactivated from expired links when the status is GONE.
    """

    status: ResolveStatus
    original_url: str | None = None
    link_id: UUID | None = None
    reason: str | None = None


async def _load_link(
    session: AsyncSession,
    short_code: str,
    cache: LinkCache | None,
) -> CachedLink | None:
    if cache:
        cached = await cache.get(short_code)
        if cached:
            return cached

    link = await link_service.get_link_by_short_code(session, short_code)
    if link is None:
        return None

    snapshot = CachedLink.from_link(link)
    if cache:
        await cache.set(short_code, snapshot)
    return snapshot


def _outcome(short_code: str, outcome: ResolveOutcome) -> ResolveOutcome:
    record_redirect_outcome(outcome.status.value)
    logger.info(
        "Short code resolved",
        short_code=short_code,
        outcome=outcome.status.value,
        reason=outcome.reason,
    )
    return outcome


@translate_storage_errors
async def resolve(
    session: AsyncSession,
    short_code: str,
    supplied_password: str | None = None,
    visitor: Visitor | None = None,
    *,
    click_storage: ClickStorageService,
    cache: LinkCache | None = None,
    now: datetime | None = None,
) -> ResolveOutcome:
    """Decide what to do with a request for a short code.

    Checks run in order and the first match wins: missing link, deactivated,
    expired, password missing, password wrong, redirect. Deactivation and
    expiry are checked before the password so dead links never reveal
    whether they were protected. Exactly one click is recorded, and only
    on redirect.

    Raises:
        StorageError: the link or click store failed.
    """
    now = now or utcnow()
    link = await _load_link(session, short_code, cache)

    if link is None:
        return _outcome(short_code, ResolveOutcome(ResolveStatus.NOT_FOUND))

    if not link.is_active:
        return _outcome(
            short_code,
            ResolveOutcome(ResolveStatus.GONE, link_id=link.link_id, reason="deactivated"),
        )

    if link.expires_at is not None and now > link.expires_at:
        return _outcome(
            short_code,
            ResolveOutcome(ResolveStatus.GONE, link_id=link.link_id, reason="expired"),
        )

    if link.password_hash:
        if not supplied_password:
            return _outcome(
                short_code,
                ResolveOutcome(ResolveStatus.PASSWORD_REQUIRED, link_id=link.link_id),
            )
        if not verify_password(supplied_password, link.password_hash):
            return _outcome(
                short_code,
                ResolveOutcome(ResolveStatus.UNAUTHORIZED, link_id=link.link_id),
            )

    await click_storage.record_click(session, link.link_id, visitor or Visitor(), clicked_at=now)

    return _outcome(
        short_code,
        ResolveOutcome(
            ResolveStatus.REDIRECT,
            original_url=link.original_url,
            link_id=link.link_id,
        ),
    )
