"""Redirect endpoint for short links."""

from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from linkpulse.core.database import AsyncSessionDep
from linkpulse.core.deps import ClickStorageDep, LinkCacheDep
from linkpulse.core.rate_limit import RATE_LIMIT_REDIRECT, get_client_ip, limiter
from linkpulse.schemas.click import Visitor
from linkpulse.services.redirect import ResolveStatus, resolve

logger = structlog.get_logger()

router = APIRouter(tags=["redirect"])

# HTTP responses for every non-redirect outcome
OUTCOME_ERRORS = {
    ResolveStatus.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Link not found"),
    ResolveStatus.PASSWORD_REQUIRED: (status.HTTP_401_UNAUTHORIZED, "Password required"),
    ResolveStatus.UNAUTHORIZED: (status.HTTP_403_FORBIDDEN, "Incorrect password"),
}

GONE_DETAILS = {
    "deactivated": "Link has been deactivated",
    "expired": "Link has expired",
}


@router.get("/{short_code}")
@limiter.limit(RATE_LIMIT_REDIRECT)
async def redirect_to_original(
    request: Request,
    short_code: str,
    session: AsyncSessionDep,
    cache: LinkCacheDep,
    click_storage: ClickStorageDep,
    password: Annotated[str | None, Query(description="Password for protected links")] = None,
) -> RedirectResponse:
    """Redirect a short code to its original URL.

    Responds 404 for unknown codes, 410 for deactivated or expired links,
    401 when a password is needed and 403 when the password is wrong.
    A click is recorded only when the redirect is issued.
    """
    visitor = Visitor(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
        referrer=request.headers.get("Referer"),
    )
    outcome = await resolve(
        session,
        short_code,
        password,
        visitor,
        click_storage=click_storage,
        cache=cache,
    )

    if outcome.status is ResolveStatus.REDIRECT:
        await session.commit()
        return RedirectResponse(
            url=outcome.original_url,
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        )

    if outcome.status is ResolveStatus.GONE:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=GONE_DETAILS.get(outcome.reason, "Link is no longer available"),
        )

    status_code, detail = OUTCOME_ERRORS[outcome.status]
    raise HTTPException(status_code=status_code, detail=detail)
