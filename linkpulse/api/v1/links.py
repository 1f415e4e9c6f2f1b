"""Link CRUD endpoints."""

import math
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status

from linkpulse.core.database import AsyncSessionDep
from linkpulse.core.deps import CurrentUser, LinkCacheDep
from linkpulse.core.errors import CodeConflict, GenerationExhausted, PlanLimitExceeded
from linkpulse.core.observability import record_link_operation
from linkpulse.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_CREATE_LINK, limiter
from linkpulse.schemas.link import LinkCreate, LinkListResponse, LinkResponse, LinkUpdate
from linkpulse.services import link as link_service
from linkpulse.services.plans import check_link_creation

logger = structlog.get_logger()

router = APIRouter(prefix="/links", tags=["links"])


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_CREATE_LINK)
async def create_link(
    request: Request,
    link_data: LinkCreate,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> LinkResponse:
    """Create a new shortened link.

    If `custom_code` is provided, it will be used as the short code.
    Otherwise, a random short code will be generated.
    """
    try:
        await check_link_creation(session, user, link_data)
        link = await link_service.create_link(
            session=session,
            user_id=user.id,
            link_data=link_data,
        )
    except PlanLimitExceeded as e:
        logger.info("Link creation blocked by plan", user_id=str(user.id), plan=e.plan)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except CodeConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except GenerationExhausted as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    await session.commit()
    logger.info(
        "Link created",
        link_id=str(link.id),
        short_code=link.short_code,
        user_id=str(user.id),
    )
    record_link_operation("create")
    return LinkResponse.model_validate(link)


@router.get("", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def list_links(
    request: Request,
    user: CurrentUser,
    session: AsyncSessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    include_inactive: bool = False,
) -> LinkListResponse:
    """List all links for the current user (paginated)."""
    links, total = await link_service.get_user_links(
        session=session,
        user_id=user.id,
        page=page,
        page_size=page_size,
        include_inactive=include_inactive,
    )

    return LinkListResponse(
        items=[LinkResponse.model_validate(link) for link in links],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> LinkResponse:
    """Get a specific link by ID."""
    link = await link_service.get_link_by_id(
        session=session,
        link_id=link_id,
        user_id=user.id,
    )
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )
    return LinkResponse.model_validate(link)


@router.patch("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link(
    request: Request,
    link_id: UUID,
    link_data: LinkUpdate,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: LinkCacheDep,
) -> LinkResponse:
    """Update a link's title, active flag or expiry."""
    link = await link_service.get_link_by_id(
        session=session,
        link_id=link_id,
        user_id=user.id,
    )
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )

    updated_link = await link_service.update_link(
        session=session,
        link=link,
        link_data=link_data,
    )
    await session.commit()
    # Only after commit, or a concurrent redirect could re-cache the old row
    if cache:
        await cache.invalidate(updated_link.short_code)

    logger.info(
        "Link updated",
        link_id=str(link_id),
        user_id=str(user.id),
    )
    record_link_operation("update")
    return LinkResponse.model_validate(updated_link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: LinkCacheDep,
) -> None:
    """Deactivate a link. Its short code then responds 410 Gone.

    Clicks recorded for the link are kept.
    """
    link = await link_service.get_link_by_id(
        session=session,
        link_id=link_id,
        user_id=user.id,
    )
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )

    await link_service.delete_link(session=session, link=link)
    await session.commit()
    if cache:
        await cache.invalidate(link.short_code)

    logger.info(
        "Link deleted",
        link_id=str(link_id),
        user_id=str(user.id),
    )
    record_link_operation("delete")
