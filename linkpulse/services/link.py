"""Link service for database operations and short code generation."""

import secrets
import string
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.config import get_settings
from linkpulse.core.errors import CodeConflict, GenerationExhausted
from linkpulse.core.security import hash_password
from linkpulse.models.link import Link
from linkpulse.schemas.link import LinkCreate, LinkUpdate

logger = structlog.get_logger()

# URL-safe alphabet for random short codes
SHORT_CODE_CHARS = string.ascii_letters + string.digits + "_-"


def random_short_code(length: int) -> str:
    """Draw a random short code from the URL-safe alphabet."""
    return "".join(secrets.choice(SHORT_CODE_CHARS) for _ in range(length))


async def is_short_code_available(session: AsyncSession, short_code: str) -> bool:
    """Check if a short code is available (not already used)."""
    result = await session.execute(
        select(Link.id).where(Link.short_code == short_code)
    )
    return result.scalar_one_or_none() is None


async def generate_unique_short_code(
    session: AsyncSession,
    length: int | None = None,
    max_attempts: int | None = None,
) -> str:
    """Generate a random short code with collision detection.

    Raises GenerationExhausted if every attempt collides.
    """
    settings = get_settings()
    length = length or settings.short_code_length
    max_attempts = max_attempts or settings.short_code_max_attempts

    for attempt in range(1, max_attempts + 1):
        code = random_short_code(length)
        if await is_short_code_available(session, code):
            return code
        logger.debug("Short code collision", attempt=attempt)

    logger.error("Short code generation exhausted", attempts=max_attempts, length=length)
    raise GenerationExhausted(max_attempts)


async def generate_short_code(
    session: AsyncSession,
    custom_code: str | None = None,
) -> str:
    """Return a free short code.

    A custom code is returned unchanged (codes are case-sensitive) or
    raises CodeConflict if already taken. The store's unique index remains
    the real guarantee; callers must handle a conflict at insert time.
    """
    if custom_code is not None:
        if not await is_short_code_available(session, custom_code):
            logger.info("Custom short code taken", short_code=custom_code)
            raise CodeConflict(custom_code)
        return custom_code
    return await generate_unique_short_code(session)


async def get_link_by_id(
    session: AsyncSession,
    link_id: UUID,
    user_id: UUID | None = None,
) -> Link | None:
    """Get a link by its ID, optionally filtering by owner."""
    query = select(Link).where(Link.id == link_id)
    if user_id:
        query = query.where(Link.user_id == user_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_link_by_short_code(
    session: AsyncSession,
    short_code: str,
) -> Link | None:
    """Get a link by its short code."""
    result = await session.execute(
        select(Link).where(Link.short_code == short_code)
    )
    return result.scalar_one_or_none()


async def get_user_links(
    session: AsyncSession,
    user_id: UUID,
    page: int = 1,
    page_size: int = 20,
    include_inactive: bool = False,
) -> tuple[list[Link], int]:
    """Get paginated links for a user.

    Returns tuple of (links, total_count).
    """
    query = select(Link).where(Link.user_id == user_id)
    count_query = select(func.count(Link.id)).where(Link.user_id == user_id)

    if not include_inactive:
        query = query.where(Link.is_active == True)  # noqa: E712
        count_query = count_query.where(Link.is_active == True)  # noqa: E712

    total_result = await session.execute(count_query)
    total = total_result.scalar() or 0

    offset = (page - 1) * page_size
    query = query.order_by(Link.created_at.desc()).offset(offset).limit(page_size)

    result = await session.execute(query)
    links = list(result.scalars().all())

    return links, total


async def create_link(
    session: AsyncSession,
    user_id: UUID | None,
    link_data: LinkCreate,
) -> Link:
    """Create a new shortened link.

    The insert runs in a savepoint. If the unique index rejects the code
    (a concurrent insert won the race) a custom code raises CodeConflict,
    and a generated code is replaced and retried once.
    """
    is_custom = link_data.custom_code is not None
    short_code = await generate_short_code(session, link_data.custom_code)
    password_hash = hash_password(link_data.password) if link_data.password else None

    for attempt in range(2):
        link = Link(
            user_id=user_id,
            short_code=short_code,
            original_url=str(link_data.original_url),
            title=link_data.title,
            password_hash=password_hash,
            is_custom=is_custom,
            expires_at=link_data.expires_at,
        )
        try:
            async with session.begin_nested():
                session.add(link)
        except IntegrityError:
            if is_custom:
                logger.info("Custom short code taken at insert", short_code=short_code)
                raise CodeConflict(short_code)
            if attempt == 1:
                logger.error("Short code conflict on retry", short_code=short_code)
                raise GenerationExhausted(get_settings().short_code_max_attempts)
            logger.warning("Short code conflict at insert, retrying", short_code=short_code)
            short_code = await generate_unique_short_code(session)
            continue

        await session.refresh(link)
        return link

    raise GenerationExhausted(get_settings().short_code_max_attempts)


async def update_link(
    session: AsyncSession,
    link: Link,
    link_data: LinkUpdate,
) -> Link:
    """Update an existing link.

    The caller invalidates the link cache once the change is committed.
    """
    update_data = link_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(link, field, value)
    await session.flush()
    await session.refresh(link)
    return link


async def delete_link(session: AsyncSession, link: Link) -> None:
    """Deactivate a link so its short code resolves as Gone.

    The row and its clicks are kept. The caller invalidates the link cache
    once the change is committed.
    """
    link.is_active = False
    await session.flush()
