"""Subscription plan limits applied when links are created."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.errors import PlanLimitExceeded
from linkpulse.core.timeutils import utcnow
from linkpulse.models.link import Link
from linkpulse.models.user import User
from linkpulse.schemas.link import LinkCreate

UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    urls_per_month: int
    custom_codes: bool
    password_protection: bool


PLAN_LIMITS: dict[str, PlanLimits] = {
    "FREE": PlanLimits(urls_per_month=100, custom_codes=False, password_protection=False),
    "PRO": PlanLimits(urls_per_month=10_000, custom_codes=True, password_protection=True),
    "ENTERPRISE": PlanLimits(urls_per_month=UNLIMITED, custom_codes=True, password_protection=True),
}


def get_plan_limits(plan: str) -> PlanLimits:
    """Limits for a plan tier; unknown tiers get the FREE limits."""
    return PLAN_LIMITS.get(plan.upper(), PLAN_LIMITS["FREE"])


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def count_links_this_month(
    session: AsyncSession,
    user_id,
    now: datetime | None = None,
) -> int:
    """Count links the user created since the start of the calendar month."""
    result = await session.execute(
        select(func.count(Link.id)).where(
            Link.user_id == user_id,
            Link.created_at >= _month_start(now or utcnow()),
        )
    )
    return result.scalar() or 0


async def check_link_creation(
    session: AsyncSession,
    user: User,
    link_data: LinkCreate,
) -> None:
    """Raise PlanLimitExceeded if the user's plan forbids this link."""
    limits = get_plan_limits(user.plan)

    if not user.is_active:
        raise PlanLimitExceeded("Account is inactive", plan=user.plan)

    if link_data.custom_code and not limits.custom_codes:
        raise PlanLimitExceeded(
            "Custom short codes require a paid plan",
            plan=user.plan,
        )

    if link_data.password and not limits.password_protection:
        raise PlanLimitExceeded(
            "Password protection requires a paid plan",
            plan=user.plan,
        )

    if limits.urls_per_month != UNLIMITED:
        created = await count_links_this_month(session, user.id)
        if created >= limits.urls_per_month:
            raise PlanLimitExceeded(
                f"Monthly link limit of {limits.urls_per_month} reached",
                plan=user.plan,
            )
