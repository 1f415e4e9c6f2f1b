"""Domain exceptions raised by the link, redirect and analytics services."""

import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

P = ParamSpec("P")
T = TypeVar("T")


class LinkpulseError(Exception):
    """Base class for all service errors."""


class CodeConflict(LinkpulseError):
    """The requested custom short code is already in use."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' is already taken")
        self.short_code = short_code


class GenerationExhausted(LinkpulseError):
    """No free short code was found within the retry budget."""

    def __init__(self, attempts: int):
        super().__init__(f"Unable to generate unique short code after {attempts} attempts")
        self.attempts = attempts


class StorageError(LinkpulseError):
    """The underlying store failed while serving a request."""


class PlanLimitExceeded(LinkpulseError):
    """The user's plan does not allow the requested operation."""

    def __init__(self, message: str, plan: str):
        super().__init__(message)
        self.plan = plan


def translate_storage_errors(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[T]]:
    """Re-raise SQLAlchemy failures from an async service call as StorageError."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            raise StorageError(f"{func.__name__} failed: {e}") from e

    return wrapper
