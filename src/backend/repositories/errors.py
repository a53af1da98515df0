"""
Translation of database failures into transient processing errors.
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import RepositoryUnavailableError

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def translate_db_errors(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """
    Re-raise SQLAlchemy and timeout failures as RepositoryUnavailableError.

    Integrity errors are included: with per-subject serialisation they only
    happen when another node process won a race, and a redelivery resolves it.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            logger.warning("repository_call_failed", call=func.__qualname__, error=str(e))
            raise RepositoryUnavailableError(f"{func.__qualname__} failed: {e}") from e

    return wrapper
