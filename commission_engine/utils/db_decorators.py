"""
Database decorators for automatic error handling and rollback.

Provides decorators that roll back the session of an engine or service
method when it fails and translate driver errors into engine errors.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.utils.exceptions import StorageFailureError


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    session = kwargs.get("session")
    if session is not None:
        return session
    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        # Bound method: look for self.session
        candidate = getattr(first, "session", None)
        if isinstance(candidate, AsyncSession):
            return candidate
    return None


def translate_storage_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Roll back on any exception and re-raise SQLAlchemy errors as StorageFailureError.

    Usage:
        class Engine:
            def __init__(self, session: AsyncSession): ...

            @translate_storage_errors
            async def process(self, referral_id: int): ...

    The decorator will:
    1. Execute the wrapped coroutine
    2. On any exception, call session.rollback()
    3. Re-raise SQLAlchemyError as StorageFailureError (chained)
    4. Re-raise every other exception unchanged

    Args:
        func: Async function or method to wrap

    Returns:
        Wrapped function
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if session is not None:
                try:
                    await session.rollback()
                    logger.info(
                        f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                    )
                except SQLAlchemyError as rollback_error:
                    logger.error(
                        f"Failed to rollback in {func.__name__}: {rollback_error}"
                    )
            if isinstance(e, SQLAlchemyError):
                raise StorageFailureError(
                    f"Storage failure in {func.__name__}: {e}"
                ) from e
            raise

    return wrapper
