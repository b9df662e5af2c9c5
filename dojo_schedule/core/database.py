import asyncio
import logging
import re
from functools import wraps
from typing import Callable, TypeVar, Any, AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import text
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
)
from asyncpg.exceptions import (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)

from .config import DATABASE_URL, DB_RETRY_ATTEMPTS, DB_RETRY_DELAY
from .exceptions import DatabaseConnectionError, DatabaseTimeoutError

logger = logging.getLogger(__name__)

engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    pool_size=10,
    max_overflow=5,
    pool_timeout=30,
    pool_recycle=3600,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

F = TypeVar("F", bound=Callable[..., Any])

# Connection-level failures only; integrity errors are never retried
RETRYABLE_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)


def db_retry(
    max_attempts: int = None,
    delay: float = None,
    backoff_factor: float = 2.0,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable[[F], F]:
    """
    Retry an async database call on connection-level failures with
    exponential backoff. Defaults come from DB_RETRY_ATTEMPTS and
    DB_RETRY_DELAY.
    """
    attempts = max_attempts or DB_RETRY_ATTEMPTS
    first_delay = DB_RETRY_DELAY if delay is None else delay

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            wait = first_delay

            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error(
                            f"{func.__name__} failed after {attempts} attempts: {str(e)}",
                            extra={"function": func.__name__, "max_attempts": attempts},
                        )
                        if isinstance(e, TimeoutError):
                            raise DatabaseTimeoutError(func.__name__, 30)
                        raise DatabaseConnectionError(
                            f"Database connection failed after {attempts} attempts"
                        )

                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt}/{attempts}), retrying in {wait}s",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "exception_type": type(e).__name__,
                        },
                    )
                    await asyncio.sleep(wait)
                    wait *= backoff_factor

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request"""
    session = async_session()
    try:
        yield session
    except Exception as e:
        await session.rollback()
        logger.error(f"Session error: {str(e)}")
        raise
    finally:
        await session.close()


class DatabaseManager:
    """Schema creation and connection lifecycle"""

    @staticmethod
    @db_retry()
    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    @staticmethod
    @db_retry()
    async def check_connection():
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection check successful")
        return True

    @staticmethod
    async def close_connections():
        try:
            await engine.dispose()
            logger.info("Database connections closed successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error closing database connections: {str(e)}")


db_manager = DatabaseManager()


UNIQUE_VIOLATION = "23505"


def violated_constraint(exc: IntegrityError) -> Optional[str]:
    """Constraint name from an IntegrityError raised through asyncpg"""
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name

    match = re.search(r'constraint "([^"]+)"', str(exc.orig))
    return match.group(1) if match else None


def is_unique_violation(exc: IntegrityError) -> bool:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        if getattr(candidate, "sqlstate", None) == UNIQUE_VIOLATION:
            return True
        if getattr(candidate, "pgcode", None) == UNIQUE_VIOLATION:
            return True

    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


def db_operation(func: F) -> F:
    """
    Log the start, end and SQLAlchemy failures of a data-access function
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        operation_name = func.__name__

        try:
            logger.debug(f"Starting database operation: {operation_name}")
            result = await func(*args, **kwargs)
            logger.debug(f"Database operation completed: {operation_name}")
            return result

        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemy error in {operation_name}: {str(e)}",
                extra={"operation": operation_name, "exception_type": type(e).__name__},
            )
            raise

    return wrapper
