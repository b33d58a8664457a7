from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm.exc import StaleDataError
from campus_events.core.config import settings
from campus_events.core.errors import Conflict, StoreFailure
from campus_events.core.logging import logger

engine_options = {"echo": False, "future": True}
if not settings.uses_sqlite:
    engine_options.update(
        pool_size=20,              # Number of permanent connections to maintain
        max_overflow=10,           # Maximum number of connections to allow beyond pool_size
        pool_pre_ping=True,        # Verify connections before using them
        pool_recycle=3600,         # Recycle connections after 1 hour (3600 seconds)
    )

engine = create_async_engine(settings.DATABASE_URL, **engine_options)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def commit(session: AsyncSession, message: str, conflict_message: Optional[str] = None) -> None:
    """
    Commit the session, translating database errors into service errors.

    Args:
        session: Session holding the staged changes
        message: StoreFailure message if the commit fails
        conflict_message: Conflict message for unique-constraint violations;
            when omitted they are reported as StoreFailure

    Raises:
        Conflict: Unique constraint violated, or the row's version changed
            since it was read
        StoreFailure: Any other database error
    """
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if conflict_message:
            raise Conflict(conflict_message)
        logger.error(f"{message}: {e}")
        raise StoreFailure(message, error=str(e.orig))
    except StaleDataError:
        await session.rollback()
        raise Conflict("The record was modified concurrently, please retry")
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"{message}: {e}")
        raise StoreFailure(message, error=str(getattr(e, "orig", None) or e))


@asynccontextmanager
async def store_errors(session: AsyncSession, message: str):
    """
    Roll back and re-raise database errors as StoreFailure.

    Args:
        session: Session the guarded statements run on
        message: Client-facing message, e.g. "Failed to create event"
    """
    try:
        yield
    except StaleDataError:
        await session.rollback()
        raise Conflict("The record was modified concurrently, please retry")
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"{message}: {e}")
        raise StoreFailure(message, error=str(getattr(e, "orig", None) or e))
