import logging
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from learning_journal.core.config import settings

logger = logging.getLogger(__name__)

# Async URL (for application runtime)
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# Sync URL (for Alembic migrations); strip async drivers when not configured
SYNC_DATABASE_URL = settings.SYNC_DATABASE_URL or (
    SQLALCHEMY_DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
)

# Ensure async URL has an async driver
if SQLALCHEMY_DATABASE_URL.startswith("postgresql://"):
    logger.warning(
        f"DATABASE_URL {SQLALCHEMY_DATABASE_URL} is missing +asyncpg prefix, adding it."
    )
    ASYNC_SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace(
        "postgresql://", "postgresql+asyncpg://", 1
    )
else:
    ASYNC_SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL

async_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
)

# SQLite lower() only folds ASCII; text search uses this function instead
UNICODE_LOWER_FUNCTION = "unicode_lower"


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(engine: AsyncEngine) -> None:
    """Registers the Unicode-aware lower-casing function on every new SQLite connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function(UNICODE_LOWER_FUNCTION, 1, _unicode_lower)


register_sqlite_functions(async_engine)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


Base = declarative_base()


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency providing a request-scoped async session."""
    session: AsyncSession = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in async session: {e}", exc_info=True)
        await session.rollback()
        raise
    except Exception as e:
        logger.error(f"Unexpected error in async session: {e}", exc_info=True)
        await session.rollback()
        raise
    finally:
        await session.close()


async def create_tables() -> None:
    """Creates all tables; used for local development and tests."""
    # Import models so they register on Base.metadata
    from learning_journal import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables checked/created.")
