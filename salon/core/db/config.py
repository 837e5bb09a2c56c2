from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    async_sessionmaker,
    AsyncAttrs,
)
from sqlalchemy.orm import DeclarativeBase

from salon.core.config import database_logger, settings

ASYNC_SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> dict:
    """Pool tuning only applies to server databases; SQLite manages its own."""
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_size": 20,  # Increase pool size for concurrent connections
        "max_overflow": 30,  # Allow overflow connections
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": 3600,  # Recycle connections every hour
    }


async_engine: AsyncEngine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(ASYNC_SQLALCHEMY_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    autoflush=False,
    expire_on_commit=False,
    autobegin=True,  # Automatically begin transactions
)


# Base class for declarative_base
class Base(AsyncAttrs, DeclarativeBase):
    pass


async def init_db() -> None:
    """
    Initializes the database by creating all the tables defined in the metadata.

    Returns:
        None
    """
    # Register every model on the metadata before creating tables
    import salon.apps.bookings.db.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    database_logger.info(
        f"Database tables ensured: {', '.join(sorted(Base.metadata.tables))}"
    )


async def dispose_db() -> None:
    """
    Dispose the database connection.
    This function is responsible for disposing the database connection by calling the `dispose()` method of the `async_engine` object.

    Returns:
        None
    """
    await async_engine.dispose()
    database_logger.info("Database engine disposed")
