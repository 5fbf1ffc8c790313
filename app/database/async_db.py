import logging
from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import (  # type: ignore[attr-defined]
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_async_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_async_database_url(settings: Settings | None = None) -> str:
    """Build the asyncpg database URL"""
    settings = settings or get_settings()
    if not settings.DB_NAME:
        raise ValueError("Database name is required (DB_NAME)")

    user = quote_plus(settings.DB_USER or "postgres")
    credentials = f"{user}:{quote_plus(settings.DB_PASSWORD)}" if settings.DB_PASSWORD else user
    return f"postgresql+asyncpg://{credentials}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}"


def create_async_database_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine (NullPool in development, pooled otherwise)"""
    settings = settings or get_settings()
    try:
        base_config = {
            "echo": settings.DB_ECHO,
            "pool_pre_ping": True,
        }

        if settings.DEBUG:
            logger.info("Creating async database engine for DEVELOPMENT (NullPool)")
            engine_config = {**base_config, "poolclass": NullPool}
        else:
            logger.info("Creating async database engine for PRODUCTION (pooled)")
            engine_config = {
                **base_config,
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_recycle": settings.DB_POOL_RECYCLE,
                "pool_timeout": settings.DB_POOL_TIMEOUT,
            }

        return create_async_engine(get_async_database_url(settings), **engine_config)

    except Exception as e:
        logger.error(f"Failed to create async database engine: {e}")
        raise


def get_async_engine(settings: Settings | None = None) -> AsyncEngine:
    """Engine singleton, created on first use."""
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_database_engine(settings)
    return _async_engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_async_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def create_all_tables(settings: Settings | None = None) -> None:
    """Create the scheduling tables when they do not exist yet."""
    from app.models.db.base import Base
    import app.domains.scheduling.infrastructure.persistence.sqlalchemy.models  # noqa: F401

    async with get_async_engine(settings).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Scheduling tables ensured")


async def dispose_async_engine() -> None:
    global _async_engine, _session_factory
    if _async_engine is not None:
        await _async_engine.dispose()
        logger.info("Async database engine disposed")
    _async_engine = None
    _session_factory = None
