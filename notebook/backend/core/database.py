"""
Database Engine and Sessions.

One async engine per process, built on first use from database.yaml so
that importing the package never needs a reachable database or a
configured .env.

Sessions:
    get_db_session       request dependency, one transaction per request
    get_session_factory  for work outside a request (scope maintenance)
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from notebook.backend.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        from notebook.backend.core.config import get_app_config, get_database_url

        db = get_app_config().database
        _engine = create_async_engine(
            get_database_url(),
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            echo=db.echo,
            echo_pool=db.echo_pool,
        )
        logger.debug("Database engine created", extra={"host": db.host, "database": db.name})
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the process engine; objects survive commit."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Committed when the endpoint returns, rolled back when it raises, so a
    note write and its reads never straddle two transactions.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create every mapped table that does not exist yet."""
    from notebook.backend.models import note as _note  # noqa: F401
    from notebook.backend.models import platform as _platform  # noqa: F401
    from notebook.backend.models.base import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created", extra={"tables": sorted(Base.metadata.tables)})


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine. No-op if never built."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.debug("Database engine disposed")
    _engine = None
    _session_factory = None
