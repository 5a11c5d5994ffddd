"""Database connection management."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ai_tools.config.settings import get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create an async engine.

    Args:
        database_url: SQLAlchemy URL. Defaults to ``settings.database_url``.
        echo: Echo SQL. Defaults to ``settings.database_echo``.
    """
    settings = get_settings()
    url = database_url or settings.database_url
    echo = settings.database_echo if echo is None else echo
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_size=5, max_overflow=10)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    """Process-wide engine built from settings on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory bound to :func:`get_engine`."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database (create tables if needed)."""
    from ai_tools.service.models import Base  # noqa: PLC0415

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections of the process-wide engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
