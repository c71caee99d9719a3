from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from orgdesk.config import settings
import structlog

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def _database_url() -> str:
    # asyncpg takes SSL through connect_args, not the URL
    url = settings.DATABASE_URL
    for param in ("?sslmode=require", "&sslmode=require"):
        url = url.replace(param, "")
    return url


def _engine_options() -> dict:
    options = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": 30,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
    }
    if settings.DB_SSL:
        options["connect_args"] = {"ssl": "require"}
    return options


engine: AsyncEngine = create_async_engine(_database_url(), **_engine_options())

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db():
    """Request-scoped session: commits when the route returns, rolls back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    async with engine.connect() as conn:
        version = (await conn.execute(text("SHOW server_version"))).scalar()
        logger.info("database_connected", server_version=version)


async def close_db():
    await engine.dispose()
    logger.info("database_disconnected")
