# oauth_broker/infrastructure/database.py
from pathlib import Path

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# table models must be imported so they register on SQLModel.metadata
from oauth_broker.models.social_account import SocialAccount  # noqa: F401
from oauth_broker.models.user import User  # noqa: F401

logger = structlog.get_logger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _ensure_sqlite_dir(engine: AsyncEngine) -> None:
    url = engine.url
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db(engine: AsyncEngine) -> None:
    _ensure_sqlite_dir(engine)
    try:
        async with engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)
    except Exception as e:
        logger.exception("db_init_failed", error=str(e), backend=engine.url.get_backend_name())
        raise
    logger.info("db_initialized", backend=engine.url.get_backend_name())
