"""Async engine and session for the payment store, plus the clock used for row timestamps."""

from datetime import datetime, timezone
from typing import AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from feeledger.core.config import settings


def utc_now() -> datetime:
    """Timezone-aware UTC now; every timestamp column defaults to this."""
    return datetime.now(timezone.utc)


def _engine_options(database_url: str) -> Dict:
    # SQLite (local runs, tests) has no server to drop idle connections.
    if make_url(database_url).get_backend_name() == "sqlite":
        return {}
    # pool_pre_ping: check the pooled connection is alive before use.
    # pool_recycle: discard connections after this many seconds.
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; anything left uncommitted is rolled back on exit."""
    async with AsyncSessionLocal() as session:
        yield session
