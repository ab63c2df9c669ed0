"""SQLAlchemy engine and session lifecycle for the local store."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cockpit.domain.exceptions import LocalStoreUnavailableError
from cockpit.infrastructure.database.base import Base
from cockpit.infrastructure.database.models import StoreMetaModel

logger = logging.getLogger(__name__)

# Bump when the table layout changes; opening an older file upgrades it.
SCHEMA_VERSION = 14
_SCHEMA_KEY = "schema_version"


def _get_async_url(url: str) -> str:
    """Convert a sync SQLAlchemy URL to an async one."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


class StorageContext:
    """Owns the local store engine.

    Created once per process and opened at startup. Repositories ask it for
    sessions; while it is closed every request fails with
    LocalStoreUnavailableError instead of touching the database.
    """

    def __init__(self, database_url: str, *, echo: bool = False):
        self._url = _get_async_url(database_url)
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Open the database, creating or upgrading its tables if needed."""
        if self._engine is not None:
            return
        self._ensure_parent_dir()
        engine = create_async_engine(self._url, echo=self._echo, future=True)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(StoreMetaModel.__table__.create, checkfirst=True)
                row = (
                    await conn.execute(
                        select(StoreMetaModel.value).where(StoreMetaModel.key == _SCHEMA_KEY)
                    )
                ).scalar_one_or_none()
                current = int(row) if row is not None else 0
                if current < SCHEMA_VERSION:
                    logger.info("Upgrading local store schema %d → %d", current, SCHEMA_VERSION)
                    await conn.run_sync(Base.metadata.create_all)
                    await conn.execute(
                        StoreMetaModel.__table__.delete().where(StoreMetaModel.key == _SCHEMA_KEY)
                    )
                    await conn.execute(
                        StoreMetaModel.__table__.insert().values(key=_SCHEMA_KEY, value=str(SCHEMA_VERSION))
                    )
        except Exception as exc:
            await engine.dispose()
            raise LocalStoreUnavailableError(f"Could not open local store: {exc}") from exc

        self._engine = engine
        self._session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Local store opened (%s)", self._url)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Local store closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise LocalStoreUnavailableError("Local store is not open")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _ensure_parent_dir(self) -> None:
        url = make_url(self._url)
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            return
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
