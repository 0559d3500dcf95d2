"""Store handle: engine lifecycle, schema bootstrap and session scopes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chainpulse.config import get_settings
from chainpulse.errors import StoreUnavailable
from chainpulse.models import Base, StoreMeta

logger = logging.getLogger(__name__)

# Fixed schema version; there is no in-place upgrade path.
SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database or ""
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


async def _stamp_schema_version(connection: AsyncConnection) -> None:
    result = await connection.execute(
        select(StoreMeta.value).where(StoreMeta.key == SCHEMA_VERSION_KEY)
    )
    current = result.scalar()
    if current is None:
        await connection.execute(
            StoreMeta.__table__.insert().values(key=SCHEMA_VERSION_KEY, value=str(SCHEMA_VERSION))
        )
        return
    if str(current) != str(SCHEMA_VERSION):
        raise StoreUnavailable(
            f"Analytics store schema version {current} is not supported "
            f"(expected {SCHEMA_VERSION})"
        )


class StoreHandle:
    """Shared handle to the on-device analytics database.

    ``open()`` is idempotent: concurrent callers wait on one initialization
    and all observe the same engine. A failed open leaves the handle closed
    so the next call retries.
    """

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        busy_timeout_seconds: float = 5.0,
    ) -> None:
        self.database_url = database_url
        self._echo = echo
        self._busy_timeout_seconds = busy_timeout_seconds
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StoreUnavailable("Analytics store is not open")
        return self._engine

    def _engine_kwargs(self) -> dict:
        kwargs: dict = {"echo": self._echo}
        if make_url(self.database_url).get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"timeout": self._busy_timeout_seconds}
        return kwargs

    async def open(self) -> StoreHandle:
        if self._engine is not None:
            return self

        async with self._open_lock:
            if self._engine is not None:
                return self

            engine: AsyncEngine | None = None
            try:
                _ensure_sqlite_directory(self.database_url)
                engine = create_async_engine(self.database_url, **self._engine_kwargs())
                async with engine.begin() as connection:
                    await connection.run_sync(Base.metadata.create_all)
                    await _stamp_schema_version(connection)
            except StoreUnavailable:
                if engine is not None:
                    await engine.dispose()
                raise
            except (SQLAlchemyError, OSError) as exc:
                if engine is not None:
                    await engine.dispose()
                logger.error("Failed to open analytics store: %s", exc)
                raise StoreUnavailable(
                    f"Analytics store could not be opened: {exc}", original_error=exc
                ) from exc

            self._engine = engine
            self._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            logger.info("Analytics store opened (schema v%s)", SCHEMA_VERSION)
        return self

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """One short-lived transaction: commit on success, rollback on error."""
        await self.open()
        assert self._session_factory is not None
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except OperationalError as exc:
                await session.rollback()
                raise StoreUnavailable(
                    f"Analytics store operation failed: {exc}", original_error=exc
                ) from exc
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        async with self._open_lock:
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._session_factory = None


@lru_cache(maxsize=1)
def get_store() -> StoreHandle:
    """Process-wide store handle built from settings; opened lazily on first use."""
    settings = get_settings()
    return StoreHandle(
        settings.database_url,
        echo=settings.database_echo,
        busy_timeout_seconds=settings.busy_timeout_seconds,
    )
