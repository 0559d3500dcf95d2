"""Tests for the store handle."""

import asyncio

import pytest
from sqlalchemy import inspect, select, update

from chainpulse.database import SCHEMA_VERSION, SCHEMA_VERSION_KEY, StoreHandle
from chainpulse.errors import StoreUnavailable
from chainpulse.models import AnalyticsEvent, StoreMeta
from chainpulse.models.analytics_event import (
    IDX_EVENTS_CATEGORY,
    IDX_EVENTS_TIMESTAMP,
    IDX_EVENTS_TYPE,
    IDX_EVENTS_TYPE_CATEGORY,
)


@pytest.mark.asyncio
async def test_concurrent_open_initializes_once(store):
    handles = await asyncio.gather(*(store.open() for _ in range(5)))
    assert all(handle is store for handle in handles)
    engine = store.engine
    await store.open()
    assert store.engine is engine


@pytest.mark.asyncio
async def test_open_creates_tables_indexes_and_version(store):
    await store.open()

    def _describe(sync_conn):
        inspector = inspect(sync_conn)
        return (
            set(inspector.get_table_names()),
            {index["name"] for index in inspector.get_indexes("analytics_events")},
            {index["name"] for index in inspector.get_indexes("analytics_reports")},
        )

    async with store.engine.connect() as connection:
        tables, event_indexes, report_indexes = await connection.run_sync(_describe)
    assert {"analytics_events", "analytics_reports", "store_meta"} <= tables
    assert {
        IDX_EVENTS_TIMESTAMP,
        IDX_EVENTS_TYPE,
        IDX_EVENTS_CATEGORY,
        IDX_EVENTS_TYPE_CATEGORY,
    } <= event_indexes
    assert {"idx_analytics_reports_type", "idx_analytics_reports_created"} <= report_indexes

    async with store.session() as db:
        version = (
            await db.execute(select(StoreMeta.value).where(StoreMeta.key == SCHEMA_VERSION_KEY))
        ).scalar()
    assert version == str(SCHEMA_VERSION)


@pytest.mark.asyncio
async def test_reopen_existing_file_keeps_data(settings):
    first = StoreHandle(settings.database_url)
    async with first.session() as db:
        db.add(AnalyticsEvent(id="keep", timestamp=1, type="error", category="system", data={}))
    await first.close()

    second = StoreHandle(settings.database_url)
    try:
        async with second.session() as db:
            assert await db.get(AnalyticsEvent, "keep") is not None
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_schema_version_mismatch_is_refused(settings):
    handle = StoreHandle(settings.database_url)
    async with handle.session() as db:
        await db.execute(
            update(StoreMeta).where(StoreMeta.key == SCHEMA_VERSION_KEY).values(value="99")
        )
    await handle.close()

    with pytest.raises(StoreUnavailable):
        await handle.open()
    assert handle.is_open is False


@pytest.mark.asyncio
async def test_failed_open_can_be_retried(tmp_path):
    blocker = tmp_path / "data"
    blocker.write_text("in the way")
    handle = StoreHandle(f"sqlite+aiosqlite:///{blocker / 'analytics.db'}")

    with pytest.raises(StoreUnavailable):
        await handle.open()
    assert handle.is_open is False
    with pytest.raises(StoreUnavailable):
        _ = handle.engine

    blocker.unlink()
    try:
        await handle.open()
        assert handle.is_open is True
    finally:
        await handle.close()


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        async with store.session() as db:
            db.add(AnalyticsEvent(id="lost", timestamp=1, type="error", category="system", data={}))
            await db.flush()
            raise RuntimeError("boom")

    async with store.session() as db:
        assert await db.get(AnalyticsEvent, "lost") is None
