"""Shared fixtures: a throwaway SQLite store per test."""

from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient

from chainpulse.api.dependencies import get_service
from chainpulse.api.main import create_app
from chainpulse.config import Settings
from chainpulse.database import StoreHandle
from chainpulse.schemas.analytics import AnalyticsEventRecord
from chainpulse.services.analytics_service import AnalyticsService
from chainpulse.services.clock import to_epoch_ms
from chainpulse.services.ingestion import insert_event


def ms(year, month, day, hour=0, minute=0, second=0):
    """Epoch milliseconds for a UTC wall-clock time."""
    return to_epoch_ms(datetime(year, month, day, hour, minute, second, tzinfo=UTC))


def make_event(event_id, timestamp, type="transaction", category="blockchain", data=None, metadata=None):
    return AnalyticsEventRecord(
        id=event_id,
        timestamp=timestamp,
        type=type,
        category=category,
        data=data or {},
        metadata=metadata,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}",
        max_records=50_000,
        default_query_limit=100,
        stats_query_limit=10_000,
        top_entities_limit=10,
    )


@pytest.fixture
async def store(settings):
    handle = StoreHandle(settings.database_url)
    yield handle
    await handle.close()


@pytest.fixture
async def service(store, settings):
    return AnalyticsService(store, settings)


@pytest.fixture
async def seed(store):
    """Insert fully specified events, bypassing id/clock generation."""

    async def _seed(*events):
        async with store.session() as db:
            for event in events:
                await insert_event(db, event)
        return events

    return _seed


@pytest.fixture
def app(service):
    a = create_app()
    a.dependency_overrides[get_service] = lambda: service
    return a


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
