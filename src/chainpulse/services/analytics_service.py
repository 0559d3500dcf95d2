"""Analytics service facade.

Every public operation opens its own short-lived transaction on a shared
store handle. Failures are logged and mapped to safe defaults so callers
never crash on analytics; only ``import_events`` lets errors through.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from functools import lru_cache
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from chainpulse.config import Settings, get_settings
from chainpulse.database import StoreHandle, get_store
from chainpulse.errors import AnalyticsStoreError
from chainpulse.schemas.analytics import (
    AnalyticsEventRecord,
    AnalyticsQuery,
    Report,
    ReportSpec,
    ReportType,
)
from chainpulse.schemas.stats import AnalyticsStats
from chainpulse.services import reports as report_store
from chainpulse.services.aggregation import aggregate_groups, compute_stats, empty_stats
from chainpulse.services.ingestion import build_event, insert_event
from chainpulse.services.query_engine import fetch_events
from chainpulse.services.retention import clear_events, evict_excess
from chainpulse.services.transfer import import_records, parse_import_payload, serialize_events

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryLike = AnalyticsQuery | Mapping[str, Any] | None


def _coerce_query(query: QueryLike) -> AnalyticsQuery:
    if query is None:
        return AnalyticsQuery()
    if isinstance(query, AnalyticsQuery):
        return query
    return AnalyticsQuery.model_validate(dict(query))


class AnalyticsService:
    def __init__(self, store: StoreHandle, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    async def _best_effort(
        self,
        action: str,
        operation: Callable[[], Awaitable[T]],
        default: Callable[[], T],
    ) -> T:
        try:
            return await operation()
        except (AnalyticsStoreError, SQLAlchemyError):
            logger.exception("Analytics %s failed; returning default", action)
            return default()

    async def open(self) -> None:
        await self.store.open()

    async def close(self) -> None:
        await self.store.close()

    # Ingestion

    async def record(
        self,
        type: Any,
        category: Any,
        payload: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        async def _write() -> None:
            event = build_event(type, category, payload, metadata)
            async with self.store.session() as db:
                await insert_event(db, event)

        await self._best_effort("record", _write, lambda: None)
        await self.evict()

    async def evict(self) -> int:
        async def _evict() -> int:
            async with self.store.session() as db:
                return await evict_excess(db, max_records=self.settings.max_records)

        return await self._best_effort("eviction", _evict, lambda: 0)

    # Queries

    async def find(self, query: QueryLike = None) -> list[AnalyticsEventRecord]:
        resolved = _coerce_query(query)

        async def _find() -> list[AnalyticsEventRecord]:
            async with self.store.session() as db:
                return await fetch_events(
                    db, resolved, default_limit=self.settings.default_query_limit
                )

        return await self._best_effort("query", _find, list)

    def _stats_query(self, query: QueryLike) -> AnalyticsQuery:
        return _coerce_query(query).model_copy(update={"limit": self.settings.stats_query_limit})

    async def summarize(self, query: QueryLike = None) -> AnalyticsStats:
        resolved = self._stats_query(query)

        async def _summarize() -> AnalyticsStats:
            async with self.store.session() as db:
                records = await fetch_events(db, resolved)
            return compute_stats(records, top_entities_limit=self.settings.top_entities_limit)

        return await self._best_effort("stats", _summarize, empty_stats)

    async def aggregate(
        self,
        query: QueryLike = None,
        *,
        value_path: str = "data.value",
        percentile: float = 95.0,
    ) -> list[dict[str, Any]]:
        resolved = self._stats_query(query)

        async def _aggregate() -> list[dict[str, Any]]:
            async with self.store.session() as db:
                records = await fetch_events(db, resolved)
            return aggregate_groups(
                records,
                group_by=resolved.group_by,
                aggregation=resolved.aggregation,
                value_path=value_path,
                percentile=percentile,
            )

        return await self._best_effort("aggregation", _aggregate, list)

    # Reports

    async def create_report(self, spec: ReportSpec | Mapping[str, Any]) -> str | None:
        resolved = spec if isinstance(spec, ReportSpec) else ReportSpec.model_validate(dict(spec))

        async def _create() -> str:
            async with self.store.session() as db:
                report = await report_store.create_report(
                    db, resolved, default_limit=self.settings.default_query_limit
                )
            return report.id

        return await self._best_effort("report creation", _create, lambda: None)

    async def list_reports(self, report_type: ReportType | None = None) -> list[Report]:
        async def _list() -> list[Report]:
            async with self.store.session() as db:
                return await report_store.list_reports(db, report_type=report_type)

        return await self._best_effort("report listing", _list, list)

    async def get_report(self, report_id: str) -> Report | None:
        async def _get() -> Report | None:
            async with self.store.session() as db:
                return await report_store.get_report(db, report_id)

        return await self._best_effort("report lookup", _get, lambda: None)

    async def delete_report(self, report_id: str) -> bool:
        async def _delete() -> bool:
            async with self.store.session() as db:
                return await report_store.delete_report(db, report_id)

        return await self._best_effort("report deletion", _delete, lambda: False)

    # Bulk

    async def export(self, query: QueryLike = None) -> str:
        resolved = _coerce_query(query)

        async def _export() -> str:
            async with self.store.session() as db:
                records = await fetch_events(
                    db, resolved, default_limit=self.settings.default_query_limit
                )
            return serialize_events(records)

        return await self._best_effort("export", _export, lambda: "[]")

    async def import_events(self, text: str | bytes) -> dict[str, int]:
        items = parse_import_payload(text)
        async with self.store.session() as db:
            summary = await import_records(db, items)
        await self.evict()
        return summary

    async def clear(self) -> None:
        async def _clear() -> None:
            async with self.store.session() as db:
                deleted = await clear_events(db)
            logger.info("Cleared %s analytics events", deleted)

        await self._best_effort("clear", _clear, lambda: None)


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    """Process-wide service bound to the default store handle."""
    return AnalyticsService(get_store(), get_settings())
