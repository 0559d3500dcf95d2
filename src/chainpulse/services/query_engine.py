"""Query planning and execution over the event log.

Index choice, most to least specific:

1. ``type`` and ``category`` -> compound ``(type, category)`` index
2. ``type`` only -> type index
3. ``category`` only -> category index
4. neither -> full scan, read through the timestamp index

The date range narrows candidates in SQL. Custom dotted-path filters run in
Python over the candidate documents, so pagination is pushed into SQL only
when there are no custom filters. Both paths return the same rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainpulse.models import AnalyticsEvent
from chainpulse.models.analytics_event import (
    IDX_EVENTS_CATEGORY,
    IDX_EVENTS_TIMESTAMP,
    IDX_EVENTS_TYPE,
    IDX_EVENTS_TYPE_CATEGORY,
)
from chainpulse.schemas.analytics import AnalyticsEventRecord, AnalyticsQuery
from chainpulse.services.clock import to_epoch_ms
from chainpulse.services.field_paths import FieldPredicate, compile_filters, matches_all
from chainpulse.services.ingestion import to_record

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 100


class IndexChoice(str, Enum):
    TYPE_CATEGORY = IDX_EVENTS_TYPE_CATEGORY
    TYPE = IDX_EVENTS_TYPE
    CATEGORY = IDX_EVENTS_CATEGORY
    FULL_SCAN = IDX_EVENTS_TIMESTAMP


@dataclass(frozen=True)
class QueryPlan:
    index: IndexChoice
    start_ms: int | None
    end_ms: int | None
    predicates: tuple[FieldPredicate, ...]
    offset: int
    limit: int

    @property
    def paginate_in_sql(self) -> bool:
        return not self.predicates


def select_index(query: AnalyticsQuery) -> IndexChoice:
    if query.type is not None and query.category is not None:
        return IndexChoice.TYPE_CATEGORY
    if query.type is not None:
        return IndexChoice.TYPE
    if query.category is not None:
        return IndexChoice.CATEGORY
    return IndexChoice.FULL_SCAN


def plan_query(query: AnalyticsQuery, *, default_limit: int = DEFAULT_QUERY_LIMIT) -> QueryPlan:
    # Stored timestamps are whole milliseconds: round the lower bound up, the upper down.
    start_ms = to_epoch_ms(query.start_date, round_up=True) if query.start_date is not None else None
    end_ms = to_epoch_ms(query.end_date) if query.end_date is not None else None
    return QueryPlan(
        index=select_index(query),
        start_ms=start_ms,
        end_ms=end_ms,
        predicates=compile_filters(query.filters),
        offset=query.offset or 0,
        limit=query.limit if query.limit is not None else default_limit,
    )


def build_statement(plan: QueryPlan, query: AnalyticsQuery) -> Select:
    stmt = select(AnalyticsEvent)
    if plan.index is IndexChoice.TYPE_CATEGORY:
        stmt = stmt.where(
            AnalyticsEvent.type == query.type.value,
            AnalyticsEvent.category == query.category.value,
        )
    elif plan.index is IndexChoice.TYPE:
        stmt = stmt.where(AnalyticsEvent.type == query.type.value)
    elif plan.index is IndexChoice.CATEGORY:
        stmt = stmt.where(AnalyticsEvent.category == query.category.value)

    if plan.start_ms is not None:
        stmt = stmt.where(AnalyticsEvent.timestamp >= plan.start_ms)
    if plan.end_ms is not None:
        stmt = stmt.where(AnalyticsEvent.timestamp <= plan.end_ms)

    stmt = stmt.order_by(AnalyticsEvent.timestamp.desc(), AnalyticsEvent.id.desc())
    if plan.paginate_in_sql:
        stmt = stmt.offset(plan.offset).limit(plan.limit)
    return stmt


def event_document(record: AnalyticsEventRecord) -> dict[str, Any]:
    """JSON-shaped view of an event, the root for dotted-path resolution."""
    return record.model_dump(mode="json")


def apply_filters(
    records: list[AnalyticsEventRecord],
    predicates: tuple[FieldPredicate, ...],
) -> list[AnalyticsEventRecord]:
    if not predicates:
        return records
    return [record for record in records if matches_all(event_document(record), predicates)]


async def fetch_events(
    db: AsyncSession,
    query: AnalyticsQuery,
    *,
    default_limit: int = DEFAULT_QUERY_LIMIT,
) -> list[AnalyticsEventRecord]:
    plan = plan_query(query, default_limit=default_limit)
    logger.debug(
        "Query plan index=%s sql_pagination=%s offset=%s limit=%s",
        plan.index.value,
        plan.paginate_in_sql,
        plan.offset,
        plan.limit,
    )
    result = await db.execute(build_statement(plan, query))
    records = [to_record(row) for row in result.scalars().all()]
    if plan.paginate_in_sql:
        return records
    filtered = apply_filters(records, plan.predicates)
    return filtered[plan.offset : plan.offset + plan.limit]
