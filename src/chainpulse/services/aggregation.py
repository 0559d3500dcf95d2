"""Summary statistics over query results."""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime
from statistics import mean, median
from typing import Any

from chainpulse.schemas.analytics import (
    AggregationType,
    AnalyticsCategory,
    AnalyticsEventRecord,
    AnalyticsType,
)
from chainpulse.schemas.stats import AnalyticsStats, DateRange, TopEntity, TrendPoint
from chainpulse.services.clock import from_epoch_ms
from chainpulse.services.field_paths import FieldPath
from chainpulse.services.query_engine import event_document

TOP_ENTITIES_LIMIT = 10


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def numeric_value(data: dict[str, Any]) -> int | float:
    """``data.value`` if numeric, else ``data.amount`` if numeric, else 0."""
    value = data.get("value")
    if _is_number(value):
        return value
    amount = data.get("amount")
    if _is_number(amount):
        return amount
    return 0


def _zero_categories() -> dict[AnalyticsCategory, int]:
    return {category: 0 for category in AnalyticsCategory}


def _zero_types() -> dict[AnalyticsType, int]:
    return {event_type: 0 for event_type in AnalyticsType}


def empty_stats(now: datetime | None = None) -> AnalyticsStats:
    moment = now or datetime.now(UTC)
    return AnalyticsStats(
        total_records=0,
        date_range=DateRange(start=moment, end=moment),
        categories=_zero_categories(),
        types=_zero_types(),
        trends=[],
        top_entities=[],
    )


def generate_trends(records: Sequence[AnalyticsEventRecord]) -> list[TrendPoint]:
    daily: dict[str, dict[str, Any]] = {}
    for record in records:
        day = from_epoch_ms(record.timestamp).date()
        key = day.isoformat()
        bucket = daily.setdefault(key, {"date": day, "count": 0, "value": 0})
        bucket["count"] += 1
        bucket["value"] += numeric_value(record.data)
    return [TrendPoint(**daily[key]) for key in sorted(daily)]


def rank_entities(
    records: Sequence[AnalyticsEventRecord],
    *,
    limit: int = TOP_ENTITIES_LIMIT,
) -> list[TopEntity]:
    if not records:
        return []
    counts: dict[str, int] = defaultdict(int)
    for record in records:
        address = record.data.get("address")
        if address:
            counts[str(address)] += 1
    total = len(records)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [
        TopEntity(entity=entity, count=count, percentage=(count / total) * 100)
        for entity, count in ranked
    ]


def compute_stats(
    records: Sequence[AnalyticsEventRecord],
    *,
    top_entities_limit: int = TOP_ENTITIES_LIMIT,
) -> AnalyticsStats:
    if not records:
        return empty_stats()

    categories = _zero_categories()
    types = _zero_types()
    for record in records:
        categories[record.category] += 1
        types[record.type] += 1

    timestamps = [record.timestamp for record in records]
    return AnalyticsStats(
        total_records=len(records),
        date_range=DateRange(start=from_epoch_ms(min(timestamps)), end=from_epoch_ms(max(timestamps))),
        categories=categories,
        types=types,
        trends=generate_trends(records),
        top_entities=rank_entities(records, limit=top_entities_limit),
    )


def _percentile(values: list[int | float], percentile: float) -> int | float:
    ordered = sorted(values)
    idx = int(len(ordered) * (percentile / 100.0)) - 1
    idx = max(0, min(idx, len(ordered) - 1))
    return ordered[idx]


def reduce_values(
    values: list[int | float],
    aggregation: AggregationType,
    *,
    count: int,
    percentile: float = 95.0,
) -> int | float | None:
    if aggregation is AggregationType.COUNT:
        return count
    if not values:
        return None
    if aggregation is AggregationType.SUM:
        return sum(values)
    if aggregation is AggregationType.AVG:
        return mean(values)
    if aggregation is AggregationType.MIN:
        return min(values)
    if aggregation is AggregationType.MAX:
        return max(values)
    if aggregation is AggregationType.MEDIAN:
        return median(values)
    return _percentile(values, percentile)


def _group_key(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def aggregate_groups(
    records: Sequence[AnalyticsEventRecord],
    *,
    group_by: Sequence[str] | None = None,
    aggregation: AggregationType | None = None,
    value_path: str = "data.value",
    percentile: float = 95.0,
) -> list[dict[str, Any]]:
    """Group events by the values at ``group_by`` paths and reduce each group.

    With no ``group_by`` every record lands in one group. Non-numeric values
    at ``value_path`` are ignored by the reducers but still counted.
    """
    paths = [FieldPath.parse(path) for path in group_by or []]
    measure = FieldPath.parse(value_path)
    kind = aggregation or AggregationType.COUNT

    groups: dict[str, dict[str, Any]] = {}
    for record in records:
        document = event_document(record)
        labels = {str(path): path.extract(document) for path in paths}
        slot = groups.setdefault(_group_key(labels), {"group": labels, "count": 0, "values": []})
        slot["count"] += 1
        value = measure.extract(document)
        if _is_number(value):
            slot["values"].append(value)

    rows = [
        {
            "group": slot["group"],
            "count": slot["count"],
            "value": reduce_values(slot["values"], kind, count=slot["count"], percentile=percentile),
        }
        for slot in groups.values()
    ]
    rows.sort(key=lambda row: row["count"], reverse=True)
    return rows
