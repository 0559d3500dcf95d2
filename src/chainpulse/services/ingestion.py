"""Event ingestion: id generation, validation and single-event writes."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chainpulse.errors import RecordRejected
from chainpulse.models import AnalyticsEvent
from chainpulse.schemas.analytics import AnalyticsEventRecord
from chainpulse.services.clock import now_ms

logger = logging.getLogger(__name__)


def generate_id(timestamp_ms: int | None = None) -> str:
    stamp = now_ms() if timestamp_ms is None else timestamp_ms
    return f"{stamp}-{uuid.uuid4().hex[:12]}"


def build_event(
    type: Any,
    category: Any,
    payload: Mapping[str, Any] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> AnalyticsEventRecord:
    timestamp = now_ms()
    try:
        return AnalyticsEventRecord(
            id=generate_id(timestamp),
            timestamp=timestamp,
            type=type,
            category=category,
            data=dict(payload or {}),
            metadata=dict(metadata) if metadata is not None else None,
        )
    except (TypeError, ValueError) as exc:
        raise RecordRejected(f"Invalid analytics event: {exc}", original_error=exc) from exc


def row_values(record: AnalyticsEventRecord) -> dict[str, Any]:
    """Column values for ``analytics_events``, keyed by column name."""
    try:
        document = record.model_dump(mode="json")
    except ValueError as exc:
        raise RecordRejected(
            f"Analytics event {record.id} payload is not serializable",
            record_id=record.id,
            original_error=exc,
        ) from exc
    return {
        "id": document["id"],
        "timestamp": document["timestamp"],
        "type": document["type"],
        "category": document["category"],
        "data": document["data"],
        "metadata": document["metadata"],
    }


def to_row(record: AnalyticsEventRecord) -> AnalyticsEvent:
    values = row_values(record)
    values["metadata_json"] = values.pop("metadata")
    return AnalyticsEvent(**values)


def to_record(row: AnalyticsEvent) -> AnalyticsEventRecord:
    return AnalyticsEventRecord(
        id=row.id,
        timestamp=row.timestamp,
        type=row.type,
        category=row.category,
        data=row.data or {},
        metadata=row.metadata_json,
    )


async def insert_event(db: AsyncSession, record: AnalyticsEventRecord) -> None:
    db.add(to_row(record))
    try:
        await db.flush()
    except IntegrityError as exc:
        raise RecordRejected(
            f"Analytics event {record.id} already exists",
            record_id=record.id,
            original_error=exc,
        ) from exc
    logger.debug("Recorded analytics event %s (%s/%s)", record.id, record.type.value, record.category.value)
