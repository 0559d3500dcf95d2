"""Bulk export to JSON text and validated re-import of external records."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chainpulse.errors import MalformedImport, RecordRejected
from chainpulse.models import AnalyticsEvent
from chainpulse.schemas.analytics import AnalyticsEventRecord
from chainpulse.services.ingestion import row_values

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "timestamp", "type", "category")


def serialize_events(records: Sequence[AnalyticsEventRecord]) -> str:
    return json.dumps(
        [record.model_dump(mode="json") for record in records],
        indent=2,
        ensure_ascii=False,
    )


def parse_import_payload(text: str | bytes) -> list[Any]:
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedImport("Import payload is not valid JSON", original_error=exc) from exc
    if not isinstance(payload, list):
        raise MalformedImport("Import payload must be a JSON array of records")
    return payload


def has_required_fields(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    return all(item.get(field) is not None and item.get(field) != "" for field in REQUIRED_FIELDS)


def _log_rejection(exc: RecordRejected) -> None:
    logger.warning("Skipping rejected analytics record %s: %s", exc.record_id or "?", exc)


async def _insert_if_absent(db: AsyncSession, values: dict[str, Any]) -> bool:
    stmt = (
        sqlite_insert(AnalyticsEvent.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["id"])
    )
    result = await db.execute(stmt)
    return bool(result.rowcount)


async def import_records(db: AsyncSession, items: Sequence[Any]) -> dict[str, int]:
    """Insert well-formed records, preserving their ids and timestamps.

    Elements missing a mandatory field are skipped. Elements that fail schema
    validation or collide with a stored id (including one written by a
    concurrent writer, or earlier in the same batch) are rejected and logged;
    the rest of the batch still lands.
    """
    summary = {"received": len(items), "imported": 0, "skipped": 0, "rejected": 0}

    for item in items:
        if not has_required_fields(item):
            summary["skipped"] += 1
            continue
        try:
            try:
                record = AnalyticsEventRecord.model_validate(item)
            except ValidationError as exc:
                raise RecordRejected(
                    f"schema violation: {exc.error_count()} error(s)",
                    record_id=str(item.get("id")),
                    original_error=exc,
                ) from exc
            if not await _insert_if_absent(db, row_values(record)):
                raise RecordRejected("duplicate id", record_id=record.id)
        except RecordRejected as exc:
            _log_rejection(exc)
            summary["rejected"] += 1
            continue
        summary["imported"] += 1

    logger.info(
        "Imported analytics records received=%s imported=%s skipped=%s rejected=%s",
        summary["received"],
        summary["imported"],
        summary["skipped"],
        summary["rejected"],
    )
    return summary
