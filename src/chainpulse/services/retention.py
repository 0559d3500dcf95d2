"""Retention: keep the newest ``max_records`` events, delete the rest."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainpulse.models import AnalyticsEvent

logger = logging.getLogger(__name__)


async def count_events(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(AnalyticsEvent))
    return int(result.scalar() or 0)


async def evict_excess(db: AsyncSession, *, max_records: int) -> int:
    """Delete every event older than the newest ``max_records``.

    Soft cap: concurrent writers may push the log over the ceiling between
    passes; the next pass trims it again.
    """
    total = await count_events(db)
    if total <= max_records:
        return 0

    stale_ids = (
        select(AnalyticsEvent.id)
        .order_by(AnalyticsEvent.timestamp.desc(), AnalyticsEvent.id.desc())
        .offset(max_records)
    )
    result = await db.execute(
        delete(AnalyticsEvent)
        .where(AnalyticsEvent.id.in_(stale_ids))
        .execution_options(synchronize_session=False)
    )
    deleted = int(result.rowcount or 0)
    logger.info("Evicted %s analytics events (total=%s, max_records=%s)", deleted, total, max_records)
    return deleted


async def clear_events(db: AsyncSession) -> int:
    result = await db.execute(
        delete(AnalyticsEvent).execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)
