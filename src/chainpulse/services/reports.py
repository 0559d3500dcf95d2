"""Report materialization: query snapshot plus chart projections."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainpulse.models import AnalyticsReport
from chainpulse.schemas.analytics import (
    AnalyticsEventRecord,
    AnalyticsQuery,
    ChartConfig,
    ChartDataPoint,
    Report,
    ReportSpec,
    ReportType,
)
from chainpulse.services.field_paths import FieldPath
from chainpulse.services.ingestion import generate_id
from chainpulse.services.query_engine import DEFAULT_QUERY_LIMIT, event_document, fetch_events

logger = logging.getLogger(__name__)


def project_charts(
    records: Sequence[AnalyticsEventRecord],
    charts: Sequence[ChartConfig],
) -> list[ChartConfig]:
    """Fill every series with one ``{x, y}`` point per matched event.

    Unresolved axis paths yield ``None`` for that coordinate.
    """
    documents = [event_document(record) for record in records]
    projected: list[ChartConfig] = []
    for chart in charts:
        x_path = FieldPath.parse(chart.x_axis)
        y_path = FieldPath.parse(chart.y_axis)
        points = [
            ChartDataPoint(x=x_path.extract(document), y=y_path.extract(document))
            for document in documents
        ]
        series = [item.model_copy(update={"data": list(points)}) for item in chart.series]
        projected.append(chart.model_copy(update={"series": series}))
    return projected


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def serialize_report(row: AnalyticsReport) -> Report:
    return Report(
        id=row.id,
        title=row.title,
        description=row.description or "",
        type=row.type,
        query=AnalyticsQuery.model_validate(row.query or {}),
        data=[AnalyticsEventRecord.model_validate(item) for item in row.data or []],
        charts=[ChartConfig.model_validate(item) for item in row.charts or []],
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


async def create_report(
    db: AsyncSession,
    spec: ReportSpec,
    *,
    default_limit: int = DEFAULT_QUERY_LIMIT,
) -> Report:
    records = await fetch_events(db, spec.query, default_limit=default_limit)
    charts = project_charts(records, spec.charts)
    now = datetime.now(UTC)
    report = Report(
        id=generate_id(),
        title=spec.title,
        description=spec.description,
        type=spec.type,
        query=spec.query,
        data=records,
        charts=charts,
        created_at=now,
        updated_at=now,
    )
    document = report.model_dump(mode="json")
    db.add(
        AnalyticsReport(
            id=report.id,
            title=report.title,
            description=report.description,
            type=document["type"],
            query=spec.query.model_dump(mode="json", exclude_none=True),
            data=document["data"],
            charts=document["charts"],
            created_at=now,
            updated_at=now,
        )
    )
    await db.flush()
    logger.info("Created report %s (%s) with %s events", report.id, document["type"], len(records))
    return report


async def list_reports(
    db: AsyncSession,
    *,
    report_type: ReportType | None = None,
) -> list[Report]:
    stmt = select(AnalyticsReport)
    if report_type is not None:
        stmt = stmt.where(AnalyticsReport.type == report_type.value)
    stmt = stmt.order_by(AnalyticsReport.created_at.desc(), AnalyticsReport.id.desc())
    result = await db.execute(stmt)
    return [serialize_report(row) for row in result.scalars().all()]


async def get_report(db: AsyncSession, report_id: str) -> Report | None:
    row = await db.get(AnalyticsReport, report_id)
    return serialize_report(row) if row is not None else None


async def delete_report(db: AsyncSession, report_id: str) -> bool:
    result = await db.execute(
        delete(AnalyticsReport)
        .where(AnalyticsReport.id == report_id)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)
