"""Event ingestion, queries, statistics and bulk transfer."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from chainpulse.api.dependencies import get_service
from chainpulse.errors import MalformedImport, StoreUnavailable
from chainpulse.schemas.analytics import (
    AnalyticsCategory,
    AnalyticsEventRecord,
    AnalyticsQuery,
    AnalyticsType,
)
from chainpulse.schemas.stats import AnalyticsStats
from chainpulse.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter()


class RecordEventRequest(BaseModel):
    type: AnalyticsType
    category: AnalyticsCategory
    data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None


class AggregateRequest(BaseModel):
    query: AnalyticsQuery = Field(default_factory=AnalyticsQuery)
    value_path: str = "data.value"
    percentile: float = Field(default=95.0, ge=0, le=100)


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def record_event(
    payload: RecordEventRequest,
    service: AnalyticsService = Depends(get_service),
):
    await service.record(payload.type, payload.category, payload.data, payload.metadata)
    return {"status": "accepted"}


@router.post("/query", response_model=list[AnalyticsEventRecord])
async def query_events(
    query: AnalyticsQuery | None = None,
    service: AnalyticsService = Depends(get_service),
):
    return await service.find(query)


@router.post("/stats", response_model=AnalyticsStats)
async def event_stats(
    query: AnalyticsQuery | None = None,
    service: AnalyticsService = Depends(get_service),
):
    return await service.summarize(query)


@router.post("/aggregate")
async def aggregate_events(
    payload: AggregateRequest,
    service: AnalyticsService = Depends(get_service),
):
    try:
        rows = await service.aggregate(
            payload.query,
            value_path=payload.value_path,
            percentile=payload.percentile,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"rows": rows}


@router.post("/export")
async def export_events(
    query: AnalyticsQuery | None = None,
    service: AnalyticsService = Depends(get_service),
):
    payload = await service.export(query)
    return Response(content=payload, media_type="application/json")


@router.post("/import")
async def import_events(
    request: Request,
    service: AnalyticsService = Depends(get_service),
):
    body = await request.body()
    try:
        return await service.import_events(body)
    except MalformedImport as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except StoreUnavailable as exc:
        logger.error("Import failed, store unavailable: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_events(service: AnalyticsService = Depends(get_service)):
    await service.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
