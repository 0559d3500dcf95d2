"""Report materialization and retrieval."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from chainpulse.api.dependencies import get_service
from chainpulse.schemas.analytics import Report, ReportSpec, ReportType
from chainpulse.services.analytics_service import AnalyticsService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Report)
async def create_report(
    spec: ReportSpec,
    service: AnalyticsService = Depends(get_service),
):
    report_id = await service.create_report(spec)
    report = await service.get_report(report_id) if report_id else None
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Report could not be created",
        )
    return report


@router.get("", response_model=list[Report])
async def list_reports(
    type: ReportType | None = Query(default=None),
    service: AnalyticsService = Depends(get_service),
):
    return await service.list_reports(type)


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: str,
    service: AnalyticsService = Depends(get_service),
):
    report = await service.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    service: AnalyticsService = Depends(get_service),
):
    await service.delete_report(report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
