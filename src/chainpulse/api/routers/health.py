"""Health check."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from chainpulse.api.dependencies import get_service
from chainpulse.errors import StoreUnavailable
from chainpulse.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/health")
async def health_check(service: AnalyticsService = Depends(get_service)):
    return {"status": "ok", "service": "chainpulse", "store_open": service.store.is_open}


@router.get("/health/ready")
async def readiness_check(service: AnalyticsService = Depends(get_service)):
    try:
        await service.open()
        return {"status": "ready"}
    except StoreUnavailable as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": str(exc)},
        )
