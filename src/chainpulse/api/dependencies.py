"""FastAPI dependency injection."""

from __future__ import annotations

from chainpulse.services.analytics_service import AnalyticsService, get_analytics_service


def get_service() -> AnalyticsService:
    return get_analytics_service()
