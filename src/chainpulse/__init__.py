"""chainpulse: embedded analytics store for blockchain wallet activity."""

from chainpulse.errors import (
    AnalyticsStoreError,
    MalformedImport,
    RecordRejected,
    StoreUnavailable,
)
from chainpulse.services.analytics_service import AnalyticsService, get_analytics_service

__all__ = [
    "AnalyticsService",
    "AnalyticsStoreError",
    "MalformedImport",
    "RecordRejected",
    "StoreUnavailable",
    "get_analytics_service",
]

__version__ = "0.1.0"
