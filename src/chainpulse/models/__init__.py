"""SQLAlchemy ORM models for the analytics store."""

from chainpulse.models.base import Base
from chainpulse.models.analytics_event import AnalyticsEvent
from chainpulse.models.report import AnalyticsReport
from chainpulse.models.store_meta import StoreMeta

__all__ = [
    "Base",
    "AnalyticsEvent",
    "AnalyticsReport",
    "StoreMeta",
]
