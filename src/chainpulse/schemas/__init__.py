"""Pydantic schemas for the analytics store."""

from chainpulse.schemas.analytics import (
    AggregationType,
    AnalyticsCategory,
    AnalyticsEventRecord,
    AnalyticsQuery,
    AnalyticsType,
    ChartConfig,
    ChartDataPoint,
    ChartSeries,
    ChartType,
    Report,
    ReportSpec,
    ReportType,
)
from chainpulse.schemas.stats import AnalyticsStats, DateRange, TopEntity, TrendPoint

__all__ = [
    "AggregationType",
    "AnalyticsCategory",
    "AnalyticsEventRecord",
    "AnalyticsQuery",
    "AnalyticsStats",
    "AnalyticsType",
    "ChartConfig",
    "ChartDataPoint",
    "ChartSeries",
    "ChartType",
    "DateRange",
    "Report",
    "ReportSpec",
    "ReportType",
    "TopEntity",
    "TrendPoint",
]
