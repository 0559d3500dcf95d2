"""Pydantic schemas for analytics events, queries and reports."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chainpulse.services.field_paths import FieldPath


class AnalyticsType(str, Enum):
    """Kind of event recorded in the log."""

    TRANSACTION = "transaction"
    GAS_FEE = "gas_fee"
    WALLET_ACTIVITY = "wallet_activity"
    DEX_TRADE = "dex_trade"
    RPC_CALL = "rpc_call"
    USER_ACTION = "user_action"
    PERFORMANCE = "performance"
    ERROR = "error"


class AnalyticsCategory(str, Enum):
    """Higher-level grouping of event types."""

    NETWORK = "network"
    BLOCKCHAIN = "blockchain"
    USER = "user"
    SYSTEM = "system"
    FINANCIAL = "financial"
    TECHNICAL = "technical"


class AggregationType(str, Enum):
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"
    PERCENTILE = "percentile"


class ReportType(str, Enum):
    TRANSACTION_ANALYSIS = "transaction_analysis"
    GAS_FEE_TRENDS = "gas_fee_trends"
    WALLET_PERFORMANCE = "wallet_performance"
    DEX_VOLUME = "dex_volume"
    RPC_HEALTH = "rpc_health"
    USER_BEHAVIOR = "user_behavior"
    SYSTEM_METRICS = "system_metrics"
    FINANCIAL_SUMMARY = "financial_summary"


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    AREA = "area"
    PIE = "pie"
    SCATTER = "scatter"
    HISTOGRAM = "histogram"
    HEATMAP = "heatmap"
    CANDLESTICK = "candlestick"


class AnalyticsEventRecord(BaseModel):
    """A stored analytics event. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    timestamp: int
    type: AnalyticsType
    category: AnalyticsCategory
    data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None


def _check_path(value: str) -> str:
    FieldPath.parse(value)
    return value


class AnalyticsQuery(BaseModel):
    """A read-only view over the event log.

    ``filters`` maps dotted paths to an expected value; a list, tuple or set
    expected value matches by membership. Paths and keys are validated here
    so a malformed path or a misspelled key fails at construction instead
    of silently matching nothing or everything.
    """

    model_config = ConfigDict(extra="forbid")

    type: AnalyticsType | None = None
    category: AnalyticsCategory | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)
    aggregation: AggregationType | None = None
    group_by: list[str] | None = None
    filters: dict[str, Any] | None = None

    @field_validator("filters")
    @classmethod
    def _validate_filter_paths(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        if value:
            for path in value:
                _check_path(path)
        return value

    @field_validator("group_by")
    @classmethod
    def _validate_group_paths(cls, value: list[str] | None) -> list[str] | None:
        if value:
            for path in value:
                _check_path(path)
        return value


class ChartDataPoint(BaseModel):
    x: Any = None
    y: Any = None


class ChartSeries(BaseModel):
    name: str
    data: list[ChartDataPoint] = Field(default_factory=list)
    color: str | None = None
    type: ChartType | None = None


class ChartConfig(BaseModel):
    """Chart specification; series points are projected from matched events."""

    id: str
    type: ChartType
    title: str
    x_axis: str
    y_axis: str
    series: list[ChartSeries] = Field(default_factory=list)
    options: dict[str, Any] | None = None

    @field_validator("x_axis", "y_axis")
    @classmethod
    def _validate_axis_path(cls, value: str) -> str:
        return _check_path(value)


class ReportSpec(BaseModel):
    """Everything needed to materialize a report."""

    title: str
    description: str = ""
    type: ReportType
    query: AnalyticsQuery = Field(default_factory=AnalyticsQuery)
    charts: list[ChartConfig] = Field(default_factory=list)


class Report(BaseModel):
    """A persisted point-in-time snapshot of a query and its charts."""

    id: str
    title: str
    description: str = ""
    type: ReportType
    query: AnalyticsQuery
    data: list[AnalyticsEventRecord] = Field(default_factory=list)
    charts: list[ChartConfig] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
