"""Pydantic schemas for summary statistics."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from chainpulse.schemas.analytics import AnalyticsCategory, AnalyticsType


class DateRange(BaseModel):
    start: dt.datetime
    end: dt.datetime


class TrendPoint(BaseModel):
    """One UTC calendar day of activity."""

    date: dt.date
    count: int = 0
    value: float = 0.0


class TopEntity(BaseModel):
    entity: str
    count: int
    percentage: float


class AnalyticsStats(BaseModel):
    total_records: int = 0
    date_range: DateRange
    categories: dict[AnalyticsCategory, int]
    types: dict[AnalyticsType, int]
    trends: list[TrendPoint] = Field(default_factory=list)
    top_entities: list[TopEntity] = Field(default_factory=list)
