"""Analytics event model - the append-mostly event log."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from chainpulse.models.base import Base

IDX_EVENTS_TIMESTAMP = "idx_analytics_events_timestamp"
IDX_EVENTS_TYPE = "idx_analytics_events_type"
IDX_EVENTS_CATEGORY = "idx_analytics_events_category"
IDX_EVENTS_TYPE_CATEGORY = "idx_analytics_events_type_category"


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    # Epoch milliseconds.
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)

    __table_args__ = (
        Index(IDX_EVENTS_TIMESTAMP, "timestamp"),
        Index(IDX_EVENTS_TYPE, "type"),
        Index(IDX_EVENTS_CATEGORY, "category"),
        Index(IDX_EVENTS_TYPE_CATEGORY, "type", "category"),
    )
