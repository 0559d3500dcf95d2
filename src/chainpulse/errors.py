"""Exceptions raised by the analytics store.

Strict service functions raise these; the analytics service facade decides
which of them reach the caller.
"""

from __future__ import annotations


class AnalyticsStoreError(Exception):
    """Base exception for analytics store operations."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class StoreUnavailable(AnalyticsStoreError):
    """The storage engine cannot be opened or cannot operate."""


class MalformedImport(AnalyticsStoreError):
    """An import payload is not a JSON array of records."""


class RecordRejected(AnalyticsStoreError):
    """A single record violates the schema or a uniqueness constraint."""

    def __init__(
        self,
        message: str,
        *,
        record_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.record_id = record_id
