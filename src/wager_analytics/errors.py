"""Error types for wager-analytics."""

from __future__ import annotations


class WagerAnalyticsError(RuntimeError):
    """Base error for wager-analytics operations."""


class RecordLoadError(WagerAnalyticsError):
    """Raised when a record file is missing or in an unsupported format."""
