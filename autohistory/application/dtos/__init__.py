"""Application DTOs (no ORM dependency)."""

from autohistory.application.dtos.history import (
    AutoHistoryResult,
    CaptureStats,
    HistoryChanges,
    HistoryDiff,
    HistoryRecord,
    PendingMutation,
    PropertyValue,
)

__all__ = [
    "AutoHistoryResult",
    "CaptureStats",
    "HistoryChanges",
    "HistoryDiff",
    "HistoryRecord",
    "PendingMutation",
    "PropertyValue",
]
