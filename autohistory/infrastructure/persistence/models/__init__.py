"""Persistence models: history ORM model and mixin."""

from autohistory.infrastructure.persistence.models.auto_history import AutoHistory
from autohistory.infrastructure.persistence.models.mixins import (
    HISTORY_RECORD_FIELDS,
    AutoHistoryMixin,
)

__all__ = [
    "AutoHistory",
    "AutoHistoryMixin",
    "HISTORY_RECORD_FIELDS",
]
