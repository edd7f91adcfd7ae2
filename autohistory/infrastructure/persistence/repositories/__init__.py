"""Persistence repositories: history read model and query filters."""

from autohistory.infrastructure.persistence.repositories import history_queries
from autohistory.infrastructure.persistence.repositories.auto_history_repo import (
    AutoHistoryRepository,
)

__all__ = [
    "AutoHistoryRepository",
    "history_queries",
]
