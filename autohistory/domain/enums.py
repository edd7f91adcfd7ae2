"""Domain enumerations for autohistory.

MutationKind classifies a tracked entity at observation time; HistoryKind
is the narrower set that can appear on a persisted history record.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class MutationKind(_ValuesMixin, str, Enum):
    """State of an entity in the persistence context when a flush is observed."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UNCHANGED = "unchanged"
    DETACHED = "detached"


class HistoryKind(_ValuesMixin, str, Enum):
    """Kind of change stored on a history record."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    @classmethod
    def from_mutation(cls, kind: MutationKind) -> "HistoryKind":
        """Map a recordable MutationKind to its HistoryKind.

        Raises:
            ValueError: If kind is UNCHANGED or DETACHED.
        """
        return cls(kind.value)
