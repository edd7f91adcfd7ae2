"""Service interfaces (ports) for history capture.

Protocols define what the capture core consumes from the outside world:
eligibility metadata and the persistence engine's change tracker (DIP).
The SQLAlchemy adapters in autohistory.infrastructure implement them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from autohistory.domain.enums import MutationKind

if TYPE_CHECKING:
    from autohistory.application.dtos.history import HistoryRecord, PropertyValue


# Metadata resolver interface
class IMetadataResolver(Protocol):
    """Protocol for deciding which entity types and fields are tracked.

    Both queries must be pure; implementations may cache per type.
    """

    def is_audit_eligible(self, entity_type: type) -> bool:
        """Return True if instances of entity_type get history records."""

    def excluded_fields(self, entity_type: type) -> frozenset[str]:
        """Return property names of entity_type that are never captured."""


# Tracked entry interface
class ITrackedEntry(Protocol):
    """Protocol for one entity awaiting flush, as exposed by the change tracker."""

    @property
    def entity(self) -> Any:
        """The domain object (borrowed for one save call)."""

    @property
    def entity_type(self) -> type:
        """Class of the domain object."""

    @property
    def kind(self) -> MutationKind:
        """Mutation classification at observation time."""

    def key_fields(self) -> Sequence[str]:
        """Primary key property names in declared order (empty if none)."""

    def properties(self) -> list[PropertyValue]:
        """Current snapshot of all mapped scalar properties."""

    def stored_value(self, name: str) -> Any:
        """Last value of property `name` known to the database."""


# Change tracker interface
class IChangeTracker(Protocol):
    """Protocol for the persistence context's pending write set."""

    def entries(self) -> list[ITrackedEntry]:
        """Return entities staged for persistence (history rows excluded)."""

    def add_record(self, record: HistoryRecord) -> None:
        """Add a history record to the in-flight write set."""
