"""DTOs for history capture and history read models.

Capture-side types are frozen dataclasses with no ORM dependency. The
read-side HistoryChanges is a pydantic generic model so stored diffs can
be validated into open mappings or typed models.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from autohistory.domain.enums import HistoryKind, MutationKind

if TYPE_CHECKING:
    from autohistory.application.interfaces.services import ITrackedEntry

T = TypeVar("T")


@dataclass(frozen=True)
class PropertyValue:
    """One mapped property of a tracked entity as seen by the change tracker.

    original_value is the value loaded from (or last flushed to) the database;
    current_value is the in-memory value about to be written.
    """

    name: str
    original_value: Any
    current_value: Any
    is_modified: bool = False
    is_numeric: bool = False


@dataclass(frozen=True)
class PendingMutation:
    """An insertion staged between the capture and finalize phases.

    Holds the tracker entry (not the values) so the finalize phase reads
    identifiers generated by the flush.
    """

    entry: "ITrackedEntry"
    kind: MutationKind = MutationKind.CREATED

    @property
    def entity(self) -> Any:
        return self.entry.entity


@dataclass(frozen=True)
class HistoryDiff:
    """Changed fields of one entity: field name -> value before and after."""

    before: dict[str, Any] = field(default_factory=dict)
    after: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.before and not self.after


@dataclass(frozen=True)
class HistoryRecord:
    """History record ready to be added to the write set (append-only)."""

    entity_id: str
    entity_type: str
    kind: HistoryKind
    diff: str | None
    timestamp: datetime


@dataclass(frozen=True)
class CaptureStats:
    """Outcome of one capture or finalize phase.

    recorded: records added to the write set.
    staged: insertions queued for the finalize phase.
    skipped: entities whose capture failed and were left out.
    suppressed: updates with no meaningful change (no record produced).
    """

    recorded: int = 0
    staged: int = 0
    skipped: int = 0
    suppressed: int = 0


@dataclass(frozen=True)
class AutoHistoryResult:
    """Single history record (read-model for list/get)."""

    id: str
    entity_id: str
    entity_type: str
    kind: HistoryKind
    diff: str | None
    timestamp: datetime


class HistoryChanges(BaseModel, Generic[T]):
    """Parsed diff of a history record. An empty side parses as None."""

    model_config = ConfigDict(populate_by_name=True)

    before: T | None = Field(default=None, validation_alias=AliasChoices("before", "Before"))
    after: T | None = Field(default=None, validation_alias=AliasChoices("after", "After"))

    @field_validator("before", "after", mode="before")
    @classmethod
    def _empty_side_is_none(cls, value: Any) -> Any:
        if isinstance(value, Mapping) and not value:
            return None
        return value
