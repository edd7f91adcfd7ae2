"""SQLAlchemy change tracker: exposes a Session's pending write set to the capture core.

SessionChangeTracker implements IChangeTracker and SessionEntry implements
ITrackedEntry on top of the unit of work (session.new / dirty / deleted)
and per-attribute history from sqlalchemy.inspect().
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Numeric, inspect as sa_inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import NO_VALUE

from autohistory.application.dtos.history import HistoryRecord, PropertyValue
from autohistory.domain.enums import MutationKind
from autohistory.infrastructure.persistence.models.auto_history import AutoHistory
from autohistory.infrastructure.persistence.models.mixins import AutoHistoryMixin


class SessionEntry:
    """One object in the session's write set (ITrackedEntry).

    Values are read when asked for, so the same entry observed before a
    flush reports generated keys and flushed values afterwards.
    """

    def __init__(self, session: Session, entity: Any, kind: MutationKind) -> None:
        self._session = session
        self._entity = entity
        self._kind = kind
        self._state = sa_inspect(entity)
        self._mapper = self._state.mapper

    @property
    def entity(self) -> Any:
        return self._entity

    @property
    def entity_type(self) -> type:
        return type(self._entity)

    @property
    def kind(self) -> MutationKind:
        return self._kind

    def key_fields(self) -> list[str]:
        """Primary key attribute names in mapper order."""
        return [
            self._mapper.get_property_by_column(column).key
            for column in self._mapper.primary_key
        ]

    def properties(self) -> list[PropertyValue]:
        """Snapshot of every column attribute.

        original_value comes from the attribute's committed state (deleted
        history), current_value from the pending value (added history);
        an unchanged attribute reports its loaded value for both. An attribute
        assigned while expired or unloaded has no committed value; it reports
        current_value for both so the diff engine reads the stored value.
        """
        values = []
        for attr in self._mapper.column_attrs:
            history = self._state.attrs[attr.key].load_history()
            unchanged = history.unchanged[0] if history.unchanged else None
            current = history.added[0] if history.added else unchanged
            if history.deleted:
                original = history.deleted[0]
            elif self._committed_value_unknown(attr.key):
                original = current
            else:
                original = unchanged
            values.append(
                PropertyValue(
                    name=attr.key,
                    original_value=original,
                    current_value=current,
                    is_modified=history.has_changes(),
                    is_numeric=isinstance(attr.columns[0].type, Numeric),
                )
            )
        return values

    def _committed_value_unknown(self, key: str) -> bool:
        return (
            self._state.has_identity
            and self._state.committed_state.get(key) is NO_VALUE
        )

    def stored_value(self, name: str) -> Any:
        """Read the column's current database value by the entity's identity.

        Returns None for objects that have not been persisted yet.
        """
        identity = self._state.identity
        if identity is None:
            return None
        column = self._mapper.column_attrs[name].columns[0]
        conditions = [
            pk_column == value
            for pk_column, value in zip(self._mapper.primary_key, identity)
        ]
        with self._session.no_autoflush:
            result = self._session.execute(select(column).where(*conditions))
            return result.scalar_one_or_none()


class SessionChangeTracker:
    """IChangeTracker over a Session: classifies pending objects and adds history rows."""

    def __init__(
        self, session: Session, history_model: type[AutoHistoryMixin] = AutoHistory
    ) -> None:
        self._session = session
        self.history_model = history_model

    def _is_history_row(self, obj: Any) -> bool:
        return isinstance(obj, (AutoHistoryMixin, self.history_model))

    def entries(self) -> list[SessionEntry]:
        """New objects as CREATED, dirty as UPDATED, deleted as DELETED (history rows excluded)."""
        staged = (
            (MutationKind.CREATED, self._session.new),
            (MutationKind.UPDATED, self._session.dirty),
            (MutationKind.DELETED, self._session.deleted),
        )
        return [
            SessionEntry(self._session, obj, kind)
            for kind, objects in staged
            for obj in list(objects)
            if not self._is_history_row(obj)
        ]

    def add_record(self, record: HistoryRecord) -> None:
        """Add a history row to the session; it is flushed with the current write set."""
        self._session.add(
            self.history_model(
                entity_id=record.entity_id,
                entity_type=record.entity_type,
                kind=record.kind.value,
                diff=record.diff,
                timestamp=record.timestamp,
            )
        )
