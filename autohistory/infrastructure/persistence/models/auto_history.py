"""AutoHistory ORM model. Append-only before/after record of entity changes."""

from typing import Any

from sqlalchemy import Connection, Index, event
from sqlalchemy.orm import Mapper

from autohistory.infrastructure.persistence.database import Base
from autohistory.infrastructure.persistence.models.mixins import AutoHistoryMixin


class AutoHistory(AutoHistoryMixin, Base):
    """History entry. Table: auto_history. Index: (entity_type, entity_id). No update/delete."""

    __tablename__ = "auto_history"

    __table_args__ = (
        Index("ix_auto_history_entity", "entity_type", "entity_id"),
    )


@event.listens_for(AutoHistoryMixin, "before_update", propagate=True)
def _prevent_history_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: AutoHistoryMixin
) -> None:
    """History entries are append-only; updates are forbidden."""
    raise ValueError(
        "History entries are immutable and cannot be updated."
    )


@event.listens_for(AutoHistoryMixin, "before_delete", propagate=True)
def _prevent_history_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: AutoHistoryMixin
) -> None:
    """History entries cannot be deleted through the ORM."""
    raise ValueError(
        "History entries cannot be deleted."
    )
