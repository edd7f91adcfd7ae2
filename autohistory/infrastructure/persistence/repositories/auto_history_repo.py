"""History repository. Read side of the append-only history table."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from autohistory.application.dtos.history import AutoHistoryResult
from autohistory.domain.enums import HistoryKind
from autohistory.infrastructure.persistence.models.auto_history import AutoHistory
from autohistory.infrastructure.persistence.models.mixins import AutoHistoryMixin
from autohistory.infrastructure.persistence.repositories import history_queries as q
from autohistory.shared.telemetry.tracing import traced
from autohistory.shared.utils.datetime import ensure_utc


def _orm_to_result(row: AutoHistoryMixin) -> AutoHistoryResult:
    """Map ORM to application DTO."""
    return AutoHistoryResult(
        id=row.id,
        entity_id=row.entity_id,
        entity_type=row.entity_type,
        kind=HistoryKind(row.kind),
        diff=row.diff,
        timestamp=ensure_utc(row.timestamp) or row.timestamp,
    )


class AutoHistoryRepository:
    """Read-only access to history rows. Rows are written by history capture only."""

    def __init__(
        self, db: AsyncSession, model: type[AutoHistoryMixin] = AutoHistory
    ) -> None:
        self.db = db
        self.model = model

    @traced("autohistory.history_repo.list")
    async def list(
        self,
        *,
        entity_type: type | str | None = None,
        entity_id: Any = None,
        kind: HistoryKind | None = None,
        from_timestamp: datetime | None = None,
        to_timestamp: datetime | None = None,
        last_days: int | None = None,
        newest_first: bool = True,
        skip: int = 0,
        limit: int = 100,
    ) -> list[AutoHistoryResult]:
        """List history rows with optional filters (newest first by default).

        entity_id is only applied together with entity_type.
        """
        model = self.model
        stmt = q.select_history(model)
        if entity_type is not None and entity_id is not None:
            stmt = q.for_entity(stmt, entity_type, entity_id, model)
        elif entity_type is not None:
            stmt = q.for_table(stmt, entity_type, model)
        if kind is not None:
            stmt = q.of_kind(stmt, kind, model)
        if from_timestamp is not None:
            stmt = q.in_date_range(stmt, from_timestamp, to_timestamp, model)
        elif to_timestamp is not None:
            stmt = stmt.where(model.timestamp <= to_timestamp)
        if last_days is not None:
            stmt = q.from_last_days(stmt, last_days, model)
        stmt = q.most_recent_first(stmt, model) if newest_first else q.oldest_first(stmt, model)
        result = await self.db.execute(stmt.offset(skip).limit(limit))
        return [_orm_to_result(r) for r in result.scalars().all()]

    async def list_for_entity(
        self, entity_type: type | str, entity_id: Any, *, newest_first: bool = False
    ) -> list[AutoHistoryResult]:
        """Full history of one entity, oldest first by default."""
        return await self.list(
            entity_type=entity_type,
            entity_id=entity_id,
            newest_first=newest_first,
            limit=10000,
        )
