"""Composable filters over history rows.

Each function takes and returns a Select, so filters chain:

    stmt = most_recent_first(for_entity(select_history(), Product, 42))
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, select

from autohistory.domain.enums import HistoryKind
from autohistory.infrastructure.persistence.models.auto_history import AutoHistory
from autohistory.infrastructure.persistence.models.mixins import AutoHistoryMixin
from autohistory.shared.utils.datetime import days_ago_utc

HistoryModel = type[AutoHistoryMixin]


def _entity_type_name(entity: type | str) -> str:
    return entity if isinstance(entity, str) else entity.__name__


def select_history(model: HistoryModel = AutoHistory) -> Select[Any]:
    """Select all rows of the history model."""
    return select(model)


def for_entity(
    stmt: Select[Any],
    entity: type | str,
    entity_id: Any,
    model: HistoryModel = AutoHistory,
) -> Select[Any]:
    """Rows of one entity: entity class (or its name) and its id as written by extract_id."""
    return stmt.where(
        model.entity_type == _entity_type_name(entity),
        model.entity_id == str(entity_id),
    )


def for_table(
    stmt: Select[Any], entity: type | str, model: HistoryModel = AutoHistory
) -> Select[Any]:
    """Rows of every entity of one type."""
    return stmt.where(model.entity_type == _entity_type_name(entity))


def in_date_range(
    stmt: Select[Any],
    start: datetime,
    end: datetime | None = None,
    model: HistoryModel = AutoHistory,
) -> Select[Any]:
    """Rows captured from start to end (both inclusive); no end means up to now."""
    stmt = stmt.where(model.timestamp >= start)
    if end is not None:
        stmt = stmt.where(model.timestamp <= end)
    return stmt


def from_last_days(
    stmt: Select[Any],
    days: int,
    model: HistoryModel = AutoHistory,
    now: datetime | None = None,
) -> Select[Any]:
    """Rows captured within the last `days` days."""
    return stmt.where(model.timestamp >= days_ago_utc(days, now))


def of_kind(
    stmt: Select[Any], kind: HistoryKind, model: HistoryModel = AutoHistory
) -> Select[Any]:
    """Rows of one kind (created, updated or deleted)."""
    return stmt.where(model.kind == HistoryKind(kind).value)


def additions(stmt: Select[Any], model: HistoryModel = AutoHistory) -> Select[Any]:
    return of_kind(stmt, HistoryKind.CREATED, model)


def modifications(stmt: Select[Any], model: HistoryModel = AutoHistory) -> Select[Any]:
    return of_kind(stmt, HistoryKind.UPDATED, model)


def deletions(stmt: Select[Any], model: HistoryModel = AutoHistory) -> Select[Any]:
    return of_kind(stmt, HistoryKind.DELETED, model)


def most_recent_first(stmt: Select[Any], model: HistoryModel = AutoHistory) -> Select[Any]:
    return stmt.order_by(model.timestamp.desc())


def oldest_first(stmt: Select[Any], model: HistoryModel = AutoHistory) -> Select[Any]:
    return stmt.order_by(model.timestamp.asc())
