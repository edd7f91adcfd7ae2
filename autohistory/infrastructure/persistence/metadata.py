"""Declarative history markers and the resolver that reads them.

Mark an entity class with @include_history to track it. Leave a column out
of every diff with mapped_column(..., info=exclude_history()) or by listing
its attribute name in the class-level __exclude_history__.

    @include_history
    class Product(Base):
        __tablename__ = "product"
        __exclude_history__ = ("search_vector",)

        id: Mapped[int] = mapped_column(primary_key=True)
        name: Mapped[str]
        secret: Mapped[str] = mapped_column(info=exclude_history())
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from sqlalchemy import inspect as sa_inspect

INCLUDE_HISTORY_ATTR = "__include_history__"
EXCLUDE_HISTORY_ATTR = "__exclude_history__"
EXCLUDE_HISTORY_INFO_KEY = "exclude_history"

EntityT = TypeVar("EntityT", bound=type)


def include_history(cls: EntityT) -> EntityT:
    """Class decorator: record history for cls and its subclasses."""
    setattr(cls, INCLUDE_HISTORY_ATTR, True)
    return cls


def exclude_history(**info: Any) -> dict[str, Any]:
    """Return a column info dict that keeps the column out of history diffs.

    Extra keyword arguments are merged into the dict so other info keys
    can be set on the same column.
    """
    return {**info, EXCLUDE_HISTORY_INFO_KEY: True}


def _info_excludes(infos: Iterable[dict[str, Any]]) -> bool:
    return any(info.get(EXCLUDE_HISTORY_INFO_KEY) for info in infos)


class DeclarativeMetadataResolver:
    """IMetadataResolver reading include_history/exclude_history markers.

    Excluded field sets are cached per class; the markers are static.
    """

    def __init__(self) -> None:
        self._excluded_cache: dict[type, frozenset[str]] = {}

    def is_audit_eligible(self, entity_type: type) -> bool:
        return bool(getattr(entity_type, INCLUDE_HISTORY_ATTR, False))

    def excluded_fields(self, entity_type: type) -> frozenset[str]:
        cached = self._excluded_cache.get(entity_type)
        if cached is not None:
            return cached
        names = set(getattr(entity_type, EXCLUDE_HISTORY_ATTR, ()))
        mapper = sa_inspect(entity_type, raiseerr=False)
        if mapper is not None:
            for attr in mapper.column_attrs:
                infos = [attr.info, *(getattr(col, "info", {}) for col in attr.columns)]
                if _info_excludes(infos):
                    names.add(attr.key)
        excluded = frozenset(names)
        self._excluded_cache[entity_type] = excluded
        return excluded
