"""Diff engine: property-level before/after values for one tracked entity."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from autohistory.application.dtos.history import HistoryDiff, PropertyValue
from autohistory.domain.enums import MutationKind
from autohistory.domain.exceptions import UnsupportedMutationKindException

StoredValueLookup = Callable[[str], Any]


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


class DiffEngine:
    """Computes the minimal HistoryDiff for one entity.

    Updates keep only properties whose value really changed. Numeric
    properties are compared after rounding both sides to decimal_places,
    so representation noise (10.001 -> 10.004) is not reported.
    Creations and deletions capture every property passed in.
    """

    def __init__(self, decimal_places: int = 2) -> None:
        self.decimal_places = decimal_places
        self._quantum = Decimal(1).scaleb(-decimal_places)

    def compute_diff(
        self,
        kind: MutationKind,
        properties: Iterable[PropertyValue],
        stored_value: StoredValueLookup | None = None,
    ) -> HistoryDiff | None:
        """Return the diff for kind, or None when nothing meaningful changed.

        Args:
            kind: CREATED, UPDATED or DELETED.
            properties: Non-excluded properties of the entity.
            stored_value: Lookup for the last value known to the database,
                used when the in-memory original already equals the current
                value (e.g. a re-attached entity).

        Raises:
            UnsupportedMutationKindException: For any other kind.
        """
        if kind == MutationKind.UPDATED:
            diff = self._updated_diff(properties, stored_value)
        elif kind == MutationKind.DELETED:
            diff = HistoryDiff(before={p.name: p.original_value for p in properties})
        elif kind == MutationKind.CREATED:
            diff = HistoryDiff(after={p.name: p.current_value for p in properties})
        else:
            raise UnsupportedMutationKindException(kind)
        return None if diff.is_empty else diff

    def _updated_diff(
        self,
        properties: Iterable[PropertyValue],
        stored_value: StoredValueLookup | None,
    ) -> HistoryDiff:
        before: dict[str, Any] = {}
        after: dict[str, Any] = {}
        for prop in properties:
            if not prop.is_modified:
                continue
            original = self.resolve_original(prop, stored_value)
            if self.values_equal(original, prop.current_value, numeric=prop.is_numeric):
                continue
            before[prop.name] = original
            after[prop.name] = prop.current_value
        return HistoryDiff(before=before, after=after)

    @staticmethod
    def resolve_original(
        prop: PropertyValue, stored_value: StoredValueLookup | None
    ) -> Any:
        """Return the value to report as 'before' for a modified property.

        The in-memory original wins when it differs from the current value;
        otherwise it has already been overwritten and the stored value is used.
        """
        if prop.original_value != prop.current_value or stored_value is None:
            return prop.original_value
        return stored_value(prop.name)

    def values_equal(self, old: Any, new: Any, *, numeric: bool = False) -> bool:
        """Compare two values by their text form (rounded for numeric properties)."""
        old_text = _as_text(old)
        new_text = _as_text(new)
        if numeric:
            old_text = self._round(old_text)
            new_text = self._round(new_text)
        return old_text == new_text

    def _round(self, text: str) -> str:
        """Round a numeric text half-up; leave unparsable or non-finite text as is."""
        try:
            value = Decimal(text)
            if not value.is_finite():
                return text
            return str(value.quantize(self._quantum, rounding=ROUND_HALF_UP))
        except InvalidOperation:
            return text
