"""Record serializer: HistoryDiff <-> stored JSON text.

The stored form is {"before": {...}, "after": {...}} with field names kept
as declared on the entity. Encoding never fails on odd values: reference
cycles and over-deep nesting are written as null, non-finite numbers as the
tokens "NaN", "Infinity" and "-Infinity". A Decimal is written as a JSON
number only when a float holds it exactly; otherwise as its string so no
digits are lost.
"""

from __future__ import annotations

import base64
import json
import math
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from autohistory.application.dtos.history import HistoryChanges, HistoryDiff
from autohistory.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

BEFORE_KEY = "before"
AFTER_KEY = "after"

NAN_TOKEN = "NaN"
POSITIVE_INFINITY_TOKEN = "Infinity"
NEGATIVE_INFINITY_TOKEN = "-Infinity"


def _non_finite_token(value: float | Decimal) -> str:
    is_nan = value.is_nan() if isinstance(value, Decimal) else math.isnan(value)
    if is_nan:
        return NAN_TOKEN
    return POSITIVE_INFINITY_TOKEN if value > 0 else NEGATIVE_INFINITY_TOKEN


def _encode_decimal(value: Decimal) -> float | str:
    """JSON number when a float holds the value exactly, else its exact text."""
    if not value.is_finite():
        return _non_finite_token(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


class RecordSerializer:
    """Serializes diffs for storage and parses stored diffs back."""

    def __init__(self, max_depth: int = 64, indent: int | None = 2) -> None:
        self.max_depth = max_depth
        self.indent = indent

    def serialize(self, diff: HistoryDiff | None) -> str | None:
        """Return the stored text for diff, or None when diff is None."""
        if diff is None:
            return None
        payload = {
            BEFORE_KEY: self._encode_mapping(diff.before, 0, set()),
            AFTER_KEY: self._encode_mapping(diff.after, 0, set()),
        }
        return json.dumps(
            payload, indent=self.indent, ensure_ascii=False, allow_nan=False
        )

    def parse(self, text: str | None) -> HistoryChanges[dict[str, Any]] | None:
        """Parse stored text into open field/value mappings; None if unusable."""
        return self.parse_as(text, dict[str, Any])

    def parse_as(self, text: str | None, model: Any) -> HistoryChanges[Any] | None:
        """Parse stored text with each side validated as `model`.

        Malformed text is reported as "no diff available" (None), never raised.
        """
        if not text:
            return None
        try:
            return HistoryChanges[model].model_validate_json(text)
        except ValidationError as e:
            logger.debug("Unreadable history diff (%d errors)", e.error_count())
            return None

    def _encode_mapping(
        self, value: Mapping[Any, Any], depth: int, path: set[int]
    ) -> dict[str, Any]:
        return {
            self._encode_key(key): self._encode(item, depth + 1, path)
            for key, item in value.items()
        }

    @staticmethod
    def _encode_key(key: Any) -> str:
        if isinstance(key, Enum):
            key = key.value
        return key if isinstance(key, str) else str(key)

    def _encode(self, value: Any, depth: int, path: set[int]) -> Any:
        if depth > self.max_depth:
            return None
        if isinstance(value, Enum):
            return self._encode(value.value, depth, path)
        if value is None or isinstance(value, (bool, int, str)):
            return value
        if isinstance(value, float):
            return value if math.isfinite(value) else _non_finite_token(value)
        if isinstance(value, Decimal):
            return _encode_decimal(value)
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        if isinstance(value, timedelta):
            return value.total_seconds()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return base64.b64encode(bytes(value)).decode("ascii")

        # Containers: guard against cycles on the current path.
        marker = id(value)
        if marker in path:
            return None
        path.add(marker)
        try:
            if isinstance(value, Mapping):
                return self._encode_mapping(value, depth, path)
            if isinstance(value, (list, tuple)):
                return [self._encode(item, depth + 1, path) for item in value]
            if isinstance(value, (set, frozenset)):
                items = [self._encode(item, depth + 1, path) for item in value]
                try:
                    items.sort()
                except TypeError:
                    pass
                return items
            if hasattr(value, "__dict__"):
                public = {
                    key: item
                    for key, item in vars(value).items()
                    if not key.startswith("_")
                }
                return self._encode_mapping(public, depth, path)
        finally:
            path.discard(marker)
        return str(value)


_default_serializer = RecordSerializer()


def _diff_text(source: Any) -> str | None:
    """Accept raw diff text or any record exposing a .diff attribute."""
    if source is None or isinstance(source, str):
        return source
    return getattr(source, "diff", None)


def parse_changes(source: Any) -> HistoryChanges[dict[str, Any]] | None:
    """Parse a record's diff (or raw text) into open before/after mappings."""
    return _default_serializer.parse(_diff_text(source))


def parse_changes_as(source: Any, model: Any) -> HistoryChanges[Any] | None:
    """Parse a record's diff with before/after validated as `model` (e.g. a pydantic model)."""
    return _default_serializer.parse_as(_diff_text(source), model)


def changed_property_names(source: Any) -> list[str]:
    """Names present in before or after, in first-seen order ([] when unreadable)."""
    changes = parse_changes(source)
    if changes is None:
        return []
    names = dict.fromkeys(changes.before or {})
    names.update(dict.fromkeys(changes.after or {}))
    return list(names)
