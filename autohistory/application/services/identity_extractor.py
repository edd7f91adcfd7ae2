"""Identity extractor: stable string id for an entity from its key fields."""

from collections.abc import Callable, Sequence
from typing import Any

KEY_SEPARATOR = ","
# Written for key values not assigned yet (e.g. insertions before the flush).
MISSING_KEY_SENTINEL = "0"


def _read_attribute(entity: Any, name: str) -> Any:
    return getattr(entity, name, None)


def extract_id(
    entity: Any,
    key_fields: Sequence[str],
    getter: Callable[[Any, str], Any] = _read_attribute,
) -> str:
    """Join the current key values of entity in declared order.

    Composite keys are joined with ',' (tenant_id=7, local_id=3 -> "7,3").
    A missing or None key value is written as "0" rather than failing.
    Returns "" when the type declares no key; such records are still stored.

    Args:
        entity: The domain object.
        key_fields: Primary key property names in declared order.
        getter: Reads one key value (default: getattr, None when absent).

    Returns:
        The entity id string.
    """
    values = []
    for name in key_fields:
        value = getter(entity, name)
        values.append(MISSING_KEY_SENTINEL if value is None else str(value))
    return KEY_SEPARATOR.join(values)
