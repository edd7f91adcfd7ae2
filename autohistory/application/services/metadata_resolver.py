"""Static metadata resolver: eligibility from an explicit registration table."""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class StaticMetadataResolver:
    """IMetadataResolver backed by a mapping of entity type -> excluded fields.

    Keys may be classes or class names, so registrations can come from
    configuration. A type is eligible when it (or, for class keys, a base
    class) is registered; excluded fields of matching entries are merged.
    """

    def __init__(
        self, registrations: Mapping[type | str, Iterable[str]] | None = None
    ) -> None:
        self._registrations: dict[type | str, frozenset[str]] = {}
        for entity_type, excluded in (registrations or {}).items():
            self.register(entity_type, excluded)

    def register(self, entity_type: type | str, excluded: Iterable[str] = ()) -> None:
        """Track entity_type, never capturing the `excluded` property names."""
        self._registrations[entity_type] = frozenset(excluded)

    def _matches(self, entity_type: type) -> list[frozenset[str]]:
        return [
            excluded
            for key, excluded in self._registrations.items()
            if key == entity_type.__name__
            or (isinstance(key, type) and issubclass(entity_type, key))
        ]

    def is_audit_eligible(self, entity_type: type) -> bool:
        return bool(self._matches(entity_type))

    def excluded_fields(self, entity_type: type) -> frozenset[str]:
        return frozenset().union(*self._matches(entity_type))
