"""Domain exceptions for autohistory.

Only conditions the caller must act on are raised. Best-effort failures
while capturing a single entity are logged and counted instead (see
HistoryCaptureService), so a history problem never fails the primary write.
"""

from typing import Any


class AutoHistoryException(Exception):
    """Base exception for all autohistory errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. kind, entity_type).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class UnsupportedMutationKindException(AutoHistoryException):
    """Raised when a tracker reports a mutation kind the capture phase cannot record.

    Only CREATED, UPDATED and DELETED are valid. Anything else is a contract
    violation by the change tracker and is surfaced to the caller.
    """

    def __init__(self, kind: Any, entity_type: str | None = None) -> None:
        """Initialize with the offending kind and optional entity type.

        Args:
            kind: The MutationKind (or raw value) that was observed.
            entity_type: Optional name of the entity class being captured.
        """
        kind_value = getattr(kind, "value", kind)
        details: dict[str, Any] = {"kind": kind_value}
        if entity_type:
            details["entity_type"] = entity_type
        super().__init__(
            f"History capture only supports created, updated and deleted entities, got: {kind_value}",
            "UNSUPPORTED_MUTATION_KIND",
            details,
        )


class HistoryModelException(AutoHistoryException):
    """Raised when the configured history model cannot be used to store records."""

    def __init__(self, model_name: str, reason: str) -> None:
        """Initialize with the model name and reason.

        Args:
            model_name: Class name of the configured history model.
            reason: Human-readable reason (e.g. 'missing column entity_id').
        """
        super().__init__(
            f"History model {model_name} is not usable: {reason}",
            "HISTORY_MODEL_ERROR",
            {"model": model_name, "reason": reason},
        )


class SqlNotConfiguredException(AutoHistoryException):
    """Raised when the bundled engine helpers are used without DATABASE_URL."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
