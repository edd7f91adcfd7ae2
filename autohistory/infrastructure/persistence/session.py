"""Session integration: runs history capture around every flush.

install_auto_history() attaches three Session events:

- before_flush: begin_capture. Update/delete history rows join this flush.
- after_flush_postexec: end_capture. Insert history rows are added once
  generated keys exist; Session.commit() flushes them in the same
  transaction, an explicit flush() leaves them for the next flush.
- after_soft_rollback: staged insertions are discarded (and logged) so a
  retried flush does not record them twice.

Each Session keeps its own HistoryCaptureService in session.info, so
concurrent sessions never drain each other's staged insertions.

For asyncio use AutoHistorySession as the sync session class:

    async_sessionmaker(engine, sync_session_class=AutoHistorySession)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event, inspect as sa_inspect
from sqlalchemy.orm import Session

from autohistory.application.interfaces.services import IMetadataResolver
from autohistory.application.services.history_capture_service import (
    HistoryCaptureService,
    SkipHook,
)
from autohistory.core.config import Settings, get_settings
from autohistory.domain.exceptions import HistoryModelException
from autohistory.infrastructure.persistence.change_tracker import SessionChangeTracker
from autohistory.infrastructure.persistence.metadata import DeclarativeMetadataResolver
from autohistory.infrastructure.persistence.models.auto_history import AutoHistory
from autohistory.infrastructure.persistence.models.mixins import (
    HISTORY_RECORD_FIELDS,
    AutoHistoryMixin,
)
from autohistory.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

CAPTURE_SERVICE_INFO_KEY = "autohistory.capture_service"


def _validate_history_model(history_model: type) -> None:
    """Raise HistoryModelException unless history_model is mapped with the record columns."""
    mapper = sa_inspect(history_model, raiseerr=False)
    if mapper is None:
        raise HistoryModelException(history_model.__name__, "class is not mapped")
    missing = [name for name in HISTORY_RECORD_FIELDS if name not in mapper.columns]
    if missing:
        raise HistoryModelException(
            history_model.__name__, f"missing attribute(s): {', '.join(missing)}"
        )


def capture_service_for(session: Session) -> HistoryCaptureService | None:
    """Return the capture service owned by session, if history ran on it yet."""
    return session.info.get(CAPTURE_SERVICE_INFO_KEY)


def discard_pending_history(session: Session) -> int:
    """Drop insertions staged on session without recording them; return the count."""
    service = capture_service_for(session)
    return service.discard_pending() if service is not None else 0


def install_auto_history(
    target: Any,
    *,
    resolver: IMetadataResolver | None = None,
    history_model: type[AutoHistoryMixin] = AutoHistory,
    settings: Settings | None = None,
    on_skip: SkipHook | None = None,
) -> None:
    """Record history for every flush of target.

    Args:
        target: A Session subclass, sessionmaker or Session instance.
        resolver: Eligibility/exclusion metadata (default: declarative markers).
        history_model: Mapped class receiving history rows.
        settings: History settings (default: get_settings() at flush time).
        on_skip: Called with (entry, exception) when an entity is skipped.

    Raises:
        HistoryModelException: If history_model cannot store history records.
    """
    _validate_history_model(history_model)
    metadata = resolver or DeclarativeMetadataResolver()

    def _settings() -> Settings:
        return settings or get_settings()

    def _service(session: Session) -> HistoryCaptureService:
        service = capture_service_for(session)
        if service is None:
            service = HistoryCaptureService.from_settings(
                metadata, _settings(), on_skip=on_skip
            )
            session.info[CAPTURE_SERVICE_INFO_KEY] = service
        return service

    def _before_flush(session: Session, _flush_context: Any, _instances: Any) -> None:
        if not _settings().history_enabled:
            return
        _service(session).begin_capture(SessionChangeTracker(session, history_model))

    def _after_flush_postexec(session: Session, _flush_context: Any) -> None:
        service = capture_service_for(session)
        if service is None or not _settings().history_enabled:
            return
        service.end_capture(SessionChangeTracker(session, history_model))

    def _after_soft_rollback(session: Session, _previous_transaction: Any) -> None:
        if _settings().history_discard_on_rollback:
            discard_pending_history(session)

    event.listen(target, "before_flush", _before_flush)
    event.listen(target, "after_flush_postexec", _after_flush_postexec)
    event.listen(target, "after_soft_rollback", _after_soft_rollback)
    logger.debug(
        "Installed history capture on %s (history model: %s)",
        getattr(target, "__name__", type(target).__name__),
        history_model.__name__,
    )


class AutoHistorySession(Session):
    """Session that records history for @include_history entities on every flush."""


install_auto_history(AutoHistorySession)
