"""History capture service: the two-phase capture orchestrator.

One instance belongs to one persistence context (e.g. one Session) so its
CaptureQueue never mixes insertions staged by different contexts. The
adapter calls begin_capture before the write set is flushed and
end_capture once the flush has assigned generated identifiers.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from autohistory.application.dtos.history import (
    CaptureStats,
    HistoryRecord,
    PendingMutation,
)
from autohistory.application.interfaces.services import (
    IChangeTracker,
    IMetadataResolver,
    ITrackedEntry,
)
from autohistory.application.services.capture_queue import CaptureQueue
from autohistory.application.services.diff_engine import DiffEngine
from autohistory.application.services.identity_extractor import extract_id
from autohistory.application.services.record_serializer import RecordSerializer
from autohistory.domain.enums import HistoryKind, MutationKind
from autohistory.domain.exceptions import UnsupportedMutationKindException
from autohistory.shared.telemetry.logging import get_logger
from autohistory.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)
from autohistory.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from autohistory.core.config import Settings

SkipHook = Callable[[ITrackedEntry, Exception], None]
CaptureOutcome = Literal["recorded", "skipped", "suppressed"]

logger = get_logger(__name__)


class HistoryCaptureService:
    """Turns a pending write set into history records.

    Updates and deletions are recorded in the capture phase so they commit
    with the change itself. Insertions are staged and recorded in the
    finalize phase. A failure while capturing one entity skips that entity
    only: it is logged, counted in skipped_total and passed to on_skip.
    """

    def __init__(
        self,
        resolver: IMetadataResolver,
        *,
        diff_engine: DiffEngine | None = None,
        serializer: RecordSerializer | None = None,
        queue: CaptureQueue | None = None,
        clock: Callable[[], datetime] = utc_now,
        on_skip: SkipHook | None = None,
    ) -> None:
        self.resolver = resolver
        self.diff_engine = diff_engine or DiffEngine()
        self.serializer = serializer or RecordSerializer()
        self.queue = queue if queue is not None else CaptureQueue()
        self._clock = clock
        self._on_skip = on_skip
        self.skipped_total = 0

    @classmethod
    def from_settings(
        cls,
        resolver: IMetadataResolver,
        settings: Settings,
        *,
        on_skip: SkipHook | None = None,
    ) -> HistoryCaptureService:
        """Build a service using the history_* settings."""
        return cls(
            resolver,
            diff_engine=DiffEngine(decimal_places=settings.history_decimal_places),
            serializer=RecordSerializer(
                max_depth=settings.history_max_depth,
                indent=settings.history_indent,
            ),
            on_skip=on_skip,
        )

    @traced("autohistory.begin_capture")
    def begin_capture(self, tracker: IChangeTracker) -> CaptureStats:
        """Record updates/deletions and stage insertions of eligible entities.

        Raises:
            UnsupportedMutationKindException: If the tracker reports an eligible
                entity that is neither created, updated nor deleted.
        """
        counts: Counter[str] = Counter()
        for entry in tracker.entries():
            if not self.resolver.is_audit_eligible(entry.entity_type):
                continue
            kind = entry.kind
            if kind == MutationKind.CREATED:
                self.queue.enqueue(PendingMutation(entry))
                counts["staged"] += 1
                continue
            if kind not in (MutationKind.UPDATED, MutationKind.DELETED):
                raise UnsupportedMutationKindException(kind, entry.entity_type.__name__)
            counts[self._capture_entry(tracker, entry, kind)] += 1
        return self._finish(counts)

    @traced("autohistory.end_capture")
    def end_capture(self, tracker: IChangeTracker) -> CaptureStats:
        """Record the insertions staged by begin_capture, now that keys exist."""
        pending = self.queue.drain_all()
        if not pending:
            return CaptureStats()
        counts: Counter[str] = Counter()
        for item in pending:
            counts[self._capture_entry(tracker, item.entry, item.kind)] += 1
        return self._finish(counts)

    def discard_pending(self) -> int:
        """Drop staged insertions (e.g. after a rollback) and return how many."""
        dropped = len(self.queue.drain_all())
        if dropped:
            logger.warning(
                "Discarded %d staged insertion(s) without history records", dropped
            )
        return dropped

    def build_record(self, entry: ITrackedEntry, kind: MutationKind) -> HistoryRecord | None:
        """Build the history record for one entry, or None if nothing changed."""
        excluded = self.resolver.excluded_fields(entry.entity_type)
        properties = [p for p in entry.properties() if p.name not in excluded]
        diff = self.diff_engine.compute_diff(kind, properties, entry.stored_value)
        if diff is None:
            return None
        return HistoryRecord(
            entity_id=extract_id(entry.entity, entry.key_fields()),
            entity_type=entry.entity_type.__name__,
            kind=HistoryKind.from_mutation(kind),
            diff=self.serializer.serialize(diff),
            timestamp=self._clock(),
        )

    def _capture_entry(
        self, tracker: IChangeTracker, entry: ITrackedEntry, kind: MutationKind
    ) -> CaptureOutcome:
        try:
            record = self.build_record(entry, kind)
            if record is None:
                return "suppressed"
            tracker.add_record(record)
        except Exception as e:
            self._report_skip(entry, kind, e)
            return "skipped"
        logger.debug(
            "Captured %s history for %s (entity_id: %s)",
            record.kind.value,
            record.entity_type,
            record.entity_id,
        )
        return "recorded"

    def _report_skip(self, entry: ITrackedEntry, kind: MutationKind, error: Exception) -> None:
        self.skipped_total += 1
        logger.warning(
            "Failed to capture history for %s.%s: %s",
            entry.entity_type.__name__,
            kind.value,
            str(error),
            exc_info=True,
        )
        add_span_event(
            "history.skipped",
            {"entity_type": entry.entity_type.__name__, "kind": kind.value},
        )
        if self._on_skip is not None:
            self._on_skip(entry, error)

    @staticmethod
    def _finish(counts: Counter[str]) -> CaptureStats:
        stats = CaptureStats(
            recorded=counts["recorded"],
            staged=counts["staged"],
            skipped=counts["skipped"],
            suppressed=counts["suppressed"],
        )
        add_span_attributes(
            recorded=stats.recorded,
            staged=stats.staged,
            skipped=stats.skipped,
            suppressed=stats.suppressed,
        )
        return stats
