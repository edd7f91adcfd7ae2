"""Application services: diff engine, serializer, capture queue and orchestrator."""

from autohistory.application.services.capture_queue import CaptureQueue
from autohistory.application.services.diff_engine import DiffEngine
from autohistory.application.services.history_capture_service import (
    HistoryCaptureService,
)
from autohistory.application.services.identity_extractor import (
    KEY_SEPARATOR,
    MISSING_KEY_SENTINEL,
    extract_id,
)
from autohistory.application.services.metadata_resolver import StaticMetadataResolver
from autohistory.application.services.record_serializer import (
    RecordSerializer,
    changed_property_names,
    parse_changes,
    parse_changes_as,
)

__all__ = [
    "CaptureQueue",
    "DiffEngine",
    "HistoryCaptureService",
    "KEY_SEPARATOR",
    "MISSING_KEY_SENTINEL",
    "RecordSerializer",
    "StaticMetadataResolver",
    "changed_property_names",
    "extract_id",
    "parse_changes",
    "parse_changes_as",
]
