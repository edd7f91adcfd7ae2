"""Application layer: interfaces, DTOs and history capture services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (change tracker, metadata).
"""

from autohistory.application.interfaces import (
    IChangeTracker,
    IMetadataResolver,
    ITrackedEntry,
)
from autohistory.application.services import (
    DiffEngine,
    HistoryCaptureService,
    RecordSerializer,
)

__all__ = [
    "DiffEngine",
    "HistoryCaptureService",
    "IChangeTracker",
    "IMetadataResolver",
    "ITrackedEntry",
    "RecordSerializer",
]
