"""Application interfaces (ports): metadata and change-tracker protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from autohistory.infrastructure.
"""

from autohistory.application.interfaces.services import (
    IChangeTracker,
    IMetadataResolver,
    ITrackedEntry,
)

__all__ = [
    "IChangeTracker",
    "IMetadataResolver",
    "ITrackedEntry",
]
