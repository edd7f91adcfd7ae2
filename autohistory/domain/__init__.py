"""Domain layer: enums and exceptions.

No dependencies on infrastructure. Used by application and infrastructure
layers.
"""

from autohistory.domain.enums import HistoryKind, MutationKind
from autohistory.domain.exceptions import (
    AutoHistoryException,
    HistoryModelException,
    SqlNotConfiguredException,
    UnsupportedMutationKindException,
)

__all__ = [
    "AutoHistoryException",
    "HistoryKind",
    "HistoryModelException",
    "MutationKind",
    "SqlNotConfiguredException",
    "UnsupportedMutationKindException",
]
