"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from autohistory.shared.telemetry import get_logger, traced
from autohistory.shared.utils import (
    days_ago_utc,
    ensure_utc,
    generate_cuid,
    utc_now,
)

__all__ = [
    "get_logger",
    "traced",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "days_ago_utc",
]
