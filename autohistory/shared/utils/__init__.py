"""Shared utilities: UTC datetime helpers and id generators."""

from autohistory.shared.utils.datetime import days_ago_utc, ensure_utc, utc_now
from autohistory.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "days_ago_utc",
]
