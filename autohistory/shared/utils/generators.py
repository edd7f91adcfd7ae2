"""Primary key generator for history rows."""

from cuid2 import cuid_wrapper

_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new CUID2 string (default id of history records)."""
    return _cuid()
