from __future__ import annotations
import os

FALLBACK_WORKERS = 10


def positive_int(raw: str | None, default: int) -> int:
    """Parse a pool size; anything unparsable or below 1 gives default."""
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value > 0 else default


DEFAULT_WORKERS = positive_int(os.environ.get("STEPFLOW_DEFAULT_WORKERS"), FALLBACK_WORKERS)
SHELL = os.environ.get("STEPFLOW_SHELL", "sh")
