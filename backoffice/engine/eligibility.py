"""
backoffice.engine.eligibility — Free-Episode Rule
===================================================

Pure functions, no I/O.  The import job asks :func:`is_free` once per
episode; :func:`parse_free_count` turns whatever is stored under
``app_settings.free_episodes_count`` into a usable threshold.
"""

from __future__ import annotations

from typing import Any

from backoffice.constants import DEFAULT_FREE_EPISODES_COUNT


def is_free(position: int, free_count: int) -> bool:
    """Return ``True`` when an episode at *position* is free to view.

    Positions are 1-based within a season, so ``free_count=3`` frees the
    first three episodes and ``free_count=0`` frees none.
    """
    return position <= free_count


def parse_free_count(value: Any, default: int = DEFAULT_FREE_EPISODES_COUNT) -> int:
    """Extract the free-episode threshold from a stored setting value.

    Accepts ``{"count": N}`` (the shape the admin console writes), a bare
    integer, or a string of digits.  Anything else (missing, booleans,
    floats, other strings, negative numbers) yields *default*; a broken
    setting must not stop an import.
    """
    if isinstance(value, dict):
        value = value.get("count")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return default
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value < 0:
        return default
    return value
