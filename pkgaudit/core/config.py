"""Environment-variable settings."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def env_int(key: str, default: int, minimum: int = 0) -> int:
    """Read an integer setting, falling back to *default* when unset or invalid."""
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", key, raw, default)
        return default
    if value < minimum:
        logger.warning("Ignoring %s=%d: below %d, using %d", key, value, minimum, default)
        return default
    return value
