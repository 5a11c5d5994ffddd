"""Bootstrap configuration helpers (pre-settings).

These helpers cover the few values needed before the Pydantic settings
singleton can be imported, e.g. the log level used while telemetry is
being configured.

Keep this module dependency-light (no telemetry imports) to avoid
circular imports.
"""

from __future__ import annotations

import os

from ai_tools.config.validators import validate_log_level


def get_bootstrap_log_level(default: str = "INFO") -> str:
    """Get logging level from environment without importing settings.

    Args:
        default: Default log level if not set or invalid.

    Returns:
        Uppercased, validated log level string.
    """
    value = os.getenv("APP_LOG_LEVEL", default)
    try:
        return validate_log_level(value)
    except ValueError:
        return validate_log_level(default)
