"""Custom Pydantic validators for configuration.

This module provides validators for cross-field validation and
custom type conversions.
"""

from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Args:
        value: Log format string.

    Returns:
        Validated log format.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_base_url(value: str | None) -> str | None:
    """Normalise an HTTP base URL.

    Args:
        value: URL string or None.

    Returns:
        URL without a trailing slash, or None when unset/blank.

    Raises:
        ValueError: If the URL does not use http or https.
    """
    if value is None or not value.strip():
        return None
    url = value.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"base URL must start with http:// or https://, got {value}")
    return url


def resolve_path(value: Path | str) -> Path:
    """Resolve relative paths to absolute paths.

    Args:
        value: Path value (can be string or Path).

    Returns:
        Resolved Path object.
    """
    if isinstance(value, str):
        path = Path(value)
    else:
        path = value

    # Relative paths are anchored at the project root (src/ai_tools/config -> root)
    if not path.is_absolute():
        project_root = Path(__file__).parent.parent.parent.parent
        path = (project_root / path).resolve()
    else:
        path = path.resolve()

    return path
