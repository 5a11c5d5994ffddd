"""Environment variable file loader with priority-based loading."""

import os
from enum import Enum
from pathlib import Path

from dotenv import dotenv_values

from ai_tools.telemetry import get_logger

log = get_logger(__name__)


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from the APP_ENV environment variable.

    Returns:
        Environment enum value.

    Environment variable mapping:
    - "production" or "prod" → Environment.PRODUCTION
    - "staging" or "stage" → Environment.STAGING
    - "test" → Environment.TEST
    - Default → Environment.DEVELOPMENT

    Note: environment detection must happen before settings are loaded, so
    this reads os.environ directly.
    """
    app_env = os.getenv("APP_ENV", "").lower()

    if app_env in ("production", "prod"):
        return Environment.PRODUCTION
    elif app_env in ("staging", "stage"):
        return Environment.STAGING
    elif app_env == "test":
        return Environment.TEST
    else:
        return Environment.DEVELOPMENT


def load_env_files(project_root: Path | None = None) -> None:
    """Load .env files in priority order.

    Priority order (highest to lowest):
    1. `.env.{environment}.local`
    2. `.env.{environment}`
    3. `.env.local`
    4. `.env`

    Args:
        project_root: Path to project root. If None, detects from current file location.
    """
    if project_root is None:
        project_root = Path(__file__).parent.parent.parent.parent

    env_name = get_environment().value

    # Later files override earlier ones
    env_files = [
        project_root / ".env",
        project_root / ".env.local",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    loaded_files = []
    merged: dict[str, str] = {}
    for env_file in env_files:
        if env_file.exists():
            merged.update(
                {key: value for key, value in dotenv_values(env_file).items() if value is not None}
            )
            loaded_files.append(str(env_file.relative_to(project_root)))

    # Explicit environment variables win over every .env file
    for key, value in merged.items():
        os.environ.setdefault(key, value)

    if loaded_files:
        log.info(
            "env_files_loaded",
            environment=env_name,
            files=loaded_files,
            project_root=str(project_root),
        )
    else:
        log.debug("no_env_files_found", environment=env_name, project_root=str(project_root))
