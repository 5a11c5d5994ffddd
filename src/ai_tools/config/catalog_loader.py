"""Load and validate the tool catalog and tool templates from YAML files.

- ``catalog.yaml`` seeds the in-memory catalog used by the CLI and local runs
- ``templates.yaml`` holds the starter definitions offered to admins

Both files are validated against the Pydantic models in
``ai_tools.tools.types``; validation errors name the offending entry and field.
"""

from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from ai_tools.config.loader import ConfigLoadError, load_yaml_file
from ai_tools.telemetry.events import CATALOG_INVALID_SCHEMA_SKIPPED, CATALOG_LOADED
from ai_tools.tools.schema import check_tool_schema
from ai_tools.tools.types import Tool, ToolTemplate

log = structlog.get_logger(__name__)


class CatalogConfigError(ConfigLoadError):
    """Raised when the tool catalog or templates cannot be loaded or validated."""

    pass


def _format_validation_error(prefix: str, error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"])
        messages.append(f"{prefix} -> {field_path}: {item['msg']}")
    return "\n".join(messages)


def _entries(data: dict[str, Any], key: str, file_path: Path) -> list[Any]:
    entries = data.get(key, [])
    if not isinstance(entries, list):
        raise CatalogConfigError(f"'{key}' in {file_path} must be a list")
    return entries


def _resolve(path: Path | str | None, attribute: str) -> Path:
    if path is None:
        from ai_tools.config.settings import get_settings  # noqa: PLC0415

        path = getattr(get_settings(), attribute)
        log.debug("using_path_from_settings", setting=attribute, path=str(path))
    return Path(path)


def load_tool_catalog(path: Path | str | None = None) -> list[Tool]:
    """Load tool definitions from the catalog YAML file.

    Tools whose parameter schema fails :func:`check_tool_schema` are skipped
    with a warning, so one broken entry does not take the catalog down.

    Args:
        path: Catalog file. If None, uses ``settings.tool_catalog_path``.

    Returns:
        Tools in file order.

    Raises:
        CatalogConfigError: If the file cannot be read, an entry is malformed,
            or two entries share a name.
    """
    file_path = _resolve(path, "tool_catalog_path")
    data = load_yaml_file(file_path, error_class=CatalogConfigError)

    tools: list[Tool] = []
    seen: set[str] = set()
    for index, raw in enumerate(_entries(data, "tools", file_path)):
        try:
            tool = Tool.model_validate(raw)
        except ValidationError as e:
            raise CatalogConfigError(
                f"Tool catalog validation failed:\n{_format_validation_error(f'tools[{index}]', e)}"
            ) from None

        if tool.name in seen:
            raise CatalogConfigError(f"Duplicate tool name in {file_path}: {tool.name}")
        seen.add(tool.name)

        problems = check_tool_schema(tool.parameters)
        if problems:
            log.warning(CATALOG_INVALID_SCHEMA_SKIPPED, tool_name=tool.name, problems=problems)
            continue
        tools.append(tool)

    log.info(CATALOG_LOADED, path=str(file_path), tools_count=len(tools))
    return tools


def load_tool_templates(path: Path | str | None = None) -> list[ToolTemplate]:
    """Load tool templates from YAML.

    Args:
        path: Templates file. If None, uses ``settings.tool_templates_path``.

    Returns:
        Templates in file order.

    Raises:
        CatalogConfigError: If the file cannot be read, an entry is malformed,
            or two templates share an id.
    """
    file_path = _resolve(path, "tool_templates_path")
    data = load_yaml_file(file_path, error_class=CatalogConfigError)

    templates: list[ToolTemplate] = []
    seen: set[str] = set()
    for index, raw in enumerate(_entries(data, "templates", file_path)):
        try:
            template = ToolTemplate.model_validate(raw)
        except ValidationError as e:
            raise CatalogConfigError(
                "Tool template validation failed:\n"
                + _format_validation_error(f"templates[{index}]", e)
            ) from None
        if template.id in seen:
            raise CatalogConfigError(f"Duplicate template id in {file_path}: {template.id}")
        seen.add(template.id)
        templates.append(template)

    log.info("tool_templates_loaded", path=str(file_path), templates_count=len(templates))
    return templates
