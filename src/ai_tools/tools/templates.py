"""Starter tool definitions offered to admins when creating a tool."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from ai_tools.tools.types import Tool, ToolTemplate


@lru_cache(maxsize=8)
def _load(path: Path | None) -> tuple[ToolTemplate, ...]:
    from ai_tools.config.catalog_loader import load_tool_templates  # noqa: PLC0415

    return tuple(load_tool_templates(path))


def get_tool_templates(path: Path | str | None = None) -> list[ToolTemplate]:
    """All templates, in file order.

    Args:
        path: Templates file. If None, uses ``settings.tool_templates_path``.
            Each file is read once per process.
    """
    return [template.model_copy(deep=True) for template in _load(Path(path) if path else None)]


def clear_template_cache() -> None:
    """Forget loaded template files."""
    _load.cache_clear()


def get_template_categories(path: Path | str | None = None) -> list[str]:
    """Distinct template categories, sorted."""
    return sorted({template.category for template in get_tool_templates(path)})


def get_templates_by_category(category: str, path: Path | str | None = None) -> list[ToolTemplate]:
    """Templates in ``category``."""
    return [template for template in get_tool_templates(path) if template.category == category]


def get_template_by_id(template_id: str, path: Path | str | None = None) -> ToolTemplate | None:
    """Template with ``template_id``, or None."""
    for template in get_tool_templates(path):
        if template.id == template_id:
            return template
    return None


def tool_from_template(
    template: ToolTemplate, name: str, endpoint_path: str = "", **overrides: Any
) -> Tool:
    """Build a tool definition prefilled from ``template``.

    Args:
        template: Template to start from.
        name: Name of the new tool.
        endpoint_path: Route path or URL (templates do not carry one).
        **overrides: Any other Tool fields to replace.

    Returns:
        Unsaved Tool.
    """
    values = template.default_values.model_dump()
    values.update(name=name, endpoint_path=endpoint_path, **overrides)
    return Tool.model_validate(values)
