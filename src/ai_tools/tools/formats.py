"""Conversions from tool definitions to vendor tool-calling formats.

All functions are pure: they never mutate the tools they receive and the
returned structures share no mutable state with them.
"""

import copy
from typing import Any, Iterable

from ai_tools.tools.schema import get_required_fields, strict_schema
from ai_tools.tools.types import Tool

CATEGORY_LABELS: dict[str, str] = {
    "crm": "CRM",
    "mls": "MLS",
    "calendar": "Calendar",
    "documents": "Documents",
    "tasks": "Tasks",
    "notifications": "Notifications",
    "messaging": "Messaging",
    "market_intel": "Market Intel",
}

MAX_LISTED_PARAMS = 3

TOOL_USAGE_GUIDELINES = """## Tool Usage Guidelines
- When the user asks to create, add or register a record, call the matching create tool instead of searching first.
- When the user asks to find, list or look up records, use the search or list tools and summarize the results.
- When the user mentions dates, meetings, viewings or availability, use the calendar tools.
- When the user references an entity with an @-mention (for example @John Smith), resolve it with the matching lookup tool before acting on it.
- Never invent identifiers; obtain them from a previous tool result."""


def category_label(category: str) -> str:
    """Human-readable heading for a category tag."""
    return CATEGORY_LABELS.get(category, category.replace("_", " ").replace("-", " ").title())


def to_openai_tools(tools: Iterable[Tool]) -> list[dict[str, Any]]:
    """Convert tools to OpenAI function-calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": copy.deepcopy(tool.parameters),
            },
        }
        for tool in tools
    ]


def to_openai_strict_tools(tools: Iterable[Tool]) -> list[dict[str, Any]]:
    """Convert tools to OpenAI strict structured-output format."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": strict_schema(tool.parameters),
                "strict": True,
            },
        }
        for tool in tools
    ]


def to_claude_tools(tools: Iterable[Tool]) -> list[dict[str, Any]]:
    """Convert tools to Anthropic tool-use format."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "input_schema": copy.deepcopy(tool.parameters),
        }
        for tool in tools
    ]


def to_mcp_tools(tools: Iterable[Tool]) -> list[dict[str, Any]]:
    """Convert tools to Model Context Protocol tool listings."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": copy.deepcopy(tool.parameters),
        }
        for tool in tools
    ]


FORMATTERS = {
    "openai": to_openai_tools,
    "openai_strict": to_openai_strict_tools,
    "claude": to_claude_tools,
    "mcp": to_mcp_tools,
}


def format_tools(tools: Iterable[Tool], fmt: str) -> list[dict[str, Any]]:
    """Convert tools using the formatter registered under ``fmt``.

    Raises:
        ValueError: If ``fmt`` is not a known format.
    """
    try:
        formatter = FORMATTERS[fmt]
    except KeyError:
        raise ValueError(
            f"Unknown tool format '{fmt}'. Expected one of: {', '.join(FORMATTERS)}"
        ) from None
    return formatter(tools)


def _params_suffix(tool: Tool) -> str:
    properties = tool.parameters.get("properties")
    if not isinstance(properties, dict) or not properties:
        return ""
    required = set(get_required_fields(tool.parameters))
    names = list(properties)
    listed = [f"{name}*" if name in required else name for name in names[:MAX_LISTED_PARAMS]]
    if len(names) > MAX_LISTED_PARAMS:
        listed.append(f"+{len(names) - MAX_LISTED_PARAMS} more")
    return f" (params: {', '.join(listed)})"


def tools_to_prompt_context(tools: Iterable[Tool]) -> str:
    """Render a Markdown summary of tools for a system prompt.

    Tools are grouped by category in order of first appearance and listed in
    input order within each group. Downstream agent prompts depend on the
    exact heading and bullet layout.

    Args:
        tools: Tools in registry order.

    Returns:
        Markdown text, or an empty string when there are no tools.
    """
    grouped: dict[str, list[Tool]] = {}
    for tool in tools:
        grouped.setdefault(tool.category, []).append(tool)
    if not grouped:
        return ""

    lines = ["## Available Tools", ""]
    for category, members in grouped.items():
        lines.append(f"### {category_label(category)}")
        for tool in members:
            lines.append(f"- **{tool.name}**: {tool.description}{_params_suffix(tool)}")
        lines.append("")
    lines.append(TOOL_USAGE_GUIDELINES)
    return "\n".join(lines)
