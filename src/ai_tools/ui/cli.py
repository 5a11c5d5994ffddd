"""CLI interface for AI Tools.

This module provides a Typer-based command-line interface over the YAML tool
catalog: listing tools, exporting vendor tool schemas, browsing templates and
dry-running tools through the executor.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ai_tools.config import CatalogConfigError
from ai_tools.telemetry import configure_logging
from ai_tools.tools import build_catalog_registry
from ai_tools.tools.execution_log import ExecutionLogWriter, InMemoryExecutionLog
from ai_tools.tools.executor import ToolExecutor
from ai_tools.tools.formats import FORMATTERS, format_tools, tools_to_prompt_context
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.templates import get_tool_templates
from ai_tools.tools.types import ExecutionResult, Tool

app = typer.Typer(help="AI Tools - tool catalog and execution for AI agents")
console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging()


CatalogOption = typer.Option(
    None, "--catalog", help="Tool catalog YAML (defaults to AI_TOOLS_TOOL_CATALOG_PATH)"
)


def _open_registry(catalog: Optional[Path]) -> ToolRegistry:
    try:
        _, registry = build_catalog_registry(str(catalog) if catalog else None)
    except CatalogConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e
    return registry


async def _list_tools(
    registry: ToolRegistry, category: Optional[str], include_disabled: bool
) -> list[Tool]:
    if include_disabled:
        tools = await registry.store.find_many(is_enabled=None, category=category)
    elif category:
        tools = await registry.get_enabled_tools_by_category(category)
    else:
        tools = await registry.get_enabled_tools()
    registry.close()
    return tools


@app.command(name="list")
def list_command(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    include_disabled: bool = typer.Option(False, "--all", help="Include disabled tools"),
    catalog: Optional[Path] = CatalogOption,
) -> None:
    """List tools in the catalog.

    Examples:
        ai-tools list
        ai-tools list --category crm --all
    """
    registry = _open_registry(catalog)
    tools = asyncio.run(_list_tools(registry, category, include_disabled))

    if not tools:
        console.print("[yellow]No matching tools found.[/yellow]")
        return

    table = Table(title=f"Tools ({len(tools)})")
    table.add_column("Name", style="green")
    table.add_column("Category", style="blue")
    table.add_column("Endpoint", style="cyan", overflow="fold")
    table.add_column("Scopes", style="magenta")
    table.add_column("Enabled")

    for tool in tools:
        endpoint = tool.endpoint_type.value
        if tool.endpoint_path:
            endpoint = f"{endpoint} {tool.http_method.value} {tool.endpoint_path}"
        table.add_row(
            tool.name,
            tool.category,
            endpoint,
            ", ".join(tool.required_scopes) or "-",
            "yes" if tool.is_enabled else "[red]no[/red]",
        )
    console.print(table)


async def _tools_for_scopes(registry: ToolRegistry, scopes: Optional[list[str]]) -> list[Tool]:
    if scopes is None:
        tools = await registry.get_enabled_tools()
    else:
        tools = await registry.get_tools_for_scopes(scopes)
    registry.close()
    return tools


@app.command(name="export")
def export_command(
    fmt: str = typer.Option(
        "openai", "--format", "-f", help=f"Output format ({', '.join(FORMATTERS)})"
    ),
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Only tools covered by these scopes (repeatable)"
    ),
    catalog: Optional[Path] = CatalogOption,
) -> None:
    """Export enabled tools in a vendor tool-calling format.

    Examples:
        ai-tools export --format claude
        ai-tools export --format mcp --scope crm:read --scope mls:read
    """
    registry = _open_registry(catalog)
    tools = asyncio.run(_tools_for_scopes(registry, scopes))
    try:
        exported = format_tools(tools, fmt)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e
    console.print_json(json.dumps(exported))


@app.command(name="prompt")
def prompt_command(
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Only tools covered by these scopes (repeatable)"
    ),
    raw: bool = typer.Option(False, "--raw", help="Print plain Markdown instead of rendering it"),
    catalog: Optional[Path] = CatalogOption,
) -> None:
    """Show the prompt-context summary handed to agents."""
    registry = _open_registry(catalog)
    context = tools_to_prompt_context(asyncio.run(_tools_for_scopes(registry, scopes)))
    if not context:
        console.print("[yellow]No tools available.[/yellow]")
        return
    if raw:
        typer.echo(context)
    else:
        console.print(Markdown(context))


@app.command(name="templates")
def templates_command(
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Filter by template category (Query, Create, ...)"
    ),
    path: Optional[Path] = typer.Option(None, "--path", help="Templates YAML file"),
) -> None:
    """List tool templates offered to admins."""
    try:
        templates = get_tool_templates(path)
    except CatalogConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    if category:
        templates = [template for template in templates if template.category == category]
    if not templates:
        console.print("[yellow]No matching templates found.[/yellow]")
        return

    table = Table(title=f"Tool Templates ({len(templates)})")
    table.add_column("Id", style="green")
    table.add_column("Category", style="blue")
    table.add_column("Name")
    table.add_column("Defaults", style="cyan", overflow="fold")
    for template in templates:
        defaults = template.default_values
        table.add_row(
            template.id,
            template.category,
            template.name,
            f"{defaults.endpoint_type.value} {defaults.http_method.value}",
        )
    console.print(table)


async def _run_test(
    registry: ToolRegistry,
    name: str,
    input_data: dict[str, Any],
    user: str,
    organization: Optional[str],
    test_mode: bool,
) -> tuple[ExecutionResult, InMemoryExecutionLog]:
    execution_log = InMemoryExecutionLog()
    writer = ExecutionLogWriter(execution_log)
    executor = ToolExecutor(registry, log_writer=writer)
    try:
        result = await executor.execute_tool_for_testing(
            name,
            input_data,
            admin_user_id=user,
            organization_id=organization,
            test_mode=test_mode,
        )
        await writer.drain()
    finally:
        registry.close()
    return result, execution_log


@app.command(name="test")
def test_command(
    name: str = typer.Argument(..., help="Tool name"),
    input_json: str = typer.Option("{}", "--input", "-i", help="Tool input as a JSON object"),
    user: str = typer.Option("cli-admin", "--user", help="Admin user id recorded in the log"),
    organization: Optional[str] = typer.Option(None, "--org", help="Organization id"),
    live: bool = typer.Option(
        False, "--live", help="Disable test mode (API routes mutate real state)"
    ),
    catalog: Optional[Path] = CatalogOption,
) -> None:
    """Dry-run a tool the way the admin console does.

    Examples:
        ai-tools test get_client --input '{"clientId": "c_123"}' --org org_1
    """
    try:
        input_data = json.loads(input_json)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: --input is not valid JSON: {e}[/red]")
        raise typer.Exit(1) from e
    if not isinstance(input_data, dict):
        console.print("[red]Error: --input must be a JSON object[/red]")
        raise typer.Exit(1)

    registry = _open_registry(catalog)
    result, execution_log = asyncio.run(
        _run_test(registry, name, input_data, user, organization, test_mode=not live)
    )

    style = "green" if result.success else "red"
    console.print(
        f"\n[bold {style}]{name}: {result.status_code}[/bold {style}] "
        f"[dim]({result.duration_ms} ms, test_mode={not live})[/dim]"
    )
    if result.success:
        console.print_json(json.dumps(result.data, default=str))
    else:
        console.print(f"[red]{result.error}[/red]")
    console.print(f"[dim]Execution log entries: {len(execution_log.entries)}[/dim]")

    if not result.success:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
