"""UI module for AI Tools.

This module provides the Typer-based CLI for inspecting the tool catalog,
exporting vendor tool schemas and dry-running tools.

The CLI can be run directly:
    python -m ai_tools.ui.cli list

Note: We don't export CLI components from __init__.py to avoid
module loading issues when running as a script.
"""

__all__ = []  # CLI is run directly, no exports needed
