"""Tests for the INTERNAL_ACTION function table and response helpers."""

import pytest

from ai_tools.tools.functions import (
    TOOL_CONTEXT_KEY,
    FunctionTable,
    error_response,
    extract_context,
    get_default_function_table,
    missing_context_error,
    strip_context,
    success_response,
    validate_context,
)
from ai_tools.tools.types import ExecutionContext, ExecutionSource


def test_register_and_lookup() -> None:
    """Test the decorator registers under the given name."""
    table = FunctionTable()

    @table.register("resolve_mention")
    def resolve(payload):
        return payload

    assert table.lookup("resolve_mention") is resolve
    assert "resolve_mention" in table
    assert table.names() == ["resolve_mention"]
    assert len(table) == 1
    assert table.lookup("other") is None


def test_duplicate_registration_raises() -> None:
    """Test a name can only be registered once."""
    table = FunctionTable()
    table.add("a", lambda payload: None)
    with pytest.raises(ValueError, match="already registered"):
        table.add("a", lambda payload: None)


def test_remove() -> None:
    """Test removing a handler (unknown names are ignored)."""
    table = FunctionTable()
    table.add("a", lambda payload: None)
    table.remove("a")
    table.remove("a")
    assert table.lookup("a") is None


def test_default_table_is_shared() -> None:
    """Test the process-wide table is a singleton."""
    assert get_default_function_table() is get_default_function_table()


def test_response_helpers() -> None:
    """Test the standard handler response shapes."""
    assert success_response({"id": 1}).model_dump() == {
        "success": True,
        "data": {"id": 1},
        "error": None,
    }
    assert error_response("nope").model_dump() == {"success": False, "data": None, "error": "nope"}
    assert missing_context_error().error == "Missing organization or user context"


def test_context_helpers() -> None:
    """Test context extraction, validation and stripping."""
    context = ExecutionContext(
        organization_id="org_1", user_id="user_1", source=ExecutionSource.CUSTOM_AGENT
    )
    payload = {"query": "smith", TOOL_CONTEXT_KEY: context}

    assert extract_context(payload) is context
    assert validate_context(context) is True
    assert strip_context(payload) == {"query": "smith"}

    as_dict = {TOOL_CONTEXT_KEY: {"organization_id": "org_1", "source": "CHAT_ASSISTANT"}}
    extracted = extract_context(as_dict)
    assert extracted.source == ExecutionSource.CHAT_ASSISTANT
    assert validate_context(extracted) is False

    assert extract_context({}) is None
    assert validate_context(None) is False
