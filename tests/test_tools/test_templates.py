"""Tests for admin tool templates."""

from pathlib import Path

import pytest

from ai_tools.tools.schema import check_tool_schema, generate_default_value, validate_input
from ai_tools.tools.templates import (
    clear_template_cache,
    get_template_by_id,
    get_template_categories,
    get_templates_by_category,
    get_tool_templates,
    tool_from_template,
)
from ai_tools.tools.types import EndpointType, HttpMethod

TEMPLATES_PATH = Path(__file__).parent.parent.parent / "config" / "tools" / "templates.yaml"


@pytest.fixture(autouse=True)
def fresh_cache():
    """Reload template files for each test."""
    clear_template_cache()
    yield
    clear_template_cache()


def test_templates_load() -> None:
    """Test the shipped templates file loads with unique ids."""
    templates = get_tool_templates(TEMPLATES_PATH)
    assert len(templates) == 18
    assert len({template.id for template in templates}) == len(templates)


def test_template_categories() -> None:
    """Test categories are distinct and sorted."""
    assert get_template_categories(TEMPLATES_PATH) == [
        "Action",
        "Create",
        "Delete",
        "Query",
        "Real Estate",
        "Update",
    ]
    assert [t.id for t in get_templates_by_category("Delete", TEMPLATES_PATH)] == [
        "delete-entity",
        "soft-delete",
    ]


@pytest.mark.parametrize("template", get_tool_templates(TEMPLATES_PATH), ids=lambda t: t.id)
def test_template_schemas_are_usable(template) -> None:
    """Test every template schema passes the catalog checks and its default validates."""
    schema = template.default_values.parameters
    assert check_tool_schema(schema) == []
    assert validate_input(schema, generate_default_value(schema)).valid


def test_get_template_by_id() -> None:
    """Test lookup by id."""
    template = get_template_by_id("get-by-id", TEMPLATES_PATH)
    assert template is not None
    assert template.default_values.http_method == HttpMethod.GET
    assert get_template_by_id("missing", TEMPLATES_PATH) is None


def test_tool_from_template() -> None:
    """Test building an unsaved tool from a template."""
    template = get_template_by_id("get-by-id", TEMPLATES_PATH)
    tool = tool_from_template(
        template, name="get_listing", endpoint_path="/api/mls/listings/get", category="mls"
    )

    assert tool.name == "get_listing"
    assert tool.category == "mls"
    assert tool.endpoint_type == EndpointType.API_ROUTE
    assert tool.endpoint_path == "/api/mls/listings/get"
    assert tool.parameters["required"] == ["id"]
    assert tool.is_enabled is True


def test_returned_templates_are_copies() -> None:
    """Test mutating a template does not affect later reads."""
    template = get_template_by_id("get-by-id", TEMPLATES_PATH)
    template.default_values.parameters["properties"].clear()
    assert get_template_by_id("get-by-id", TEMPLATES_PATH).default_values.parameters["properties"]
