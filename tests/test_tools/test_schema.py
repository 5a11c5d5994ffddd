"""Tests for JSON Schema validation and introspection helpers."""

import pytest

from ai_tools.tools.schema import (
    check_tool_schema,
    compile_schema,
    describe_schema_problem,
    generate_default_value,
    get_property_descriptions,
    get_property_types,
    get_required_fields,
    is_valid_schema,
    sanitize_schema,
    strict_schema,
    validate_input,
)

ECHO_SCHEMA = {
    "type": "object",
    "properties": {"msg": {"type": "string"}},
    "required": ["msg"],
}

LISTING_SCHEMA = {
    "type": "object",
    "properties": {
        "search": {"type": "string", "description": "Search term"},
        "status": {"type": "string", "enum": ["ACTIVE", "INACTIVE"], "default": "ACTIVE"},
        "limit": {"type": "integer", "minimum": 1, "maximum": 100},
        "includeArchived": {"type": "boolean"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "filters": {
            "type": "object",
            "properties": {"minPrice": {"type": "number"}, "city": {"type": "string"}},
        },
        "notes": {"type": ["string", "null"]},
    },
    "required": ["search"],
}


BOUNDED_SCHEMAS = [
    {"type": "object", "properties": {"n": {"type": "integer", "minimum": 0.5}}, "required": ["n"]},
    {"type": "object", "properties": {"n": {"type": "number", "exclusiveMinimum": 0}}, "required": ["n"]},
    {"type": "object", "properties": {"n": {"type": "integer", "maximum": -1}}, "required": ["n"]},
    {
        "type": "object",
        "properties": {"n": {"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 0.5}},
        "required": ["n"],
    },
    {"type": "object", "properties": {"c": {"const": "x"}}, "required": ["c"]},
    {"type": "object", "properties": {"e": {"type": "string", "format": "email"}}, "required": ["e"]},
]


class TestValidateInput:
    """Test validate_input."""

    def test_valid_input(self) -> None:
        """Test input satisfying the schema passes."""
        result = validate_input(ECHO_SCHEMA, {"msg": "hi"})
        assert result.valid is True
        assert result.errors == []

    def test_missing_required_property_names_it(self) -> None:
        """Test a missing required property is reported at root."""
        result = validate_input(ECHO_SCHEMA, {})
        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("root: ")
        assert "msg" in result.errors[0]

    def test_nested_error_is_path_qualified(self) -> None:
        """Test nested violations carry the property path."""
        result = validate_input(LISTING_SCHEMA, {"search": "x", "filters": {"minPrice": "cheap"}})
        assert result.valid is False
        assert result.errors == ["filters.minPrice: 'cheap' is not of type 'number'"]

    def test_one_error_per_violation(self) -> None:
        """Test every violation produces its own message."""
        result = validate_input(LISTING_SCHEMA, {"limit": 0, "status": "GONE"})
        assert result.valid is False
        assert len(result.errors) == 3
        assert any(error.startswith("limit: ") for error in result.errors)
        assert any(error.startswith("status: ") for error in result.errors)
        assert any(error.startswith("root: ") and "search" in error for error in result.errors)

    def test_empty_properties_accepts_any_object(self) -> None:
        """Test a schema without properties accepts arbitrary objects."""
        schema = {"type": "object", "properties": {}}
        assert validate_input(schema, {}).valid is True
        assert validate_input(schema, {"anything": [1, 2, 3]}).valid is True

    def test_non_object_data_single_error(self) -> None:
        """Test non-object data against an object schema yields one error."""
        result = validate_input(ECHO_SCHEMA, "hello")
        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("root: ")

    def test_malformed_schema_is_validation_failure(self) -> None:
        """Test a malformed schema fails validation instead of raising."""
        schema = {"type": "object", "properties": {"a": {"type": "strng"}}}
        result = validate_input(schema, {"a": "x"})
        assert result.valid is False
        assert result.errors[0].startswith("schema: ")

    def test_non_dict_schema(self) -> None:
        """Test a schema that is not an object fails validation."""
        result = validate_input(["not", "a", "schema"], {})
        assert result.valid is False
        assert result.errors == ["schema: must be an object, got list"]

    def test_compiled_validator_is_cached(self) -> None:
        """Test identical schemas share one compiled validator."""
        first = compile_schema({"type": "object", "properties": {"a": {"type": "string"}}})
        second = compile_schema({"properties": {"a": {"type": "string"}}, "type": "object"})
        assert first is second


class TestGenerateDefaultValue:
    """Test generate_default_value."""

    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            ({"type": "string"}, ""),
            ({"type": "number"}, 0),
            ({"type": "integer", "minimum": 5}, 5),
            ({"type": "boolean"}, False),
            ({"type": "array", "items": {"type": "string"}}, []),
            ({"type": "string", "enum": ["a", "b"]}, "a"),
            ({"type": "integer", "default": 20}, 20),
            ({"type": ["string", "null"]}, ""),
            ({"type": "string", "minLength": 2}, "xx"),
            ({"type": "array", "items": {"type": "integer"}, "minItems": 2}, [0, 0]),
            ({"type": "integer", "minimum": 0.5}, 1),
            ({"type": "integer", "exclusiveMinimum": 0}, 1),
            ({"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 0.5}, 0.25),
            ({"type": "number", "maximum": -1}, -1),
            ({"type": "integer", "exclusiveMaximum": -2.5}, -3),
            ({"const": "x"}, "x"),
        ],
    )
    def test_scalar_defaults(self, schema, expected) -> None:
        """Test defaults for each JSON type."""
        assert generate_default_value(schema) == expected

    def test_object_default(self) -> None:
        """Test objects get a default for every declared property."""
        value = generate_default_value(LISTING_SCHEMA)
        assert value == {
            "search": "",
            "status": "ACTIVE",
            "limit": 1,
            "includeArchived": False,
            "tags": [],
            "filters": {"minPrice": 0, "city": ""},
            "notes": "",
        }

    def test_declared_default_is_copied(self) -> None:
        """Test mutating the result does not touch the schema."""
        schema = {"type": "array", "default": ["x"]}
        value = generate_default_value(schema)
        value.append("y")
        assert schema["default"] == ["x"]

    @pytest.mark.parametrize("schema", [ECHO_SCHEMA, LISTING_SCHEMA, *BOUNDED_SCHEMAS])
    def test_default_value_validates(self, schema) -> None:
        """Test the generated default satisfies its own schema."""
        assert validate_input(schema, generate_default_value(schema)).valid is True

    def test_unknown_schema_returns_none(self) -> None:
        """Test schemas without a usable type produce None."""
        assert generate_default_value({}) is None
        assert generate_default_value("string") is None


class TestIntrospection:
    """Test the read-only introspection helpers."""

    def test_get_required_fields(self) -> None:
        """Test required names are listed."""
        assert get_required_fields(LISTING_SCHEMA) == ["search"]
        assert get_required_fields({"type": "object", "properties": {}}) == []

    def test_get_property_descriptions(self) -> None:
        """Test missing descriptions map to empty strings."""
        descriptions = get_property_descriptions(LISTING_SCHEMA)
        assert descriptions["search"] == "Search term"
        assert descriptions["limit"] == ""

    def test_get_property_types(self) -> None:
        """Test union types are joined and untyped properties are 'any'."""
        types = get_property_types(
            {"type": "object", "properties": {"a": {"type": "string"}, "b": {}, "c": {"type": ["string", "null"]}}}
        )
        assert types == {"a": "string", "b": "any", "c": "string | null"}


class TestSchemaChecks:
    """Test structural schema checks."""

    def test_is_valid_schema(self) -> None:
        """Test object schemas with properties pass."""
        assert is_valid_schema(ECHO_SCHEMA) is True
        assert is_valid_schema({"type": "object"}) is False
        assert is_valid_schema({"type": "array", "properties": {}}) is False
        assert is_valid_schema(None) is False

    def test_describe_schema_problem(self) -> None:
        """Test problems are described in plain words."""
        assert describe_schema_problem(ECHO_SCHEMA) is None
        assert describe_schema_problem(None) == "parameters is null"
        assert describe_schema_problem([]) == "parameters is array, expected object"
        assert describe_schema_problem({"type": "object"}) == "properties is missing"

    def test_check_tool_schema_unknown_required(self) -> None:
        """Test required names must be declared properties."""
        errors = check_tool_schema(
            {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["b"]}
        )
        assert errors == ["required: unknown property 'b'"]

    def test_check_tool_schema_meta_validation(self) -> None:
        """Test invalid JSON Schema keywords are caught."""
        errors = check_tool_schema({"type": "object", "properties": {"a": {"type": 42}}})
        assert len(errors) == 1
        assert errors[0].startswith("schema: ")

    def test_check_tool_schema_empty_enum(self) -> None:
        """Test empty enums are rejected."""
        errors = check_tool_schema({"type": "object", "properties": {"a": {"enum": []}}})
        assert errors == ["properties.a.enum: must be a non-empty array"]

    def test_check_tool_schema_ok(self) -> None:
        """Test a well-formed schema has no problems."""
        assert check_tool_schema(LISTING_SCHEMA) == []


class TestSanitizeSchema:
    """Test provider sanitization."""

    def test_openai_closes_objects(self) -> None:
        """Test OpenAI schemas forbid additional properties at every level."""
        sanitized = sanitize_schema(LISTING_SCHEMA, provider="openai")
        assert sanitized["additionalProperties"] is False
        assert sanitized["properties"]["filters"]["additionalProperties"] is False
        assert "default" not in sanitized["properties"]["status"]

    def test_original_untouched(self) -> None:
        """Test sanitizing returns a copy."""
        sanitize_schema(LISTING_SCHEMA, provider="openai")
        assert "additionalProperties" not in LISTING_SCHEMA
        assert LISTING_SCHEMA["properties"]["status"]["default"] == "ACTIVE"

    def test_anthropic_keeps_defaults(self) -> None:
        """Test Anthropic schemas keep enum defaults and stay open."""
        sanitized = sanitize_schema(LISTING_SCHEMA, provider="anthropic")
        assert "additionalProperties" not in sanitized
        assert sanitized["properties"]["status"]["default"] == "ACTIVE"

    def test_missing_properties_filled(self) -> None:
        """Test a schema without properties gets an empty map."""
        assert sanitize_schema({"type": "object"}) == {"type": "object", "properties": {}}


class TestStrictSchema:
    """Test OpenAI strict-mode schemas."""

    def test_nested_objects_require_all(self) -> None:
        """Test every object level lists all of its properties as required."""
        strict = strict_schema(LISTING_SCHEMA)

        assert strict["required"] == list(LISTING_SCHEMA["properties"])
        assert strict["properties"]["search"] == {"type": "string", "description": "Search term"}
        assert strict["properties"]["notes"]["type"] == ["string", "null"]

        filters = strict["properties"]["filters"]
        assert filters["type"] == ["object", "null"]
        assert filters["required"] == ["minPrice", "city"]
        assert filters["properties"]["city"]["type"] == ["string", "null"]
        assert filters["additionalProperties"] is False

    def test_array_items_and_untyped(self) -> None:
        """Test array item objects are closed and untyped properties become anyOf."""
        schema = {
            "type": "object",
            "properties": {
                "rows": {
                    "type": "array",
                    "items": {"type": "object", "properties": {"id": {"type": "string"}}},
                },
                "extra": {"description": "Anything"},
            },
            "required": ["rows"],
        }

        strict = strict_schema(schema)

        assert strict["properties"]["rows"]["type"] == "array"
        assert strict["properties"]["rows"]["items"]["required"] == ["id"]
        assert strict["properties"]["rows"]["items"]["properties"]["id"]["type"] == ["string", "null"]
        assert strict["properties"]["extra"] == {
            "anyOf": [{"description": "Anything"}, {"type": "null"}]
        }
        assert "anyOf" not in schema["properties"]["extra"]

    def test_null_still_validates(self) -> None:
        """Test a strict schema accepts null for properties that were optional."""
        strict = strict_schema(LISTING_SCHEMA)
        payload = {name: None for name in LISTING_SCHEMA["properties"]}
        payload["search"] = "x"
        payload["status"] = None

        assert validate_input(strict, payload).valid is True
