"""JSON Schema validation and introspection for tool parameters.

Tool parameters are stored as JSON-Schema objects (``type: "object"`` with a
``properties`` map). This module validates tool input against them, checks
the schemas themselves, sanitizes them for specific LLM providers, and
offers the small introspection helpers used by admin tooling.
"""

import copy
import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Literal

import orjson
from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError
from jsonschema.protocols import Validator

Provider = Literal["openai", "anthropic", "generic"]

# Provider-specific schema requirements
_PROVIDER_CONFIG: dict[str, dict[str, bool]] = {
    "openai": {"require_additional_properties_false": True, "allow_default_in_enum": False},
    "anthropic": {"require_additional_properties_false": False, "allow_default_in_enum": True},
    "generic": {"require_additional_properties_false": False, "allow_default_in_enum": True},
}


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating input against a parameter schema.

    Attributes:
        valid: True when the input satisfies every constraint.
        errors: One message per violation, prefixed with the property path
            (``"root"`` for the top level).
    """

    valid: bool
    errors: list[str] = field(default_factory=list)


def _canonicalize_schema(schema: dict[str, Any]) -> str:
    """Canonical JSON string of a schema, used as the compile cache key."""
    return orjson.dumps(schema, option=orjson.OPT_SORT_KEYS).decode()


@lru_cache(maxsize=256)
def _compile_canonical(schema_json: str) -> Validator:
    """Build a validator for a canonical schema string.

    The validator class follows ``$schema`` when present and defaults to
    Draft 7.

    Raises:
        SchemaError: If the schema is not a valid JSON Schema.
    """
    schema = orjson.loads(schema_json)
    validator_cls = validators.validator_for(schema, default=Draft7Validator)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def compile_schema(schema: dict[str, Any]) -> Validator:
    """Return a (cached) validator for ``schema``.

    Args:
        schema: JSON Schema dictionary.

    Returns:
        A jsonschema validator instance, shared between identical schemas.

    Raises:
        SchemaError: If the schema is malformed.
        TypeError: If the schema is not JSON-serializable.
    """
    return _compile_canonical(_canonicalize_schema(schema))


def _format_error_path(path: Any) -> str:
    parts = [str(part) for part in path]
    return ".".join(parts) if parts else "root"


def validate_input(schema: Any, data: Any) -> ValidationResult:
    """Validate ``data`` against a tool parameter schema.

    A malformed schema is reported as a validation failure rather than
    raised.

    Args:
        schema: JSON Schema describing the accepted input.
        data: Untyped input (normally the dict an LLM produced).

    Returns:
        ValidationResult with one path-qualified message per violation.
    """
    if not isinstance(schema, dict):
        return ValidationResult(
            valid=False, errors=[f"schema: must be an object, got {type(schema).__name__}"]
        )

    try:
        validator = compile_schema(schema)
    except SchemaError as e:
        return ValidationResult(valid=False, errors=[f"schema: {e.message}"])
    except TypeError as e:
        return ValidationResult(valid=False, errors=[f"schema: {e}"])

    errors = [
        f"{_format_error_path(error.absolute_path)}: {error.message}"
        for error in validator.iter_errors(data)
    ]
    return ValidationResult(valid=not errors, errors=errors)


def _primary_type(schema: dict[str, Any]) -> str | None:
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        non_null = [t for t in schema_type if t != "null"]
        return non_null[0] if non_null else None
    if schema_type is None and isinstance(schema.get("properties"), dict):
        return "object"
    return schema_type


def _positive_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return 0


def _numeric(value: Any) -> int | float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


def _number_default(schema: dict[str, Any], integer: bool) -> int | float:
    """Value closest to 0 inside the schema's numeric bounds."""
    low, low_open = _numeric(schema.get("minimum")), False
    exclusive_low = _numeric(schema.get("exclusiveMinimum"))
    if exclusive_low is not None and (low is None or exclusive_low >= low):
        low, low_open = exclusive_low, True

    high, high_open = _numeric(schema.get("maximum")), False
    exclusive_high = _numeric(schema.get("exclusiveMaximum"))
    if exclusive_high is not None and (high is None or exclusive_high <= high):
        high, high_open = exclusive_high, True

    if integer:
        if low is not None:
            low, low_open = (math.floor(low) + 1 if low_open else math.ceil(low)), False
        if high is not None:
            high, high_open = (math.ceil(high) - 1 if high_open else math.floor(high)), False

    def in_range(value: int | float) -> bool:
        if low is not None and (value < low or (low_open and value == low)):
            return False
        return high is None or not (value > high or (high_open and value == high))

    value: int | float = 0
    if low is not None and not in_range(value) and value <= low:
        value = low + 1 if low_open else low
    if high is not None and not in_range(value):
        value = high - 1 if high_open else high
    if low is not None and high is not None and not in_range(value):
        # Open interval narrower than 1
        value = (low + high) / 2
    return int(value) if integer else value


def generate_default_value(schema: Any) -> Any:
    """Produce a representative empty instance of ``schema``.

    The declared ``default`` wins, then ``const``, then the first ``enum``
    value. Otherwise strings become ``""``, numbers the value nearest ``0``
    within ``minimum``/``maximum`` and their exclusive forms, booleans
    ``False``, arrays ``[]`` and objects a dict holding the default of every
    declared property. ``minLength`` and ``minItems`` are honoured so the
    result still validates. ``pattern``, ``format`` and ``multipleOf`` are
    not solved for; a schema relying on them may get a default that fails
    validation.

    Args:
        schema: JSON Schema (or sub-schema).

    Returns:
        Default value; None for schemas without a usable type.
    """
    if not isinstance(schema, dict):
        return None
    if "default" in schema:
        return copy.deepcopy(schema["default"])
    if "const" in schema:
        return copy.deepcopy(schema["const"])

    enum = schema.get("enum")
    if isinstance(enum, list) and enum:
        return copy.deepcopy(enum[0])

    schema_type = _primary_type(schema)
    if schema_type == "string":
        # Padded only as far as minLength demands
        return "x" * _positive_int(schema.get("minLength"))
    if schema_type in ("number", "integer"):
        return _number_default(schema, integer=schema_type == "integer")
    if schema_type == "boolean":
        return False
    if schema_type == "array":
        return [
            generate_default_value(schema.get("items"))
            for _ in range(_positive_int(schema.get("minItems")))
        ]
    if schema_type == "object":
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return {}
        return {name: generate_default_value(prop) for name, prop in properties.items()}
    return None


def _properties(schema: Any) -> dict[str, Any]:
    if not isinstance(schema, dict):
        return {}
    properties = schema.get("properties")
    return properties if isinstance(properties, dict) else {}


def get_required_fields(schema: Any) -> list[str]:
    """List the names in the schema's top-level ``required`` array."""
    if not isinstance(schema, dict):
        return []
    required = schema.get("required")
    if not isinstance(required, list):
        return []
    return [name for name in required if isinstance(name, str)]


def get_property_descriptions(schema: Any) -> dict[str, str]:
    """Map each top-level property to its description ("" when absent)."""
    return {
        name: str(prop.get("description", "")) if isinstance(prop, dict) else ""
        for name, prop in _properties(schema).items()
    }


def get_property_types(schema: Any) -> dict[str, str]:
    """Map each top-level property to its declared type.

    Union types are rendered as ``"string | null"``; properties without a
    type map to ``"any"``.
    """
    types: dict[str, str] = {}
    for name, prop in _properties(schema).items():
        prop_type = prop.get("type") if isinstance(prop, dict) else None
        if isinstance(prop_type, list):
            types[name] = " | ".join(str(t) for t in prop_type)
        elif isinstance(prop_type, str):
            types[name] = prop_type
        else:
            types[name] = "any"
    return types


def is_valid_schema(schema: Any) -> bool:
    """Quick structural check: an object schema with a ``properties`` map."""
    if not isinstance(schema, dict):
        return False
    if schema.get("type") != "object":
        return False
    return isinstance(schema.get("properties"), dict)


def describe_schema_problem(schema: Any) -> str | None:
    """Explain why :func:`is_valid_schema` rejects ``schema`` (None if it passes)."""
    if schema is None:
        return "parameters is null"
    if not isinstance(schema, dict):
        kind = "array" if isinstance(schema, list) else type(schema).__name__
        return f"parameters is {kind}, expected object"
    if schema.get("type") != "object":
        return f'type is "{schema.get("type")}", expected "object"'
    if "properties" not in schema:
        return "properties is missing"
    if not isinstance(schema.get("properties"), dict):
        return "properties must be an object"
    return None


def check_tool_schema(schema: Any) -> list[str]:
    """Check a tool parameter schema before it is stored in the catalog.

    Args:
        schema: Candidate ``parameters`` value.

    Returns:
        List of problems; empty when the schema is usable.
    """
    problem = describe_schema_problem(schema)
    if problem is not None:
        return [problem]

    errors: list[str] = []
    properties: dict[str, Any] = schema["properties"]
    for name, prop in properties.items():
        if not isinstance(prop, dict):
            errors.append(f"properties.{name}: must be an object")
            continue
        enum = prop.get("enum")
        if enum is not None and (not isinstance(enum, list) or not enum):
            errors.append(f"properties.{name}.enum: must be a non-empty array")

    required = schema.get("required")
    if required is not None:
        if not isinstance(required, list):
            errors.append("required: must be an array")
        else:
            for name in required:
                if name not in properties:
                    errors.append(f"required: unknown property '{name}'")

    if not errors:
        try:
            compile_schema(schema)
        except SchemaError as e:
            errors.append(f"schema: {e.message}")
        except TypeError as e:
            errors.append(f"schema: {e}")
    return errors


def _sanitize_properties(properties: dict[str, Any], config: dict[str, bool]) -> None:
    for prop in properties.values():
        if not isinstance(prop, dict):
            continue
        if "enum" in prop and "default" in prop and not config["allow_default_in_enum"]:
            del prop["default"]

        if prop.get("type") == "object" and isinstance(prop.get("properties"), dict):
            if config["require_additional_properties_false"]:
                prop["additionalProperties"] = False
            _sanitize_properties(prop["properties"], config)

        items = prop.get("items")
        if (
            prop.get("type") == "array"
            and isinstance(items, dict)
            and items.get("type") == "object"
            and isinstance(items.get("properties"), dict)
        ):
            if config["require_additional_properties_false"]:
                items["additionalProperties"] = False
            _sanitize_properties(items["properties"], config)


def sanitize_schema(schema: dict[str, Any], provider: Provider = "generic") -> dict[str, Any]:
    """Return a copy of ``schema`` adjusted for ``provider``.

    ``openai`` closes every object (``additionalProperties: false``) and
    drops ``default`` from enum properties; other providers only get the
    root normalised.

    Args:
        schema: Tool parameter schema (not modified).
        provider: Target provider.

    Returns:
        Sanitized deep copy.
    """
    config = _PROVIDER_CONFIG[provider]
    sanitized = copy.deepcopy(schema)
    sanitized["type"] = "object"
    if not isinstance(sanitized.get("properties"), dict):
        sanitized["properties"] = {}
    if config["require_additional_properties_false"]:
        sanitized["additionalProperties"] = False
    if "required" in sanitized and not isinstance(sanitized["required"], list):
        sanitized["required"] = []

    _sanitize_properties(sanitized["properties"], config)
    return sanitized


def _nullable(prop: dict[str, Any]) -> dict[str, Any]:
    schema_type = prop.get("type")
    if isinstance(schema_type, str):
        if schema_type != "null":
            prop["type"] = [schema_type, "null"]
    elif isinstance(schema_type, list):
        if "null" not in schema_type:
            prop["type"] = [*schema_type, "null"]
    else:
        return {"anyOf": [prop, {"type": "null"}]}

    enum = prop.get("enum")
    if isinstance(enum, list) and None not in enum:
        prop["enum"] = [*enum, None]
    return prop


def _require_all_properties(schema: dict[str, Any]) -> None:
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return
    required = set(get_required_fields(schema))
    for name, prop in list(properties.items()):
        if not isinstance(prop, dict):
            continue
        if isinstance(prop.get("properties"), dict):
            _require_all_properties(prop)
        items = prop.get("items")
        if isinstance(items, dict) and isinstance(items.get("properties"), dict):
            _require_all_properties(items)
        if name not in required:
            properties[name] = _nullable(prop)
    schema["required"] = list(properties)


def strict_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``schema`` accepted by OpenAI strict mode.

    On top of the ``openai`` sanitization every object lists all of its
    properties in ``required``; properties that were optional become
    nullable so the model can still leave them out by sending ``null``.
    """
    strict = sanitize_schema(schema, provider="openai")
    _require_all_properties(strict)
    return strict
