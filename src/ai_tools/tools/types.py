"""Type definitions for the tool execution layer.

This module defines the Pydantic models for tool definitions, execution
contexts, results and execution-log entries.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EndpointType(str, Enum):
    """Execution backend a tool is bound to."""

    INTERNAL_ACTION = "INTERNAL_ACTION"
    API_ROUTE = "API_ROUTE"
    EXTERNAL_URL = "EXTERNAL_URL"


class HttpMethod(str, Enum):
    """HTTP method used by API_ROUTE and EXTERNAL_URL tools."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ExecutionSource(str, Enum):
    """Where a tool invocation originated."""

    CHAT_ASSISTANT = "CHAT_ASSISTANT"
    VOICE_ASSISTANT = "VOICE_ASSISTANT"
    EXTERNAL_API = "EXTERNAL_API"
    CUSTOM_AGENT = "CUSTOM_AGENT"
    ADMIN_TEST = "ADMIN_TEST"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tool(BaseModel):
    """A named, schema-described operation an AI agent may invoke.

    ``name`` is the dispatch key and is unique across the catalog.
    ``endpoint_type`` is fixed when the tool is created.
    """

    model_config = ConfigDict(use_enum_values=False)

    id: str = Field(default_factory=_new_id, description="Catalog identifier")
    name: str = Field(..., min_length=1, description="Unique tool name (e.g. 'list_clients')")
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field(..., description="Description shown to the LLM")
    category: str = Field(..., description="Grouping tag (crm, mls, calendar, ...)")
    is_enabled: bool = Field(True, description="Disabled tools are invisible to execution")
    endpoint_type: EndpointType = Field(..., description="Execution strategy")
    endpoint_path: str = Field("", description="Route path or absolute URL")
    http_method: HttpMethod = Field(HttpMethod.POST, description="HTTP method for HTTP strategies")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema (type: object) for the tool input",
    )
    required_scopes: list[str] = Field(
        default_factory=list, description="Capabilities a caller must hold"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Tool names are identifiers: no surrounding or inner whitespace."""
        if v != v.strip() or any(ch.isspace() for ch in v):
            raise ValueError(f"tool name must not contain whitespace, got {v!r}")
        return v

    @field_validator("http_method", mode="before")
    @classmethod
    def normalize_http_method(cls, v: Any) -> Any:
        """Accept lower-case method names."""
        if isinstance(v, str):
            return v.upper()
        return v

    def has_scopes(self, scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
        """Check whether ``scopes`` covers every required scope of this tool."""
        return set(self.required_scopes).issubset(scopes)


class ExecutionContext(BaseModel):
    """Per-invocation metadata threaded through dispatch and logging."""

    model_config = ConfigDict(frozen=True)

    organization_id: str | None = Field(None, description="Tenant identifier")
    user_id: str | None = Field(None, description="Calling user")
    api_key_id: str | None = Field(None, description="API key used by external callers")
    source: ExecutionSource = Field(..., description="Execution source tag")
    test_mode: bool = Field(
        False, description="API_ROUTE targets return synthetic data instead of mutating state"
    )


class ExecutionResult(BaseModel):
    """Outcome of a single tool invocation. Never mutated after return."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(..., description="Whether the tool call succeeded")
    data: Any = Field(None, description="Tool output on success")
    error: str | None = Field(None, description="Error message on failure")
    status_code: int = Field(..., description="HTTP-style status code")
    duration_ms: int = Field(0, ge=0, description="Wall-clock duration in milliseconds")


class ExecutionLogEntry(BaseModel):
    """Record written to the execution log sink."""

    tool_id: str
    organization_id: str | None = None
    user_id: str | None = None
    api_key_id: str | None = None
    input: Any = Field(default_factory=dict)
    output: Any = None
    status_code: int
    error_message: str | None = None
    duration_ms: int = Field(0, ge=0)
    source: ExecutionSource
    created_at: datetime = Field(default_factory=_utcnow)


class CategoryCount(BaseModel):
    """Tool counts for one category of the full catalog."""

    category: str
    count: int
    enabled_count: int


class TemplateDefaults(BaseModel):
    """Tool fields prefilled by a template."""

    display_name: str
    description: str
    category: str
    endpoint_type: EndpointType
    http_method: HttpMethod
    parameters: dict[str, Any]
    required_scopes: list[str] = Field(default_factory=list)

    @field_validator("http_method", mode="before")
    @classmethod
    def normalize_http_method(cls, v: Any) -> Any:
        """Accept lower-case method names."""
        if isinstance(v, str):
            return v.upper()
        return v


class ToolTemplate(BaseModel):
    """Starter definition admins can use when creating a tool."""

    id: str
    name: str
    description: str
    category: str = Field(..., description="Template group (Query, Create, ...)")
    icon: str = "wrench"
    default_values: TemplateDefaults
