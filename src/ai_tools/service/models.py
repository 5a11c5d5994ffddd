"""Data models for service layer."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


# ============================================================================
# Pydantic Models (API/Validation)
# ============================================================================


class ExecuteToolRequest(BaseModel):
    """Request to execute a tool through the public API."""

    input: dict[str, Any] = Field(default_factory=dict)
    organization_id: str | None = None


class TestToolRequest(BaseModel):
    """Admin request to dry-run a tool."""

    __test__ = False

    input: dict[str, Any] = Field(default_factory=dict)
    admin_user_id: str
    organization_id: str | None = None
    test_mode: bool = True


class PromptContextResponse(BaseModel):
    """Prompt-context summary returned by the API."""

    prompt_context: str
    tools_count: int


# ============================================================================
# SQLAlchemy Models (Database)
# ============================================================================


class AiToolModel(Base):
    """SQLAlchemy model for ai_tools table."""

    __tablename__ = "ai_tools"

    id = Column(String(32), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    endpoint_type = Column(String(20), nullable=False)
    endpoint_path = Column(String(500), nullable=False, default="")
    http_method = Column(String(10), nullable=False, default="POST")
    parameters = Column(JsonColumn, nullable=False, default=dict)
    required_scopes = Column(JsonColumn, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_ai_tools_enabled_category", "is_enabled", "category"),)


class AiToolExecutionModel(Base):
    """SQLAlchemy model for ai_tool_executions table."""

    __tablename__ = "ai_tool_executions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    tool_id = Column(String(32), ForeignKey("ai_tools.id", ondelete="CASCADE"), nullable=False)
    organization_id = Column(String(100), nullable=True)
    user_id = Column(String(100), nullable=True)
    api_key_id = Column(String(100), nullable=True)
    input = Column(JsonColumn, nullable=True)
    output = Column(JsonColumn, nullable=True)
    status_code = Column(Integer, nullable=False)
    error_message = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=False, default=0)
    source = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_ai_tool_executions_tool_created", "tool_id", "created_at"),
        Index("ix_ai_tool_executions_org_created", "organization_id", "created_at"),
    )
