"""
Pydantic schemas for the HTTP API.
"""

import time
import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ChatRequest(BaseModel):
    """Request body for POST /v1/chat."""

    message: str = Field(..., description="The user's utterance", min_length=1)
    max_rounds: Optional[int] = Field(
        default=None, ge=1, le=50, description="Tool rounds allowed for this message"
    )
    include_trace: bool = Field(
        default=False, description="Include the per-round trace in the response"
    )

    @field_validator("message")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Say hello to Alice, then tell me the time",
                "max_rounds": 5,
            }
        }
    }


class ToolCallModel(BaseModel):
    call_id: str
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResultModel(BaseModel):
    call_id: str
    text: str


class RoundTrace(BaseModel):
    """One model call and the tool calls it led to."""

    round: int = Field(..., description="Round number, starting at 1")
    text: Optional[str] = Field(default=None, description="Text the model produced")
    tool_calls: list[ToolCallModel] = Field(default_factory=list)
    results: list[ToolResultModel] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Response body for POST /v1/chat."""

    id: str = Field(default_factory=lambda: f"chat-{uuid.uuid4().hex[:12]}")
    created: int = Field(default_factory=lambda: int(time.time()))
    session_id: str
    answer: str
    rounds: int = Field(..., description="Number of model calls made")
    tools_used: list[str] = Field(default_factory=list)
    hit_round_limit: bool = False
    trace: Optional[list[RoundTrace]] = Field(
        default=None, description="Per-round trace (when include_trace=True)"
    )


class TurnModel(BaseModel):
    """One transcript turn."""

    role: Literal["user", "assistant", "tool"]
    text: Optional[str] = None
    tool_calls: list[ToolCallModel] = Field(default_factory=list)
    results: list[ToolResultModel] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    """Response body for GET /v1/history."""

    session_id: str
    turns: list[TurnModel]


class ParameterInfo(BaseModel):
    description: str = ""
    kind: str = "string"
    required: bool = False


class ToolInfo(BaseModel):
    name: str
    description: str
    parameters: dict[str, ParameterInfo] = Field(default_factory=dict)


class ToolListResponse(BaseModel):
    """Response body for GET /v1/tools."""

    tools: list[ToolInfo]
    tools_enabled: bool


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    model: str
    tool_host_connected: bool
    tools: int = 0
    error: Optional[str] = None
