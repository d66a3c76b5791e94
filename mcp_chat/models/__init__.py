"""
Data models for mcp_chat.
"""

from .conversation import (
    NO_CONTENT,
    ParameterSpec,
    ToolSpec,
    ToolCallRequest,
    ToolCallResult,
    UserTurn,
    AssistantTurn,
    ToolResultTurn,
    Turn,
    turn_to_dict,
)

__all__ = [
    "NO_CONTENT",
    "ParameterSpec",
    "ToolSpec",
    "ToolCallRequest",
    "ToolCallResult",
    "UserTurn",
    "AssistantTurn",
    "ToolResultTurn",
    "Turn",
    "turn_to_dict",
]
