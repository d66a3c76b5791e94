"""
mcp_chat - tool-augmented conversations over MCP

This package provides:
- A bounded model/tool negotiation loop with a validated transcript
- An MCP stdio client for the external tool host, plus a demo host
- An OpenAI-compatible model client
- Interactive CLI and HTTP API front ends
"""

from .chat import ChatSession
from .conversation import NegotiationLoop, RunResult, Session
from .errors import (
    ChatError,
    HostUnavailable,
    MalformedTurn,
    ModelUnavailable,
    RateLimited,
    ToolCallFailed,
)
from .llm_call import ModelClient

__all__ = [
    "ChatSession",
    "NegotiationLoop",
    "RunResult",
    "Session",
    "ModelClient",
    "ChatError",
    "HostUnavailable",
    "MalformedTurn",
    "ModelUnavailable",
    "RateLimited",
    "ToolCallFailed",
]

__version__ = "0.1.0"
