"""
Exception types for the conversation orchestrator.

Tool-level failures are absorbed into result text by the bridge; model
failures propagate to the caller of ``run``; ``MalformedTurn`` signals a
construction bug and is never caught by the loop.
"""


class ChatError(Exception):
    """Base exception for mcp_chat."""


class HostUnavailable(ChatError):
    """Raised when the tool host cannot be reached."""


class ToolCallFailed(ChatError):
    """Raised when a single tool invocation fails on the host side."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class ModelUnavailable(ChatError):
    """Raised when the language model call fails or times out."""


class RateLimited(ModelUnavailable):
    """Raised when the model service rejects the call for rate limiting."""


class MalformedTurn(ChatError):
    """Raised when a turn violates the transcript invariants."""
