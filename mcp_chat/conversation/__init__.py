"""
Conversation core: prompt rendering, transcript, tool bridge and the
bounded negotiation loop.
"""

from .bridge import ToolInvocationBridge, normalize_result
from .loop import NegotiationLoop, RoundRecord, RunResult, Session
from .prompt import build_tool_definitions, render_system_prompt
from .transcript import TranscriptStore, sanitize

__all__ = [
    "ToolInvocationBridge",
    "normalize_result",
    "NegotiationLoop",
    "RoundRecord",
    "RunResult",
    "Session",
    "build_tool_definitions",
    "render_system_prompt",
    "TranscriptStore",
    "sanitize",
]
