"""
Tool host integration: the MCP client used by conversations and the bundled
demo server.
"""

from .client import ContentItem, HostCallResult, ToolHostClient

__all__ = [
    "ContentItem",
    "HostCallResult",
    "ToolHostClient",
]
