"""
Demo tools served by the bundled MCP tool host.

Available tools:
- greeting: say_hello, get_time
- shell: execute_bash
- logging_mode: set_logging_mode, get_logging_mode

Importing this package registers all of them in ``tool_registry``.
"""

from .registry import HostParam, HostTool, ToolRegistry, tool_registry
from .greeting import say_hello, get_time
from .shell import execute_bash, format_result_for_llm as format_shell_result
from .logging_mode import set_logging_mode, get_logging_mode

__all__ = [
    "HostParam",
    "HostTool",
    "ToolRegistry",
    "tool_registry",
    "say_hello",
    "get_time",
    "execute_bash",
    "format_shell_result",
    "set_logging_mode",
    "get_logging_mode",
]
