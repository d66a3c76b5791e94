"""
Greeting and clock tools.
"""

from datetime import datetime, timezone

from .registry import HostParam, HostTool, tool_registry


def say_hello(name: str = "") -> dict:
    """Build a greeting for ``name``, defaulting to "World"."""
    person = name.strip() if name else ""
    return {"success": True, "name": person or "World"}


def format_greeting(result: dict) -> str:
    return f"Hello, {result['name']}! This is a greeting from the MCP server."


def get_time() -> dict:
    """Return the current UTC time."""
    return {"success": True, "time": datetime.now(timezone.utc).isoformat()}


def format_time(result: dict) -> str:
    return f"Current time: {result['time']}"


tool_registry.register(
    HostTool(
        name="say_hello",
        description="Says hello to a person",
        handler=lambda params: say_hello(str(params.get("name") or "")),
        formatter=format_greeting,
        params=(HostParam("name", "The name of the person to greet", required=True),),
    )
)
tool_registry.register(
    HostTool(
        name="get_time",
        description="Gets the current time",
        handler=lambda params: get_time(),
        formatter=format_time,
    )
)
