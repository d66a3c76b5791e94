"""
In-memory fakes for the model and the tool host, plus response builders.

The loop is driven with fixed, scripted inputs through these.
"""

from typing import Any, Callable, Optional, Union

from mcp_chat.errors import HostUnavailable
from mcp_chat.host import ContentItem, HostCallResult
from mcp_chat.llm_call import ModelResponse
from mcp_chat.models import ToolCallRequest, ToolSpec


def text_response(text: str) -> ModelResponse:
    """A model response with text only."""
    return ModelResponse(text_segments=[text])


def tool_response(*calls: ToolCallRequest, text: str = "") -> ModelResponse:
    """A model response requesting the given tool calls."""
    return ModelResponse(text_segments=[text] if text else [], tool_calls=list(calls))


def call(call_id: str, tool_name: str, **arguments: Any) -> ToolCallRequest:
    return ToolCallRequest(call_id=call_id, tool_name=tool_name, arguments=arguments)


def text_result(*texts: str, is_error: bool = False) -> HostCallResult:
    return HostCallResult(
        content=tuple(ContentItem(kind="text", text=t) for t in texts),
        is_error=is_error,
    )


class FakeModel:
    """
    Scripted stand-in for ModelClient.

    Each entry of ``script`` is returned (or raised, for exceptions) by one
    ``complete`` call. A callable entry is called with the call index.
    """

    model = "fake-model"

    def __init__(self, script: list[Union[ModelResponse, Exception, Callable]]):
        self.script = list(script)
        self.calls: list[dict] = []
        self.closed = False

    async def complete(self, system, transcript, tool_schemas) -> ModelResponse:
        self.calls.append(
            {
                "system": system,
                "transcript": list(transcript),
                "tool_schemas": list(tool_schemas),
            }
        )
        if not self.script:
            raise AssertionError("FakeModel script exhausted")
        entry = self.script.pop(0)
        if callable(entry) and not isinstance(entry, ModelResponse):
            entry = entry(len(self.calls))
        if isinstance(entry, Exception):
            raise entry
        return entry

    async def close(self) -> None:
        self.closed = True


class AlwaysCallsTool(FakeModel):
    """A model that requests a tool on every call, with fresh call ids."""

    def __init__(self, tool_name: str = "say_hello", text: str = ""):
        super().__init__([])
        self.tool_name = tool_name
        self.text = text

    async def complete(self, system, transcript, tool_schemas) -> ModelResponse:
        self.calls.append(
            {
                "system": system,
                "transcript": list(transcript),
                "tool_schemas": list(tool_schemas),
            }
        )
        n = len(self.calls)
        return tool_response(
            call(f"c{n}", self.tool_name, name=f"User{n}"), text=self.text
        )


class FakeToolHost:
    """
    In-memory stand-in for ToolHostClient.

    ``handlers`` maps tool names to callables taking the argument dict and
    returning a HostCallResult or raising.
    """

    def __init__(
        self,
        tools: Optional[list[ToolSpec]] = None,
        handlers: Optional[dict[str, Callable[[dict], HostCallResult]]] = None,
        connect_error: Optional[Exception] = None,
    ):
        self.tools = list(tools or [])
        self.handlers = dict(handlers or {})
        self.connect_error = connect_error
        self.calls: list[tuple[str, dict]] = []
        self.connected = False
        self.closed = False
        self.list_calls = 0

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def list_tools(self) -> list[ToolSpec]:
        self.list_calls += 1
        if not self.connected:
            raise HostUnavailable("Tool host is not connected")
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict) -> HostCallResult:
        self.calls.append((name, arguments))
        handler = self.handlers.get(name)
        if handler is None:
            return text_result(f"Unknown tool: {name}", is_error=True)
        return handler(arguments)

    async def close(self) -> None:
        self.connected = False
        self.closed = True


def say_hello_spec() -> ToolSpec:
    return ToolSpec.from_input_schema(
        "say_hello",
        "Say hello to someone",
        {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the person to greet"}
            },
            "required": ["name"],
        },
    )


def get_time_spec() -> ToolSpec:
    return ToolSpec.from_input_schema(
        "get_time", "Get the current time", {"type": "object", "properties": {}}
    )


