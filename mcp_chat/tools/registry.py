"""
Registry of the tools the demo host publishes over MCP.

Each tool module registers its ``HostTool`` entries on import. The host
server lists them in registration order and dispatches ``tools/call``
requests through ``HostTool.run``.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

import mcp.types as types


@dataclass(frozen=True)
class HostParam:
    """One string parameter of a host tool."""

    name: str
    description: str
    required: bool = False
    choices: tuple[str, ...] = ()

    def schema(self) -> dict:
        prop: dict = {"type": "string", "description": self.description}
        if self.choices:
            prop["enum"] = list(self.choices)
        return prop


@dataclass(frozen=True)
class HostTool:
    """
    A tool served by the demo host.

    ``handler`` takes the raw argument dict and returns a result dict;
    ``formatter`` turns that dict into the text the model sees.
    """

    name: str
    description: str
    handler: Callable[[dict], dict]
    formatter: Callable[[dict], str]
    params: tuple[HostParam, ...] = field(default_factory=tuple)

    @property
    def input_schema(self) -> dict:
        schema: dict = {
            "type": "object",
            "properties": {param.name: param.schema() for param in self.params},
        }
        required = [param.name for param in self.params if param.required]
        if required:
            schema["required"] = required
        return schema

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name, description=self.description, inputSchema=self.input_schema
        )

    def run(self, arguments: dict) -> str:
        return self.formatter(self.handler(arguments))


class ToolRegistry:
    """Name-keyed collection of host tools, iterated in registration order."""

    def __init__(self):
        self._tools: dict[str, HostTool] = {}

    def register(self, tool: HostTool) -> HostTool:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        return tool

    def get(self, name: str) -> Optional[HostTool]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def summary(self) -> str:
        """One ``- name: description`` line per tool, for logs."""
        return "\n".join(f"- {tool.name}: {tool.description}" for tool in self)

    def __iter__(self) -> Iterator[HostTool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)


tool_registry = ToolRegistry()
