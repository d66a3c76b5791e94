"""
Tests for the demo host's tool registry.

Tests cover registration order, lookup, input schemas and MCP conversion.
"""

import pytest

from mcp_chat.tools import HostParam, HostTool, ToolRegistry, tool_registry


def _echo_tool(name="echo", params=()):
    return HostTool(
        name=name,
        description="Echoes its text",
        handler=lambda args: {"text": args.get("text", "")},
        formatter=lambda result: f"echo: {result['text']}",
        params=params,
    )


class TestDemoRegistry:
    """Tests for the tools registered on import."""

    def test_registry_has_demo_tools_in_order(self):
        assert tool_registry.names() == [
            "say_hello",
            "get_time",
            "execute_bash",
            "set_logging_mode",
            "get_logging_mode",
        ]

    def test_get_existing_tool(self):
        tool = tool_registry.get("say_hello")

        assert tool is not None
        assert "hello" in tool.description.lower()
        assert [param.name for param in tool.params] == ["name"]

    def test_get_nonexistent_tool(self):
        assert tool_registry.get("nonexistent_tool") is None

    def test_run_formats_handler_result(self):
        text = tool_registry.get("say_hello").run({"name": "Alice"})
        assert text == "Hello, Alice! This is a greeting from the MCP server."

    def test_summary(self):
        summary = tool_registry.summary()

        assert "- say_hello: Says hello to a person" in summary
        assert "- execute_bash:" in summary


class TestToolRegistry:
    """Tests for a fresh ToolRegistry."""

    def test_register_and_iterate(self):
        tools = ToolRegistry()
        tools.register(_echo_tool("b"))
        tools.register(_echo_tool("a"))

        assert [tool.name for tool in tools] == ["b", "a"]
        assert len(tools) == 2

    def test_duplicate_name_rejected(self):
        tools = ToolRegistry()
        tools.register(_echo_tool())

        with pytest.raises(ValueError, match="already registered"):
            tools.register(_echo_tool())


class TestInputSchema:
    """Tests for the JSON schema published to MCP clients."""

    def test_required_parameters(self):
        assert tool_registry.get("say_hello").input_schema == {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The name of the person to greet"}
            },
            "required": ["name"],
        }

    def test_no_parameters(self):
        assert tool_registry.get("get_time").input_schema == {
            "type": "object",
            "properties": {},
        }

    def test_enum_parameters(self):
        schema = tool_registry.get("set_logging_mode").input_schema

        assert schema["properties"]["mode"]["enum"] == ["verbose", "quiet"]
        assert schema["required"] == ["mode"]

    def test_optional_parameter_not_required(self):
        tool = _echo_tool(params=(HostParam("text", "What to echo"),))
        assert "required" not in tool.input_schema

    def test_to_mcp(self):
        tool = _echo_tool(params=(HostParam("text", "What to echo", required=True),))

        mcp_tool = tool.to_mcp()

        assert mcp_tool.name == "echo"
        assert mcp_tool.description == "Echoes its text"
        assert mcp_tool.inputSchema["required"] == ["text"]
