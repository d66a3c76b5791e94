"""
Prompt and tool-schema rendering for the capability directory.

``render_system_prompt`` produces the fixed system text for a session and
``build_tool_definitions`` produces the OpenAI function-calling schemas sent
with every model call. Both are pure functions of the directory and follow
its iteration order.
"""

from typing import Sequence

from ..models import ToolSpec

BASE_INSTRUCTIONS = (
    "You are a helpful assistant with access to external tools.\n"
    "Use tools when they help answer the question; multiple tools may be used "
    "in sequence. When a tool reports an error, explain it or try another "
    "approach instead of repeating the same call.\n"
    "Once you have what you need, answer the user directly in plain language."
)

NO_TOOLS_LINE = "No tools are currently available."


def _render_parameters(spec: ToolSpec) -> list[str]:
    if not spec.parameters:
        return ["Parameters: none"]
    lines = ["Parameters:"]
    for param_name, param in spec.parameters.items():
        qualifier = f"{param.kind}, required" if param.required else param.kind
        line = f"- {param_name} ({qualifier})"
        if param.description:
            line += f": {param.description}"
        lines.append(line)
    return lines


def render_system_prompt(tool_specs: Sequence[ToolSpec]) -> str:
    """
    Render the session's system prompt.

    Called twice with the same directory, this returns identical text.
    """
    lines = [BASE_INSTRUCTIONS, "", "# Available tools"]
    if not tool_specs:
        lines.append(NO_TOOLS_LINE)
    for spec in tool_specs:
        lines.append("")
        lines.append(f"## {spec.name}")
        if spec.description:
            lines.append(spec.description)
        lines.extend(_render_parameters(spec))
    return "\n".join(lines)


def build_tool_definitions(tool_specs: Sequence[ToolSpec]) -> list[dict]:
    """
    Build OpenAI function-calling tool definitions from the directory.

    The host's raw input schema is passed through so enums and defaults
    reach the model unchanged.
    """
    tools: list[dict] = []
    for spec in tool_specs:
        parameters = dict(spec.input_schema) or {"type": "object", "properties": {}}
        parameters.setdefault("type", "object")
        parameters.setdefault("properties", {})
        tools.append(
            {
                "type": "function",
                "function": {
                    "name": spec.name,
                    "description": spec.description,
                    "parameters": parameters,
                },
            }
        )
    return tools
