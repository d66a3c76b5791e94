"""
Data models for the conversation transcript and the capability directory.

Turns are modeled as a closed set of dataclasses (``UserTurn``,
``AssistantTurn``, ``ToolResultTurn``) instead of free-form message dicts,
so shape checks happen once at construction and append time.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

# Substituted for tool output that carried no text.
NO_CONTENT = "no content"


@dataclass(frozen=True)
class ParameterSpec:
    """A single declared tool parameter."""

    description: str = ""
    kind: str = "string"
    required: bool = False


@dataclass(frozen=True)
class ToolSpec:
    """
    A tool offered by the tool host.

    ``parameters`` preserves the host's declaration order. ``input_schema``
    keeps the raw JSON schema so enums and defaults reach the model intact.
    """

    name: str
    description: str = ""
    parameters: dict[str, ParameterSpec] = field(default_factory=dict)
    input_schema: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_input_schema(
        cls, name: str, description: Optional[str], input_schema: Optional[dict]
    ) -> "ToolSpec":
        """Build a ToolSpec from a JSON-schema style ``inputSchema``."""
        schema = dict(input_schema or {})
        schema.setdefault("type", "object")
        properties = schema.get("properties") or {}
        if not isinstance(properties, dict):
            properties = {}
        required = set(schema.get("required") or [])

        parameters: dict[str, ParameterSpec] = {}
        for param_name, param_schema in properties.items():
            param_schema = param_schema if isinstance(param_schema, dict) else {}
            kind = param_schema.get("type", "string")
            if isinstance(kind, list):
                kind = "|".join(str(k) for k in kind)
            parameters[param_name] = ParameterSpec(
                description=param_schema.get("description", ""),
                kind=str(kind),
                required=param_name in required,
            )

        return cls(
            name=name,
            description=description or "",
            parameters=parameters,
            input_schema=schema,
        )


@dataclass(frozen=True)
class ToolCallRequest:
    """A model-issued request to invoke a named tool."""

    call_id: str
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    # Set when the model's arguments could not be decoded into an object.
    argument_error: Optional[str] = None


@dataclass(frozen=True)
class ToolCallResult:
    """The text outcome of one tool call, keyed by the request's call id."""

    call_id: str
    text: str


@dataclass(frozen=True)
class UserTurn:
    text: str

    role = "user"

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class AssistantTurn:
    text: Optional[str] = None
    tool_calls: tuple[ToolCallRequest, ...] = ()

    role = "assistant"

    @property
    def is_empty(self) -> bool:
        return not (self.text and self.text.strip()) and not self.tool_calls

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class ToolResultTurn:
    results: tuple[ToolCallResult, ...] = ()

    role = "tool"

    @property
    def is_empty(self) -> bool:
        return not self.results


Turn = Union[UserTurn, AssistantTurn, ToolResultTurn]


def turn_to_dict(turn: Turn) -> dict:
    """Serialize a turn for traces, the CLI ``/history`` view and the API."""
    if isinstance(turn, UserTurn):
        return {"role": "user", "text": turn.text}
    if isinstance(turn, AssistantTurn):
        return {
            "role": "assistant",
            "text": turn.text,
            "tool_calls": [
                {
                    "call_id": call.call_id,
                    "tool_name": call.tool_name,
                    "arguments": call.arguments,
                }
                for call in turn.tool_calls
            ],
        }
    return {
        "role": "tool",
        "results": [
            {"call_id": result.call_id, "text": result.text}
            for result in turn.results
        ],
    }
