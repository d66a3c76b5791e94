"""
Model call interface for mcp_chat.

Wraps an OpenAI-compatible chat completions endpoint behind a single
``complete(system, transcript, tool_schemas)`` operation. Transcript turns
are rendered into OpenAI chat messages here and nowhere else.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import openai
from openai import AsyncOpenAI

from .config import ModelConfig, config
from .errors import ModelUnavailable, RateLimited
from .models import AssistantTurn, ToolCallRequest, ToolResultTurn, Turn, UserTurn

logger = logging.getLogger(__name__)


@dataclass
class ModelResponse:
    """Text segments and tool-call requests from one model call."""

    text_segments: list[str] = field(default_factory=list)
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    finish_reason: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None

    @property
    def text(self) -> str:
        """All text segments concatenated in order."""
        return "".join(self.text_segments)


def turns_to_messages(system: str, turns: Sequence[Turn]) -> list[dict]:
    """
    Render the system prompt and transcript as OpenAI chat messages.

    A ToolResultTurn expands to one ``tool`` message per result, in order.
    """
    messages: list[dict] = [{"role": "system", "content": system}]
    for turn in turns:
        if isinstance(turn, UserTurn):
            messages.append({"role": "user", "content": turn.text})
        elif isinstance(turn, AssistantTurn):
            message: dict[str, Any] = {"role": "assistant", "content": turn.text or None}
            if turn.tool_calls:
                message["tool_calls"] = [
                    {
                        "id": call.call_id,
                        "type": "function",
                        "function": {
                            "name": call.tool_name,
                            "arguments": json.dumps(call.arguments),
                        },
                    }
                    for call in turn.tool_calls
                ]
            messages.append(message)
        elif isinstance(turn, ToolResultTurn):
            for result in turn.results:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": result.call_id,
                        "content": result.text,
                    }
                )
    return messages


def parse_tool_call(tool_call: Any) -> ToolCallRequest:
    """
    Convert an OpenAI tool call into a ToolCallRequest.

    Arguments that are not a JSON object are kept out of the request and
    reported through ``argument_error`` instead.
    """
    call_id = getattr(tool_call, "id", None) or f"call_{uuid.uuid4().hex[:12]}"
    function = tool_call.function
    raw_arguments = function.arguments or "{}"

    try:
        arguments = (
            json.loads(raw_arguments)
            if isinstance(raw_arguments, str)
            else raw_arguments
        )
    except json.JSONDecodeError as e:
        logger.warning(
            f"Failed to parse arguments for tool '{function.name}': {raw_arguments[:200]}"
        )
        return ToolCallRequest(
            call_id=call_id,
            tool_name=function.name,
            argument_error=f"Invalid JSON arguments: {e}",
        )

    if not isinstance(arguments, dict):
        return ToolCallRequest(
            call_id=call_id,
            tool_name=function.name,
            argument_error="Arguments must be a JSON object",
        )

    return ToolCallRequest(call_id=call_id, tool_name=function.name, arguments=arguments)


class ModelClient:
    """Async client for the orchestrating chat model."""

    def __init__(
        self,
        model_config: Optional[ModelConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.config = model_config or config.model
        self.model = self.config.model
        self._client = client or AsyncOpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
            max_retries=0,
        )

    async def complete(
        self,
        system: str,
        transcript: Sequence[Turn],
        tool_schemas: Sequence[dict],
    ) -> ModelResponse:
        """
        Call the model once.

        Raises:
            RateLimited: The service rejected the call for rate limiting.
            ModelUnavailable: The call failed, errored or timed out.
        """
        create_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": turns_to_messages(system, transcript),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        # Some OpenAI-compatible servers reject an empty tools list.
        if tool_schemas:
            create_kwargs["tools"] = list(tool_schemas)

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**create_kwargs),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Model call timed out after {self.config.timeout}s")
            raise ModelUnavailable(
                f"Model call timed out after {self.config.timeout} seconds"
            ) from e
        except openai.RateLimitError as e:
            logger.error(f"Model call rate limited: {e}")
            raise RateLimited(f"Model service rate limited the request: {e}") from e
        except openai.OpenAIError as e:
            logger.error(f"Model call failed: {e}")
            raise ModelUnavailable(f"Model call failed: {e}") from e

        if not response.choices:
            raise ModelUnavailable("Model returned no choices")

        choice = response.choices[0]
        message = choice.message
        result = ModelResponse(finish_reason=choice.finish_reason)
        if message.content:
            result.text_segments.append(message.content)
        for tool_call in message.tool_calls or []:
            result.tool_calls.append(parse_tool_call(tool_call))

        if response.usage:
            result.prompt_tokens = response.usage.prompt_tokens
            result.completion_tokens = response.usage.completion_tokens

        logger.debug(
            f"Model returned {len(result.text)} chars of text and "
            f"{len(result.tool_calls)} tool calls (finish_reason={result.finish_reason})"
        )
        return result

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            await self._client.close()
        except Exception as e:
            logger.debug(f"Error closing OpenAI client: {e}")
