"""
Tool invocation bridge.

Turns a model-issued tool call into a ``call_tool`` request against the tool
host and normalizes whatever comes back into non-empty plain text. Nothing
raised by the host escapes ``invoke``: failures become result text so the
model can react to them in the next round.
"""

import asyncio
import logging
from typing import Any, Sequence

from ..errors import HostUnavailable, ToolCallFailed
from ..host.client import HostCallResult
from ..models import NO_CONTENT, ToolCallRequest, ToolCallResult, ToolSpec

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 500


def _truncate(message: str) -> str:
    if len(message) > MAX_ERROR_CHARS:
        return message[:MAX_ERROR_CHARS] + "..."
    return message


def normalize_result(result: HostCallResult) -> str:
    """
    Flatten a host result into text.

    Text parts are joined with newlines; other parts become a short
    ``[<kind> content]`` marker. Empty output becomes ``NO_CONTENT``.
    """
    parts: list[str] = []
    for item in result.content:
        if item.kind == "text":
            if item.text:
                parts.append(item.text)
        else:
            parts.append(f"[{item.kind} content]")
    text = "\n".join(parts).strip()
    return text or NO_CONTENT


class ToolInvocationBridge:
    """Adapter between tool-call requests and the tool host."""

    def __init__(
        self,
        host: Any,
        directory: Sequence[ToolSpec] = (),
        call_timeout: float = 60.0,
    ):
        self.host = host
        self.call_timeout = call_timeout
        self._directory = {spec.name: spec for spec in directory}
        self.host_available = True

    async def invoke(self, name: str, arguments: dict) -> str:
        """Call ``name`` on the tool host and return its text, never ``""``."""
        if not self.host_available:
            return f"Error: tool '{name}' was not run because the tool host is unavailable."

        if name not in self._directory:
            # The host decides; the directory is only consulted for diagnostics.
            logger.warning(f"Model requested tool '{name}' missing from the directory")

        try:
            logger.debug(f"Invoking tool '{name}' with {arguments}")
            result = await asyncio.wait_for(
                self.host.call_tool(name, arguments), timeout=self.call_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Tool '{name}' timed out after {self.call_timeout}s")
            return f"Error: tool '{name}' timed out after {self.call_timeout} seconds."
        except HostUnavailable as e:
            logger.error(f"Tool host unavailable while calling '{name}': {e}")
            self.host_available = False
            return f"Error: tool host unavailable, '{name}' could not run: {_truncate(str(e))}"
        except ToolCallFailed as e:
            logger.error(f"Tool '{name}' failed: {e}")
            return f"Tool '{name}' execution error: {_truncate(str(e))}"
        except Exception as e:
            logger.exception(f"Unexpected error calling tool '{name}'")
            return f"Tool '{name}' execution error: {_truncate(str(e))}"

        text = normalize_result(result)
        if result.is_error:
            logger.warning(f"Tool '{name}' reported an error: {text[:200]}")
            return f"Tool '{name}' reported an error: {_truncate(text)}"
        return text

    async def resolve(self, request: ToolCallRequest) -> ToolCallResult:
        """Produce the result for one request, including undecodable ones."""
        if request.argument_error:
            text = (
                f"Error: could not call '{request.tool_name}': "
                f"{request.argument_error}"
            )
        else:
            text = await self.invoke(request.tool_name, dict(request.arguments))
        return ToolCallResult(call_id=request.call_id, text=text or NO_CONTENT)
