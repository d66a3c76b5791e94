"""
MCP client for the external tool host.

Spawns the host as a stdio subprocess, fetches its capability directory and
forwards tool invocations. Transport failures surface as ``HostUnavailable``;
errors reported for a single call surface as ``ToolCallFailed``.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Optional

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from ..errors import HostUnavailable, ToolCallFailed
from ..models import ToolSpec

logger = logging.getLogger(__name__)

# Raised by the stdio streams once the host process is gone.
_TRANSPORT_ERRORS = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
    ConnectionError,
    OSError,
)


@dataclass(frozen=True)
class ContentItem:
    """One content part of a tool result."""

    kind: str
    text: str = ""


@dataclass(frozen=True)
class HostCallResult:
    """The tool host's answer to ``call_tool``."""

    content: tuple[ContentItem, ...] = ()
    is_error: bool = False


def _to_content_item(item: Any) -> ContentItem:
    kind = getattr(item, "type", "unknown")
    text = getattr(item, "text", None)
    if kind == "text" and isinstance(text, str):
        return ContentItem(kind="text", text=text)
    return ContentItem(kind=str(kind))


class ToolHostClient:
    """
    Connection to one MCP tool host over stdio.

    Usage:
        async with ToolHostClient("python", ["-m", "mcp_chat.host.server"]) as host:
            specs = await host.list_tools()
            result = await host.call_tool("say_hello", {"name": "Alice"})
    """

    def __init__(
        self,
        command: str,
        args: Optional[list[str]] = None,
        env: Optional[dict[str, str]] = None,
        init_timeout: float = 30.0,
    ):
        self.command = command
        self.args = list(args or [])
        self.env = env
        self.init_timeout = init_timeout
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Spawn the host process and complete the MCP handshake."""
        if self._session is not None:
            return

        logger.info(f"Connecting to tool host: {self.command} {' '.join(self.args)}")
        params = StdioServerParameters(command=self.command, args=self.args, env=self.env)
        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(
                stdio_client(params)
            )
            session = await stack.enter_async_context(
                ClientSession(read_stream, write_stream)
            )
            await asyncio.wait_for(session.initialize(), timeout=self.init_timeout)
        except Exception as e:
            logger.error(f"Failed to connect to tool host: {e}")
            await self._close_stack(stack)
            raise HostUnavailable(f"Tool host could not be started: {e}") from e

        self._stack = stack
        self._session = session
        logger.info("Connected to tool host")

    async def list_tools(self) -> list[ToolSpec]:
        """Fetch the host's capability directory, in the host's order."""
        session = self._require_session()
        try:
            response = await session.list_tools()
        except (McpError, *_TRANSPORT_ERRORS) as e:
            logger.error(f"Error listing tools: {e}")
            raise HostUnavailable(f"Tool host did not list its tools: {e}") from e

        specs = [
            ToolSpec.from_input_schema(tool.name, tool.description, tool.inputSchema)
            for tool in response.tools
        ]
        for spec in specs:
            logger.debug(f"Tool available: {spec.name} - {spec.description}")
        return specs

    async def call_tool(self, name: str, arguments: dict) -> HostCallResult:
        """Invoke one tool on the host."""
        session = self._require_session()
        try:
            response = await session.call_tool(name, arguments)
        except McpError as e:
            raise ToolCallFailed(name, str(e)) from e
        except _TRANSPORT_ERRORS as e:
            raise HostUnavailable(f"Tool host connection lost: {e}") from e

        return HostCallResult(
            content=tuple(_to_content_item(item) for item in response.content or []),
            is_error=bool(response.isError),
        )

    async def close(self) -> None:
        """Release the host connection and stop the subprocess."""
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await self._close_stack(stack)
            logger.info("Tool host connection closed")

    @staticmethod
    async def _close_stack(stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            logger.debug(f"Error closing tool host transport: {e}")

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise HostUnavailable("Tool host is not connected")
        return self._session

    async def __aenter__(self) -> "ToolHostClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
