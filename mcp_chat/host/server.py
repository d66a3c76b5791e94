"""
Demo MCP tool host.

Publishes every tool in the demo ``tool_registry`` over MCP stdio. The conversation
client spawns this module as a subprocess by default:

    python -m mcp_chat.host.server

stdout carries the protocol, so all logging goes to stderr.
"""

import asyncio
import logging
import sys

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from ..config import config
from ..tools import tool_registry

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-chat-tool-host"


def build_server() -> Server:
    """Create the MCP server with list/call handlers backed by the registry."""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [tool.to_mcp() for tool in tool_registry]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        return [types.TextContent(type="text", text=await run_tool(name, arguments))]

    return server


async def run_tool(name: str, arguments: dict) -> str:
    """
    Execute a registered tool off the event loop and format its result.

    Raises:
        ValueError: If the tool is unknown; MCP reports it as an error result.
    """
    tool = tool_registry.get(name)
    if tool is None:
        raise ValueError(f"Unknown tool: {name}")

    logger.info(f"Executing tool '{name}'")
    return await asyncio.to_thread(tool.run, arguments or {})


async def serve() -> None:
    """Serve the registry over stdio until the client disconnects."""
    server = build_server()
    async with stdio_server() as (read_stream, write_stream):
        logger.info(f"Tool host running on stdio with {len(tool_registry)} tools")
        logger.debug(f"Registered tools:\n{tool_registry.summary()}")
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    asyncio.run(serve())


if __name__ == "__main__":
    main()
