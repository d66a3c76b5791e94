#!/usr/bin/env python3
"""
mcp_chat Interactive CLI

A command-line chat with a model that can call the tools of an MCP
tool host.
"""

import argparse
import asyncio
import json
import logging
import sys
import threading
from typing import Optional

from .chat import ChatSession
from .config import Config
from .config_loader import load_app_config
from .errors import ChatError
from .models import AssistantTurn, ToolResultTurn, UserTurn
from .tracing import init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("/quit", "/exit", "/q", "quit", "exit")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = """
╔════════════════════════════════════════════════════════════════╗
║                     mcp_chat Interactive                       ║
║                                                                ║
║  Chat with a model that can call MCP tools                     ║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help     - Show this help message
  /tools    - List the tool host's tools
  /history  - Show the conversation transcript
  /trace    - Show the rounds of the last answer
  /verbose  - Toggle verbose logging
  /clear    - Clear conversation history
  /quit     - Exit the CLI (or type 'quit' / 'exit')

Try: "Say hello to Alice" or "What time is it?"
"""
    print(banner)


def print_tools(chat: ChatSession) -> None:
    """Print the capability directory."""
    if not chat.tools:
        print("\nThe tool host offers no tools.\n")
        return

    print("\nAvailable Tools:")
    print("─" * 64)
    for i, spec in enumerate(chat.tools, start=1):
        print(f"{i}. {spec.name.ljust(18)} - {spec.description}")
    if not chat.tools_enabled:
        print("\n(The tool host is unavailable; answers continue without tools.)")
    print()


def print_history(chat: ChatSession) -> None:
    """Print the raw transcript."""
    history = chat.get_history()
    if not history:
        print("\nNo conversation yet.\n")
        return

    print("\n" + "═" * 70)
    print("TRANSCRIPT")
    print("═" * 70)
    for turn in history:
        if isinstance(turn, UserTurn):
            print(f"\nYou: {turn.text}")
        elif isinstance(turn, AssistantTurn):
            if turn.text:
                print(f"\nAssistant: {turn.text}")
            for call in turn.tool_calls:
                print(f"  → {call.tool_name}({json.dumps(call.arguments)}) [{call.call_id}]")
        elif isinstance(turn, ToolResultTurn):
            for result in turn.results:
                text = result.text if len(result.text) <= 200 else result.text[:200] + "..."
                print(f"  ← [{result.call_id}] {text}")
    print()


def print_trace(chat: ChatSession) -> None:
    """Print the rounds of the last run."""
    if chat.last_result is None:
        print("\nNo trace available. Ask something first.\n")
        return

    print("\n" + "═" * 70)
    print("ROUND TRACE")
    print("═" * 70)

    for step in chat.last_result.trace():
        is_final = not step["tool_calls"]
        print(f"\n┌─ Round {step['round']}" + ("  [FINAL]" if is_final else ""))
        print("│")
        if step["text"]:
            print(f"│  Text: {step['text']}")
        for call in step["tool_calls"]:
            print(f"│  Action: {call['tool_name']}")
            print(f"│  Input: {json.dumps(call['arguments'], indent=2)}")
        for result in step["results"]:
            obs = result["text"]
            if len(obs) > 200:
                obs = obs[:200] + "..."
            print(f"│  Observation: {obs}")
        print("└" + "─" * 68)

    if chat.last_result.hit_round_limit:
        print("(Stopped at the round limit)")
    print()


async def read_line(prompt: str) -> str:
    """
    Read one line from stdin without blocking the event loop.

    The reader runs on a daemon thread so an interrupted prompt never keeps
    the process alive.

    Raises:
        EOFError: When stdin is closed.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _deliver(value: Optional[str], error: Optional[BaseException]) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(value)

    def _reader() -> None:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt) as e:
            loop.call_soon_threadsafe(_deliver, None, EOFError(str(e)))
        else:
            loop.call_soon_threadsafe(_deliver, line, None)

    threading.Thread(target=_reader, daemon=True).start()
    return await future


class InteractiveCLI:
    """Interactive CLI for mcp_chat."""

    def __init__(
        self,
        chat: ChatSession,
        verbose: bool = False,
        max_rounds: Optional[int] = None,
    ):
        self.chat = chat
        self.verbose = verbose
        self.max_rounds = max_rounds

    def toggle_verbose(self) -> None:
        """Toggle verbose mode."""
        self.verbose = not self.verbose
        logging.getLogger().setLevel(logging.DEBUG if self.verbose else logging.INFO)
        print(f"\nVerbose mode: {'ON' if self.verbose else 'OFF'}\n")

    def clear_history(self) -> None:
        self.chat.clear_history()
        print("\nConversation history cleared.\n")

    def handle_command(self, command: str) -> bool:
        """
        Run one slash command.

        Returns:
            False when the CLI should exit.
        """
        command = command.lower()
        if command in QUIT_COMMANDS:
            print("\nGoodbye!\n")
            return False
        elif command in ("/help", "/h", "/?"):
            print_banner()
        elif command == "/tools":
            print_tools(self.chat)
        elif command == "/history":
            print_history(self.chat)
        elif command == "/trace":
            print_trace(self.chat)
        elif command == "/verbose":
            self.toggle_verbose()
        elif command == "/clear":
            self.clear_history()
        else:
            print(f"\nUnknown command: {command}")
            print("Type /help for available commands.\n")
        return True

    async def process_query(self, query: str) -> None:
        """Answer one query and print the result."""
        print("\n" + "─" * 70)
        print("Thinking...")
        print("─" * 70 + "\n")

        try:
            result = await self.chat.run_detailed(query, self.max_rounds)
        except (ChatError, ValueError) as e:
            logger.debug("Query failed", exc_info=True)
            print(f"\nError: {e}\n")
            return

        print("\n" + "═" * 70)
        print("ANSWER")
        print("═" * 70)
        print(result.answer)
        print("═" * 70 + "\n")

        count = result.model_calls
        print(f"(Completed in {count} round{'s' if count != 1 else ''})")
        if result.tools_used:
            print(f"Tools used: {', '.join(result.tools_used)}")
        print("Use /trace to see the rounds.\n")

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()

        while True:
            try:
                user_input = (await read_line(">>> ")).strip()
            except EOFError:
                print("\nGoodbye!\n")
                break

            if not user_input:
                continue

            if user_input.startswith("/") or user_input.lower() in QUIT_COMMANDS:
                if not self.handle_command(user_input):
                    break
            else:
                await self.process_query(user_input)


async def run_single_query(
    chat: ChatSession,
    query: str,
    max_rounds: Optional[int] = None,
    as_json: bool = False,
) -> None:
    """Answer one query and print it, optionally as JSON."""
    result = await chat.run_detailed(query, max_rounds)
    if as_json:
        output = {
            "query": query,
            "answer": result.answer,
            "rounds": result.model_calls,
            "tools_used": result.tools_used,
            "hit_round_limit": result.hit_round_limit,
            "trace": result.trace(),
        }
        print(json.dumps(output, indent=2))
    else:
        print(result.answer)


async def _amain(args: argparse.Namespace, app_config: Config) -> int:
    init_tracing_client(app_config.langfuse)
    chat = ChatSession(app_config)
    try:
        await chat.start()
        if args.query:
            await run_single_query(chat, args.query, args.max_rounds, args.json)
        else:
            print(f"Connected to tool host with {len(chat.tools)} tools.")
            await InteractiveCLI(chat, verbose=args.verbose, max_rounds=args.max_rounds).run()
    except ChatError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await chat.shutdown()
        shutdown_tracing()
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="mcp_chat Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                            # Start interactive mode
  %(prog)s -v                         # Start with verbose logging
  %(prog)s -q "Say hello to Alice"    # Run a single query
  %(prog)s --config config/config.yaml

Use /tools in interactive mode to see the tool host's tools.
""",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "-q",
        "--query",
        type=str,
        help="Run a single query and exit",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: CONFIG_PATH env or environment only)",
    )

    parser.add_argument(
        "--max-rounds",
        type=int,
        default=None,
        help="Maximum tool rounds per query (default: from MAX_ROUNDS env or 5)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON (for scripting)",
    )

    args = parser.parse_args()

    if args.max_rounds is not None and args.max_rounds < 1:
        parser.error("--max-rounds must be at least 1")

    setup_logging(args.verbose)

    try:
        app_config = load_app_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        exit_code = asyncio.run(_amain(args, app_config))
    except KeyboardInterrupt:
        print("\n\nInterrupted, shutting down.\n")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
