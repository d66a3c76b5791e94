"""
Chat session façade.

Owns one tool host connection, one model client and one conversation
session, and exposes the operations the CLI and HTTP API build on:
``run``, ``get_history``, ``clear_history`` and ``shutdown``.
"""

import logging
from typing import Any, Optional

from .config import Config, config
from .conversation import NegotiationLoop, RunResult, Session, ToolInvocationBridge
from .host import ToolHostClient
from .llm_call import ModelClient
from .models import ToolSpec, Turn

logger = logging.getLogger(__name__)


class ChatSession:
    """
    One conversation with tools.

    The capability directory is fetched once in ``start``; a host that cannot
    be reached there makes the session unusable (``HostUnavailable``).

    Usage:
        async with ChatSession() as chat:
            answer = await chat.run("Say hello to Alice")
    """

    def __init__(
        self,
        app_config: Optional[Config] = None,
        host: Optional[Any] = None,
        model: Optional[Any] = None,
    ):
        self.config = app_config or config
        self.host = host or ToolHostClient(
            command=self.config.tool_host.command,
            args=self.config.tool_host.args,
            init_timeout=self.config.tool_host.init_timeout,
        )
        self.model = model or ModelClient(self.config.model)
        self.last_result: Optional[RunResult] = None
        self._session: Optional[Session] = None
        self._loop: Optional[NegotiationLoop] = None

    @property
    def started(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def tools(self) -> tuple[ToolSpec, ...]:
        """The capability directory, empty before ``start``."""
        return self._session.directory if self._session else ()

    @property
    def tools_enabled(self) -> bool:
        return bool(self._session and self._session.tools_enabled)

    async def start(self) -> None:
        """
        Connect to the tool host and fetch its capability directory.

        Raises:
            HostUnavailable: If the host cannot be started or listed.
        """
        if self._session is not None:
            return

        try:
            await self.host.connect()
            directory = await self.host.list_tools()
        except Exception:
            await self.host.close()
            raise

        self._session = Session.create(directory)
        bridge = ToolInvocationBridge(
            self.host,
            directory=self._session.directory,
            call_timeout=self.config.tool_host.call_timeout,
        )
        self._loop = NegotiationLoop(self.model, bridge)
        names = ", ".join(spec.name for spec in directory) or "(none)"
        logger.info(
            f"Session {self._session.session_id} started with "
            f"{len(directory)} tools: {names}"
        )

    async def run(self, user_text: str, max_rounds: Optional[int] = None) -> str:
        """Answer one user utterance."""
        result = await self.run_detailed(user_text, max_rounds)
        return result.answer

    async def run_detailed(
        self, user_text: str, max_rounds: Optional[int] = None
    ) -> RunResult:
        """Like ``run`` but returns the per-round record as well."""
        await self.start()
        if max_rounds is None:
            max_rounds = self.config.session.max_rounds
        self.last_result = await self._loop.run(self._session, user_text, max_rounds)
        return self.last_result

    def get_history(self) -> tuple[Turn, ...]:
        if self._session is None:
            return ()
        return self._session.transcript.history()

    def clear_history(self) -> None:
        """Drop every turn; the directory and system prompt are kept."""
        if self._session is not None:
            self._session.transcript.clear()
        self.last_result = None

    async def shutdown(self) -> None:
        """Release the tool host and the model client."""
        logger.info("Shutting down chat session")
        await self.host.close()
        close = getattr(self.model, "close", None)
        if close is not None:
            await close()
        self._session = None
        self._loop = None

    async def __aenter__(self) -> "ChatSession":
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()
