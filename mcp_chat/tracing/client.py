"""
Process-wide Langfuse client for conversation tracing.

Built from a ``LangfuseConfig``. The client stays disabled when keys are
missing, the SDK fails to construct, or the one-time ``auth_check`` fails;
callers only ever see ``enabled`` and an ``error`` reason.
"""

import logging
from typing import Callable, Optional

from langfuse import Langfuse

from ..config import LangfuseConfig

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://cloud.langfuse.com"


def _connect(langfuse: LangfuseConfig) -> tuple[Optional[Langfuse], Optional[str]]:
    """Return a verified SDK client, or None and the reason it is unusable."""
    if not langfuse.enabled:
        return None, "Langfuse credentials not configured"

    if langfuse.host and not langfuse.host.startswith(("http://", "https://")):
        logger.warning(
            f"Langfuse host '{langfuse.host}' has no http(s) scheme; "
            "expected http://hostname:port"
        )

    options = {
        "public_key": langfuse.public_key,
        "secret_key": langfuse.secret_key,
        "debug": langfuse.debug,
    }
    if langfuse.host:
        options["host"] = langfuse.host

    try:
        sdk = Langfuse(**options)
    except Exception as e:
        return None, f"Failed to initialize Langfuse client: {e}"

    try:
        authenticated = sdk.auth_check()
    except Exception as e:
        return None, f"Langfuse connectivity check failed: {e}"
    if not authenticated:
        return None, "Langfuse auth_check() failed"
    return sdk, None


class TracingClient:
    """Wraps the Langfuse SDK; flush and shutdown do nothing when disabled."""

    def __init__(self, langfuse: Optional[LangfuseConfig] = None):
        self.settings = langfuse or LangfuseConfig()
        self._client, self._error = _connect(self.settings)
        if self._client is not None:
            logger.info(f"Langfuse tracing enabled (host: {self.host})")
        else:
            logger.debug(f"Tracing disabled: {self._error}")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def client(self) -> Optional[Langfuse]:
        return self._client

    @property
    def host(self) -> str:
        return self.settings.host or DEFAULT_HOST

    def _call(self, action: Callable[[Langfuse], None], what: str) -> None:
        if self._client is None:
            return
        try:
            action(self._client)
        except Exception as e:
            logger.warning(f"Tracing {what} failed: {e}")

    def flush(self) -> None:
        """Send pending observations."""
        self._call(lambda sdk: sdk.flush(), "flush")

    def shutdown(self) -> None:
        self._call(lambda sdk: sdk.shutdown(), "shutdown")


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(langfuse: Optional[LangfuseConfig] = None) -> TracingClient:
    """Create the process-wide client, replacing any earlier one."""
    global _tracing_client
    if _tracing_client is not None:
        _tracing_client.shutdown()
    _tracing_client = TracingClient(langfuse)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Flush and drop the process-wide client."""
    global _tracing_client
    if _tracing_client is not None:
        _tracing_client.shutdown()
        _tracing_client = None
