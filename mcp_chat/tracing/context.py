"""
Run-scoped tracing context using the Langfuse SDK v3.

Each observation passes its own trace_id/span_id to its children through
``TraceContext`` so nesting is correct no matter how the event loop
interleaves coroutines. All context managers degrade to no-ops when the
global tracing client is missing or disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class Observation:
    """A started Langfuse span or generation."""

    name: str
    as_type: str = "span"
    enabled: bool = False
    params: dict = field(default_factory=dict)
    parent: Optional[TraceContext] = field(default=None, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Any = field(default=None, repr=False)
    _usage: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def start(self) -> None:
        if not self.enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return
        try:
            self._start_time = time.time()
            self._context_manager = client.client.start_as_current_observation(
                trace_context=self.parent,
                as_type=self.as_type,
                name=self.name,
                **self.params,
            )
            self._observation = self._context_manager.__enter__()
        except Exception as e:
            logger.warning(f"Failed to start {self.as_type} '{self.name}': {e}")
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return
        try:
            update: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                }
            }
            if self._output is not None:
                update["output"] = self._output
            if self._usage:
                update["usage_details"] = self._usage
            self._observation.update(**update)
            self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end {self.as_type} '{self.name}': {e}")

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
    ) -> None:
        self._usage = {}
        if prompt_tokens is not None:
            self._usage["input"] = prompt_tokens
        if completion_tokens is not None:
            self._usage["output"] = completion_tokens

    def _child_context(self) -> Optional[TraceContext]:
        span_id = getattr(self._observation, "id", None)
        trace_id = getattr(self._observation, "trace_id", None)
        if not span_id or not trace_id:
            return self.parent
        return TraceContext(trace_id=trace_id, parent_span_id=span_id)

    @contextmanager
    def span(self, name: str, **params: Any) -> Generator["Observation", None, None]:
        """Open a child span under this observation."""
        with _observe(name, "span", self.enabled, params, self._child_context()) as obs:
            yield obs

    @contextmanager
    def generation(
        self, name: str, **params: Any
    ) -> Generator["Observation", None, None]:
        """Open a child generation under this observation."""
        with _observe(
            name, "generation", self.enabled, params, self._child_context()
        ) as obs:
            yield obs


@contextmanager
def _observe(
    name: str,
    as_type: str,
    enabled: bool,
    params: dict,
    parent: Optional[TraceContext],
) -> Generator[Observation, None, None]:
    obs = Observation(
        name=name,
        as_type=as_type,
        enabled=enabled,
        params={k: v for k, v in params.items() if v is not None},
        parent=parent,
    )
    try:
        obs.start()
        yield obs
    finally:
        obs.end()


@dataclass
class TracingContext:
    """
    Tracing entry point for one conversation run.

    ``span()`` opens the root observation for the run; model calls and tool
    invocations are recorded as its children.
    """

    execution_id: str
    session_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @contextmanager
    def span(self, name: str, **params: Any) -> Generator[Observation, None, None]:
        metadata = dict(params.pop("metadata", None) or {})
        metadata.setdefault("execution_id", self.execution_id)
        if self.session_id:
            metadata.setdefault("session_id", self.session_id)
        with _observe(
            name, "span", self._enabled, {**params, "metadata": metadata}, None
        ) as obs:
            yield obs
