"""
Negotiation loop: drives one user utterance to a final answer.

Per round:
    1. Call the model with the system prompt, the sanitized transcript and
       the tool schemas (omitted once the session runs without tools)
    2. Concatenate the response's text; remember it if non-blank
    3. Append the assistant turn
    4. No tool calls: done, return the most recent text
    5. Otherwise invoke every call in request order, append one tool-result
       turn, and start the next round

The loop stops after ``max_rounds`` rounds that requested tools. The caller
always gets a non-empty answer, and the transcript always ends with an
assistant turn after a successful run.
"""

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..config import config
from ..models import (
    AssistantTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolResultTurn,
    ToolSpec,
    UserTurn,
    turn_to_dict,
)
from ..tracing import Observation, TracingContext
from .bridge import ToolInvocationBridge
from .prompt import build_tool_definitions, render_system_prompt
from .transcript import TranscriptStore

logger = logging.getLogger(__name__)

# Characters of each tool result quoted in a synthesized answer.
FALLBACK_RESULT_CHARS = 1000


@dataclass
class Session:
    """
    Everything one conversation owns: the capability directory fetched at
    start-up, the system prompt rendered from it, and the transcript.
    """

    directory: tuple[ToolSpec, ...]
    system_prompt: str
    transcript: TranscriptStore = field(default_factory=TranscriptStore)
    tools_enabled: bool = True
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @classmethod
    def create(cls, directory: Sequence[ToolSpec]) -> "Session":
        directory = tuple(directory)
        return cls(directory=directory, system_prompt=render_system_prompt(directory))

    @property
    def tool_schemas(self) -> list[dict]:
        if not self.tools_enabled:
            return []
        return build_tool_definitions(self.directory)


@dataclass
class RoundRecord:
    """What happened in one round."""

    round_number: int
    text: Optional[str] = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    results: list[ToolCallResult] = field(default_factory=list)


@dataclass
class RunResult:
    """Result from one ``run``."""

    answer: str
    rounds: list[RoundRecord] = field(default_factory=list)
    hit_round_limit: bool = False

    @property
    def model_calls(self) -> int:
        return len(self.rounds)

    @property
    def tools_used(self) -> list[str]:
        """Unique tool names in first-use order."""
        seen: list[str] = []
        for record in self.rounds:
            for call in record.tool_calls:
                if call.tool_name not in seen:
                    seen.append(call.tool_name)
        return seen

    def trace(self) -> list[dict]:
        return [
            {
                "round": record.round_number,
                "text": record.text,
                "tool_calls": [
                    {"call_id": c.call_id, "tool_name": c.tool_name, "arguments": c.arguments}
                    for c in record.tool_calls
                ],
                "results": [
                    {"call_id": r.call_id, "text": r.text} for r in record.results
                ],
            }
            for record in self.rounds
        ]


class NegotiationLoop:
    """
    Bounded model/tool negotiation over a ``Session``.

    The loop keeps no conversation state of its own; everything it mutates
    lives on the session passed to ``run``.
    """

    def __init__(
        self,
        model: Any,
        bridge: ToolInvocationBridge,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.model = model
        self.bridge = bridge
        self.tracing_context = tracing_context

    async def run(
        self,
        session: Session,
        user_text: str,
        max_rounds: Optional[int] = None,
    ) -> RunResult:
        """
        Resolve one user utterance.

        Raises:
            ValueError: If max_rounds is below 1.
            ModelUnavailable: If a model call fails; that call appends nothing.
            MalformedTurn: If a turn would break the transcript invariants.
        """
        max_rounds = config.session.max_rounds if max_rounds is None else max_rounds
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {max_rounds}")

        session.transcript.append(UserTurn(text=user_text))
        logger.debug(f"[{session.session_id}] Starting run: {user_text}")

        tracing = self.tracing_context or TracingContext(
            execution_id=uuid.uuid4().hex[:12], session_id=session.session_id
        )
        with tracing.span(
            name="conversation_run",
            input={"query": user_text},
            metadata={"max_rounds": max_rounds},
        ) as run_span:
            try:
                result = await self._run_rounds(session, max_rounds, run_span)
            except Exception:
                run_span.set_status("error")
                raise
            run_span.set_output(
                {
                    "answer": result.answer[:500],
                    "model_calls": result.model_calls,
                    "hit_round_limit": result.hit_round_limit,
                }
            )

        self._log_trace_summary(session, result)
        return result

    async def _run_rounds(
        self, session: Session, max_rounds: int, run_span: Observation
    ) -> RunResult:
        rounds: list[RoundRecord] = []
        completed = 0
        last_text = ""

        while completed < max_rounds:
            record = RoundRecord(round_number=completed + 1)
            rounds.append(record)

            response = await self._call_model(session, record.round_number, run_span)
            text = response.text
            if text.strip():
                last_text = text
                record.text = text

            tool_calls = self._unique_calls(
                response.tool_calls, session.transcript.call_ids
            )

            if not tool_calls:
                if record.text is None:
                    logger.warning(
                        f"[{session.session_id}] Round {record.round_number}: "
                        "model returned neither text nor tool calls"
                    )
                    answer = last_text or self._synthesize_answer(
                        rounds, "The model returned an empty response."
                    )
                else:
                    answer = last_text
                session.transcript.append(AssistantTurn(text=answer))
                return RunResult(answer=answer, rounds=rounds)

            record.tool_calls = tool_calls
            session.transcript.append(
                AssistantTurn(text=record.text, tool_calls=tuple(tool_calls))
            )

            # One at a time, in request order.
            try:
                for call in tool_calls:
                    record.results.append(await self._invoke(call, run_span))
            except BaseException:
                # Every requested call gets a result, even when interrupted.
                self._close_interrupted(record)
                session.transcript.append(
                    ToolResultTurn(results=tuple(record.results))
                )
                raise
            session.transcript.append(ToolResultTurn(results=tuple(record.results)))

            if session.tools_enabled and not self.bridge.host_available:
                logger.warning(
                    f"[{session.session_id}] Tool host lost, continuing without tools"
                )
                session.tools_enabled = False

            completed += 1

        logger.warning(f"Max rounds ({max_rounds}) reached, forcing answer")
        answer = last_text or self._synthesize_answer(
            rounds, f"I reached the limit of {max_rounds} tool rounds before finishing."
        )
        session.transcript.append(AssistantTurn(text=answer))
        return RunResult(answer=answer, rounds=rounds, hit_round_limit=True)

    async def _call_model(self, session: Session, round_number: int, run_span: Observation):
        snapshot = session.transcript.snapshot()
        with run_span.generation(
            name=f"model_round_{round_number}",
            model=getattr(self.model, "model", None),
            input=[turn_to_dict(turn) for turn in snapshot],
        ) as gen:
            logger.debug(f"[{session.session_id}] Round {round_number}: calling model")
            try:
                response = await self.model.complete(
                    session.system_prompt, snapshot, session.tool_schemas
                )
            except Exception as e:
                logger.error(
                    f"[{session.session_id}] Model call failed at round {round_number}: {e}"
                )
                gen.set_status("error")
                raise
            gen.set_output(
                {
                    "text": response.text[:2000],
                    "tool_calls": [call.tool_name for call in response.tool_calls],
                }
            )
            gen.set_usage(
                prompt_tokens=getattr(response, "prompt_tokens", None),
                completion_tokens=getattr(response, "completion_tokens", None),
            )
            return response

    async def _invoke(self, call: ToolCallRequest, run_span: Observation) -> ToolCallResult:
        with run_span.span(name=f"tool:{call.tool_name}", input=call.arguments) as span:
            result = await self.bridge.resolve(call)
            span.set_output({"result": result.text[:500]})
            return result

    @staticmethod
    def _close_interrupted(record: RoundRecord) -> None:
        """Give every call of an interrupted round a result."""
        answered = {result.call_id for result in record.results}
        for call in record.tool_calls:
            if call.call_id not in answered:
                logger.warning(
                    f"Tool '{call.tool_name}' ({call.call_id}) interrupted before finishing"
                )
                record.results.append(
                    ToolCallResult(
                        call_id=call.call_id,
                        text=f"Error: tool '{call.tool_name}' was cancelled before it finished.",
                    )
                )

    @staticmethod
    def _unique_calls(
        calls: Sequence[ToolCallRequest], used: frozenset[str]
    ) -> list[ToolCallRequest]:
        """Re-key call ids that collide with ids already in the transcript."""
        seen = set(used)
        unique: list[ToolCallRequest] = []
        for call in calls:
            if call.call_id in seen:
                suffix = 2
                while f"{call.call_id}_{suffix}" in seen:
                    suffix += 1
                new_id = f"{call.call_id}_{suffix}"
                logger.debug(f"Re-keying duplicate call id {call.call_id} -> {new_id}")
                call = dataclasses.replace(call, call_id=new_id)
            seen.add(call.call_id)
            unique.append(call)
        return unique

    @staticmethod
    def _synthesize_answer(rounds: Sequence[RoundRecord], reason: str) -> str:
        """Summarize the most recent tool results when the model gave no text."""
        for record in reversed(rounds):
            if not record.results:
                continue
            names = {call.call_id: call.tool_name for call in record.tool_calls}
            lines = [reason, "Latest tool results:"]
            for result in record.results:
                lines.append(
                    f"- {names.get(result.call_id, 'tool')}: "
                    f"{result.text[:FALLBACK_RESULT_CHARS]}"
                )
            return "\n".join(lines)
        return reason

    @staticmethod
    def _log_trace_summary(session: Session, result: RunResult) -> None:
        """Log a compact trace summary."""
        prefix = f"[{session.session_id}] "
        logger.info(prefix + "─" * 50)
        logger.info(f"{prefix}RUN SUMMARY ({result.model_calls} model calls)")
        for record in result.rounds:
            if not record.tool_calls:
                logger.info(f"{prefix}Round {record.round_number} [FINAL]")
                continue
            for call, outcome in zip(record.tool_calls, record.results):
                preview = outcome.text[:80] + ("..." if len(outcome.text) > 80 else "")
                logger.info(
                    f"{prefix}Round {record.round_number}: {call.tool_name} -> {preview}"
                )
        if result.hit_round_limit:
            logger.info(f"{prefix}Stopped at the round limit")
