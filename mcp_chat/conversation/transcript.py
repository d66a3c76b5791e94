"""
Transcript store for one conversation session.

``append`` enforces the turn invariants up front and raises
``MalformedTurn`` for anything that would produce an invalid model request.
``snapshot`` additionally runs ``sanitize`` over a copy of the log before
each model call; the raw log returned by ``history`` is never rewritten.
"""

import logging
from typing import Iterator, Optional, Sequence

from ..errors import MalformedTurn
from ..models import AssistantTurn, ToolResultTurn, Turn, UserTurn

logger = logging.getLogger(__name__)

_TURN_TYPES = (UserTurn, AssistantTurn, ToolResultTurn)


def sanitize(turns: Sequence[Turn]) -> list[Turn]:
    """
    Build the model-facing view of a transcript.

    1. Turns with no content are dropped.
    2. Back-to-back assistant turns without tool calls are merged into one,
       their texts joined by a blank line.
    3. A closing assistant turn that only repeats the text sent alongside
       the preceding tool calls is dropped.
    """
    cleaned: list[Turn] = []
    for turn in turns:
        if turn.is_empty:
            logger.warning(f"Dropping empty {turn.role} turn from model view")
            continue
        previous = cleaned[-1] if cleaned else None
        if (
            isinstance(turn, AssistantTurn)
            and isinstance(previous, AssistantTurn)
            and not turn.has_tool_calls
            and not previous.has_tool_calls
        ):
            logger.warning("Collapsing consecutive assistant turns in model view")
            texts = [t for t in (previous.text, turn.text) if t]
            cleaned[-1] = AssistantTurn(text="\n\n".join(texts))
            continue
        if _repeats_last_call_text(turn, cleaned):
            logger.debug("Dropping repeated closing text from model view")
            continue
        cleaned.append(turn)
    return cleaned


def _repeats_last_call_text(turn: Turn, cleaned: Sequence[Turn]) -> bool:
    if not isinstance(turn, AssistantTurn) or turn.has_tool_calls:
        return False
    if len(cleaned) < 2 or not isinstance(cleaned[-1], ToolResultTurn):
        return False
    caller = cleaned[-2]
    return isinstance(caller, AssistantTurn) and caller.text == turn.text


class TranscriptStore:
    """Append-only log of conversation turns."""

    def __init__(self):
        self._turns: list[Turn] = []
        self._call_ids: set[str] = set()

    def append(self, turn: Turn) -> None:
        """
        Add a turn to the log.

        Raises:
            MalformedTurn: If the turn is empty or breaks turn ordering.
        """
        self._validate(turn)
        self._turns.append(turn)
        if isinstance(turn, AssistantTurn):
            self._call_ids.update(call.call_id for call in turn.tool_calls)

    def snapshot(self) -> list[Turn]:
        """Return the sanitized view sent to the model."""
        return sanitize(self._turns)

    def history(self) -> tuple[Turn, ...]:
        """Return a read-only copy of the raw log."""
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns.clear()
        self._call_ids.clear()

    @property
    def call_ids(self) -> frozenset[str]:
        """Tool-call ids already used in this transcript."""
        return frozenset(self._call_ids)

    @property
    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def _validate(self, turn: Turn) -> None:
        if not isinstance(turn, _TURN_TYPES):
            raise MalformedTurn(f"Not a transcript turn: {turn!r}")
        if turn.is_empty:
            raise MalformedTurn(f"Refusing to append an empty {turn.role} turn")

        previous = self.last
        pending = isinstance(previous, AssistantTurn) and previous.has_tool_calls

        if isinstance(turn, ToolResultTurn):
            self._validate_results(turn, previous if pending else None)
            return

        if pending:
            raise MalformedTurn(
                f"A {turn.role} turn cannot follow unanswered tool calls"
            )

        if isinstance(turn, AssistantTurn):
            if isinstance(previous, AssistantTurn):
                raise MalformedTurn("Two assistant turns in a row")
            ids = [call.call_id for call in turn.tool_calls]
            if any(not call_id for call_id in ids):
                raise MalformedTurn("Tool call without a call id")
            if len(set(ids)) != len(ids):
                raise MalformedTurn(f"Duplicate call ids in one turn: {ids}")
            reused = self._call_ids.intersection(ids)
            if reused:
                raise MalformedTurn(f"Call ids already used: {sorted(reused)}")

    @staticmethod
    def _validate_results(
        turn: ToolResultTurn, previous: Optional[AssistantTurn]
    ) -> None:
        if previous is None:
            raise MalformedTurn(
                "Tool results must follow an assistant turn with tool calls"
            )
        expected = [call.call_id for call in previous.tool_calls]
        received = [result.call_id for result in turn.results]
        if len(received) != len(expected) or set(received) != set(expected):
            raise MalformedTurn(
                f"Tool result ids {received} do not match requested ids {expected}"
            )
        for result in turn.results:
            if not result.text:
                raise MalformedTurn(f"Empty result text for call {result.call_id}")
