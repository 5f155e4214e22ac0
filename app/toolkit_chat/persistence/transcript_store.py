"""
Purpose: Session transcript storage (in-memory, one per session).
Why: Single owner of turn order; snapshots for transmission and re-render.

What is inside:
TranscriptStore with initialize / append_user / assistant-turn lifecycle
(begin, append, finalize, discard, fail) / snapshot / messages.

Policies:
- An assistant turn finalized with no content is kept and rendered blank.
- On failure the controller either tags the open turn (fail_assistant_turn)
  or removes it (discard_assistant_turn).

Every check runs before the list is touched, so a rejected call leaves the
store as it was.

Testing:
In-memory: simple state tests.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional

from ..errors import InvalidInput, InvalidState
from ..models import AssistantTurnHandle, Role, Turn, TurnStatus


class TranscriptStore:
    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._open: Optional[AssistantTurnHandle] = None
        self._epoch: int = 0

    def __len__(self) -> int:
        return len(self._turns)

    def initialize(self, system_directive: Optional[str] = None) -> None:
        """Start over: drop all turns, invalidate handles, add the system turn."""
        self._turns = []
        self._open = None
        self._epoch += 1
        directive = (system_directive or "").strip()
        if directive:
            self._turns.append(Turn(role=Role.SYSTEM, content=directive))

    @property
    def open_handle(self) -> Optional[AssistantTurnHandle]:
        return self._open

    def turn_at(self, index: int) -> Turn:
        return self._turns[index]

    def append_user(self, content: str) -> int:
        if not (content or "").strip():
            raise InvalidInput("Please enter a non-empty message.")
        if self._open is not None:
            raise InvalidState("Cannot add a user turn while a response is open.")
        self._turns.append(Turn(role=Role.USER, content=content))
        return len(self._turns) - 1

    def begin_assistant_turn(self) -> AssistantTurnHandle:
        if self._open is not None:
            raise InvalidState("An assistant turn is already open.")
        if not self._turns or self._turns[-1].role is not Role.USER:
            raise InvalidState("An assistant turn must follow a user turn.")
        self._turns.append(
            Turn(role=Role.ASSISTANT, content="", status=TurnStatus.OPEN)
        )
        self._open = AssistantTurnHandle(index=len(self._turns) - 1, epoch=self._epoch)
        return self._open

    def append_to_open_assistant_turn(
        self, handle: AssistantTurnHandle, fragment: str
    ) -> None:
        self._require_open(handle)
        turn = self._turns[handle.index]
        self._turns[handle.index] = replace(turn, content=turn.content + fragment)

    def finalize_assistant_turn(self, handle: AssistantTurnHandle) -> Turn:
        self._require_open(handle)
        turn = replace(self._turns[handle.index], status=TurnStatus.FINAL)
        self._turns[handle.index] = turn
        self._open = None
        return turn

    def fail_assistant_turn(self, handle: AssistantTurnHandle, message: str) -> Turn:
        """Close the open turn tagged as failed; partial content is kept."""
        self._require_open(handle)
        turn = replace(
            self._turns[handle.index], status=TurnStatus.FAILED, error=message
        )
        self._turns[handle.index] = turn
        self._open = None
        return turn

    def discard_assistant_turn(self, handle: AssistantTurnHandle) -> None:
        """Remove the open placeholder so the failed attempt leaves no residue."""
        self._require_open(handle)
        # The open turn is always last: nothing can be appended while it is open.
        del self._turns[handle.index]
        self._open = None

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def messages(self) -> list[dict[str, str]]:
        """Payload for the service: settled turns only, failed attempts skipped."""
        return [t.to_message() for t in self._turns if t.status is TurnStatus.FINAL]

    def _require_open(self, handle: AssistantTurnHandle) -> None:
        if self._open is None or handle != self._open:
            raise InvalidState("Handle does not refer to the open assistant turn.")
