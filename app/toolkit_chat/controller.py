"""
Purpose: The single orchestration point for a chat session. Owns the
transcript and drives one turn at a time: user message in, streamed assistant
reply out. Prevents the UI from knowing how the transcript or the channel work.

Key responsibilities:
- ChatSession binds one TranscriptStore, the generation parameters and the two
  display names. "Start again" means building a new ChatSession.
- ChatSessionController.send_turn runs the per-turn state machine
  Idle -> AwaitingResponse -> Streaming -> Idle, or via Failed on error.
- Only one turn is in flight; a send while not Idle is rejected untouched.
- Every exit path re-enables the input affordance and restores focus.

Testing: Pure unit tests with fakes: a scripted StreamingTextChannel and a
recording RenderSurface. Verify event order, transcript contents, and that
failures leave the session usable.
"""

from __future__ import annotations
import logging
from typing import Optional

from .errors import ChannelFailure
from .interfaces import RenderSurface, StreamingTextChannel
from .models import (
    AssistantTurnHandle,
    GenerationParameters,
    Role,
    SessionSettings,
    TurnOutcome,
    TurnPhase,
)
from .persistence.transcript_store import TranscriptStore
from .services.validation import DefaultValidator

logger = logging.getLogger(__name__)

FAILURE_POLICIES = ("tag", "discard")
INTERRUPTED_MESSAGE = "Reply interrupted before it completed."


class ChatSession:
    def __init__(self, settings: SessionSettings):
        self.settings = settings
        self.store = TranscriptStore()
        self.store.initialize(settings.system_directive)

    @property
    def parameters(self) -> GenerationParameters:
        return self.settings.parameters

    @property
    def user_name(self) -> str:
        return self.settings.user_name

    @property
    def assistant_name(self) -> str:
        return self.settings.assistant_name


class ChatSessionController:
    def __init__(
        self,
        session: ChatSession,
        channel: StreamingTextChannel,
        surface: RenderSurface,
        *,
        failure_policy: str = "tag",
        validator: Optional[DefaultValidator] = None,
    ):
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"Unknown failure policy: {failure_policy!r}")
        self.session = session
        self.channel = channel
        self.surface = surface
        self.failure_policy = failure_policy
        self.validator = validator or DefaultValidator()
        self._phase = TurnPhase.IDLE

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    def is_idle(self) -> bool:
        """True if a new turn may start."""
        return self._phase is TurnPhase.IDLE

    def send_turn(self, user_text: str) -> TurnOutcome:
        """
        Run one full exchange for `user_text`.
        Empty input is a no-op (IGNORED); a call while another turn is in
        flight is REJECTED without touching the transcript. Oversized input
        raises InvalidInput before any state change. Channel failures are
        rendered on the assistant message and reported as FAILED.
        """
        if not self.is_idle():
            logger.warning("Rejected send while a turn is %s", self._phase.value)
            return TurnOutcome.REJECTED

        text = self.validator.sanitize(user_text)
        if not text:
            return TurnOutcome.IGNORED
        self.validator.validate_user_input(text)

        store = self.session.store
        self._phase = TurnPhase.AWAITING_RESPONSE
        self.surface.set_input_enabled(False)
        user_appended = False
        try:
            index = store.append_user(text)
            user_appended = True
            self.surface.on_turn_appended(index, store.turn_at(index))

            handle = store.begin_assistant_turn()
            self.surface.on_turn_appended(handle.index, store.turn_at(handle.index))

            return self._exchange(handle)
        except BaseException:
            # Script stop/rerun, KeyboardInterrupt or a render error: close the turn.
            self._close_interrupted(user_appended)
            raise
        finally:
            self._phase = TurnPhase.IDLE
            self.surface.set_input_enabled(True)
            self.surface.focus_input()

    def _exchange(self, handle: AssistantTurnHandle) -> TurnOutcome:
        store = self.session.store
        params = self.session.parameters
        messages = store.messages()
        logger.info(
            "Starting turn: %d messages, temperature=%s, max_tokens=%d",
            len(messages),
            params.temperature,
            params.max_tokens,
        )

        fragments = None
        count = 0
        try:
            fragments = self.channel.open(messages, params)
            for fragment in fragments:
                if not fragment:
                    continue
                if self._phase is TurnPhase.AWAITING_RESPONSE:
                    self.surface.on_provisional_cleared(handle)
                    self._phase = TurnPhase.STREAMING
                store.append_to_open_assistant_turn(handle, fragment)
                self.surface.on_fragment(handle, fragment)
                count += 1
        except ChannelFailure as e:
            logger.warning("Chat stream failed: %s", e.message)
            return self._fail(handle, e.message)
        except Exception as e:
            logger.exception("Unexpected error during chat stream")
            return self._fail(handle, str(e) or type(e).__name__)
        finally:
            close = getattr(fragments, "close", None)
            if callable(close):
                close()

        turn = store.finalize_assistant_turn(handle)
        self.surface.on_turn_finalized(handle)
        logger.info(
            "Turn completed: %d fragments, %d chars", count, len(turn.content)
        )
        return TurnOutcome.COMPLETED

    def _close_interrupted(self, user_appended: bool) -> None:
        """Apply the failure policy to a turn that escaped the failure path."""
        store = self.session.store
        handle = store.open_handle
        if (
            handle is None
            and user_appended
            and self.failure_policy == "tag"
            and store.turn_at(len(store) - 1).role is Role.USER
        ):
            handle = store.begin_assistant_turn()
        if handle is None:
            return
        logger.warning("Turn interrupted before the reply completed")
        if self.failure_policy == "discard":
            store.discard_assistant_turn(handle)
        else:
            store.fail_assistant_turn(handle, INTERRUPTED_MESSAGE)

    def _fail(self, handle: AssistantTurnHandle, message: str) -> TurnOutcome:
        self._phase = TurnPhase.FAILED
        store = self.session.store
        if self.failure_policy == "discard":
            store.discard_assistant_turn(handle)
        else:
            store.fail_assistant_turn(handle, message)
        self.surface.on_error(handle, message)
        return TurnOutcome.FAILED
