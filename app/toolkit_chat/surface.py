"""
Purpose: Streamlit implementation of RenderSurface. Reflects controller events
into the transcript container of the current script run; the only state it
keeps is the text drawn so far for each message placeholder.

Testing: Patch `st` with a MagicMock and assert the placeholder calls.
"""

from __future__ import annotations
from typing import Any, MutableMapping, Optional

import streamlit as st

from .config import PROVISIONAL_MARKER
from .models import AssistantTurnHandle, Role, Turn


class StreamlitSurface:
    def __init__(
        self,
        container: Any,
        session: Any,
        failure_policy: str = "tag",
        state: Optional[MutableMapping[str, Any]] = None,
    ):
        self.container = container
        self.session = session
        self.failure_policy = failure_policy
        self.state = st.session_state if state is None else state
        self._bodies: dict[int, Any] = {}
        self._texts: dict[int, str] = {}

    def _speaker(self, turn: Turn) -> str:
        if turn.role is Role.USER:
            return self.session.user_name
        return self.session.assistant_name

    def on_turn_appended(self, index: int, turn: Turn) -> None:
        with self.container:
            with st.chat_message(turn.role.value):
                st.markdown(f"**{self._speaker(turn)}:**")
                body = st.empty()
        body.text(PROVISIONAL_MARKER if turn.is_open else turn.content)
        self._bodies[index] = body
        self._texts[index] = "" if turn.is_open else turn.content

    def on_provisional_cleared(self, handle: AssistantTurnHandle) -> None:
        self._bodies[handle.index].empty()

    def on_fragment(self, handle: AssistantTurnHandle, fragment: str) -> None:
        self._texts[handle.index] += fragment
        self._bodies[handle.index].text(self._texts[handle.index])

    def on_turn_finalized(self, handle: AssistantTurnHandle) -> None:
        pass

    def on_error(self, handle: AssistantTurnHandle, message: str) -> None:
        self._bodies[handle.index].error(f"Error: {message}")
        # Discarded turns are gone after the rerun; keep the message for a toast.
        if self.failure_policy == "discard":
            self.state["flash_error"] = message

    def set_input_enabled(self, enabled: bool) -> None:
        self.state["input_enabled"] = enabled

    def focus_input(self) -> None:
        # st.chat_input takes focus again when the page reruns.
        pass
