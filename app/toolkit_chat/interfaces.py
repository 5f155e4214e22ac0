"""
Abstractions for pluggable collaborators. Inversion of control: the session
controller depends on these protocols, not on Streamlit or the OpenAI SDK.

Common protocols:
- StreamingTextChannel.open(messages, parameters) -> Iterator[str]
- RenderSurface: the events a UI reflects (turn appended, fragment, finalized,
  error) plus the input affordance toggles.

Testing: Use simple fake implementations to drive the controller without
network calls or a display surface.
"""

from __future__ import annotations
from typing import Iterator, Protocol

from .models import AssistantTurnHandle, GenerationParameters, Turn


class StreamingTextChannel(Protocol):
    def open(
        self,
        messages: list[dict[str, str]],
        parameters: GenerationParameters,
    ) -> Iterator[str]:
        """
        Start one exchange and return a lazy, finite, non-restartable iterator
        of text fragments. Raises ChannelFailure if the exchange cannot start;
        the iterator raises ChannelFailure if the stream breaks.
        """
        ...


class RenderSurface(Protocol):
    def on_turn_appended(self, index: int, turn: Turn) -> None: ...

    def on_provisional_cleared(self, handle: AssistantTurnHandle) -> None: ...

    def on_fragment(self, handle: AssistantTurnHandle, fragment: str) -> None: ...

    def on_turn_finalized(self, handle: AssistantTurnHandle) -> None: ...

    def on_error(self, handle: AssistantTurnHandle, message: str) -> None: ...

    def set_input_enabled(self, enabled: bool) -> None: ...

    def focus_input(self) -> None: ...
