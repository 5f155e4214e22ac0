"""Shared fakes for controller tests: a scripted channel and a recording surface."""
import pytest

from toolkit_chat.controller import ChatSession, ChatSessionController
from toolkit_chat.errors import ChannelFailure
from toolkit_chat.models import GenerationParameters, SessionSettings


class FakeChannel:
    """Yields scripted fragments; optionally fails on open or after N fragments."""

    def __init__(self, fragments=(), fail_on_open=None, fail_after=None, on_fragment=None):
        self.fragments = list(fragments)
        self.fail_on_open = fail_on_open
        self.fail_after = fail_after
        self.on_fragment = on_fragment
        self.calls = []
        self.closed = False

    def open(self, messages, parameters):
        self.calls.append((messages, parameters))
        if self.fail_on_open is not None:
            raise self.fail_on_open
        return self._iterate()

    def _iterate(self):
        try:
            for i, fragment in enumerate(self.fragments):
                if self.fail_after is not None and i == self.fail_after:
                    raise ChannelFailure("Stream aborted: connection reset")
                if self.on_fragment:
                    self.on_fragment(i)
                yield fragment
            if self.fail_after is not None and self.fail_after >= len(self.fragments):
                raise ChannelFailure("Stream aborted: connection reset")
        finally:
            self.closed = True


class RecordingSurface:
    """Records every render event as a tuple, in call order."""

    def __init__(self):
        self.events = []
        self.input_enabled = True

    def on_turn_appended(self, index, turn):
        self.events.append(("appended", index, turn.role.value, turn.content))

    def on_provisional_cleared(self, handle):
        self.events.append(("cleared", handle.index))

    def on_fragment(self, handle, fragment):
        self.events.append(("fragment", handle.index, fragment))

    def on_turn_finalized(self, handle):
        self.events.append(("finalized", handle.index))

    def on_error(self, handle, message):
        self.events.append(("error", handle.index, message))

    def set_input_enabled(self, enabled):
        self.input_enabled = enabled
        self.events.append(("input_enabled", enabled))

    def focus_input(self):
        self.events.append(("focus",))

    def fragments(self):
        return [e[2] for e in self.events if e[0] == "fragment"]


@pytest.fixture
def settings():
    """Default session settings with a system directive."""
    return SessionSettings(
        user_name="Ada",
        assistant_name="Assistant",
        parameters=GenerationParameters(temperature=0.7, max_tokens=500),
        system_directive="You are terse.",
    )


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def make_controller(settings, surface):
    """Factory: build a controller around a FakeChannel."""

    def _make(channel, *, policy="tag", session_settings=None):
        session = ChatSession(session_settings or settings)
        return ChatSessionController(session, channel, surface, failure_policy=policy)

    return _make
