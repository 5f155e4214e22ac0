"""
Error taxonomy for the chat core.

- InvalidInput: bad user text or settings. Recovered locally (no-op or a prompt
  to fix the input).
- InvalidState: transcript invariant violated. Raised before any mutation.
- ChannelFailure: the streaming exchange failed. Recovered per turn.
"""

from __future__ import annotations
from typing import Optional


class InvalidInput(ValueError):
    pass


class InvalidState(RuntimeError):
    pass


class ChannelFailure(RuntimeError):
    def __init__(self, message: str, *, status: Optional[int] = None):
        self.message = message or (
            f"HTTP error! status: {status}" if status else "Unknown channel error"
        )
        self.status = status
        super().__init__(self.message)
