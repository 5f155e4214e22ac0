"""
Canonical data shapes, shared truth for typing/validation between layers.

Typical contents:
- Role / TurnStatus / Turn: one transcript entry and its lifecycle tag.
- GenerationParameters (temperature, max_tokens), fixed per session.
- SessionSettings: what the settings form hands to the core.
- TurnPhase / TurnOutcome: controller state and the result of one send.

Testing: Trivial; mostly types. GenerationParameters validates itself.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidInput

logger = logging.getLogger(__name__)

TEMPERATURE_ADVISORY_RANGE = (0.0, 2.0)


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TurnStatus(str, Enum):
    OPEN = "open"
    FINAL = "final"
    FAILED = "failed"


class TurnPhase(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    STREAMING = "streaming"
    FAILED = "failed"


class TurnOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    IGNORED = "ignored"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str
    status: TurnStatus = TurnStatus.FINAL
    error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status is TurnStatus.OPEN

    @property
    def failed(self) -> bool:
        return self.status is TurnStatus.FAILED

    def to_message(self) -> dict[str, str]:
        """Wire shape understood by chat-completions style services."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class AssistantTurnHandle:
    """Refers to one open assistant turn; `epoch` ties it to a store lifetime."""

    index: int
    epoch: int


@dataclass(frozen=True)
class GenerationParameters:
    temperature: float = 0.7
    max_tokens: int = 500

    def __post_init__(self) -> None:
        if isinstance(self.temperature, bool) or not isinstance(
            self.temperature, (int, float)
        ):
            raise InvalidInput("Temperature must be a number.")
        if not math.isfinite(self.temperature):
            raise InvalidInput("Temperature must be a finite number.")
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int):
            raise InvalidInput("Max tokens must be a whole number.")
        if self.max_tokens <= 0:
            raise InvalidInput("Max tokens must be positive.")

        low, high = TEMPERATURE_ADVISORY_RANGE
        if not low <= self.temperature <= high:
            logger.warning(
                "Temperature %s is outside the advisory range %s-%s",
                self.temperature,
                low,
                high,
            )


@dataclass(frozen=True)
class SessionSettings:
    user_name: str
    assistant_name: str
    parameters: GenerationParameters
    system_directive: Optional[str] = None
