"""
Purpose: Guardrails for inputs.
Content: early, predictable failures; reject empty or oversized messages and
settings that are not numbers before anything reaches the transcript.
"""

from __future__ import annotations
import math
from typing import Any, Optional

from ..config import DEFAULT_ASSISTANT_NAME, DEFAULT_USER_NAME
from ..errors import InvalidInput
from ..models import GenerationParameters, SessionSettings

MAX_INPUT_CHARS = 8000
INVALID_NUMBERS_MESSAGE = "Please enter valid numbers for Temperature and Max Tokens."


class DefaultValidator:
    def validate_user_input(self, text: str) -> None:
        if not (text or "").strip():
            raise InvalidInput("Please enter a non-empty message.")
        if len(text) > MAX_INPUT_CHARS:
            raise InvalidInput("Re-type your message.\nYour message is too long.")

    def sanitize(self, text: str) -> str:
        return (text or "").replace("\x00", "").strip()

    def parse_settings(
        self,
        *,
        user_name: Optional[str],
        system_directive: Optional[str],
        temperature: Any,
        max_tokens: Any,
        assistant_name: Optional[str] = None,
    ) -> SessionSettings:
        """
        Turn raw settings-form values into SessionSettings.
        Numbers may arrive as strings (text inputs) or numbers (number inputs).
        """
        try:
            temp = float(temperature)
            tokens = _as_int(max_tokens)
        except (TypeError, ValueError):
            raise InvalidInput(INVALID_NUMBERS_MESSAGE) from None
        if not math.isfinite(temp):
            raise InvalidInput(INVALID_NUMBERS_MESSAGE)

        return SessionSettings(
            user_name=self.sanitize(user_name) or DEFAULT_USER_NAME,
            assistant_name=self.sanitize(assistant_name) or DEFAULT_ASSISTANT_NAME,
            parameters=GenerationParameters(temperature=temp, max_tokens=tokens),
            system_directive=self.sanitize(system_directive) or None,
        )


def _as_int(value: Any) -> int:
    """Accept 500, 500.0 and "500"; reject 500.5 and "abc"."""
    if isinstance(value, bool):
        raise ValueError("bool is not a token count")
    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value, 10)
        except ValueError:
            value = float(value)
    as_float = float(value)
    if not as_float.is_integer():
        raise ValueError(f"{value!r} is not a whole number")
    return int(as_float)
