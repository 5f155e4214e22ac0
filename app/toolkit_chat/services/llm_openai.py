"""
Purpose: Thin streaming channel around the OpenAI SDK, pointed at any
OpenAI-compatible chat-completions endpoint (a local Ollama server by default).
One place for client options, stream decoding and error normalization.

Behavior:
- open() starts the request (first suspension point) and hands back a lazy
  generator of text fragments (one suspension point per fragment).
- Every SDK/transport failure becomes ChannelFailure; no retries here.

Testing: Mock the SDK client; assert fragments pass through in order and
errors map to ChannelFailure with a readable message.
"""

from __future__ import annotations
import logging
from typing import Any, Iterator, Optional

from openai import OpenAI
from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError

from ..errors import ChannelFailure
from ..models import GenerationParameters

logger = logging.getLogger(__name__)


class OpenAIStreamingChannel:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: Optional[str],
        model: str,
        timeout: float = 120.0,
    ):
        self.model = model
        try:
            self.client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize OpenAI client: {e}")

    def open(
        self,
        messages: list[dict[str, str]],
        parameters: GenerationParameters,
    ) -> Iterator[str]:
        logger.debug(
            "Opening stream: model=%s messages=%d temperature=%s max_tokens=%d",
            self.model,
            len(messages),
            parameters.temperature,
            parameters.max_tokens,
        )
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=parameters.temperature,
                max_tokens=parameters.max_tokens,
                stream=True,
            )
        except APIStatusError as e:
            raise ChannelFailure(describe_status_error(e), status=e.status_code) from e
        except APITimeoutError as e:
            raise ChannelFailure("Request timed out.") from e
        except APIConnectionError as e:
            raise ChannelFailure(f"Could not reach the chat service: {e}") from e
        except APIError as e:
            raise ChannelFailure(str(e)) from e

        if stream is None:
            raise ChannelFailure("Response body is missing")
        return self._fragments(stream)

    def _fragments(self, stream: Any) -> Iterator[str]:
        try:
            for chunk in stream:
                choices = getattr(chunk, "choices", None) or []
                if not choices:
                    continue
                delta = getattr(choices[0], "delta", None)
                text = getattr(delta, "content", None)
                if text:
                    yield text
        except APIStatusError as e:
            raise ChannelFailure(describe_status_error(e), status=e.status_code) from e
        except Exception as e:
            raise ChannelFailure(f"Stream aborted: {e}") from e
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()


def describe_status_error(e: APIStatusError) -> str:
    """Prefer the service's own error text; else fall back to the status."""
    body = getattr(e, "body", None)
    detail = None
    if isinstance(body, dict):
        detail = body.get("error")
        if isinstance(detail, dict):
            detail = detail.get("message")
    elif isinstance(body, str):
        detail = body
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    return f"HTTP error! status: {e.status_code}"
