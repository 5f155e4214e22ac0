"""Unit tests for OpenAIStreamingChannel."""
from unittest.mock import MagicMock, Mock, patch

import pytest
from openai import APIConnectionError, APIStatusError, APITimeoutError

from toolkit_chat.errors import ChannelFailure
from toolkit_chat.models import GenerationParameters
from toolkit_chat.services.llm_openai import OpenAIStreamingChannel, describe_status_error


def _chunk(content):
    """Build a chat.completion.chunk-like object."""
    return Mock(choices=[Mock(delta=Mock(content=content))])


def _status_error(status, body=None, message="Error"):
    return APIStatusError(message, response=Mock(status_code=status), body=body)


class TestOpenAIStreamingChannel:
    """Test suite for OpenAIStreamingChannel."""

    @pytest.fixture
    def sdk(self):
        """Patch the OpenAI SDK class and return the mocked client."""
        with patch("toolkit_chat.services.llm_openai.OpenAI") as mock_openai_class:
            mock_client = Mock()
            mock_openai_class.return_value = mock_client
            yield mock_openai_class, mock_client

    @pytest.fixture
    def channel(self, sdk):
        return OpenAIStreamingChannel(
            api_key="ollama", base_url="http://localhost:11434/v1", model="llama3.1"
        )

    def test_client_built_without_retries(self, sdk, channel):
        mock_openai_class, _ = sdk
        kwargs = mock_openai_class.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:11434/v1"
        assert kwargs["max_retries"] == 0

    def test_streams_fragments_in_order(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.return_value = iter(
            [_chunk("Hel"), _chunk("lo, "), _chunk("world!")]
        )

        fragments = list(
            channel.open([{"role": "user", "content": "hi"}], GenerationParameters())
        )

        assert fragments == ["Hel", "lo, ", "world!"]

    def test_passes_parameters_and_stream_flag(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.return_value = iter([])
        messages = [{"role": "user", "content": "hi"}]

        list(channel.open(messages, GenerationParameters(temperature=0.2, max_tokens=64)))

        client.chat.completions.create.assert_called_once_with(
            model="llama3.1",
            messages=messages,
            temperature=0.2,
            max_tokens=64,
            stream=True,
        )

    def test_skips_empty_and_choiceless_chunks(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.return_value = iter(
            [_chunk(""), Mock(choices=[]), _chunk("ok"), _chunk(None)]
        )

        assert list(channel.open([], GenerationParameters())) == ["ok"]

    def test_stream_closed_after_iteration(self, sdk, channel):
        _, client = sdk
        stream = MagicMock()
        stream.__iter__.return_value = iter([_chunk("a")])
        client.chat.completions.create.return_value = stream

        list(channel.open([], GenerationParameters()))

        stream.close.assert_called_once()

    def test_status_error_without_body_falls_back_to_status(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.side_effect = _status_error(503)

        with pytest.raises(ChannelFailure) as exc_info:
            channel.open([], GenerationParameters())

        assert exc_info.value.message == "HTTP error! status: 503"
        assert exc_info.value.status == 503

    def test_status_error_prefers_service_message(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.side_effect = _status_error(
            404, body={"error": {"message": 'model "llama3.1" not found'}}
        )

        with pytest.raises(ChannelFailure) as exc_info:
            channel.open([], GenerationParameters())

        assert exc_info.value.message == 'model "llama3.1" not found'

    def test_timeout_maps_to_channel_failure(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.side_effect = APITimeoutError(request=Mock())

        with pytest.raises(ChannelFailure, match="timed out"):
            channel.open([], GenerationParameters())

    def test_connection_error_maps_to_channel_failure(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.side_effect = APIConnectionError(request=Mock())

        with pytest.raises(ChannelFailure, match="Could not reach"):
            channel.open([], GenerationParameters())

    def test_missing_stream_is_failure(self, sdk, channel):
        _, client = sdk
        client.chat.completions.create.return_value = None

        with pytest.raises(ChannelFailure, match="Response body is missing"):
            channel.open([], GenerationParameters())

    def test_mid_stream_error_maps_to_channel_failure(self, sdk, channel):
        _, client = sdk

        def broken():
            yield _chunk("Hel")
            raise OSError("connection reset")

        client.chat.completions.create.return_value = broken()
        fragments = channel.open([], GenerationParameters())

        assert next(fragments) == "Hel"
        with pytest.raises(ChannelFailure, match="Stream aborted: connection reset"):
            next(fragments)


class TestDescribeStatusError:
    """Error text extraction from status errors."""

    def test_plain_string_error_body(self):
        e = _status_error(500, body={"error": "LLM Error: out of memory"})
        assert describe_status_error(e) == "LLM Error: out of memory"

    def test_blank_error_body_falls_back(self):
        e = _status_error(502, body={"error": "  "})
        assert describe_status_error(e) == "HTTP error! status: 502"
