import base64
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from subsplice.config import Config
from subsplice.exceptions import OperationCancelled, SynthesisError
from subsplice.synthesis import (
    PREVIEW_TEXT,
    CancelToken,
    build_transcription_prompt,
    extract_srt,
    preview_voice,
    synthesize,
    transcribe,
)


@pytest.fixture
def config():
    return Config(openai_api_key="test-key")


def chat_response(text):
    response = MagicMock()
    response.choices[0].message.content = text
    return response


def test_synthesize_returns_base64_pcm(config):
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        client = mock_openai.return_value
        client.audio.speech.create.return_value.content = b"\x01\x02\x03\x04"

        result = synthesize("Hello", "nova", config)

    assert base64.b64decode(result) == b"\x01\x02\x03\x04"
    kwargs = client.audio.speech.create.call_args.kwargs
    assert kwargs["voice"] == "nova"
    assert kwargs["input"] == "Hello"
    assert kwargs["response_format"] == "pcm"


def test_synthesize_without_key_fails():
    with pytest.raises(SynthesisError):
        synthesize("Hello", "nova", Config())


def test_synthesize_empty_payload_fails(config):
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        mock_openai.return_value.audio.speech.create.return_value.content = b""

        with pytest.raises(SynthesisError):
            synthesize("Hello", "nova", config)


def test_synthesize_wraps_backend_errors(config):
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        mock_openai.return_value.audio.speech.create.side_effect = OpenAIError("boom")

        with pytest.raises(SynthesisError, match="boom") as excinfo:
            synthesize("Hello", "nova", config)

    assert isinstance(excinfo.value.__cause__, OpenAIError)


def test_cancelled_before_request_skips_backend(config):
    token = CancelToken()
    token.cancel()

    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        with pytest.raises(OperationCancelled):
            synthesize("Hello", "nova", config, cancel_token=token)

    mock_openai.assert_not_called()


def test_cancelled_during_request_discards_result(config):
    token = CancelToken()

    def cancel_midway(**kwargs):
        token.cancel()
        return MagicMock(content=b"\x00\x00")

    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        mock_openai.return_value.audio.speech.create.side_effect = cancel_midway

        with pytest.raises(OperationCancelled):
            synthesize("Hello", "nova", config, cancel_token=token)


def test_cancellation_is_not_a_synthesis_error():
    assert not issubclass(OperationCancelled, SynthesisError)


def test_transcribe_extracts_fenced_srt(config):
    srt = "1\n00:00:00,000 --> 00:00:01,000\nHi"
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        client = mock_openai.return_value
        client.chat.completions.create.return_value = chat_response(
            f"Here you go:\n```srt\n{srt}\n```\nEnjoy"
        )

        result = transcribe("d2F2", 25, config, reference_text="Hi")

    assert result == srt
    content = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert content[0]["input_audio"] == {"data": "d2F2", "format": "wav"}
    assert "forced alignment" in content[1]["text"]
    assert "Hi" in content[1]["text"]


def test_transcribe_wraps_backend_errors(config):
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        mock_openai.return_value.chat.completions.create.side_effect = OpenAIError("down")

        with pytest.raises(SynthesisError):
            transcribe("d2F2", 25, config)


def test_prompt_modes():
    free = build_transcription_prompt(30)
    forced = build_transcription_prompt(30, reference_text="Script line")

    assert "[Mode: transcription]" in free
    assert "30 characters" in free
    assert "[Mode: forced alignment]" in forced
    assert "Script line" in forced


def test_extract_srt_without_fence():
    assert extract_srt("  1\n00:00:00,000 --> 00:00:01,000\nHi  ") == (
        "1\n00:00:00,000 --> 00:00:01,000\nHi"
    )


def test_preview_voice_speaks_sample_sentence(config):
    with patch("subsplice.synthesis.OpenAI") as mock_openai:
        client = mock_openai.return_value
        client.audio.speech.create.return_value.content = b"\x00\x00"

        preview_voice("coral", config)

    kwargs = client.audio.speech.create.call_args.kwargs
    assert kwargs["voice"] == "coral"
    assert kwargs["input"] == PREVIEW_TEXT
