"""Speech synthesis and SRT transcription through OpenAI-compatible APIs."""

import base64
import re
import threading

from loguru import logger
from openai import OpenAI, OpenAIError

from .config import Config
from .exceptions import OperationCancelled, SynthesisError

VOICES = (
    "alloy",
    "ash",
    "ballad",
    "coral",
    "echo",
    "fable",
    "nova",
    "onyx",
    "sage",
    "shimmer",
)

PREVIEW_TEXT = "Hello! From now on you can create great audio content with this voice."

TRANSCRIPTION_PROMPT = """Role: professional subtitler.
Goal: produce a precise SRT subtitle track for the attached audio.

Rules:
1. Follow the SubRip (.srt) format strictly: index, then "hh:mm:ss,mmm --> hh:mm:ss,mmm", then text, then a blank line.
2. Capture where speech starts and ends to the millisecond.
3. Output only the SRT inside a ```srt code block, nothing else."""

FORCED_ALIGNMENT_PROMPT = """

[Mode: forced alignment]
The reference script below is the exact transcript of this audio. Do not transcribe;
map each line of the script to the time range where it is spoken.

Timing rules:
1. The audio is synthesized speech, so the first line starts at 00:00:00,000.
2. Line N must start after line N-1 ends. Leave breaths between sentences
   uncovered and allow 0.1-0.2 s between lines where needed.
3. Keep the script's wording exactly. If a line is {split_chars} characters or
   longer, split it in two at a natural pause.

[Reference script]:
{reference_text}"""

FREE_TRANSCRIPTION_PROMPT = """

[Mode: transcription]
1. Transcribe the speech exactly.
2. Break lines where the context naturally breaks.
3. Keep each subtitle line under {split_chars} characters."""

PROMPT_EXAMPLE = """

Example output:
1
00:00:00,000 --> 00:00:02,150
Hello and welcome.

2
00:00:02,250 --> 00:00:05,100
Let's get started.
"""


class CancelToken:
    """Caller-owned flag used to abandon an in-flight backend call."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled("Operation cancelled.")


def _check(cancel_token: CancelToken | None) -> None:
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()


def _client(config: Config) -> OpenAI:
    if not config.has_openai():
        raise SynthesisError("OpenAI API key not configured")
    return OpenAI(api_key=config.openai_api_key, base_url=config.openai_base_url)


def synthesize(
    text: str,
    voice: str,
    config: Config,
    cancel_token: CancelToken | None = None,
) -> str:
    """Synthesize speech for ``text``.

    Args:
        text: Script to speak
        voice: Voice name
        config: Application configuration
        cancel_token: Optional token checked before and after the request

    Returns:
        Base64 encoded mono 16-bit PCM at 24 kHz

    Raises:
        OperationCancelled: If the token was cancelled
        SynthesisError: If the backend fails or returns no audio
    """
    _check(cancel_token)
    client = _client(config)

    logger.info(f"Synthesizing {len(text)} chars with voice {voice}")
    try:
        response = client.audio.speech.create(
            model=config.tts_model,
            voice=voice,
            input=text,
            response_format="pcm",
        )
        pcm = response.content
    except OpenAIError as e:
        raise SynthesisError(f"Error while talking to the speech backend: {e}") from e

    _check(cancel_token)
    if not pcm:
        raise SynthesisError("Audio generation failed: the backend returned no audio data.")

    return base64.b64encode(pcm).decode("ascii")


def preview_voice(voice: str, config: Config) -> str:
    """Synthesize a short sample sentence for a voice."""
    return synthesize(PREVIEW_TEXT, voice, config)


def build_transcription_prompt(split_chars: int, reference_text: str | None = None) -> str:
    """Build the SRT transcription prompt for free or forced-alignment mode."""
    prompt = TRANSCRIPTION_PROMPT
    if reference_text:
        prompt += FORCED_ALIGNMENT_PROMPT.format(
            split_chars=split_chars, reference_text=reference_text
        )
    else:
        prompt += FREE_TRANSCRIPTION_PROMPT.format(split_chars=split_chars)
    return prompt + PROMPT_EXAMPLE


def extract_srt(response_text: str) -> str:
    """Pull SRT text out of a fenced code block if the model used one."""
    text = response_text.strip()
    match = re.search(r"```(?:srt)?\s*([\s\S]*?)```", text)
    if match and match.group(1).strip():
        text = match.group(1).strip()
    return text


def transcribe(
    wav_base64: str,
    split_chars: int,
    config: Config,
    cancel_token: CancelToken | None = None,
    reference_text: str | None = None,
) -> str:
    """Produce SRT text for a WAV file.

    Args:
        wav_base64: Base64 encoded WAV
        split_chars: Target maximum subtitle line length
        config: Application configuration
        cancel_token: Optional token checked before and after the request
        reference_text: Exact script of the audio; enables forced alignment

    Returns:
        Raw SRT text

    Raises:
        OperationCancelled: If the token was cancelled
        SynthesisError: If the backend fails
    """
    _check(cancel_token)
    client = _client(config)

    user_content = [
        {
            "type": "input_audio",
            "input_audio": {"data": wav_base64, "format": "wav"},
        },
        {
            "type": "text",
            "text": build_transcription_prompt(split_chars, reference_text),
        },
    ]

    mode = "forced alignment" if reference_text else "transcription"
    logger.info(f"Requesting SRT ({mode}) from {config.transcribe_model}")
    try:
        response = client.chat.completions.create(
            model=config.transcribe_model,
            messages=[{"role": "user", "content": user_content}],
            temperature=0.0,
        )
        result_text = response.choices[0].message.content or ""
    except OpenAIError as e:
        raise SynthesisError(f"Error while analysing speech: {e}") from e

    _check(cancel_token)
    return extract_srt(result_text)
