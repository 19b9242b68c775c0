"""Configuration management via environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration loaded from environment."""

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    tts_model: str = "gpt-4o-mini-tts"
    voice: str = "alloy"
    transcribe_model: str = "gpt-4o-audio-preview"
    sample_rate: int = 24000
    split_chars: int = 25
    max_chars: int = 10000
    silence_threshold: float = 0.01
    min_silence: float = 0.25
    sync_enabled: bool = True
    strict_reconstruct: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv(
                "OPENAI_BASE_URL", "https://api.openai.com/v1"
            ),
            tts_model=os.getenv("SUBSPLICE_TTS_MODEL", "gpt-4o-mini-tts"),
            voice=os.getenv("SUBSPLICE_VOICE", "alloy"),
            transcribe_model=os.getenv(
                "SUBSPLICE_TRANSCRIBE_MODEL", "gpt-4o-audio-preview"
            ),
            sample_rate=int(os.getenv("SUBSPLICE_SAMPLE_RATE", "24000")),
            split_chars=int(os.getenv("SUBSPLICE_SPLIT_CHARS", "25")),
            max_chars=int(os.getenv("SUBSPLICE_MAX_CHARS", "10000")),
            silence_threshold=float(os.getenv("SUBSPLICE_SILENCE_THRESHOLD", "0.01")),
            min_silence=float(os.getenv("SUBSPLICE_MIN_SILENCE", "0.25")),
            sync_enabled=_env_bool("SUBSPLICE_SYNC", True),
            strict_reconstruct=_env_bool("SUBSPLICE_STRICT_RECONSTRUCT", False),
        )

    def has_openai(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key)
