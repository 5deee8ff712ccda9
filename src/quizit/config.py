"""Environment driven configuration for the quiz pipeline."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_GENERATION_TOKEN_BUDGET = 20_000
DEFAULT_MAX_CHUNKS = 25
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _env_float(name: str, default: Optional[float] = None) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


@dataclass(slots=True)
class Settings:
    """Runtime knobs for extraction, chunking and generation."""

    openai_api_key: Optional[str] = None
    llm_provider: str = "openai"
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.2
    llm_max_tokens: Optional[int] = None
    llm_timeout_seconds: Optional[float] = None
    llm_stub_response: Optional[str] = None
    generation_token_budget: int = DEFAULT_GENERATION_TOKEN_BUDGET
    max_chunks: int = DEFAULT_MAX_CHUNKS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""

        return cls(
            openai_api_key=_env_str("OPENAI_API_KEY"),
            llm_provider=(_env_str("LLM_PROVIDER", "openai") or "openai").lower(),
            llm_model=_env_str("LLM_MODEL", DEFAULT_LLM_MODEL) or DEFAULT_LLM_MODEL,
            llm_temperature=_env_float("LLM_TEMPERATURE", 0.2),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS"),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS"),
            llm_stub_response=_env_str("LLM_STUB_RESPONSE"),
            generation_token_budget=_env_int(
                "GENERATION_TOKEN_BUDGET", DEFAULT_GENERATION_TOKEN_BUDGET
            ),
            max_chunks=_env_int("MAX_CHUNKS", DEFAULT_MAX_CHUNKS),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            debug=_env_flag("DEBUG"),
        )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return process-wide settings, read lazily from the environment."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""

    global _SETTINGS
    _SETTINGS = None


__all__ = ["Settings", "get_settings", "reset_settings"]
