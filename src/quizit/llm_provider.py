"""Access to the chat model that writes quizzes."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from quizit.config import Settings, get_settings
from quizit.telemetry import emit_exception, emit_llm_provider_init

LOGGER = logging.getLogger(__name__)

Message = Dict[str, str]

DEFAULT_STUB_RESPONSE = "{}"


class LLMError(RuntimeError):
    """Base exception raised for LLM provider issues."""


class LLMNotReadyError(LLMError):
    """Raised when the provider is not configured or cannot be reached."""


class LLMGenerationError(LLMError):
    """Raised when text generation fails unexpectedly."""


class LLM:
    """Common interface exposed by language model implementations."""

    def generate(
        self,
        messages: List[Message],
        *,
        temperature: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> str:
        """Return the raw text of one completion for *messages*."""

        raise NotImplementedError

    @property
    def model_name(self) -> str:
        return "stub"


class OpenAIChatLLM(LLM):
    """Chat Completions backed model; JSON mode is requested by default."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ) -> None:
        self._model = model
        self._timeout = timeout
        self._client = client or OpenAI(api_key=api_key)

    @property
    def model_name(self) -> str:
        return self._model

    def generate(
        self,
        messages: List[Message],
        *,
        temperature: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> str:
        client = self._client
        if self._timeout is not None:
            client = client.with_options(timeout=self._timeout)

        kwargs: Dict[str, object] = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = client.chat.completions.create(**kwargs)
        except OpenAIError as error:
            LOGGER.error("OpenAI request failed for model %s: %s", self._model, error)
            emit_exception(module=__name__, error=error, suggestion="check OPENAI_API_KEY and quota")
            raise LLMGenerationError(f"OpenAI request failed: {error}") from error

        if not response.choices:
            raise LLMGenerationError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise LLMGenerationError("OpenAI returned an empty message")
        return content


class LLMStub(LLM):
    """Offline implementation returning a fixed response."""

    def __init__(self, message: str = DEFAULT_STUB_RESPONSE) -> None:
        self._message = message

    def generate(
        self,
        messages: List[Message],
        *,
        temperature: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> str:
        return self._message


def get_llm(settings: Optional[Settings] = None) -> LLM:
    """Build the model client selected by ``LLM_PROVIDER``."""

    settings = settings or get_settings()
    provider = settings.llm_provider

    if provider == "stub":
        LOGGER.warning("LLM_PROVIDER=stub; using canned responses only.")
        emit_llm_provider_init(
            provider="stub",
            model="stub",
            ready=True,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
        return LLMStub(settings.llm_stub_response or DEFAULT_STUB_RESPONSE)

    if provider != "openai":
        raise LLMNotReadyError(f"Unknown LLM_PROVIDER {provider!r}; expected 'openai' or 'stub'.")

    if not settings.openai_api_key:
        emit_llm_provider_init(
            provider="openai",
            model=settings.llm_model,
            ready=False,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
        raise LLMNotReadyError("OPENAI_API_KEY is not configured.")

    llm = OpenAIChatLLM(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
    )
    emit_llm_provider_init(
        provider="openai",
        model=settings.llm_model,
        ready=True,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )
    return llm


__all__ = [
    "DEFAULT_STUB_RESPONSE",
    "LLM",
    "LLMError",
    "LLMGenerationError",
    "LLMNotReadyError",
    "LLMStub",
    "Message",
    "OpenAIChatLLM",
    "get_llm",
]
