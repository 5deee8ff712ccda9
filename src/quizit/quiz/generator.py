"""Turns extracted document content into a validated quiz with one model call."""
from __future__ import annotations

import json
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import ValidationError

from quizit.config import Settings, get_settings
from quizit.errors import (
    ContentTooLimitedError,
    MalformedResponseError,
    ModelInvocationError,
    NoContentError,
    SchemaValidationError,
)
from quizit.ingest.chunking import ChunkingConfig, ContentChunker, total_tokens
from quizit.ingest.models import ContentQuality, ExtractedContent
from quizit.ingest.selection import select_chunks
from quizit.llm_provider import LLM, LLMError, get_llm
from quizit.telemetry import (
    emit_chunking_event,
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_prompt_event,
    emit_repair_event,
    log_event,
)

from .prompt_builder import build_messages
from .repair import validate_and_correct
from .schema import GenerationParams, Quiz, describe_violations, validate_quiz

LOGGER = logging.getLogger(__name__)

MIN_WORDS_FOR_LOW_QUALITY = 200
SNIPPET_LENGTH = 200

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def generation_chunking_config(max_chunks: int) -> ChunkingConfig:
    """Chunk sizes used for generation: a few large chunks rather than many small ones."""

    return ChunkingConfig(
        target_tokens=4000,
        max_tokens=6000,
        overlap_tokens=200,
        prioritize_important=False,
        max_chunks=max_chunks,
    )


@dataclass(slots=True)
class GenerationMetadata:
    """How a quiz was produced; returned alongside the quiz itself."""

    source_quality: ContentQuality
    chunks_used: int
    total_chunks: int
    content_warnings: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    retries: int = 0
    model: str = "stub"
    corrections: List[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "sourceQuality": self.source_quality.value,
            "chunksUsed": self.chunks_used,
            "totalChunks": self.total_chunks,
            "contentWarnings": list(self.content_warnings),
            "processingTimeMs": round(self.processing_time_ms, 3),
            "retries": self.retries,
            "model": self.model,
            "corrections": list(self.corrections),
        }


@dataclass(slots=True)
class QuizResult:
    quiz: Quiz
    metadata: GenerationMetadata


def strip_code_fence(text: str) -> str:
    """Remove one surrounding Markdown code fence, if present."""

    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_model_response(raw: str) -> dict[str, Any]:
    """Decode the model output; anything but a JSON object is malformed."""

    cleaned = strip_code_fence(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as error:
        raise MalformedResponseError(
            f"Model response is not valid JSON: {error.msg}",
            snippet=cleaned[:SNIPPET_LENGTH],
            cause=error,
        ) from error
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Model response is a JSON {type(payload).__name__}, expected an object",
            snippet=cleaned[:SNIPPET_LENGTH],
        )
    return payload


class QuizGenerator:
    """Runs chunking, selection, prompting, the model call, repair and validation."""

    def __init__(
        self,
        llm: Optional[LLM] = None,
        *,
        settings: Optional[Settings] = None,
        chunking_config: Optional[ChunkingConfig] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._llm = llm
        self.chunker = ContentChunker(
            chunking_config or generation_chunking_config(self.settings.max_chunks)
        )

    @property
    def llm(self) -> LLM:
        if self._llm is None:
            self._llm = get_llm(self.settings)
        return self._llm

    def generate(
        self,
        content: ExtractedContent,
        params: GenerationParams,
        *,
        req_id: Optional[str] = None,
    ) -> QuizResult:
        req_id = req_id or uuid.uuid4().hex
        started = time.perf_counter()
        try:
            return self._generate(content, params, req_id, started)
        except (ContentTooLimitedError, NoContentError, MalformedResponseError, SchemaValidationError) as error:
            emit_exception(module=__name__, error=error, req_id=req_id)
            raise

    def _generate(
        self,
        content: ExtractedContent,
        params: GenerationParams,
        req_id: str,
        started: float,
    ) -> QuizResult:
        metadata = content.metadata
        log_event(
            LOGGER,
            "quiz.validate_content",
            req_id=req_id,
            details={"word_count": metadata.word_count, "quality": metadata.quality.value},
        )
        if metadata.quality is ContentQuality.LOW and metadata.word_count < MIN_WORDS_FOR_LOW_QUALITY:
            raise ContentTooLimitedError(
                f"Document has only {metadata.word_count} words of low quality content; "
                f"at least {MIN_WORDS_FOR_LOW_QUALITY} are needed"
            )

        chunks = self.chunker.chunk(content)
        if not chunks:
            raise NoContentError("No usable content chunks were produced from the document")

        budget = self.settings.generation_token_budget
        selected = select_chunks(chunks, budget)
        selected_tokens = total_tokens(selected)
        emit_chunking_event(
            req_id=req_id,
            strategy="structure" if content.sections else "semantic",
            total_chunks=len(chunks),
            selected_chunks=len(selected),
            selected_tokens=selected_tokens,
            token_budget=budget,
        )
        if not selected:
            raise NoContentError("No content chunk fits the generation token budget")

        messages = build_messages(content, selected, params, total_chunks=len(chunks))
        emit_prompt_event(
            req_id=req_id,
            system_prompt=messages[0]["content"],
            sources=[chunk.id for chunk in selected],
            context_tokens=selected_tokens,
        )

        raw = self._invoke(messages, req_id)

        payload = parse_model_response(raw)
        log_event(LOGGER, "quiz.parse", req_id=req_id, details={"keys": sorted(payload)})

        report = validate_and_correct(payload, params)
        emit_repair_event(req_id=req_id, corrections=report.corrections)

        try:
            quiz = validate_quiz(report.payload)
        except ValidationError as error:
            violations = describe_violations(error)
            raise SchemaValidationError(
                f"Generated quiz failed schema validation with {len(violations)} violation(s)",
                violations=violations,
                cause=error,
            ) from error

        if params.quiz_name:
            quiz.meta.title = params.quiz_name

        duration_ms = (time.perf_counter() - started) * 1000.0
        log_event(
            LOGGER,
            "quiz.complete",
            req_id=req_id,
            duration_ms=duration_ms,
            details={"questions": quiz.meta.num_questions, "sections": len(quiz.sections)},
        )
        return QuizResult(
            quiz=quiz,
            metadata=GenerationMetadata(
                source_quality=metadata.quality,
                chunks_used=len(selected),
                total_chunks=len(chunks),
                content_warnings=list(metadata.warnings),
                processing_time_ms=duration_ms,
                model=self.llm.model_name,
                corrections=list(report.corrections),
            ),
        )

    def _invoke(self, messages: List[dict], req_id: str) -> str:
        prompt_len = sum(len(message["content"]) for message in messages)
        try:
            llm = self.llm
        except LLMError as error:
            emit_exception(module=f"{__name__}.llm", error=error, req_id=req_id)
            raise ModelInvocationError(f"Language model is not available: {error}", cause=error) from error

        emit_inference_request(
            req_id=req_id,
            model=llm.model_name,
            prompt_len=prompt_len,
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
        )
        inference_started = time.perf_counter()
        try:
            raw = llm.generate(
                messages,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
                json_mode=True,
            )
        except LLMError as error:
            LOGGER.exception("Quiz generation model call failed")
            emit_exception(module=f"{__name__}.llm", error=error, req_id=req_id)
            raise ModelInvocationError(f"Language model call failed: {error}", cause=error) from error

        emit_inference_result(
            req_id=req_id,
            model=llm.model_name,
            duration_ms=(time.perf_counter() - inference_started) * 1000.0,
            response_preview=raw,
            response_len=len(raw),
        )
        return raw


__all__ = [
    "GenerationMetadata",
    "QuizGenerator",
    "QuizResult",
    "generation_chunking_config",
    "parse_model_response",
    "strip_code_fence",
]
