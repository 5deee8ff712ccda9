from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from quizit.config import Settings, get_settings
from quizit.errors import (
    EmptyContentError,
    ExtractionError,
    QuizPipelineError,
    UnsupportedFormatError,
)
from quizit.ingest.format_detection import detect_format
from quizit.ingest.pipeline import ContentExtractor
from quizit.llm_provider import LLM
from quizit.quiz.generator import QuizGenerator, QuizResult
from quizit.quiz.schema import GenerationParams
from quizit.telemetry import emit_exception, log_event

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("quizit.generation.audit")

# Generation stages report their own failures; these come from the ingest side.
_INGEST_ERRORS = (UnsupportedFormatError, ExtractionError, EmptyContentError)


class QuizService:
    """High level orchestration for the upload-to-quiz workflow."""

    def __init__(
        self,
        *,
        extractor: ContentExtractor | None = None,
        generator: QuizGenerator | None = None,
        llm: LLM | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.extractor = extractor or ContentExtractor()
        self.generator = generator or QuizGenerator(llm, settings=self.settings)

    def create_quiz(
        self,
        data: bytes,
        file_name: str,
        params: GenerationParams,
        mime_type: Optional[str] = None,
    ) -> QuizResult:
        req_id = uuid.uuid4().hex
        display_name = Path(file_name or "upload").name
        started = time.perf_counter()
        log_event(
            LOGGER,
            "quiz.request",
            req_id=req_id,
            details={
                "file_name": display_name,
                "size_bytes": len(data),
                "mime_type": mime_type,
                "num_questions": params.num_questions,
                "question_types": list(params.question_types),
            },
        )

        try:
            document_format = detect_format(display_name, mime_type)
            content = self.extractor.extract(data, document_format)
            if not content.text:
                warning = content.metadata.warnings[0] if content.metadata.warnings else "no text"
                raise EmptyContentError(f"No text could be extracted from {display_name}: {warning}")
            result = self.generator.generate(content, params, req_id=req_id)
        except QuizPipelineError as error:
            LOGGER.warning("Quiz generation failed for %s: %s (%s)", display_name, error, error.kind)
            if isinstance(error, _INGEST_ERRORS):
                emit_exception(module=__name__, error=error, req_id=req_id)
            raise

        duration = time.perf_counter() - started
        LOGGER.info(
            "Generated %s questions for %s in %.3fs",
            result.quiz.meta.num_questions,
            display_name,
            duration,
        )
        AUDIT_LOGGER.info(
            {
                "event": "quiz.generated",
                "req_id": req_id,
                "file_name": display_name,
                "format": document_format.value,
                "title": result.quiz.meta.title,
                "num_questions": result.quiz.meta.num_questions,
                "chunks_used": result.metadata.chunks_used,
                "total_chunks": result.metadata.total_chunks,
                "model": result.metadata.model,
                "corrections": len(result.metadata.corrections),
            }
        )
        return result


_quiz_service: QuizService | None = None


def get_quiz_service() -> QuizService:
    """FastAPI dependency returning the shared :class:`QuizService` instance."""

    global _quiz_service
    if _quiz_service is None:
        _quiz_service = QuizService()
    return _quiz_service
