"""Typed failures surfaced by the document-to-quiz pipeline."""
from __future__ import annotations

from typing import Iterable, List


class QuizPipelineError(RuntimeError):
    """Base class for every terminal failure of a generation request."""

    kind = "pipeline_error"

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class UnsupportedFormatError(QuizPipelineError):
    """Raised when the uploaded document is neither PDF nor DOCX."""

    kind = "unsupported_format"


class ExtractionError(QuizPipelineError):
    """Raised when the document decoder fails (corrupt or encrypted file)."""

    kind = "extraction_failure"


class EmptyContentError(QuizPipelineError):
    """Raised by callers that reject a decoded document without any text."""

    kind = "empty_content"


class ContentTooLimitedError(QuizPipelineError):
    """Raised when the extracted content is below the generation threshold."""

    kind = "content_too_limited"


class NoContentError(QuizPipelineError):
    """Raised when chunking produced nothing usable."""

    kind = "no_content"


class MalformedResponseError(QuizPipelineError):
    """Raised when the model response is not a JSON object."""

    kind = "malformed_model_response"

    def __init__(self, message: str, *, snippet: str = "", cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)
        self.snippet = snippet


class SchemaValidationError(QuizPipelineError):
    """Raised when the repaired quiz still violates the quiz schema."""

    kind = "schema_validation_failed"

    def __init__(
        self,
        message: str,
        *,
        violations: Iterable[str] = (),
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.violations: List[str] = list(violations)


class ModelInvocationError(QuizPipelineError):
    """Raised when the language model call itself fails."""

    kind = "model_invocation_failed"


__all__ = [
    "ContentTooLimitedError",
    "EmptyContentError",
    "ExtractionError",
    "MalformedResponseError",
    "ModelInvocationError",
    "NoContentError",
    "QuizPipelineError",
    "SchemaValidationError",
    "UnsupportedFormatError",
]
