"""API router exposing the document-to-quiz endpoint."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from quizit.errors import QuizPipelineError
from quizit.quiz.generator import QuizResult
from quizit.quiz.schema import GenerationParams, describe_violations
from quizit.services.quiz import QuizService, get_quiz_service

router = APIRouter(tags=["quiz"])

ERROR_STATUS = {
    "unsupported_format": 415,
    "extraction_failure": 400,
    "empty_content": 422,
    "content_too_limited": 422,
    "no_content": 422,
    "malformed_model_response": 502,
    "schema_validation_failed": 502,
    "model_invocation_failed": 503,
}


def _split_types(values: list[str] | None) -> list[str] | None:
    if not values:
        return None
    types = [part.strip() for value in values for part in value.split(",") if part.strip()]
    return types or None


def _build_params(
    num_questions: int,
    difficulty: str,
    language: str,
    question_types: list[str] | None,
    quiz_name: str | None,
) -> GenerationParams:
    fields: dict[str, Any] = {
        "num_questions": num_questions,
        "difficulty": difficulty,
        "language": language,
        "quiz_name": quiz_name,
    }
    types = _split_types(question_types)
    if types is not None:
        fields["question_types"] = types
    try:
        return GenerationParams(**fields)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=describe_violations(exc)) from exc


def _error_detail(error: QuizPipelineError) -> dict[str, Any]:
    detail: dict[str, Any] = {"kind": error.kind, "message": str(error)}
    violations = getattr(error, "violations", None)
    if violations:
        detail["violations"] = violations
    snippet = getattr(error, "snippet", None)
    if snippet:
        detail["snippet"] = snippet
    return detail


def _serialise_result(result: QuizResult) -> dict[str, Any]:
    payload = result.quiz.to_wire()
    payload["_metadata"] = {"generation": result.metadata.as_dict()}
    return payload


@router.post("/quizzes")
async def create_quiz(
    file: UploadFile = File(...),
    num_questions: int = Form(10, alias="numQuestions"),
    difficulty: str = Form("medium"),
    language: str = Form("en"),
    question_types: list[str] | None = Form(None, alias="questionTypes"),
    quiz_name: str | None = Form(None, alias="quizName"),
    quiz_service: QuizService = Depends(get_quiz_service),
) -> dict[str, Any]:
    """Generate a quiz from an uploaded PDF or DOCX document."""

    params = _build_params(num_questions, difficulty, language, question_types, quiz_name)

    data = await file.read()
    limit = quiz_service.settings.max_upload_bytes
    if len(data) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"File is {len(data)} bytes; the limit is {limit} bytes",
        )

    try:
        result = await run_in_threadpool(
            quiz_service.create_quiz,
            data,
            file.filename or "upload",
            params,
            file.content_type,
        )
    except QuizPipelineError as exc:
        status = ERROR_STATUS.get(exc.kind, 500)
        raise HTTPException(status_code=status, detail=_error_detail(exc)) from exc
    return _serialise_result(result)
