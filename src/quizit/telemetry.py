"""Centralised observability helpers for structured lifecycle logging."""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

LOGGER = logging.getLogger("quizit.telemetry")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_extraction_event(
    *,
    kind: str,
    size_bytes: int,
    word_count: int,
    sections: int,
    quality: str,
    warnings: Iterable[str],
    duration_ms: float,
    pages: int | None = None,
) -> None:
    details = {
        "kind": kind,
        "size_bytes": size_bytes,
        "word_count": word_count,
        "sections": sections,
        "quality": quality,
        "warnings": list(warnings),
        "pages": pages,
    }
    log_event(LOGGER, "extract.complete", duration_ms=duration_ms, details=details)


def emit_chunking_event(
    *,
    req_id: str,
    strategy: str,
    total_chunks: int,
    selected_chunks: int,
    selected_tokens: int,
    token_budget: int,
) -> None:
    details = {
        "strategy": strategy,
        "total_chunks": total_chunks,
        "selected_chunks": selected_chunks,
        "selected_tokens": selected_tokens,
        "token_budget": token_budget,
        "truncated": selected_chunks < total_chunks,
    }
    log_event(LOGGER, "chunks.select", req_id=req_id, details=details)


def emit_prompt_event(
    *,
    req_id: str,
    system_prompt: str,
    sources: Iterable[str],
    context_tokens: int,
) -> None:
    details = {
        "system_prompt_preview": system_prompt[:120],
        "sources": list(sources),
        "context_tokens": context_tokens,
    }
    log_event(LOGGER, "prompt.compose", req_id=req_id, details=details)


def emit_llm_provider_init(
    *, provider: str, model: str, ready: bool, max_tokens: int | None, temperature: float | None
) -> None:
    details = {
        "provider": provider,
        "model": model,
        "ready": ready,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    log_event(LOGGER, "llm.provider.init", details=details)


def emit_inference_request(
    *,
    req_id: str,
    model: str,
    prompt_len: int,
    temperature: float,
    max_tokens: int | None,
) -> None:
    details = {
        "model": model,
        "prompt_len": prompt_len,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    model: str,
    duration_ms: float,
    response_preview: str,
    response_len: int,
) -> None:
    details = {
        "model": model,
        "response_preview": response_preview[:120],
        "response_len": response_len,
    }
    log_event(LOGGER, "inference.result", req_id=req_id, duration_ms=duration_ms, details=details)


def emit_repair_event(*, req_id: str, corrections: Iterable[str]) -> None:
    corrections = list(corrections)
    level = "warning" if corrections else "info"
    details = {"corrections": corrections, "count": len(corrections)}
    log_event(LOGGER, "quiz.repair", level=level, req_id=req_id, details=details)


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module, "kind": getattr(error, "kind", error.__class__.__name__)}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )
