"""Utilities for constructing the quiz generation prompt."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from quizit.ingest.models import ContentChunk, ExtractedContent
from quizit.llm_provider import Message

from .repair import DEFAULT_QUIZ_TITLE
from .schema import GenerationParams

_PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"
_SYSTEM_PROMPT_PATH = _PROMPTS_DIR / "system.txt"
_USER_PROMPT_PATH = _PROMPTS_DIR / "user.md"


def _load_template(path: Path) -> str:
    """Read and trim the contents of a template file."""
    return path.read_text(encoding="utf-8").strip()


_SYSTEM_TEMPLATE = _load_template(_SYSTEM_PROMPT_PATH)
_USER_TEMPLATE = _load_template(_USER_PROMPT_PATH)


def _format_types(params: GenerationParams) -> str:
    return ", ".join(f'"{question_type}"' for question_type in params.question_types)


def format_chunk(chunk: ContentChunk, index: int) -> str:
    """Render one chunk with its context heading and metadata."""

    metadata = chunk.metadata
    header = [f"### Chunk {index} ({chunk.id})"]
    if metadata.context:
        header.append(f"Context: {metadata.context}")
    if metadata.topics:
        header.append(f"Topics: {', '.join(metadata.topics)}")
    header.append(f"Type: {metadata.type.value} | Importance: {metadata.importance:.2f}")
    return "\n".join(header) + "\n\n" + chunk.content.strip()


def build_system_prompt(params: GenerationParams) -> str:
    return _SYSTEM_TEMPLATE.format(
        num_questions=params.num_questions,
        question_types=_format_types(params),
        difficulty=params.difficulty,
        language=params.language,
    )


def build_user_prompt(
    content: ExtractedContent,
    chunks: Sequence[ContentChunk],
    params: GenerationParams,
    *,
    total_chunks: int,
) -> str:
    metadata = content.metadata
    chunk_block = "\n\n".join(format_chunk(chunk, index) for index, chunk in enumerate(chunks, start=1))
    return _USER_TEMPLATE.format(
        title=params.quiz_name or DEFAULT_QUIZ_TITLE,
        num_questions=params.num_questions,
        difficulty=params.difficulty,
        language=params.language,
        question_types=_format_types(params),
        word_count=metadata.word_count,
        section_count=len(content.sections),
        chunks_used=len(chunks),
        total_chunks=total_chunks,
        detected_language=metadata.language or "unknown",
        quality=metadata.quality.value,
        warnings="; ".join(metadata.warnings) if metadata.warnings else "none",
        chunks=chunk_block or "(no content)",
    )


def build_messages(
    content: ExtractedContent,
    chunks: Sequence[ContentChunk],
    params: GenerationParams,
    *,
    total_chunks: int,
) -> List[Message]:
    """Compose the system and user messages for one generation request."""

    return [
        {"role": "system", "content": build_system_prompt(params)},
        {
            "role": "user",
            "content": build_user_prompt(content, chunks, params, total_chunks=total_chunks),
        },
    ]


__all__ = ["build_messages", "build_system_prompt", "build_user_prompt", "format_chunk"]
