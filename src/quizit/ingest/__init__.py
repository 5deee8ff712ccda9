"""Document extraction, analysis and chunking stages of the quiz pipeline."""

from .chunking import ChunkingConfig, ContentChunker, chunk_content
from .format_detection import DocumentFormat, detect_format
from .models import (
    ChunkMetadata,
    ChunkType,
    ContentChunk,
    ContentMetadata,
    ContentQuality,
    ExtractedContent,
    Section,
    SectionType,
)
from .normalization import normalize_text
from .pipeline import ContentExtractor, content_from_text, extract_content
from .selection import select_chunks
from .tokens import estimate_tokens

__all__ = [
    "ChunkMetadata",
    "ChunkType",
    "ChunkingConfig",
    "ContentChunk",
    "ContentChunker",
    "ContentExtractor",
    "ContentMetadata",
    "ContentQuality",
    "DocumentFormat",
    "ExtractedContent",
    "Section",
    "SectionType",
    "chunk_content",
    "content_from_text",
    "detect_format",
    "estimate_tokens",
    "extract_content",
    "normalize_text",
    "select_chunks",
]
