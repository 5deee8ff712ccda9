"""Data models used by the extraction and chunking stages."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

_CHUNK_ID_RE = re.compile(r"^chunk-(\d+)$")


class SectionType(str, Enum):
    """Structural classification of a block of extracted text."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    UNKNOWN = "unknown"


class ChunkType(str, Enum):
    """Classification attached to a chunk; ``MIXED`` marks whole-document chunks."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    MIXED = "mixed"


class ContentQuality(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def downgraded(self) -> "ContentQuality":
        """Return the next lower quality level (``LOW`` stays ``LOW``)."""

        if self is ContentQuality.HIGH:
            return ContentQuality.MEDIUM
        return ContentQuality.LOW


@dataclass(slots=True)
class Section:
    """A classified block of the normalised document text."""

    content: str
    type: SectionType
    confidence: float
    title: Optional[str] = None


@dataclass(slots=True)
class ContentMetadata:
    """Document level statistics and quality assessment."""

    word_count: int
    quality: ContentQuality
    has_images: bool = False
    has_structure: bool = False
    page_count: Optional[int] = None
    language: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ExtractedContent:
    """Normalised document text together with its detected structure."""

    text: str
    metadata: ContentMetadata
    sections: List[Section] = field(default_factory=list)


@dataclass(slots=True)
class ChunkMetadata:
    """Metadata attached to an individual chunk."""

    token_count: int
    word_count: int
    type: ChunkType
    importance: float
    topics: List[str] = field(default_factory=list)
    context: Optional[str] = None


@dataclass(slots=True)
class ContentChunk:
    """Container that pairs chunk text with associated metadata."""

    id: str
    content: str
    metadata: ChunkMetadata
    source_section: Optional[Section] = None


def count_words(text: str) -> int:
    """Return the number of whitespace separated words in *text*."""

    return len(text.split())


def chunk_position(chunk_id: str) -> int:
    """Return the numeric suffix of a ``chunk-<N>`` identifier."""

    match = _CHUNK_ID_RE.match(chunk_id)
    if match is None:
        raise ValueError(f"Malformed chunk id: {chunk_id!r}")
    return int(match.group(1))
