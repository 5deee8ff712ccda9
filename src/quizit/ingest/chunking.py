"""Token-budgeted, structure-aware chunking of extracted content."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import heuristics
from .models import (
    ChunkMetadata,
    ChunkType,
    ContentChunk,
    ExtractedContent,
    Section,
    SectionType,
    count_words,
)
from .tokens import estimate_tokens
from .topics import extract_topics

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CHUNKS = 25
MIN_CHUNK_WORDS = 5
MIN_CHUNK_CHARS = 20
SENTENCE_OVERLAP = 2

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SENTENCE_FRAGMENT_RE = re.compile(r"[.!?]+")


@dataclass(slots=True)
class ChunkingConfig:
    """Budgets (in estimated tokens) and strategy switches for the chunker.

    ``max_chunks`` is a hard ceiling on the number of chunks returned; callers
    estimating document coverage must account for it.
    """

    target_tokens: int = 1500
    max_tokens: int = 2000
    min_tokens: int = 300
    overlap_tokens: int = 150
    preserve_structure: bool = True
    prioritize_important: bool = True
    max_chunks: int = DEFAULT_MAX_CHUNKS

    def __post_init__(self) -> None:
        if self.target_tokens <= 0:
            raise ValueError("target_tokens must be a positive integer")
        if self.max_tokens < self.target_tokens:
            raise ValueError("max_tokens must be greater than or equal to target_tokens")
        if self.overlap_tokens < 0 or self.min_tokens < 0:
            raise ValueError("overlap_tokens and min_tokens must be non-negative")
        if self.max_chunks <= 0:
            raise ValueError("max_chunks must be a positive integer")


# Scoring helpers --------------------------------------------------------------

def count_sentences(text: str) -> int:
    return sum(1 for fragment in _SENTENCE_FRAGMENT_RE.split(text) if len(fragment.strip()) > 10)


def calculate_importance(
    content: str,
    topics: Sequence[str],
    source_section: Optional[Section] = None,
) -> float:
    """Score a chunk between 0 and 1 from structure, richness and length."""

    importance = 0.5
    if source_section is not None and source_section.type is SectionType.HEADING:
        importance += 0.3
    if source_section is not None and source_section.confidence > 0.8:
        importance += 0.2
    importance += min(len(topics) * 0.05, 0.2)
    if count_sentences(content) >= 3:
        importance += 0.1
    word_count = count_words(content)
    if 50 <= word_count <= 500:
        importance += 0.1
    if word_count < 20:
        importance -= 0.3
    return heuristics.clamp(importance)


def determine_chunk_type(content: str, source_section: Optional[Section] = None) -> ChunkType:
    if source_section is not None:
        if source_section.type is SectionType.UNKNOWN:
            return ChunkType.PARAGRAPH
        return ChunkType(source_section.type.value)
    if len(content) < 100 and "." not in content:
        return ChunkType.HEADING
    if heuristics.is_list(content):
        return ChunkType.LIST
    if heuristics.is_table(content):
        return ChunkType.TABLE
    return ChunkType.PARAGRAPH


def build_chunk(
    index: int,
    content: str,
    *,
    context: Optional[str] = None,
    source_section: Optional[Section] = None,
) -> ContentChunk:
    topics = extract_topics(content)
    metadata = ChunkMetadata(
        token_count=estimate_tokens(content),
        word_count=count_words(content),
        type=determine_chunk_type(content, source_section),
        importance=calculate_importance(content, topics, source_section),
        topics=topics,
        context=context,
    )
    return ContentChunk(id=f"chunk-{index}", content=content, metadata=metadata, source_section=source_section)


# Splitting helpers ------------------------------------------------------------

def split_units(text: str, max_tokens: int) -> List[str]:
    """Split text into sentences, falling back to lines for oversized ones.

    A unit that still exceeds ``max_tokens`` after both splits is returned
    intact.
    """

    units: List[str] = []
    for sentence in heuristics.split_sentences(text):
        sentence = sentence.strip()
        if estimate_tokens(sentence) > max_tokens and "\n" in sentence:
            units.extend(line.strip() for line in sentence.splitlines() if line.strip())
        else:
            units.append(sentence)
    return units


def create_overlap(items: Sequence[str], overlap_tokens: int) -> str:
    """Collect trailing content of *items* worth at most ``overlap_tokens``.

    Whole items are taken from the end; when the next item does not fit, its
    trailing sentences are taken instead and the walk stops.
    """

    if overlap_tokens <= 0:
        return ""
    collected: List[str] = []
    tokens = 0
    for item in reversed(items):
        if tokens >= overlap_tokens:
            break
        item_tokens = estimate_tokens(item)
        if tokens + item_tokens <= overlap_tokens:
            collected.insert(0, item)
            tokens += item_tokens
            continue
        sentences: List[str] = []
        for sentence in reversed(heuristics.split_sentences(item)):
            sentence_tokens = estimate_tokens(sentence)
            if tokens + sentence_tokens > overlap_tokens:
                break
            sentences.insert(0, sentence.strip())
            tokens += sentence_tokens
        if sentences:
            collected.insert(0, " ".join(sentences))
        break
    return "\n\n".join(collected)


class _ChunkEmitter:
    """Assigns sequential ``chunk-<N>`` ids in document order."""

    def __init__(self) -> None:
        self.chunks: List[ContentChunk] = []

    def emit(
        self,
        content: str,
        *,
        context: Optional[str] = None,
        source_section: Optional[Section] = None,
    ) -> ContentChunk:
        chunk = build_chunk(len(self.chunks), content, context=context, source_section=source_section)
        self.chunks.append(chunk)
        return chunk

    def merge_into_last(self, extra: Sequence[str], max_tokens: int) -> bool:
        """Append *extra* to the previous chunk when the result fits ``max_tokens``."""

        if not self.chunks or not extra:
            return False
        last = self.chunks[-1]
        content = "\n\n".join([last.content, *extra])
        if estimate_tokens(content) > max_tokens:
            return False
        self.chunks[-1] = build_chunk(
            len(self.chunks) - 1,
            content,
            context=last.metadata.context,
            source_section=last.source_section,
        )
        return True


class _Buffer:
    """Working buffer of items accumulated towards the next chunk."""

    def __init__(self) -> None:
        self.items: List[str] = []
        self.tokens = 0
        self.seeded = False
        self.context: Optional[str] = None
        self.source: Optional[Section] = None

    def __bool__(self) -> bool:
        return bool(self.items)

    def add(self, item: str, tokens: int, *, context: Optional[str] = None, source: Optional[Section] = None) -> None:
        if self.source is None and (not self.items or self.seeded):
            self.context = context
            self.source = source
        self.items.append(item)
        self.tokens += tokens

    def own_items(self) -> List[str]:
        return self.items[1:] if self.seeded else list(self.items)

    def reset(self, seed: str = "", incoming_tokens: int = 0, max_tokens: int = 0) -> None:
        self.items = []
        self.tokens = 0
        self.seeded = False
        self.context = None
        self.source = None
        if seed:
            seed_tokens = estimate_tokens(seed)
            # a seed never pushes the next chunk past the hard ceiling
            if seed_tokens + incoming_tokens <= max_tokens:
                self.items = [seed]
                self.tokens = seed_tokens
                self.seeded = True


class ContentChunker:
    """Partition extracted content into context-preserving chunks."""

    def __init__(self, config: Optional[ChunkingConfig] = None) -> None:
        self.config = config or ChunkingConfig()

    def chunk(self, content: ExtractedContent) -> List[ContentChunk]:
        text = content.text.strip()
        if not text:
            return []

        total_tokens = estimate_tokens(text)
        LOGGER.debug(
            "Chunking %s words (%s estimated tokens, %s sections, quality=%s)",
            content.metadata.word_count,
            total_tokens,
            len(content.sections),
            content.metadata.quality.value,
        )
        if total_tokens <= self.config.target_tokens:
            return self._filter_noise([self._whole_document_chunk(text, content.metadata.word_count, total_tokens)])

        if self.config.preserve_structure and content.sections:
            chunks = self._chunk_by_structure(content.sections)
            strategy = "structure"
        else:
            chunks = self._chunk_semantically(text)
            strategy = "semantic"
        LOGGER.info("%s chunking created %s chunks", strategy.capitalize(), len(chunks))
        return self.rank_and_optimize_chunks(chunks)

    def _whole_document_chunk(self, text: str, word_count: int, tokens: int) -> ContentChunk:
        metadata = ChunkMetadata(
            token_count=tokens,
            word_count=word_count,
            type=ChunkType.MIXED,
            importance=1.0,
            topics=extract_topics(text),
        )
        return ContentChunk(id="chunk-0", content=text, metadata=metadata)

    # Strategies ---------------------------------------------------------------

    def _chunk_by_structure(self, sections: Sequence[Section]) -> List[ContentChunk]:
        config = self.config
        emitter = _ChunkEmitter()
        buffer = _Buffer()
        context: Optional[str] = None

        for section in sections:
            if section.type is SectionType.HEADING and section.title:
                context = section.title
            section_tokens = estimate_tokens(section.content)

            if section_tokens > config.max_tokens:
                if buffer:
                    emitter.emit("\n\n".join(buffer.items), context=buffer.context, source_section=buffer.source)
                    buffer.reset()
                self._split_large_section(section, context, emitter)
                continue

            if buffer and buffer.tokens + section_tokens > config.target_tokens:
                emitter.emit("\n\n".join(buffer.items), context=buffer.context, source_section=buffer.source)
                seed = create_overlap(buffer.items, config.overlap_tokens)
                buffer.reset(seed, section_tokens, config.max_tokens)

            buffer.add(section.content, section_tokens, context=context, source=section)

        self._flush_tail(buffer, emitter)
        return emitter.chunks

    def _split_large_section(
        self, section: Section, context: Optional[str], emitter: _ChunkEmitter
    ) -> None:
        config = self.config
        current: List[str] = []
        current_tokens = 0
        for sentence in split_units(section.content, config.max_tokens):
            sentence_tokens = estimate_tokens(sentence)
            if current and current_tokens + sentence_tokens > config.target_tokens:
                emitter.emit(" ".join(current), context=context, source_section=section)
                overlap = current[-SENTENCE_OVERLAP:]
                overlap_tokens = sum(estimate_tokens(item) for item in overlap)
                if overlap_tokens + sentence_tokens <= config.target_tokens:
                    current, current_tokens = list(overlap), overlap_tokens
                else:
                    current, current_tokens = [], 0
            current.append(sentence)
            current_tokens += sentence_tokens
        if current:
            emitter.emit(" ".join(current), context=context, source_section=section)

    def _chunk_semantically(self, text: str) -> List[ContentChunk]:
        config = self.config
        items: List[str] = []
        for paragraph in _PARAGRAPH_SPLIT_RE.split(text):
            paragraph = paragraph.strip()
            if not paragraph:
                continue
            if estimate_tokens(paragraph) > config.max_tokens:
                items.extend(split_units(paragraph, config.max_tokens))
            else:
                items.append(paragraph)

        emitter = _ChunkEmitter()
        buffer = _Buffer()
        for item in items:
            item_tokens = estimate_tokens(item)
            if buffer and buffer.tokens + item_tokens > config.target_tokens:
                emitter.emit("\n\n".join(buffer.items))
                seed = create_overlap(buffer.items, config.overlap_tokens)
                buffer.reset(seed, item_tokens, config.max_tokens)
            buffer.add(item, item_tokens)

        self._flush_tail(buffer, emitter)
        return emitter.chunks

    def _flush_tail(self, buffer: _Buffer, emitter: _ChunkEmitter) -> None:
        """Emit the final buffer, folding it into the previous chunk when it is tiny."""

        if not buffer:
            return
        own = buffer.own_items()
        if not own:
            return
        own_tokens = sum(estimate_tokens(item) for item in own)
        if (
            own_tokens < self.config.min_tokens
            and emitter.chunks
            and emitter.chunks[-1].metadata.context == buffer.context
            and emitter.merge_into_last(own, self.config.max_tokens)
        ):
            LOGGER.debug("Merged %s trailing tokens into %s", own_tokens, emitter.chunks[-1].id)
            return
        emitter.emit("\n\n".join(buffer.items), context=buffer.context, source_section=buffer.source)

    # Post-processing ----------------------------------------------------------

    @staticmethod
    def _filter_noise(chunks: Sequence[ContentChunk]) -> List[ContentChunk]:
        return [
            chunk
            for chunk in chunks
            if chunk.metadata.word_count >= MIN_CHUNK_WORDS and len(chunk.content.strip()) >= MIN_CHUNK_CHARS
        ]

    def rank_and_optimize_chunks(self, chunks: Sequence[ContentChunk]) -> List[ContentChunk]:
        """Optionally rank by importance, drop noise and apply the chunk cap."""

        ranked = list(chunks)
        if self.config.prioritize_important:
            ranked.sort(key=lambda chunk: chunk.metadata.importance, reverse=True)
            LOGGER.debug(
                "Chunks ranked by importance: %s",
                [f"{chunk.id}: {chunk.metadata.importance:.2f}" for chunk in ranked[:5]],
            )

        meaningful = self._filter_noise(ranked)
        if len(meaningful) > self.config.max_chunks:
            LOGGER.warning(
                "Document is very large, limiting to %s chunks out of %s",
                self.config.max_chunks,
                len(meaningful),
            )
            return meaningful[: self.config.max_chunks]
        return meaningful


def chunk_content(content: ExtractedContent, config: Optional[ChunkingConfig] = None) -> List[ContentChunk]:
    """Chunk *content* with a fresh :class:`ContentChunker`."""

    return ContentChunker(config).chunk(content)


def total_tokens(chunks: Sequence[ContentChunk]) -> int:
    return sum(estimate_tokens(chunk.content) for chunk in chunks)


__all__: Tuple[str, ...] = (
    "ChunkingConfig",
    "ContentChunker",
    "build_chunk",
    "calculate_importance",
    "chunk_content",
    "create_overlap",
    "determine_chunk_type",
    "split_units",
    "total_tokens",
)
