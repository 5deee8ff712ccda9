"""Budget-aware selection of the chunks sent to the generation model."""
from __future__ import annotations

import logging
from typing import List, Sequence

from .models import ContentChunk, chunk_position
from .tokens import estimate_tokens

LOGGER = logging.getLogger(__name__)


def in_document_order(chunks: Sequence[ContentChunk]) -> List[ContentChunk]:
    return sorted(chunks, key=lambda chunk: chunk_position(chunk.id))


def select_chunks(chunks: Sequence[ContentChunk], max_allowed_tokens: int) -> List[ContentChunk]:
    """Pick the chunks to send to the model, returned in document order.

    When everything fits the budget all chunks are returned. Otherwise chunks
    are accepted greedily by descending importance while the running total
    stays within ``max_allowed_tokens``.
    """

    ordered = in_document_order(chunks)
    token_counts = {chunk.id: estimate_tokens(chunk.content) for chunk in ordered}
    total = sum(token_counts.values())
    if total <= max_allowed_tokens:
        LOGGER.debug("All %s chunks fit the budget (%s/%s tokens)", len(ordered), total, max_allowed_tokens)
        return ordered

    # sorted() is stable, so equal importance keeps document order
    ranked = sorted(ordered, key=lambda chunk: chunk.metadata.importance, reverse=True)
    selected: List[ContentChunk] = []
    running = 0
    for chunk in ranked:
        tokens = token_counts[chunk.id]
        if running + tokens > max_allowed_tokens:
            continue
        selected.append(chunk)
        running += tokens

    LOGGER.info(
        "Selected %s of %s chunks (%s/%s tokens, %s available)",
        len(selected),
        len(ordered),
        running,
        max_allowed_tokens,
        total,
    )
    return in_document_order(selected)
