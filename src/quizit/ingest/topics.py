"""Keyword and proper-noun extraction used to label chunks."""
from __future__ import annotations

import re
from collections import Counter
from typing import List

MAX_KEYWORDS = 5
MAX_ENTITIES = 3
MAX_TOPICS = 8
MIN_KEYWORD_CHARS = 4
ENTITY_LENGTH_RANGE = (3, 30)

STOPWORDS = frozenset(
    {
        "the", "and", "that", "have", "for", "not", "with", "you", "this", "but",
        "his", "from", "they", "she", "her", "been", "than", "its", "now", "find",
        "are", "was", "were", "what", "when", "where", "who", "how", "why", "could",
        "should", "would", "will", "can", "may", "might", "must", "shall", "does",
        "did", "has", "had", "having", "being", "very", "more", "most", "other",
        "such", "some", "any", "each", "every", "all", "both", "few", "many",
        "there", "their", "them", "these", "those", "which", "while", "also",
        "into", "then", "only", "about", "over", "your", "ours", "just",
    }
)

_NON_WORD_RE = re.compile(r"[^\w\s]")
_ENTITY_RE = re.compile(r"\b[A-Z][a-z]+(?: [A-Z][a-z]+)+\b")


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """Most frequent non-stopword terms that occur more than once."""

    words = [
        word
        for word in _NON_WORD_RE.sub(" ", text.lower()).split()
        if len(word) >= MIN_KEYWORD_CHARS and word not in STOPWORDS and not word.isdigit()
    ]
    counts = Counter(words)
    return [word for word, frequency in counts.most_common() if frequency > 1][:limit]


def extract_entities(text: str, limit: int = MAX_ENTITIES) -> List[str]:
    """Distinct capitalised multi-word sequences, in order of appearance."""

    low, high = ENTITY_LENGTH_RANGE
    entities: List[str] = []
    for match in _ENTITY_RE.finditer(text):
        entity = match.group(0)
        if low <= len(entity) <= high and entity not in entities:
            entities.append(entity)
            if len(entities) >= limit:
                break
    return entities


def extract_topics(text: str) -> List[str]:
    topics: List[str] = []
    for topic in extract_keywords(text) + extract_entities(text):
        if topic not in topics:
            topics.append(topic)
    return topics[:MAX_TOPICS]
