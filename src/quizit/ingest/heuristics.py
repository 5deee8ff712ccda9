"""Pure heuristics used to classify blocks of text and assess quality.

Every predicate works on a plain string so thresholds can be tuned, or a
heuristic replaced, without touching the extraction or chunking code.
"""
from __future__ import annotations

import re
from typing import List, Sequence

MIN_BLOCK_CHARS = 10
MAX_HEADING_CHARS = 100
MIN_PARAGRAPH_CHARS = 50

_TERMINAL_PUNCTUATION = ".!?;,"
_NUMBERED_HEADING_RE = re.compile(
    r"^(?:\d+(?:\.\d+)*\.?|[IVXLCDM]+\.|(?:chapter|section|part|unit|lesson)\s+[\dIVXLCDM]+\b)\s*\S",
    re.IGNORECASE,
)
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•◦▪‣–·]|\d+[.)]|[a-zA-Z][.)])\s+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_WELL_FORMED_SENTENCE_RE = re.compile(r"^[A-Z0-9\"'(].*[.!?][\"')]?$", re.DOTALL)
_REPEATED_AMBIGUOUS_RE = re.compile(r"([lI1|0O])\1{2,}|(?:rn){3,}")
_MISSING_SPACE_RE = re.compile(r"[a-z][.!?,;:][A-Za-z]")
_NON_WORD_RE = re.compile(r"[^\w\s]")

UPPERCASE_DENSITY_THRESHOLD = 0.3
MISSING_SPACE_THRESHOLD = 3
SENTENCE_LENGTH_RANGE = (20, 200)
DUPLICATE_SENTENCE_RATIO = 0.3


def split_blocks(text: str) -> List[str]:
    """Split normalised text on blank-line boundaries."""

    return [block.strip() for block in re.split(r"\n\s*\n", text) if block.strip()]


def split_sentences(text: str) -> List[str]:
    """Split text after terminal punctuation followed by whitespace."""

    return [sentence for sentence in _SENTENCE_SPLIT_RE.split(text) if sentence.strip()]


def is_well_formed_sentence(text: str) -> bool:
    stripped = text.strip()
    return bool(stripped) and _WELL_FORMED_SENTENCE_RE.match(stripped) is not None


def is_all_caps(text: str) -> bool:
    letters = [char for char in text if char.isalpha()]
    return len(letters) >= 2 and all(char.isupper() for char in letters)


def is_heading(block: str) -> bool:
    """Return ``True`` for short single-line blocks that look like titles."""

    stripped = block.strip()
    if not stripped or len(stripped) >= MAX_HEADING_CHARS or "\n" in stripped:
        return False
    if stripped[-1] in _TERMINAL_PUNCTUATION:
        return False
    if _NUMBERED_HEADING_RE.match(stripped):
        return True
    if is_all_caps(stripped):
        return True
    return stripped[0].isupper()


def is_list_line(line: str) -> bool:
    return _LIST_MARKER_RE.match(line) is not None


def is_list(block: str) -> bool:
    lines = [line for line in block.splitlines() if line.strip()]
    if not lines:
        return False
    marked = sum(1 for line in lines if is_list_line(line))
    return marked >= 2 or marked / len(lines) > 0.5


def _table_fields(line: str) -> int:
    if "|" in line:
        return len([cell for cell in line.strip().strip("|").split("|")])
    if "\t" in line:
        return len(line.split("\t"))
    return 0


def is_table(block: str) -> bool:
    rows = [line for line in block.splitlines() if _table_fields(line) >= 3]
    return len(rows) >= 2


def is_paragraph(block: str) -> bool:
    return len(block) > MIN_PARAGRAPH_CHARS and "." in block


def score_confidence(block: str) -> float:
    """Score how confidently a block was recognised, in ``[0, 1]``."""

    confidence = 0.5
    stripped = block.strip()
    if is_well_formed_sentence(stripped):
        confidence += 0.2
    if stripped[:1].isupper():
        confidence += 0.1
    if len(stripped) < 20:
        confidence -= 0.2
    if len(stripped) > 2000:
        confidence -= 0.1
    if ":" in stripped or ";" in stripped:
        confidence += 0.1
    return clamp(confidence)


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


# OCR artefacts ---------------------------------------------------------------

def has_repeated_ambiguous_chars(text: str) -> bool:
    """Detect runs such as ``lll``, ``|||`` or ``rnrnrn`` typical of bad OCR."""

    return _REPEATED_AMBIGUOUS_RE.search(text) is not None


def has_missing_spaces(text: str) -> bool:
    """Detect punctuation glued to the following word (``end.Next``)."""

    return len(_MISSING_SPACE_RE.findall(text)) >= MISSING_SPACE_THRESHOLD


def has_excessive_uppercase(text: str) -> bool:
    letters = [char for char in text if char.isalpha()]
    if not letters:
        return False
    upper = sum(1 for char in letters if char.isupper())
    return upper / len(letters) > UPPERCASE_DENSITY_THRESHOLD


# Coherence -------------------------------------------------------------------

def _sentence_key(sentence: str) -> str:
    return " ".join(_NON_WORD_RE.sub(" ", sentence.lower()).split())


def duplicate_sentence_ratio(sentences: Sequence[str]) -> float:
    """Fraction of sentences that repeat an earlier one after normalisation."""

    if not sentences:
        return 0.0
    seen: set[str] = set()
    duplicates = 0
    for sentence in sentences:
        key = _sentence_key(sentence)
        if key in seen:
            duplicates += 1
        else:
            seen.add(key)
    return duplicates / len(sentences)


def is_coherent(text: str) -> bool:
    """Return ``False`` when sentence lengths or repetition look implausible."""

    sentences = [sentence.strip() for sentence in re.split(r"[.!?]+", text) if sentence.strip()]
    if not sentences:
        return False
    average = sum(len(sentence) for sentence in sentences) / len(sentences)
    low, high = SENTENCE_LENGTH_RANGE
    if average < low or average > high:
        return False
    return duplicate_sentence_ratio(sentences) <= DUPLICATE_SENTENCE_RATIO
