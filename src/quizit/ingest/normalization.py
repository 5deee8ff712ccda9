"""Text normalisation utilities."""
from __future__ import annotations

import re
import unicodedata

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
_HYPHEN_BREAK_RE = re.compile(r"(?<=\w)-[ \t]*\n[ \t]*(?=\w)")
_WHITESPACE_RE = re.compile(r"[ \t]+")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")
_LEADING_SPACE_RE = re.compile(r"\n[ \t]+")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")


def _collapse_run(match: re.Match[str]) -> str:
    # a run containing a tab keeps one tab so column separators survive
    return "\t" if "\t" in match.group(0) else " "


def normalize_text(text: str) -> str:
    """Normalise whitespace, line breaks and Unicode representation.

    Control characters other than newline and tab are dropped, words split by
    a hyphenated line wrap are rejoined and blank-line runs are reduced to a
    single paragraph break. The function is idempotent.
    """

    normalized = unicodedata.normalize("NFC", text)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _CONTROL_CHARS_RE.sub(" ", normalized)
    normalized = _HYPHEN_BREAK_RE.sub("", normalized)
    normalized = _WHITESPACE_RE.sub(_collapse_run, normalized)
    normalized = _TRAILING_SPACE_RE.sub("\n", normalized)
    normalized = _LEADING_SPACE_RE.sub("\n", normalized)
    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()
