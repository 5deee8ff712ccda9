"""Language detection helpers."""
from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

from langdetect import DetectorFactory, LangDetectException, detect

LOGGER = logging.getLogger(__name__)
DetectorFactory.seed = 0

UNKNOWN_LANGUAGE = "unknown"

ENGLISH_STOPWORDS = frozenset(
    {"the", "and", "of", "to", "in", "is", "that", "for", "it", "with", "as", "was", "on", "are", "this"}
)
SAMPLE_CHARS = 1000
ENGLISH_HIT_THRESHOLD = 5

_WORD_RE = re.compile(r"[a-zA-Z']+")


class LanguageDetector(Protocol):
    def detect(self, text: str) -> Optional[str]:
        """Return a language tag for *text* or ``None`` when it is empty."""


class StopwordLanguageDetector:
    """Tag text as English when enough common stopwords appear early on.

    This is a crude presence check, not language identification: anything
    that is not recognised as English is reported as ``unknown``.
    """

    def __init__(self, sample_chars: int = SAMPLE_CHARS, threshold: int = ENGLISH_HIT_THRESHOLD) -> None:
        self.sample_chars = sample_chars
        self.threshold = threshold

    def detect(self, text: str) -> Optional[str]:
        sample = text[: self.sample_chars].strip()
        if not sample:
            return None
        hits = sum(1 for word in _WORD_RE.findall(sample.lower()) if word in ENGLISH_STOPWORDS)
        LOGGER.debug("English stopword hits in sample: %s", hits)
        return "en" if hits >= self.threshold else UNKNOWN_LANGUAGE


class LangdetectLanguageDetector:
    """Wraps langdetect providing a robust API."""

    def detect(self, text: str) -> Optional[str]:
        cleaned = text.strip()
        if not cleaned:
            return None
        try:
            language = detect(cleaned)
            LOGGER.debug("Detected language: %s", language)
            return language
        except LangDetectException:
            LOGGER.info("Unable to determine language for text of length %s", len(text))
            return UNKNOWN_LANGUAGE
