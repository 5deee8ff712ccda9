"""Structural analysis and quality assessment of normalised text."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from . import heuristics
from .models import ContentQuality, Section, SectionType, count_words

LOGGER = logging.getLogger(__name__)

LOW_WORD_COUNT = 100
MEDIUM_WORD_COUNT = 300
HEADING_BONUS = 0.2


def classify_block(block: str) -> Section:
    """Classify one block of text and score the classification."""

    confidence = heuristics.score_confidence(block)
    if heuristics.is_heading(block):
        return Section(
            content=block,
            type=SectionType.HEADING,
            confidence=heuristics.clamp(confidence + HEADING_BONUS),
            title=block,
        )
    if heuristics.is_list(block):
        section_type = SectionType.LIST
    elif heuristics.is_table(block):
        section_type = SectionType.TABLE
    elif heuristics.is_paragraph(block):
        section_type = SectionType.PARAGRAPH
    else:
        section_type = SectionType.UNKNOWN
    return Section(content=block, type=section_type, confidence=confidence)


def detect_sections(text: str) -> List[Section]:
    """Split normalised text into classified sections in document order."""

    sections = [
        classify_block(block)
        for block in heuristics.split_blocks(text)
        if len(block) >= heuristics.MIN_BLOCK_CHARS
    ]
    LOGGER.debug(
        "Detected %s sections (%s headings)",
        len(sections),
        sum(1 for section in sections if section.type is SectionType.HEADING),
    )
    return sections


@dataclass(slots=True)
class QualityAssessment:
    quality: ContentQuality
    warnings: List[str] = field(default_factory=list)

    def downgrade(self, warning: str) -> None:
        self.quality = self.quality.downgraded()
        self.warnings.append(warning)


def assess_quality(text: str, *, check_ocr: bool) -> QualityAssessment:
    """Derive the quality level of a document, only ever downgrading it."""

    word_count = count_words(text)
    if word_count < LOW_WORD_COUNT:
        assessment = QualityAssessment(
            ContentQuality.LOW,
            [f"Document contains very little text ({word_count} words); generated questions may be limited."],
        )
    elif word_count < MEDIUM_WORD_COUNT:
        assessment = QualityAssessment(
            ContentQuality.MEDIUM,
            [f"Document is fairly short ({word_count} words); question variety may be limited."],
        )
    else:
        assessment = QualityAssessment(ContentQuality.HIGH)

    if check_ocr:
        if heuristics.has_repeated_ambiguous_chars(text):
            assessment.downgrade(
                "Repeated ambiguous characters detected; the text may come from low quality OCR."
            )
        if heuristics.has_missing_spaces(text):
            assessment.downgrade(
                "Missing spaces after punctuation detected; words may have been merged during extraction."
            )
        if heuristics.has_excessive_uppercase(text):
            assessment.downgrade(
                "Unusually high proportion of uppercase letters; the text may be garbled."
            )

    if not heuristics.is_coherent(text):
        assessment.downgrade(
            "Sentence structure looks irregular (unusual sentence lengths or repeated sentences)."
        )
    return assessment


def has_structure(sections: List[Section]) -> bool:
    return any(
        section.type in (SectionType.HEADING, SectionType.LIST, SectionType.TABLE)
        for section in sections
    )
