import pytest

from quizit.ingest import heuristics
from quizit.ingest.analysis import assess_quality, classify_block, detect_sections, has_structure
from quizit.ingest.language import LangdetectLanguageDetector, StopwordLanguageDetector
from quizit.ingest.models import ContentQuality, SectionType


@pytest.mark.parametrize(
    "block, expected",
    [
        ("1. Introduction", True),
        ("CHAPTER OVERVIEW", True),
        ("Photosynthesis Basics", True),
        ("This line ends with a period.", False),
        ("lowercase start heading", False),
        ("Two lines\nare not a heading", False),
        ("A" * 120, False),
    ],
)
def test_is_heading(block: str, expected: bool):
    assert heuristics.is_heading(block) is expected


def test_list_and_table_detection():
    assert heuristics.is_list("- first item\n- second item\nplain")
    assert heuristics.is_list("1. one\n2. two")
    assert not heuristics.is_list("just a sentence")
    assert heuristics.is_table("a | b | c\n1 | 2 | 3")
    assert heuristics.is_table("Stage\tInput\tOutput\nLight\tWater\tOxygen")
    assert not heuristics.is_table("a | b\n1 | 2")


def test_classification_precedence():
    heading = classify_block("2. Cell Structure")
    assert heading.type is SectionType.HEADING
    assert heading.title == "2. Cell Structure"

    listing = classify_block("- Nucleus stores DNA.\n- Ribosomes build proteins.")
    assert listing.type is SectionType.LIST

    paragraph = classify_block(
        "The cell membrane controls what enters and leaves the cell. It is selectively permeable."
    )
    assert paragraph.type is SectionType.PARAGRAPH
    assert paragraph.title is None

    unknown = classify_block("some words without a full stop and longer than fifty characters ok")
    assert unknown.type is SectionType.UNKNOWN


def test_heading_confidence_gets_bonus_and_stays_in_range():
    heading = classify_block("Introduction: Overview")
    assert 0.0 <= heading.confidence <= 1.0
    assert heading.confidence >= heuristics.score_confidence("Introduction: Overview")


def test_detect_sections_skips_tiny_blocks_and_keeps_order(document_factory):
    text = document_factory(sections=2, paragraphs_per_section=1) + "\n\nok"
    sections = detect_sections(text)

    assert [section.type for section in sections] == [
        SectionType.HEADING,
        SectionType.PARAGRAPH,
        SectionType.HEADING,
        SectionType.PARAGRAPH,
    ]
    assert has_structure(sections)
    assert not has_structure([section for section in sections if section.type is SectionType.PARAGRAPH])


def test_short_text_is_low_quality(words_factory):
    assessment = assess_quality(words_factory(50), check_ocr=False)

    assert assessment.quality is ContentQuality.LOW
    assert any("very little text" in warning for warning in assessment.warnings)


def test_medium_and_high_quality_thresholds(words_factory):
    medium = assess_quality(words_factory(150), check_ocr=False)
    high = assess_quality(words_factory(400), check_ocr=False)

    assert medium.quality is ContentQuality.MEDIUM
    assert len(medium.warnings) == 1
    assert high.quality is ContentQuality.HIGH
    assert high.warnings == []


def test_ocr_artifacts_only_checked_when_requested(words_factory):
    text = words_factory(400) + " Thiis lllooks wrong.Really wrong.Truly broken.Again"

    without_ocr = assess_quality(text, check_ocr=False)
    with_ocr = assess_quality(text, check_ocr=True)

    assert without_ocr.quality is ContentQuality.HIGH
    assert with_ocr.quality is ContentQuality.LOW
    assert len(with_ocr.warnings) == 2


def test_repeated_sentences_downgrade_quality():
    sentence = "The same sentence about leaves appears again and again in the text. "
    assessment = assess_quality(sentence * 40, check_ocr=False)

    assert assessment.quality is ContentQuality.MEDIUM
    assert any("irregular" in warning for warning in assessment.warnings)


def test_stopword_language_detector(words_factory):
    detector = StopwordLanguageDetector()

    assert detector.detect(words_factory(100)) == "en"
    assert detector.detect("Der Hund läuft schnell über die Wiese.") == "unknown"
    assert detector.detect("   ") is None


def test_langdetect_detector_handles_text_without_features():
    detector = LangdetectLanguageDetector()

    assert detector.detect("12345 67890") == "unknown"
    assert detector.detect("") is None
