import logging

import pytest

from quizit.errors import ExtractionError, UnsupportedFormatError
from quizit.ingest import extractors
from quizit.ingest.extractors import DocxExtractor, PDFExtractor
from quizit.ingest.format_detection import UNSUPPORTED_FORMAT_MESSAGE, DocumentFormat, detect_format
from quizit.ingest.models import ContentQuality, SectionType
from quizit.ingest.pipeline import (
    NO_TEXT_WARNING,
    SCANNED_PDF_WARNING,
    ContentExtractor,
    content_from_text,
    extract_content,
)

PARAGRAPH = (
    "Photosynthesis converts light energy into chemical energy. "
    "It takes place in the chloroplasts of plant cells and releases oxygen."
)


@pytest.mark.parametrize(
    "file_name, mime_type, expected",
    [
        ("notes.pdf", None, DocumentFormat.PDF),
        ("NOTES.DOCX", None, DocumentFormat.DOCX),
        ("upload", "application/pdf", DocumentFormat.PDF),
        ("lecture.pdf", "application/octet-stream", DocumentFormat.PDF),
        ("upload", "application/pdf; charset=binary", DocumentFormat.PDF),
        ("upload", DocumentFormat.DOCX.mime_type, DocumentFormat.DOCX),
    ],
)
def test_format_detection(file_name: str, mime_type, expected: DocumentFormat):
    assert detect_format(file_name, mime_type) is expected


@pytest.mark.parametrize("file_name", ["notes.txt", "slides.pptx", "archive"])
def test_unsupported_formats_are_rejected(file_name: str):
    with pytest.raises(UnsupportedFormatError) as error:
        detect_format(file_name, "application/octet-stream")

    assert str(error.value).startswith(UNSUPPORTED_FORMAT_MESSAGE)


def test_docx_keeps_body_order_lists_and_tables(docx_factory):
    data = docx_factory(
        [PARAGRAPH],
        heading="Photosynthesis",
        bullets=["Chlorophyll absorbs light", "Stomata exchange gases"],
        table=[["Stage", "Input", "Output"], ["Light", "Water", "Oxygen"]],
    )

    raw = DocxExtractor().extract(data)

    assert raw.text.index("Photosynthesis") < raw.text.index("Chlorophyll")
    assert "- Chlorophyll absorbs light\n- Stomata exchange gases" in raw.text
    assert "Stage\tInput\tOutput\nLight\tWater\tOxygen" in raw.text
    assert raw.page_count is None
    assert raw.has_images is False


def test_docx_content_is_classified(docx_factory):
    data = docx_factory(
        [PARAGRAPH],
        heading="Photosynthesis",
        bullets=["Chlorophyll absorbs light", "Stomata exchange gases"],
        table=[["Stage", "Input", "Output"], ["Light", "Water", "Oxygen"]],
    )

    content = extract_content(data, "docx")

    types = [section.type for section in content.sections]
    assert types == [SectionType.HEADING, SectionType.PARAGRAPH, SectionType.LIST, SectionType.TABLE]
    assert content.metadata.has_structure
    assert content.metadata.word_count == len(content.text.split())
    assert content.metadata.quality is ContentQuality.LOW


def test_empty_docx_is_low_quality_without_error(docx_factory):
    content = ContentExtractor().extract(docx_factory([]), DocumentFormat.DOCX)

    assert content.text == ""
    assert content.sections == []
    assert content.metadata.quality is ContentQuality.LOW
    assert content.metadata.warnings == [NO_TEXT_WARNING]


def test_pdf_text_is_extracted(pdf_factory):
    data = pdf_factory(["Photosynthesis happens in leaves.", "Chlorophyll absorbs light."])

    raw = PDFExtractor().extract(data)

    assert raw.page_count == 1
    assert "Photosynthesis" in raw.text
    assert "Chlorophyll" in raw.text


def test_pdf_without_text_is_reported_as_scanned(pdf_factory):
    content = extract_content(pdf_factory([]), DocumentFormat.PDF)

    assert content.text == ""
    assert content.metadata.page_count == 1
    assert content.metadata.quality is ContentQuality.LOW
    assert content.metadata.warnings == [SCANNED_PDF_WARNING]


def test_corrupt_documents_raise_extraction_error():
    with pytest.raises(ExtractionError) as pdf_error:
        extract_content(b"this is not a pdf", "pdf")
    with pytest.raises(ExtractionError):
        extract_content(b"PK\x03\x04 broken zip", "docx")

    assert pdf_error.value.kind == "extraction_failure"


class _DamagedPdfReader:
    """Stands in for a reader whose page tree cannot be resolved."""

    is_encrypted = False

    def __init__(self, stream, error: Exception) -> None:
        self._error = error

    @property
    def pages(self):
        raise self._error


@pytest.mark.parametrize(
    "error",
    [
        AttributeError("'NoneType' object has no attribute 'get_object'"),
        RecursionError("maximum recursion depth exceeded"),
    ],
)
def test_damaged_pdf_trailer_is_an_extraction_error(monkeypatch, pdf_factory, error):
    monkeypatch.setattr(extractors, "PdfReader", lambda stream: _DamagedPdfReader(stream, error))

    with pytest.raises(ExtractionError) as raised:
        extract_content(pdf_factory(["Broken trailer"]), "pdf")

    assert raised.value.kind == "extraction_failure"
    assert raised.value.__cause__ is error


def test_pdf_with_dangling_root_reference_is_an_extraction_error(pdf_factory):
    data = pdf_factory(["Dangling root"]).replace(b"/Root 1 0 R", b"/Root 9 0 R")

    with pytest.raises(ExtractionError) as raised:
        extract_content(data, "pdf")

    assert raised.value.kind == "extraction_failure"


def test_unknown_kind_is_unsupported():
    with pytest.raises(UnsupportedFormatError):
        extract_content(b"data", "rtf")


def test_content_from_text_normalises_and_detects_language(document_factory):
    content = content_from_text(document_factory(sections=4).replace("\n\n", "\r\n\r\n\r\n"))

    assert "\r" not in content.text
    assert "\n\n\n" not in content.text
    assert content.metadata.language == "en"
    assert content.metadata.quality is ContentQuality.HIGH
    assert content.sections[0].type is SectionType.HEADING


def _pipeline_events(caplog):
    return [
        record.msg
        for record in caplog.records
        if record.name == "quizit.ingest.pipeline" and isinstance(record.msg, dict)
    ]


def test_decoding_is_traced(caplog, pdf_factory):
    data = pdf_factory(["Photosynthesis happens in leaves."])

    with caplog.at_level(logging.INFO, logger="quizit.ingest.pipeline"):
        extract_content(data, "pdf")

    events = _pipeline_events(caplog)
    assert [event["step"] for event in events] == ["extract.decode.start", "extract.decode.complete"]
    assert events[-1]["details"] == {"kind": "pdf", "size_bytes": len(data)}
    assert events[-1]["duration_ms"] >= 0


def test_failed_decoding_is_traced_as_error(caplog):
    with caplog.at_level(logging.INFO, logger="quizit.ingest.pipeline"):
        with pytest.raises(ExtractionError):
            extract_content(b"this is not a pdf", "pdf")

    steps = [event["step"] for event in _pipeline_events(caplog)]
    assert steps == ["extract.decode.start", "extract.decode.error", "extract.decode.complete"]
