"""High level extraction entry point: bytes in, analysed content out."""
from __future__ import annotations

import logging
import time
from typing import Optional

from quizit.errors import UnsupportedFormatError
from quizit.telemetry import emit_extraction_event, traced_duration

from .analysis import assess_quality, detect_sections, has_structure
from .extractors import DocxExtractor, PDFExtractor, RawDocument
from .format_detection import DocumentFormat
from .language import LanguageDetector, StopwordLanguageDetector
from .models import ContentMetadata, ContentQuality, ExtractedContent, count_words
from .normalization import normalize_text

LOGGER = logging.getLogger(__name__)

SCANNED_PDF_WARNING = (
    "No extractable text found. The PDF appears to be scanned or image-based; "
    "please upload a document with selectable text."
)
NO_TEXT_WARNING = "No extractable text found in the document."


class ContentExtractor:
    """Pipeline orchestrating decoding, normalisation and structural analysis."""

    def __init__(
        self,
        *,
        pdf_extractor: Optional[PDFExtractor] = None,
        docx_extractor: Optional[DocxExtractor] = None,
        language_detector: Optional[LanguageDetector] = None,
    ) -> None:
        self.pdf_extractor = pdf_extractor or PDFExtractor()
        self.docx_extractor = docx_extractor or DocxExtractor()
        self.language_detector = language_detector or StopwordLanguageDetector()

    def extract(self, data: bytes, kind: DocumentFormat | str) -> ExtractedContent:
        """Decode *data* and return normalised, classified content.

        Raises :class:`~quizit.errors.ExtractionError` when the decoder fails.
        A document without any text is a successful, low quality result.
        """

        try:
            document_format = DocumentFormat(kind)
        except ValueError as exc:
            raise UnsupportedFormatError(f"Unsupported document kind: {kind}") from exc
        started = time.perf_counter()
        LOGGER.info("Extracting %s document (%s bytes)", document_format.value, len(data))

        with traced_duration("extract.decode", logger=LOGGER, kind=document_format.value, size_bytes=len(data)):
            raw = self._decode(data, document_format)
        content = self.analyse(raw, document_format)

        emit_extraction_event(
            kind=document_format.value,
            size_bytes=len(data),
            word_count=content.metadata.word_count,
            sections=len(content.sections),
            quality=content.metadata.quality.value,
            warnings=content.metadata.warnings,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            pages=content.metadata.page_count,
        )
        return content

    def analyse(self, raw: RawDocument, document_format: DocumentFormat) -> ExtractedContent:
        text = normalize_text(raw.text)
        if not text:
            warning = (
                SCANNED_PDF_WARNING
                if document_format is DocumentFormat.PDF and (raw.page_count or raw.has_images)
                else NO_TEXT_WARNING
            )
            LOGGER.warning("Extraction produced no text: %s", warning)
            metadata = ContentMetadata(
                word_count=0,
                quality=ContentQuality.LOW,
                has_images=raw.has_images,
                page_count=raw.page_count,
                warnings=[warning],
            )
            return ExtractedContent(text="", metadata=metadata, sections=[])

        sections = detect_sections(text)
        assessment = assess_quality(text, check_ocr=document_format is DocumentFormat.PDF)
        metadata = ContentMetadata(
            word_count=count_words(text),
            quality=assessment.quality,
            has_images=raw.has_images,
            has_structure=has_structure(sections),
            page_count=raw.page_count,
            language=self.language_detector.detect(text),
            warnings=assessment.warnings,
        )
        LOGGER.info(
            "Extracted %s words in %s sections (quality=%s)",
            metadata.word_count,
            len(sections),
            metadata.quality.value,
        )
        return ExtractedContent(text=text, metadata=metadata, sections=sections)

    def _decode(self, data: bytes, document_format: DocumentFormat) -> RawDocument:
        if document_format is DocumentFormat.PDF:
            return self.pdf_extractor.extract(data)
        return self.docx_extractor.extract(data)


def extract_content(data: bytes, kind: DocumentFormat | str) -> ExtractedContent:
    """Convenience wrapper around :class:`ContentExtractor` with defaults."""

    return ContentExtractor().extract(data, kind)


def content_from_text(text: str, *, check_ocr: bool = False) -> ExtractedContent:
    """Analyse already decoded text as if it had been extracted from a document."""

    document_format = DocumentFormat.PDF if check_ocr else DocumentFormat.DOCX
    return ContentExtractor().analyse(RawDocument(text=text), document_format)
