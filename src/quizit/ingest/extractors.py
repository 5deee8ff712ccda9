"""Decoders for supported document types."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional

from docx import Document as load_docx
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph
from PyPDF2 import PdfReader

from quizit.errors import ExtractionError

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RawDocument:
    """Text produced by a decoder before normalisation and analysis."""

    text: str
    page_count: Optional[int] = None
    has_images: bool = False


class PDFExtractor:
    """Extract text from PDF documents page by page."""

    def extract(self, data: bytes) -> RawDocument:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted and not reader.decrypt(""):
                raise ExtractionError("The PDF is password protected and cannot be read.")
            pages = list(reader.pages)
        except ExtractionError:
            raise
        except Exception as error:  # damaged xref or trailer data fails in many ways
            raise ExtractionError(f"Unable to read PDF document: {error}", cause=error) from error

        texts: List[str] = []
        has_images = False
        for index, page in enumerate(pages, start=1):
            try:
                texts.append(page.extract_text() or "")
            except Exception as error:
                raise ExtractionError(
                    f"Failed to extract text from PDF page {index}: {error}", cause=error
                ) from error
            if not has_images:
                has_images = self._page_has_images(page, index)

        LOGGER.debug("Decoded %s PDF pages (images=%s)", len(pages), has_images)
        return RawDocument(text="\n\n".join(texts), page_count=len(pages), has_images=has_images)

    @staticmethod
    def _page_has_images(page, index: int) -> bool:
        try:
            return len(page.images) > 0
        except Exception as error:  # image decoding depends on optional codecs
            LOGGER.warning("Could not inspect images on PDF page %s: %s", index, error)
            return False


class DocxExtractor:
    """Extract text from Microsoft Word documents in body order."""

    def extract(self, data: bytes) -> RawDocument:
        try:
            document = load_docx(io.BytesIO(data))
        except Exception as error:
            raise ExtractionError(f"Unable to read DOCX document: {error}", cause=error) from error

        blocks: List[str] = []
        list_items: List[str] = []

        def flush_list() -> None:
            if list_items:
                blocks.append("\n".join(list_items))
                list_items.clear()

        for child in document.element.body.iterchildren():
            if child.tag == qn("w:p"):
                paragraph = Paragraph(child, document)
                text = paragraph.text.strip()
                if not text:
                    continue
                if self._is_list_paragraph(paragraph):
                    list_items.append(text if text[:1] in "-*•" else f"- {text}")
                    continue
                flush_list()
                blocks.append(text)
            elif child.tag == qn("w:tbl"):
                flush_list()
                rows = self._table_rows(Table(child, document))
                if rows:
                    blocks.append("\n".join(rows))
        flush_list()

        has_images = len(document.inline_shapes) > 0
        return RawDocument(text="\n\n".join(blocks), page_count=None, has_images=has_images)

    @staticmethod
    def _is_list_paragraph(paragraph: Paragraph) -> bool:
        style_name = (paragraph.style.name if paragraph.style is not None else "") or ""
        if "list" in style_name.lower():
            return True
        properties = paragraph._p.pPr
        return properties is not None and properties.numPr is not None

    @staticmethod
    def _table_rows(table: Table) -> List[str]:
        rows: List[str] = []
        for row in table.rows:
            cells = [" ".join(cell.text.split()) for cell in row.cells]
            if any(cells):
                rows.append("\t".join(cells))
        return rows
