"""Mapping of an upload (file name plus declared MIME type) to a decoder kind."""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import PurePath
from typing import Optional

from quizit.errors import UnsupportedFormatError

LOGGER = logging.getLogger(__name__)

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file type. Please upload a PDF or DOCX file."


class DocumentFormat(str, Enum):
    """The two document kinds the extractor can decode."""

    PDF = "pdf"
    DOCX = "docx"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    def matches(self, file_name: str, mime_type: Optional[str]) -> bool:
        """True when either the declared MIME type or the file suffix names this kind."""

        if mime_type and mime_type.split(";", 1)[0].strip().lower() == self.mime_type:
            return True
        return PurePath(file_name).suffix.lower() == self.suffix


_MIME_TYPES = {
    DocumentFormat.PDF: "application/pdf",
    DocumentFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def detect_format(file_name: str, mime_type: Optional[str] = None) -> DocumentFormat:
    """Return the kind of an upload; PDF is checked before DOCX.

    Generic MIME types such as ``application/octet-stream`` are ignored in
    favour of the suffix. Anything else raises
    :class:`~quizit.errors.UnsupportedFormatError`.
    """

    for document_format in DocumentFormat:
        if document_format.matches(file_name, mime_type):
            return document_format
    LOGGER.warning("Unsupported upload %s (mime=%s)", file_name, mime_type)
    raise UnsupportedFormatError(f"{UNSUPPORTED_FORMAT_MESSAGE} Received: {file_name}")


__all__ = ["DocumentFormat", "UNSUPPORTED_FORMAT_MESSAGE", "detect_format"]
