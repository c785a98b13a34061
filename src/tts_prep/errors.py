"""Exception types raised by I/O adapters and caught at the core boundaries."""

from typing import Any


class DocumentParseError(Exception):
    """A document could not be read or parsed."""

    def __init__(
        self,
        message: str,
        code: str = "PARSE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class EPUBStructureError(DocumentParseError):
    """The EPUB container is missing something it needs."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="EPUB_STRUCTURE_ERROR", details=details)


class PDFParseError(DocumentParseError):
    """The PDF is encrypted, empty or corrupted."""

    def __init__(
        self,
        message: str,
        code: str = "PDF_PARSE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, details=details)


class ConfigurationError(Exception):
    """A config or profile file is missing, unreadable or invalid."""
