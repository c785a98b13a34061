"""Factory for creating document parsers based on file format."""

from abc import ABC, abstractmethod
from pathlib import Path

from tts_prep.errors import DocumentParseError
from tts_prep.models.document import ParseOptions, ParseResult, PerformanceStats


class DocumentParser(ABC):
    """Abstract base class for document parsers."""

    def __init__(self, options: ParseOptions | None = None):
        self.options = options or ParseOptions()
        self._stats: PerformanceStats | None = None

    @abstractmethod
    def parse(self, source: Path, options: ParseOptions | None = None) -> ParseResult:
        """Parse the document and return its structure or a typed error."""
        pass

    def set_options(self, options: ParseOptions) -> None:
        self.options = options

    def get_stats(self) -> PerformanceStats | None:
        """Performance stats of the last successful parse."""
        return self._stats

    def _check_input(self, source: Path | None, suffixes: tuple[str, ...]) -> ParseResult | None:
        """Return a failed result for missing, empty or mistyped input."""
        if source is None or not str(source).strip():
            return ParseResult.fail("INVALID_INPUT", "No input file given")
        if not isinstance(source, Path):
            return ParseResult.fail(
                "INVALID_INPUT_TYPE",
                f"Expected a file path, got {type(source).__name__}",
            )
        if not source.is_file():
            return ParseResult.fail(
                "INVALID_INPUT", f"File not found: {source}", path=str(source)
            )
        if source.stat().st_size == 0:
            return ParseResult.fail(
                "INVALID_INPUT", f"File is empty: {source}", path=str(source)
            )
        if source.suffix.lower() not in suffixes:
            return ParseResult.fail(
                "INVALID_INPUT_TYPE",
                f"Expected one of {', '.join(suffixes)}, got {source.suffix or 'no extension'}",
                path=str(source),
            )
        return None


class ParserFactory:
    """Factory for creating appropriate parser based on file format."""

    SUPPORTED_FORMATS = {
        ".epub": "epub",
        ".pdf": "pdf",
        ".md": "markdown",
        ".markdown": "markdown",
    }

    @classmethod
    def create(
        cls,
        path: Path,
        options: ParseOptions | None = None,
        pages_per_chunk: int | None = None,
    ) -> DocumentParser:
        """Create appropriate parser for the given file.

        Args:
            path: Path to the document (EPUB, PDF or Markdown)
            options: Parse options handed to the parser
            pages_per_chunk: Force page-based chunking for PDFs

        Returns:
            DocumentParser instance for the file type

        Raises:
            DocumentParseError: If the format is not supported
        """
        file_format = cls.detect_format(path)

        if file_format == "epub":
            from tts_prep.core.epub_parser import EpubParser

            return EpubParser(options)
        elif file_format == "pdf":
            from tts_prep.core.pdf_parser import PdfParser

            return PdfParser(options, pages_per_chunk=pages_per_chunk)
        elif file_format == "markdown":
            from tts_prep.core.markdown_parser import MarkdownParser

            return MarkdownParser(options)

        supported = ", ".join(cls.SUPPORTED_FORMATS.keys())
        raise DocumentParseError(
            f"Unsupported format: {path.suffix}. Supported formats: {supported}",
            code="UNSUPPORTED_FORMAT",
        )

    @classmethod
    def detect_format(cls, path: Path) -> str:
        """Detect file format from extension.

        Returns:
            Format string ("epub", "pdf", "markdown", or "unknown")
        """
        return cls.SUPPORTED_FORMATS.get(path.suffix.lower(), "unknown")

    @classmethod
    def is_supported(cls, path: Path) -> bool:
        return path.suffix.lower() in cls.SUPPORTED_FORMATS

    @classmethod
    def parse(
        cls,
        path: Path,
        options: ParseOptions | None = None,
        pages_per_chunk: int | None = None,
    ) -> ParseResult:
        """Create a parser and run it, returning failures as results."""
        try:
            parser = cls.create(path, options, pages_per_chunk)
        except DocumentParseError as e:
            return ParseResult.fail(e.code, e.message, path=str(path))
        return parser.parse(path, options)
