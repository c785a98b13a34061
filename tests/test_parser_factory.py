from __future__ import annotations

from pathlib import Path

import pytest

from tts_prep.core.epub_parser import EpubParser
from tts_prep.core.markdown_parser import MarkdownParser
from tts_prep.core.parser_factory import ParserFactory
from tts_prep.core.pdf_parser import PdfParser
from tts_prep.errors import DocumentParseError
from tts_prep.models.document import ParseOptions


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("book.epub", "epub"),
        ("BOOK.EPUB", "epub"),
        ("paper.pdf", "pdf"),
        ("notes.md", "markdown"),
        ("notes.markdown", "markdown"),
        ("notes.txt", "unknown"),
        ("README", "unknown"),
    ],
)
def test_detect_format(name: str, expected: str) -> None:
    assert ParserFactory.detect_format(Path(name)) == expected


def test_is_supported() -> None:
    assert ParserFactory.is_supported(Path("a.pdf"))
    assert not ParserFactory.is_supported(Path("a.docx"))


@pytest.mark.parametrize(
    ("name", "parser_type"),
    [("a.epub", EpubParser), ("a.pdf", PdfParser), ("a.md", MarkdownParser)],
)
def test_create_returns_matching_parser(name: str, parser_type: type) -> None:
    options = ParseOptions(strict_mode=True)

    parser = ParserFactory.create(Path(name), options)

    assert isinstance(parser, parser_type)
    assert parser.options.strict_mode


def test_create_rejects_unknown_format() -> None:
    with pytest.raises(DocumentParseError) as excinfo:
        ParserFactory.create(Path("slides.pptx"))

    assert excinfo.value.code == "UNSUPPORTED_FORMAT"


def test_parse_unknown_format_returns_failure(tmp_path: Path) -> None:
    source = tmp_path / "slides.pptx"
    source.write_bytes(b"data")

    result = ParserFactory.parse(source)

    assert not result.success
    assert result.error.code == "UNSUPPORTED_FORMAT"
    assert result.error.details["path"] == str(source)


def test_parse_dispatches_markdown(sample_markdown: Path) -> None:
    result = ParserFactory.parse(sample_markdown)

    assert result.success
    assert result.data.stats.source_format == "markdown"


def test_empty_file_is_invalid_input(tmp_path: Path) -> None:
    source = tmp_path / "empty.md"
    source.write_text("", encoding="utf-8")

    result = ParserFactory.parse(source)

    assert result.error.code == "INVALID_INPUT"
