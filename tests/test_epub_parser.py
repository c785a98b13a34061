from __future__ import annotations

from pathlib import Path

import pytest

from tts_prep.core.epub_container import EbooklibContainer
from tts_prep.core.epub_parser import EpubParser
from tts_prep.errors import DocumentParseError, EPUBStructureError
from tts_prep.models.document import ParagraphType, ParseOptions
from tts_prep.models.extraction import ExtractionMethod
from tts_prep.models.validation import ValidationLevel


def test_container_exposes_epub_parts(make_epub) -> None:
    container = EbooklibContainer(make_epub())
    try:
        metadata = {entry.type: entry.value for entry in container.get_metadata()}
        assert metadata["title"] == "Sample Book"
        assert metadata["creator"] == "Sample Author"
        assert metadata["format"].startswith("EPUB 3")

        spine = container.get_spine_items()
        assert [item.id for item in spine] == ["ch1", "ch2"]
        assert spine[0].href == "ch1.xhtml"

        manifest = container.get_manifest()
        assert "nav" in manifest["nav"].properties

        text = container.read_xhtml_item_contents("ch1", "text")
        assert "first chapter" in text
        assert "<p>" in container.read_xhtml_item_contents("ch1", "html")
        with pytest.raises(DocumentParseError):
            container.read_xhtml_item_contents("missing")

        assert container.toc_titles()["ch2.xhtml"] == "Chapter Two"
    finally:
        container.close()


def test_container_open_errors(tmp_path: Path) -> None:
    with pytest.raises(DocumentParseError) as excinfo:
        EbooklibContainer(tmp_path / "absent.epub")
    assert excinfo.value.code == "INVALID_INPUT"

    broken = tmp_path / "broken.epub"
    broken.write_bytes(b"this is not a zip archive")
    with pytest.raises(EPUBStructureError):
        EbooklibContainer(broken)


def test_parse_builds_chapters_paragraphs_and_sentences(make_epub) -> None:
    result = EpubParser().parse(make_epub())
    assert result.success, result.error
    document = result.data

    assert document.metadata.title == "Sample Book"
    assert document.metadata.author == "Sample Author"
    assert document.metadata.language == "en"
    assert document.metadata.created == "2021-03-04"
    assert document.metadata.custom_metadata["identifier"] == "urn:uuid:12345678"

    assert [ch.title for ch in document.chapters] == ["Chapter One", "Chapter Two"]
    first = document.chapters[0]
    assert [p.type for p in first.paragraphs] == [
        ParagraphType.HEADING,
        ParagraphType.TEXT,
        ParagraphType.TEXT,
    ]
    assert [s.text for s in first.paragraphs[1].sentences] == [
        "This is the first chapter.",
        "It has two sentences.",
    ]
    assert document.chapters[1].paragraphs[-1].type == ParagraphType.QUOTE

    assert document.stats.method == ExtractionMethod.EPUB_NATIVE
    assert document.stats.source_format == "epub"
    assert document.stats.warnings == []
    assert document.total_word_count == sum(ch.word_count for ch in document.chapters)
    assert document.chapters[1].start_position == document.chapters[0].end_position + 2


def test_images_only_with_extract_media(make_epub) -> None:
    path = make_epub()
    plain = EpubParser().parse(path).data
    assert all(
        p.type != ParagraphType.IMAGE for ch in plain.chapters for p in ch.paragraphs
    )

    with_media = EpubParser(ParseOptions(extract_media=True)).parse(path).data
    images = [p for ch in with_media.chapters for p in ch.paragraphs if p.type == ParagraphType.IMAGE]
    assert len(images) == 1
    assert "<img" in images[0].raw_text
    assert not images[0].include_in_audio
    assert with_media.stats.performance.statistics.image_count == 1


def test_preserve_html_keeps_markup(make_epub) -> None:
    document = EpubParser(ParseOptions(preserve_html=True)).parse(make_epub()).data
    paragraph = document.chapters[0].paragraphs[1]
    assert paragraph.raw_text.startswith("<p>")
    assert paragraph.sentences[0].text == "This is the first chapter."


def test_metadata_only_mode_skips_chapters(make_epub) -> None:
    result = EpubParser(ParseOptions(mode="metadata-only")).parse(make_epub())
    assert result.success
    assert result.data.chapters == []
    assert result.data.metadata.title == "Sample Book"


def test_title_falls_back_to_heading_then_file_stem(make_epub) -> None:
    path = make_epub(
        "untitled.epub",
        [("ignored", "<h2>Heading Title</h2><p>Body text.</p>")],
        title=None,
        with_nav=False,
    )
    document = EpubParser().parse(path).data
    assert document.metadata.title == "untitled"
    assert document.chapters[0].title == "Heading Title"
    assert "MISSING_TITLE: EPUB metadata is missing title" in document.processing_metrics.processing_errors
    assert any(w.startswith("MISSING_NAVIGATION") for w in document.stats.warnings)
    assert document.stats.confidence == pytest.approx(0.8)


def test_strict_mode_fails_without_content(make_epub) -> None:
    path = make_epub("empty.epub", [("Blank", "<div></div>")])
    lenient = EpubParser().parse(path)
    assert lenient.success
    assert lenient.data.chapters == []

    strict = EpubParser(ParseOptions(strict_mode=True)).parse(path)
    assert not strict.success
    assert strict.error.code == "EPUB_FORMAT_ERROR"
    assert strict.error.details["chapters_found"] == 0


def test_validation_level_controls_warnings(make_epub) -> None:
    path = make_epub("noauthor.epub", author=None)
    basic = EpubParser(ParseOptions(validation_level=ValidationLevel.BASIC)).parse(path).data
    assert basic.stats.warnings == []

    standard = EpubParser().parse(path).data
    assert any(w.startswith("MISSING_AUTHOR") for w in standard.stats.warnings)


def test_input_errors_are_results(tmp_path: Path) -> None:
    parser = EpubParser()

    missing = parser.parse(tmp_path / "nope.epub")
    assert missing.error.code == "INVALID_INPUT"

    empty = tmp_path / "empty.epub"
    empty.write_bytes(b"")
    assert parser.parse(empty).error.code == "INVALID_INPUT"

    wrong = tmp_path / "book.txt"
    wrong.write_text("text", encoding="utf-8")
    assert parser.parse(wrong).error.code == "INVALID_INPUT_TYPE"

    assert parser.parse("book.epub").error.code == "INVALID_INPUT_TYPE"

    corrupt = tmp_path / "corrupt.epub"
    corrupt.write_bytes(b"PK not really")
    assert parser.parse(corrupt).error.code == "EPUB_STRUCTURE_ERROR"


def test_get_stats_after_parse(make_epub) -> None:
    parser = EpubParser()
    assert parser.get_stats() is None
    parser.parse(make_epub())
    stats = parser.get_stats()
    assert stats is not None
    assert stats.statistics.chapter_count == 2
