from __future__ import annotations

import json
from pathlib import Path

import pytest

from tts_prep.core.content_processor import ContentProcessor
from tts_prep.core.document_builder import build_chapter, build_paragraph
from tts_prep.core.markdown_parser import MarkdownParser
from tts_prep.core.output_writer import OutputWriter
from tts_prep.models.document import Chapter, ParagraphType

WPM = 150


@pytest.fixture
def chapter() -> Chapter:
    blocks = [
        ("Chapter One", None, ParagraphType.HEADING, None),
        ("First sentence. Second one!", None, ParagraphType.TEXT, None),
        ("Quoted words.", None, ParagraphType.QUOTE, None),
        ("x = 1", None, ParagraphType.CODE, False),
        ("", '<img src="a.png" alt="A"/>', ParagraphType.IMAGE, None),
        ("Bold move.", "<p><b>Bold</b> move.</p>", ParagraphType.TEXT, None),
    ]
    paragraphs = [
        build_paragraph(
            text,
            f"chapter-1-paragraph-{i + 1}",
            i,
            WPM,
            raw_text=raw,
            paragraph_type=kind,
            include_in_audio=audio,
        )
        for i, (text, raw, kind, audio) in enumerate(blocks)
    ]
    return build_chapter("Chapter One", paragraphs, 0, WPM)


def test_plain_text_keeps_only_spoken_paragraphs(chapter: Chapter) -> None:
    content = ContentProcessor().process(chapter, "text")

    assert content == (
        "Chapter One\n\nFirst sentence. Second one!\n\nQuoted words.\n\nBold move."
    )


def test_spoken_sentences(chapter: Chapter) -> None:
    assert ContentProcessor.spoken_sentences(chapter) == [
        "Chapter One",
        "First sentence.",
        "Second one!",
        "Quoted words.",
        "Bold move.",
    ]


def test_markdown_rendering(chapter: Chapter) -> None:
    content = ContentProcessor().process(chapter, "markdown")

    assert content.startswith("## Chapter One")
    assert "> Quoted words." in content
    assert "```\nx = 1\n```" in content
    assert "![A](a.png)" in content
    assert "**Bold** move." in content


def test_markdown_adds_title_when_chapter_has_no_heading() -> None:
    paragraph = build_paragraph("Just text.", "chapter-1-paragraph-1", 0, WPM)
    chapter = build_chapter("Untitled Part", [paragraph], 0, WPM)

    content = ContentProcessor().process(chapter, "markdown")

    assert content == "# Untitled Part\n\nJust text."


def test_html_rendering_escapes_text() -> None:
    paragraphs = [
        build_paragraph("Fish & chips.", "chapter-1-paragraph-1", 0, WPM),
        build_paragraph("A list entry", "chapter-1-paragraph-2", 1, WPM, paragraph_type=ParagraphType.LIST_ITEM),
    ]
    chapter = build_chapter("Food & Drink", paragraphs, 0, WPM)

    content = ContentProcessor().process(chapter, "html")

    assert content.splitlines() == [
        "<h1>Food &amp; Drink</h1>",
        "<p>Fish &amp; chips.</p>",
        "<li>A list entry</li>",
    ]


def test_html_passes_markup_through(chapter: Chapter) -> None:
    content = ContentProcessor().process(chapter, "html")

    assert "<pre>x = 1</pre>" in content
    assert '<img src="a.png" alt="A"/>' in content
    assert "<p><b>Bold</b> move.</p>" in content


def test_get_stats() -> None:
    stats = ContentProcessor().get_stats("One two.\n\nThree four five.")

    assert stats == {"word_count": 5, "character_count": 26, "paragraph_count": 2}


def test_writer_outputs(tmp_path: Path, sample_markdown: Path) -> None:
    document = MarkdownParser().parse(sample_markdown).data
    writer = OutputWriter(tmp_path / "out", sample_markdown)

    document_path = writer.write_document(document)
    chapter_path, metadata = writer.write_chapter(
        document.chapters[1], document.stats.method.value, "text"
    )
    manifest_path = writer.write_manifest(document, [1], [metadata])

    assert json.loads(document_path.read_text())["metadata"]["title"] == "Field Notes"

    assert chapter_path.name == "chapter_002.json"
    chapter_data = json.loads(chapter_path.read_text())
    assert chapter_data["metadata"]["title"] == "Morning"
    assert chapter_data["metadata"]["word_count"] == document.chapters[1].word_count
    assert chapter_data["format"] == "text"
    assert 'print("not spoken")' not in chapter_data["content"]
    assert chapter_data["sentences"][:2] == ["Morning", "The sun rose at 6.30 today."]

    manifest = json.loads(manifest_path.read_text())
    assert manifest["title"] == "Field Notes"
    assert manifest["author"] == "Ada Writer"
    assert manifest["total_chapters"] == 3
    assert manifest["extracted_chapters"] == [1]
    assert manifest["source_format"] == "markdown"
    assert manifest["total_word_count"] == metadata.word_count
