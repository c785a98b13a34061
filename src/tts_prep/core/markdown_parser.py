"""Markdown parsing: chapters at top-level headings, typed paragraphs."""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from tts_prep.core.document_builder import (
    build_chapter,
    build_document_structure,
    build_paragraph,
)
from tts_prep.core.encoding_conversion import decode_bytes
from tts_prep.core.parser_factory import DocumentParser
from tts_prep.core.segmenter import strip_html_and_clean
from tts_prep.models.document import (
    Chapter,
    DocumentMetadata,
    Paragraph,
    ParagraphType,
    ParseOptions,
    ParseResult,
)
from tts_prep.models.extraction import ExtractionMethod

log = logging.getLogger(__name__)

# YAML front matter (--- delimited block at start of file)
FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
QUOTE_PATTERN = re.compile(r"^\s*>\s?")
LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
IMAGE_LINE_PATTERN = re.compile(r"^\s*!\[([^\]]*)\]\([^)]*\)\s*$")
THEMATIC_BREAK_PATTERN = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")

INLINE_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]*\)")
EMPHASIS_PATTERN = re.compile(r"(?<!\w)(\*\*|__|\*|_|~~)(?=\S)(.+?)(?<=\S)\1(?!\w)")
CODE_SPAN_PATTERN = re.compile(r"`([^`]*)`")

FRONTMATTER_FIELDS = ("title", "author", "language", "publisher", "date")
LOSSY_CONFIDENCE = 0.5


@dataclass
class Block:
    """A run of Markdown lines forming one paragraph."""

    kind: ParagraphType
    raw: str
    text: str
    level: int = 0  # heading level, 0 for non-headings


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from Markdown content.

    Returns:
        Tuple of (metadata dict, content without front matter).
        Missing or invalid front matter yields an empty dict and the
        content unchanged.
    """
    if not content or not content.startswith("---"):
        return {}, content

    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return {}, content

    try:
        metadata = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        log.warning(f"Ignoring invalid front matter: {e}")
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content
    return metadata, content[match.end():]


def clean_inline_markdown(text: str) -> str:
    """Spoken form of a Markdown line: markup removed, link and alt text kept."""
    text = INLINE_IMAGE_PATTERN.sub(r"\1", text)
    text = LINK_PATTERN.sub(r"\1", text)
    text = CODE_SPAN_PATTERN.sub(r"\1", text)
    # Nested emphasis needs more than one pass
    for _ in range(3):
        text = EMPHASIS_PATTERN.sub(r"\2", text)
    return strip_html_and_clean(text)


def split_blocks(lines: list[str]) -> list[Block]:
    """Group Markdown lines into typed blocks."""
    blocks: list[Block] = []
    buffer: list[str] = []
    kind = ParagraphType.TEXT

    def flush() -> None:
        nonlocal buffer, kind
        if buffer:
            raw = "\n".join(buffer)
            if kind == ParagraphType.QUOTE:
                text = " ".join(QUOTE_PATTERN.sub("", line) for line in buffer)
            elif kind == ParagraphType.LIST_ITEM:
                text = LIST_ITEM_PATTERN.sub("", raw, count=1)
            else:
                text = raw
            blocks.append(Block(kind, raw, clean_inline_markdown(text)))
        buffer = []
        kind = ParagraphType.TEXT

    i = 0
    while i < len(lines):
        line = lines[i]

        fence = FENCE_PATTERN.match(line)
        if fence:
            flush()
            marker = fence.group(1)
            code = [line]
            i += 1
            while i < len(lines):
                code.append(lines[i])
                if lines[i].strip().startswith(marker):
                    break
                i += 1
            closed = len(code) > 1 and code[-1].strip().startswith(marker)
            body = "\n".join(code[1:-1] if closed else code[1:])
            blocks.append(Block(ParagraphType.CODE, "\n".join(code), " ".join(body.split())))
            i += 1
            continue

        heading = HEADING_PATTERN.match(line)
        if heading:
            flush()
            title = clean_inline_markdown(heading.group(2))
            blocks.append(Block(ParagraphType.HEADING, line, title, level=len(heading.group(1))))
        elif not line.strip() or THEMATIC_BREAK_PATTERN.match(line):
            flush()
        elif IMAGE_LINE_PATTERN.match(line):
            flush()
            blocks.append(Block(ParagraphType.IMAGE, line.strip(), ""))
        elif QUOTE_PATTERN.match(line):
            if kind != ParagraphType.QUOTE:
                flush()
                kind = ParagraphType.QUOTE
            buffer.append(line)
        elif LIST_ITEM_PATTERN.match(line):
            flush()
            kind = ParagraphType.LIST_ITEM
            buffer.append(line)
        else:
            if kind == ParagraphType.QUOTE:
                flush()
            # Indented lines continue a list item, anything else ends it
            if kind == ParagraphType.LIST_ITEM and not line.startswith((" ", "\t")):
                flush()
            buffer.append(line)
        i += 1

    flush()
    return blocks


def chapter_heading_level(blocks: list[Block]) -> int | None:
    """Heading level that starts chapters: H1 when it repeats, else H2."""
    levels = [b.level for b in blocks if b.kind == ParagraphType.HEADING]
    if levels.count(1) >= 2:
        return 1
    if 2 in levels:
        return 2
    if 1 in levels:
        return 1
    return None


class MarkdownParser(DocumentParser):
    """Parse Markdown files into chapters, paragraphs and sentences."""

    SUFFIXES = (".md", ".markdown")

    def parse(self, source: Path, options: ParseOptions | None = None) -> ParseResult:
        """Parse a Markdown file.

        Args:
            source: Path to the Markdown file
            options: Overrides the parser's options for this call

        Returns:
            ParseResult with the document, or a typed error
        """
        options = options or self.options
        invalid = self._check_input(source, self.SUFFIXES)
        if invalid:
            return invalid

        parse_start = datetime.now()
        perf_start = time.perf_counter()

        try:
            data = source.read_bytes()
        except OSError as e:
            log.warning(f"Could not read {source}: {e}")
            return ParseResult.fail("INVALID_INPUT", f"Could not read file: {e}", path=str(source))

        decoded = decode_bytes(data)
        warnings_list: list[str] = []
        if decoded.lossy:
            warnings_list.append("ENCODING_LOSSY: undecodable bytes were replaced")

        front, body = parse_frontmatter(decoded.text.replace("\r\n", "\n"))
        blocks = split_blocks(body.split("\n"))
        metadata = self._build_metadata(front, blocks, source, decoded.encoding, decoded.confidence)

        chapter_level = chapter_heading_level(blocks)
        if options.mode == "metadata-only":
            chapters: list[Chapter] = []
        else:
            chapters = self._extract_chapters(blocks, chapter_level, metadata.title, options)

        if options.strict_mode and options.mode != "metadata-only" and not chapters:
            return ParseResult.fail(
                "MARKDOWN_NO_CONTENT",
                "Markdown parsing failed: No content could be extracted",
                title=metadata.title,
            )

        document = build_document_structure(
            metadata,
            chapters,
            method=(
                ExtractionMethod.MARKDOWN_HEADINGS
                if chapter_level is not None
                else ExtractionMethod.MARKDOWN_SINGLE
            ),
            source_format="markdown",
            parse_start_time=parse_start,
            perf_start=perf_start,
            extraction_confidence=LOSSY_CONFIDENCE if decoded.lossy else 1.0,
            warnings=warnings_list,
            source_length=len(decoded.text),
            cache_stats=self._stats,
        )
        self._stats = document.stats.performance
        return ParseResult.ok(document)

    @staticmethod
    def _build_metadata(
        front: dict[str, Any],
        blocks: list[Block],
        source: Path,
        encoding: str,
        confidence: float,
    ) -> DocumentMetadata:
        first_h1 = next(
            (b.text for b in blocks if b.kind == ParagraphType.HEADING and b.level == 1),
            None,
        )
        values = {
            name: str(front[name]) for name in FRONTMATTER_FIELDS if front.get(name) is not None
        }
        custom = {
            str(k): str(v)
            for k, v in front.items()
            if k not in FRONTMATTER_FIELDS and isinstance(v, (str, int, float))
        }
        custom["encoding"] = encoding
        custom["encoding_confidence"] = f"{confidence:.2f}"

        return DocumentMetadata(
            title=values.get("title") or first_h1 or source.stem,
            author=values.get("author"),
            language=values.get("language"),
            publisher=values.get("publisher"),
            created=values.get("date"),
            custom_metadata=custom,
        )

    def _extract_chapters(
        self,
        blocks: list[Block],
        chapter_level: int | None,
        document_title: str,
        options: ParseOptions,
    ) -> list[Chapter]:
        """Split blocks at chapter headings; loose leading content becomes its own chapter."""
        groups: list[tuple[str, int, list[Block]]] = []
        current_title = document_title
        current: list[Block] = []

        for block in blocks:
            starts_chapter = (
                chapter_level is not None
                and block.kind == ParagraphType.HEADING
                and block.level <= chapter_level
            )
            if starts_chapter:
                if any(b.kind != ParagraphType.HEADING for b in current):
                    groups.append((current_title, 1, current))
                current_title = block.text or current_title
                current = [block]
            else:
                current.append(block)
        if current:
            groups.append((current_title, 1, current))

        chapters: list[Chapter] = []
        offset = 0
        for title, level, group in groups:
            position = len(chapters)
            paragraphs = self._build_paragraphs(group, position, options)
            if not any(p.type != ParagraphType.HEADING for p in paragraphs):
                log.debug(f"No content under '{title}', skipping")
                continue

            text_length = sum(len(p.raw_text) for p in paragraphs) + 2 * (len(paragraphs) - 1)
            chapter = build_chapter(
                title,
                paragraphs,
                position,
                options.words_per_minute,
                level=level,
                start_position=offset,
                end_position=offset + text_length,
            )
            chapters.append(chapter)
            offset = chapter.end_position + 2
            log.info(f"Chapter {position + 1}: {title} ({chapter.word_count} words)")

        return chapters

    @staticmethod
    def _build_paragraphs(
        blocks: list[Block], chapter_position: int, options: ParseOptions
    ) -> list[Paragraph]:
        paragraphs: list[Paragraph] = []
        for block in blocks:
            if block.kind == ParagraphType.IMAGE and not options.extract_media:
                continue
            if not block.text and block.kind != ParagraphType.IMAGE:
                continue

            position = len(paragraphs)
            paragraphs.append(
                build_paragraph(
                    block.text,
                    f"chapter-{chapter_position + 1}-paragraph-{position + 1}",
                    position,
                    options.words_per_minute,
                    raw_text=block.raw,
                    paragraph_type=block.kind,
                    include_in_audio=False if block.kind == ParagraphType.CODE else None,
                )
            )
        return paragraphs
