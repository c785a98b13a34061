"""EPUB parsing using ebooklib, normalized into a DocumentStructure."""

import logging
import time
from datetime import datetime
from pathlib import Path

from bs4 import BeautifulSoup, Tag

from tts_prep.core.document_builder import (
    build_chapter,
    build_document_structure,
    build_paragraph,
)
from tts_prep.core.epub_container import EbooklibContainer
from tts_prep.core.epub_validation import validate_epub_structure
from tts_prep.core.parser_factory import DocumentParser
from tts_prep.core.segmenter import count_words, split_into_paragraphs
from tts_prep.errors import DocumentParseError
from tts_prep.models.document import (
    Chapter,
    DocumentMetadata,
    Paragraph,
    ParagraphType,
    ParseOptions,
    ParseResult,
)
from tts_prep.models.extraction import ExtractionMethod
from tts_prep.models.validation import ValidationConfig, ValidationResult

log = logging.getLogger(__name__)

# Above this many critical validation errors strict mode gives up
MAX_CRITICAL_ERRORS = 5
INVALID_STRUCTURE_CONFIDENCE = 0.8

BLOCK_TAGS = [
    "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "pre", "blockquote", "table", "img",
]
TAG_TYPES = {
    "h1": ParagraphType.HEADING,
    "h2": ParagraphType.HEADING,
    "h3": ParagraphType.HEADING,
    "h4": ParagraphType.HEADING,
    "h5": ParagraphType.HEADING,
    "h6": ParagraphType.HEADING,
    "li": ParagraphType.LIST_ITEM,
    "pre": ParagraphType.CODE,
    "blockquote": ParagraphType.QUOTE,
    "img": ParagraphType.IMAGE,
}
CUSTOM_METADATA_FIELDS = ("identifier", "description", "subject", "rights")


class EpubParser(DocumentParser):
    """Parse EPUB files into chapters, paragraphs and sentences."""

    SUFFIXES = (".epub",)

    def parse(self, source: Path, options: ParseOptions | None = None) -> ParseResult:
        """Parse an EPUB, validating its structure first.

        Args:
            source: Path to the EPUB file
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
            container = EbooklibContainer(source)
        except DocumentParseError as e:
            log.warning(f"Could not open {source.name}: {e.message}")
            return ParseResult.fail(e.code, e.message, **e.details)

        try:
            validation = validate_epub_structure(
                container, ValidationConfig(level=options.validation_level)
            )
            metadata = self._build_metadata(container, source)
            processing_errors: list[str] = []
            if options.mode == "metadata-only":
                chapters: list[Chapter] = []
            else:
                chapters = self._extract_chapters(container, options, processing_errors)
        finally:
            container.close()

        if options.strict_mode:
            failure = self._check_strict(validation, chapters, metadata, options)
            if failure:
                return failure

        processing_errors = [
            f"{e.code}: {e.message}" for e in validation.errors
        ] + processing_errors

        document = build_document_structure(
            metadata,
            chapters,
            method=ExtractionMethod.EPUB_NATIVE,
            source_format="epub",
            parse_start_time=parse_start,
            perf_start=perf_start,
            extraction_confidence=1.0 if validation.is_valid else INVALID_STRUCTURE_CONFIDENCE,
            warnings=[f"{w.code}: {w.message}" for w in validation.warnings],
            source_length=container.file_size,
            processing_errors=processing_errors,
            cache_stats=self._stats,
        )
        self._stats = document.stats.performance
        return ParseResult.ok(document)

    def _check_strict(
        self,
        validation: ValidationResult,
        chapters: list[Chapter],
        metadata: DocumentMetadata,
        options: ParseOptions,
    ) -> ParseResult | None:
        no_content = options.mode != "metadata-only" and not chapters
        if no_content or validation.critical_count > MAX_CRITICAL_ERRORS:
            log.warning(
                f"Strict mode: {len(chapters)} chapters, "
                f"{validation.critical_count} critical errors"
            )
            return ParseResult.fail(
                "EPUB_FORMAT_ERROR",
                "EPUB parsing failed: No valid content could be extracted",
                chapters_found=len(chapters),
                word_count=sum(ch.word_count for ch in chapters),
                title=metadata.title,
                critical_errors=validation.critical_count,
            )
        return None

    def _build_metadata(self, container: EbooklibContainer, source: Path) -> DocumentMetadata:
        """Extract document metadata."""
        values: dict[str, list[str]] = {}
        for entry in container.get_metadata():
            values.setdefault(entry.type, []).append(entry.value)

        def first(name: str) -> str | None:
            found = values.get(name)
            return found[0] if found else None

        custom = {
            name: "; ".join(values[name])
            for name in CUSTOM_METADATA_FIELDS
            if name in values
        }
        if first("format"):
            custom["format"] = first("format")

        return DocumentMetadata(
            title=first("title") or source.stem,
            author=", ".join(values["creator"]) if "creator" in values else None,
            language=first("language"),
            publisher=first("publisher"),
            created=first("date"),
            custom_metadata=custom,
        )

    def _extract_chapters(
        self,
        container: EbooklibContainer,
        options: ParseOptions,
        processing_errors: list[str],
    ) -> list[Chapter]:
        """Turn spine documents into chapters, skipping ones with no content."""
        toc_titles = container.toc_titles()
        chapters: list[Chapter] = []
        offset = 0

        for item_id, file_name, content in container.iter_documents():
            try:
                soup = BeautifulSoup(content, "lxml")
                position = len(chapters)
                paragraphs = self._extract_paragraphs(soup, position, options)
            except Exception as e:
                log.warning(f"Skipping {file_name}: {e}")
                processing_errors.append(f"CHAPTER_EXTRACTION_ERROR: {file_name}: {e}")
                continue

            if not paragraphs:
                log.debug(f"No content in {file_name}, skipping")
                continue

            # Try TOC title first, then extract from content, then use file name
            title = (
                toc_titles.get(file_name)
                or self._extract_title_from_content(soup)
                or file_name
            )
            text_length = sum(len(p.raw_text) for p in paragraphs) + 2 * (len(paragraphs) - 1)
            chapter = build_chapter(
                title,
                paragraphs,
                position,
                options.words_per_minute,
                start_position=offset,
                end_position=offset + text_length,
            )
            chapters.append(chapter)
            offset = chapter.end_position + 2
            log.info(f"Chapter {position + 1}: {title} ({chapter.word_count} words)")

        return chapters

    def _extract_paragraphs(
        self, soup: BeautifulSoup, chapter_position: int, options: ParseOptions
    ) -> list[Paragraph]:
        for tag in soup(["script", "style", "nav"]):
            tag.decompose()
        body = soup.body or soup

        paragraphs: list[Paragraph] = []
        blocks = [el for el in body.find_all(BLOCK_TAGS) if not el.find_parent(BLOCK_TAGS)]

        if not blocks:
            # Loose text outside any block element
            text = body.get_text("\n")
            for span in split_into_paragraphs(text):
                clean = " ".join(span.text.split())
                paragraphs.append(
                    self._make_paragraph(
                        clean, clean, None, chapter_position, len(paragraphs), options
                    )
                )
            return paragraphs

        for element in blocks:
            kind = TAG_TYPES.get(element.name, ParagraphType.TEXT)
            # Figures are usually an <img> wrapped in an otherwise empty block
            if element.find("img") and not element.get_text(strip=True):
                kind = ParagraphType.IMAGE
            if kind == ParagraphType.IMAGE and not options.extract_media:
                continue

            text = "" if kind == ParagraphType.IMAGE else " ".join(
                element.get_text(" ", strip=True).split()
            )
            if not text and kind != ParagraphType.IMAGE:
                continue

            raw = str(element) if options.preserve_html or kind == ParagraphType.IMAGE else text
            paragraphs.append(
                self._make_paragraph(text, raw, kind, chapter_position, len(paragraphs), options)
            )

        return paragraphs

    @staticmethod
    def _make_paragraph(
        text: str,
        raw: str,
        kind: ParagraphType | None,
        chapter_position: int,
        position: int,
        options: ParseOptions,
    ) -> Paragraph:
        return build_paragraph(
            text,
            f"chapter-{chapter_position + 1}-paragraph-{position + 1}",
            position,
            options.words_per_minute,
            raw_text=raw,
            paragraph_type=kind,
        )

    @staticmethod
    def _extract_title_from_content(soup: BeautifulSoup) -> str | None:
        """Try to extract title from HTML content."""
        # Try h1 first, then h2, then title tag
        for tag in ["h1", "h2", "title"]:
            element = soup.find(tag)
            if isinstance(element, Tag):
                text = element.get_text(strip=True)
                if text and count_words(text) > 0:
                    return text
        return None
