"""PDF parsing with cascade chapter detection, normalized into a DocumentStructure."""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from statistics import median
from typing import Callable

# Suppress warnings about malformed PDF object references from PDF libraries
logging.getLogger("pdfminer").setLevel(logging.ERROR)
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pdfplumber
import pypdf
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from tts_prep.core.document_builder import (
    build_chapter,
    build_document_structure,
    build_paragraph,
)
from tts_prep.core.encoding_conversion import convert_text_encoding_with_fallback
from tts_prep.core.encoding_validation import get_encoding_diagnostics
from tts_prep.core.parser_factory import DocumentParser
from tts_prep.errors import PDFParseError
from tts_prep.models.document import (
    Chapter,
    DocumentMetadata,
    Paragraph,
    ParagraphType,
    ParseOptions,
    ParseResult,
)
from tts_prep.models.encoding import DiagnosticReport
from tts_prep.models.extraction import DetectionResult, ExtractionMethod, Section

log = logging.getLogger(__name__)

# Below this many characters pypdf output is treated as a failed extraction
MIN_TEXT_CHARS = 100
DEFAULT_PAGES_PER_CHUNK = 10
ENCODING_FALLBACKS = ["utf-8", "windows-1252", "iso-8859-1"]
FRONT_MATTER_TITLE = "Front Matter"


# =============================================================================
# Extracted Text
# =============================================================================


@dataclass
class PdfText:
    """Page text flattened into lines, with page bookkeeping."""

    pages: list[str]
    lines: list[str] = field(init=False)
    line_pages: list[int] = field(init=False)
    page_first_line: list[int] = field(init=False)
    line_offsets: list[int] = field(init=False)

    def __post_init__(self) -> None:
        self.lines = []
        self.line_pages = []
        self.page_first_line = []
        for page_num, page_text in enumerate(self.pages):
            self.page_first_line.append(len(self.lines))
            page_lines = page_text.split("\n")
            self.lines.extend(page_lines)
            self.line_pages.extend([page_num] * len(page_lines))

        # Character offset of each line within "\n".join(lines)
        self.line_offsets = []
        offset = 0
        for line in self.lines:
            self.line_offsets.append(offset)
            offset += len(line) + 1

    @property
    def char_count(self) -> int:
        return sum(len(page.strip()) for page in self.pages)

    def line_for_page(self, page_num: int) -> int:
        if page_num >= len(self.page_first_line):
            return len(self.lines)
        return self.page_first_line[max(page_num, 0)]

    def span_end(self, start_line: int, end_line: int) -> int:
        """Character offset just past the last line of [start_line, end_line)."""
        if end_line <= start_line:
            return self.line_offsets[start_line] if start_line < len(self.lines) else 0
        last = end_line - 1
        return self.line_offsets[last] + len(self.lines[last])


@dataclass
class CascadeLayer:
    """Configuration for a detection layer."""

    name: str
    method: ExtractionMethod
    fn: Callable[[pypdf.PdfReader, PdfText, float], DetectionResult | None]
    min_confidence: float
    description: str


# =============================================================================
# Layer 1: PDF Outline/Bookmarks
# =============================================================================


def detect_by_outline(
    reader: pypdf.PdfReader, text: PdfText, min_confidence: float = 0.0
) -> DetectionResult | None:
    """
    Extract structure from PDF bookmarks/outline.
    Most reliable when present - maps directly to intended TOC.

    Returns None if no outline exists or outline has <2 entries.
    """
    if not reader.outline:
        return None

    sections: list[Section] = []

    def flatten_outline(items: list, level: int = 1) -> None:
        for item in items:
            if isinstance(item, list):
                flatten_outline(item, level + 1)
                continue
            try:
                page_num = reader.get_destination_page_number(item)
            except Exception as e:
                log.debug(f"Skipping outline entry with bad destination: {e}")
                continue
            if page_num is None or page_num < 0:
                continue
            sections.append(
                Section(
                    title=str(item.title).strip(),
                    page_start=page_num,
                    line_number=_find_title_line(text, str(item.title), page_num),
                    level=level,
                    confidence=0.95,
                )
            )

    flatten_outline(reader.outline)
    sections = _dedupe_sections(sections)

    if len(sections) >= 2:
        return DetectionResult(
            sections=sections,
            method=ExtractionMethod.PDF_OUTLINE,
            confidence=0.95,
        )

    return None


def _find_title_line(text: PdfText, title: str, page_num: int) -> int:
    """Line on the page that carries the bookmark title, else the page's first line."""
    start = text.line_for_page(page_num)
    end = text.line_for_page(page_num + 1)
    wanted = " ".join(title.split()).lower()
    for line_num in range(start, end):
        if " ".join(text.lines[line_num].split()).lower() == wanted:
            return line_num
    return start


# =============================================================================
# Layer 2: Regex Pattern Matching
# =============================================================================

# Patterns ordered by specificity (most specific first)
SECTION_PATTERNS: list[tuple[str, float, str]] = [
    # Chapter patterns (highest confidence)
    (r"^Chapter\s+(\d+)(?:[:.\s]|$)", 0.65, "chapter_num"),
    (r"^CHAPTER\s+(\d+)(?:[:.\s]|$)", 0.65, "chapter_num"),
    (r"^Chapter\s+([IVXLC]+)(?:[:.\s]|$)", 0.60, "chapter_roman"),
    (r"^CHAPTER\s+([IVXLC]+)(?:[:.\s]|$)", 0.60, "chapter_roman"),
    (r"^Chapter\s+(\w+)(?:[:.\s]|$)", 0.55, "chapter_word"),  # "Chapter One"
    # Part patterns
    (r"^Part\s+(\d+)(?:[:.\s]|$)", 0.60, "part_num"),
    (r"^PART\s+(\d+)(?:[:.\s]|$)", 0.60, "part_num"),
    (r"^Part\s+([IVXLC]+)(?:[:.\s]|$)", 0.55, "part_roman"),
    (r"^PART\s+([IVXLC]+)(?:[:.\s]|$)", 0.55, "part_roman"),
    # Section patterns
    (r"^Section\s+(\d+)[:.\s]", 0.55, "section"),
    (r"^SECTION\s+(\d+)[:.\s]", 0.55, "section"),
    # Numbered headings
    (r"^(\d+)\.\s+[A-Z][a-z]", 0.50, "numbered"),  # "1. Introduction"
    (r"^(\d+)\s+[A-Z]{2,}", 0.55, "numbered_allcaps"),  # "1 DEFINITIONS"
    # Roman numeral standalone
    (r"^([IVXLC]+)\.\s+[A-Z]", 0.50, "roman"),
    # Front and back matter
    (r"^(Prologue|Epilogue|Preface|Introduction|Afterword)$", 0.55, "matter"),
]

# Headings are short; anything longer is body text that happens to match
MAX_HEADING_LENGTH = 100
MIN_PATTERN_SECTIONS = 2


def pattern_min_confidence(chapter_sensitivity: float) -> float:
    """Minimum match confidence; higher sensitivity accepts weaker matches."""
    return round(0.75 - 0.3 * chapter_sensitivity, 4)


def detect_by_pattern(
    reader: pypdf.PdfReader | None, text: PdfText, min_confidence: float = 0.6
) -> DetectionResult | None:
    """
    Match common section/chapter patterns in text.
    Works well for consistently formatted books.
    """
    sections: list[Section] = []
    seen_patterns: dict[str, list] = {}  # Track pattern sequences

    for line_num, line in enumerate(text.lines):
        line_stripped = line.strip()
        if not line_stripped or len(line_stripped) > MAX_HEADING_LENGTH:
            continue

        for pattern, base_confidence, pattern_type in SECTION_PATTERNS:
            match = re.match(pattern, line_stripped)
            if match:
                seen_patterns.setdefault(pattern_type, []).append(match.group(1))
                sections.append(
                    Section(
                        title=line_stripped,
                        page_start=text.line_pages[line_num],
                        line_number=line_num,
                        level=2 if pattern_type in ("section", "numbered", "roman") else 1,
                        confidence=base_confidence,
                        pattern_type=pattern_type,
                    )
                )
                break  # Only match first pattern per line

    # Boost confidence for sequential patterns (1, 2, 3... or I, II, III...)
    sections = _boost_sequential_confidence(sections, seen_patterns)
    sections = [s for s in _filter_noise(sections) if s.confidence >= min_confidence]

    if len(sections) >= MIN_PATTERN_SECTIONS:
        return DetectionResult(
            sections=sections,
            method=ExtractionMethod.PDF_PATTERN,
            confidence=_avg_confidence(sections),
        )

    return None


def _boost_sequential_confidence(
    sections: list[Section], seen_patterns: dict[str, list]
) -> list[Section]:
    """Boost confidence for patterns that form sequences."""
    for pattern_type, values in seen_patterns.items():
        if len(values) < 2:
            continue

        if _check_sequence(values, pattern_type):
            for section in sections:
                if section.pattern_type == pattern_type:
                    section.confidence = min(section.confidence + 0.1, 0.75)

    return sections


def _check_sequence(values: list[str], pattern_type: str) -> bool:
    """Check if values form a logical sequence."""
    if "roman" in pattern_type:
        nums = [_roman_to_int(v) for v in values]
    elif pattern_type in (
        "chapter_num",
        "part_num",
        "section",
        "numbered",
        "numbered_allcaps",
    ):
        try:
            nums = [int(v) for v in values]
        except ValueError:
            return False
    else:
        return False
    return nums == list(range(nums[0], nums[0] + len(nums)))


def _roman_to_int(s: str) -> int:
    """Convert Roman numeral to integer."""
    values = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100}
    result = 0
    prev = 0
    for char in reversed(s.upper()):
        curr = values.get(char, 0)
        if curr < prev:
            result -= curr
        else:
            result += curr
        prev = curr
    return result


def _is_page_number(text: str) -> bool:
    """Check if text is likely a page number."""
    text = text.strip()
    if text.isdigit():
        return True
    # Roman numerals (common for front matter)
    if re.match(r"^[ivxlc]+$", text):
        return True
    if re.match(r"^page\s+\d+(\s+of\s+\d+)?$", text.lower()):
        return True
    return False


def _filter_noise(sections: list[Section]) -> list[Section]:
    """Remove noisy detections."""
    filtered = []
    seen_titles = set()

    for section in sections:
        title_lower = section.title.lower().strip()

        # Running headers repeat the chapter title on every page
        if title_lower in seen_titles:
            continue
        if len(title_lower) < 3:
            continue

        false_positives = {
            "contents",
            "table of contents",
            "index",
            "copyright",
        }
        if title_lower in false_positives and section.confidence < 0.5:
            continue

        seen_titles.add(title_lower)
        filtered.append(section)

    return filtered


def _validate_section_distribution(
    sections: list[Section], text: PdfText, min_word_threshold: int = 50
) -> bool:
    """
    Check if word distribution across sections is healthy.

    Many near-empty sections plus one or two holding almost everything
    means detection picked up noise (running heads, a table of contents)
    rather than chapter structure.
    """
    if len(sections) < 3:
        return True

    word_counts = []
    ordered = sorted(sections, key=lambda s: s.line_number or 0)
    for i, section in enumerate(ordered):
        start = section.line_number or 0
        end = ordered[i + 1].line_number if i + 1 < len(ordered) else len(text.lines)
        word_counts.append(sum(len(line.split()) for line in text.lines[start:end]))

    total_words = sum(word_counts)
    if total_words == 0:
        return True

    tiny_ratio = sum(1 for c in word_counts if c < min_word_threshold) / len(word_counts)
    sorted_counts = sorted(word_counts, reverse=True)
    top_two_ratio = sum(sorted_counts[:2]) / total_words

    if tiny_ratio > 0.6 and top_two_ratio > 0.85:
        log.info(
            f"  Distribution check: {tiny_ratio:.0%} tiny sections, "
            f"{top_two_ratio:.0%} content in top 2 - suspicious"
        )
        return False

    return True


# =============================================================================
# Layer 3: Page-Based Chunking (Fallback)
# =============================================================================


def chunk_by_pages(text: PdfText, pages_per_chunk: int = DEFAULT_PAGES_PER_CHUNK) -> DetectionResult:
    """
    Fallback: Split the PDF into fixed-size page chunks.
    No structural detection - just ensures content is processable.
    """
    total_pages = len(text.pages)
    sections: list[Section] = []

    for chunk_num, i in enumerate(range(0, total_pages, pages_per_chunk), start=1):
        end_page = min(i + pages_per_chunk, total_pages)
        sections.append(
            Section(
                title=f"Section {chunk_num} (Pages {i + 1}-{end_page})",
                page_start=i,
                page_end=end_page - 1,
                line_number=text.line_for_page(i),
                level=1,
                confidence=0.20,
                pattern_type="page_chunk",
            )
        )

    return DetectionResult(
        sections=sections,
        method=ExtractionMethod.PDF_PAGE_CHUNKS,
        confidence=0.20,
        warnings=["No document structure detected. Using page-based chunking."],
    )


# =============================================================================
# Helper Functions
# =============================================================================


def _dedupe_sections(sections: list[Section]) -> list[Section]:
    """Remove duplicate sections based on title and page."""
    seen = set()
    deduped = []

    for section in sections:
        key = (section.title.lower().strip(), section.page_start)
        if key not in seen:
            seen.add(key)
            deduped.append(section)

    return deduped


def _avg_confidence(sections: list[Section]) -> float:
    if not sections:
        return 0.0
    return sum(s.confidence for s in sections) / len(sections)


def reflow_lines(lines: list[str]) -> list[str]:
    """Join hard-wrapped PDF lines back into paragraphs.

    A blank line always ends a paragraph. So does a sentence-final line
    that is clearly shorter than the typical line, and a trailing hyphen
    joins a split word.
    """
    content = [line.strip() for line in lines if line.strip()]
    if not content:
        return []
    typical = median(len(line) for line in content)

    paragraphs: list[str] = []
    current = ""

    for line in lines:
        line = line.strip()
        if not line or _is_page_number(line):
            if current and not line:
                paragraphs.append(current)
                current = ""
            continue

        if not current:
            current = line
        elif current.endswith("-") and len(current) > 1 and current[-2].isalpha() and line[:1].islower():
            current = current[:-1] + line
        else:
            current = f"{current} {line}"

        if re.search(r"[.!?][\"')\]”’]*$", line) and len(line) < 0.6 * typical:
            paragraphs.append(current)
            current = ""

    if current:
        paragraphs.append(current)

    return paragraphs


# =============================================================================
# Cascade Orchestrator
# =============================================================================


def detection_layers(chapter_sensitivity: float) -> list[CascadeLayer]:
    """Detection layers in priority order."""
    return [
        CascadeLayer(
            name="outline",
            method=ExtractionMethod.PDF_OUTLINE,
            fn=detect_by_outline,
            min_confidence=0.90,
            description="PDF bookmarks/outline",
        ),
        CascadeLayer(
            name="pattern",
            method=ExtractionMethod.PDF_PATTERN,
            fn=detect_by_pattern,
            min_confidence=pattern_min_confidence(chapter_sensitivity),
            description="Regex pattern matching",
        ),
    ]


def detect_sections(
    reader: pypdf.PdfReader, text: PdfText, chapter_sensitivity: float = 0.5
) -> DetectionResult:
    """
    Run cascade detection with early termination.
    Returns first reliable result or falls back to page chunks.
    """
    for layer in detection_layers(chapter_sensitivity):
        log.info(f"Trying detection layer: {layer.name} ({layer.description})")

        try:
            result = layer.fn(reader, text, layer.min_confidence)
        except Exception as e:
            log.warning(f"Layer {layer.name} failed with error: {e}")
            continue

        if result is None:
            log.info(f"  Layer {layer.name}: No results")
            continue

        if result.confidence < layer.min_confidence:
            log.info(
                f"  Layer {layer.name}: Below threshold - "
                f"confidence={result.confidence:.2f} < {layer.min_confidence}"
            )
            continue

        if not _validate_section_distribution(result.sections, text):
            log.warning(
                f"  Layer {layer.name}: Suspicious word distribution - "
                f"falling back to next layer"
            )
            continue

        log.info(
            f"  Layer {layer.name}: SUCCESS - "
            f"{len(result.sections)} sections, confidence={result.confidence:.2f}"
        )
        return result

    log.warning("All detection layers failed. Using page-based chunking.")
    return chunk_by_pages(text)


# =============================================================================
# PDF Parser Class
# =============================================================================


class PdfParser(DocumentParser):
    """Parse PDF files and detect chapters with cascade detection."""

    SUFFIXES = (".pdf",)

    def __init__(self, options: ParseOptions | None = None, pages_per_chunk: int | None = None):
        super().__init__(options)
        self._pages_per_chunk = pages_per_chunk

    def parse(self, source: Path, options: ParseOptions | None = None) -> ParseResult:
        """Parse a PDF into chapters, paragraphs and sentences.

        Args:
            source: Path to the PDF file
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

        warnings_list: list[str] = []
        try:
            reader = self._open_reader(source)
            pages = self._extract_pages(reader, source)
            pages, diagnostics = self._normalize_encoding(pages, warnings_list)
            metadata = self._build_metadata(reader, source, len(pages), diagnostics)
        except PDFParseError as e:
            log.warning(f"Could not read {source.name}: {e.message}")
            return ParseResult.fail(e.code, e.message, **e.details)
        except (PdfReadError, ValueError, KeyError, TypeError) as e:
            log.warning(f"Could not read metadata from {source.name}: {e}")
            return ParseResult.fail("PDF_CORRUPTED", f"PDF appears corrupted: {e}", path=str(source))

        text = PdfText(pages)

        if options.mode == "metadata-only":
            detection = DetectionResult(sections=[], method=ExtractionMethod.PDF_PAGE_CHUNKS, confidence=1.0)
            chapters: list[Chapter] = []
        else:
            detection = self._detect(reader, text, options, warnings_list)
            chapters = self._extract_chapters(text, detection, options)

        if options.strict_mode and options.mode != "metadata-only" and not chapters:
            return ParseResult.fail(
                "PDF_NO_CONTENT",
                "PDF parsing failed: No text could be extracted",
                pages=len(pages),
                title=metadata.title,
            )

        document = build_document_structure(
            metadata,
            chapters,
            method=detection.method,
            source_format="pdf",
            parse_start_time=parse_start,
            perf_start=perf_start,
            extraction_confidence=detection.confidence,
            warnings=warnings_list + detection.warnings,
            source_length=len("\n".join(text.lines)),
            cache_stats=self._stats,
        )
        self._stats = document.stats.performance
        return ParseResult.ok(document)

    @staticmethod
    def _open_reader(source: Path) -> pypdf.PdfReader:
        """Open the PDF, mapping pypdf failures to typed errors."""
        try:
            reader = pypdf.PdfReader(str(source))
            if reader.is_encrypted and not reader.decrypt(""):
                raise FileNotDecryptedError("File has not been decrypted")
            page_count = len(reader.pages)
        except FileNotDecryptedError:
            raise PDFParseError(
                "PDF is encrypted. Please decrypt first.",
                code="PDF_ENCRYPTED",
                details={"path": str(source)},
            )
        except EmptyFileError:
            raise PDFParseError("PDF file is empty.", code="PDF_EMPTY", details={"path": str(source)})
        except (PdfReadError, ValueError, KeyError) as e:
            raise PDFParseError(
                f"PDF appears corrupted: {e}",
                code="PDF_CORRUPTED",
                details={"path": str(source)},
            )

        if page_count == 0:
            raise PDFParseError("PDF has no pages.", code="PDF_EMPTY", details={"path": str(source)})
        return reader

    @staticmethod
    def _extract_pages(reader: pypdf.PdfReader, source: Path) -> list[str]:
        """Page text from pypdf, or pdfplumber when pypdf finds too little."""
        try:
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PdfReadError, ValueError, KeyError) as e:
            log.warning(f"pypdf text extraction failed: {e}")
            pages = []

        if sum(len(p.strip()) for p in pages) >= MIN_TEXT_CHARS:
            return pages

        log.info("pypdf extracted little text, retrying with pdfplumber")
        try:
            with pdfplumber.open(str(source)) as pdf:
                plumber_pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            log.warning(f"pdfplumber extraction failed: {e}")
            if not pages:
                raise PDFParseError(
                    f"PDF appears corrupted: {e}",
                    code="PDF_CORRUPTED",
                    details={"path": str(source)},
                )
            return pages

        if sum(len(p.strip()) for p in plumber_pages) > sum(len(p.strip()) for p in pages):
            return plumber_pages
        return pages or plumber_pages

    @staticmethod
    def _normalize_encoding(
        pages: list[str], warnings_list: list[str]
    ) -> tuple[list[str], DiagnosticReport]:
        """Run encoding diagnostics, then convert each page to UTF-8."""
        diagnostics = get_encoding_diagnostics("\n".join(pages))
        for issue in diagnostics.validation.issues:
            warnings_list.append(f"ENCODING_ISSUE: {issue}")

        converted = []
        for page_text in pages:
            result = convert_text_encoding_with_fallback(
                page_text,
                diagnostics.encoding,
                "utf-8",
                fallback_encodings=ENCODING_FALLBACKS,
            )
            if not result.success:
                warnings_list.append(f"ENCODING_CONVERSION_FAILED: {'; '.join(result.errors)}")
            converted.append(result.converted_text)

        return converted, diagnostics

    def _detect(
        self,
        reader: pypdf.PdfReader,
        text: PdfText,
        options: ParseOptions,
        warnings_list: list[str],
    ) -> DetectionResult:
        if self._pages_per_chunk is not None:
            log.info(f"Forced page-based chunking ({self._pages_per_chunk} pages)")
            detection = chunk_by_pages(text, self._pages_per_chunk)
        elif text.char_count < MIN_TEXT_CHARS:
            log.warning("PDF appears to have limited text content. May be scanned or image-based.")
            warnings_list.append(
                "Limited text detected. PDF may be scanned/image-based. "
                "Using page-based chunking."
            )
            detection = chunk_by_pages(text)
        else:
            detection = detect_sections(reader, text, options.chapter_sensitivity)

        if detection.confidence < 0.5:
            warnings_list.append(
                f"Low extraction confidence ({detection.confidence:.2f}). "
                "Chapter boundaries may be inaccurate."
            )
        return detection

    def _build_metadata(
        self,
        reader: pypdf.PdfReader,
        source: Path,
        page_count: int,
        diagnostics: DiagnosticReport,
    ) -> DocumentMetadata:
        """Extract document metadata from the PDF info dictionary."""
        info = reader.metadata or {}

        def field_value(name: str) -> str | None:
            value = info.get(name)
            if not value:
                return None
            return str(value).strip() or None

        custom = {
            "page_count": str(page_count),
            "encoding": diagnostics.encoding,
            "encoding_confidence": f"{diagnostics.confidence:.2f}",
        }
        for name, key in (("/Subject", "subject"), ("/Creator", "creator"), ("/Keywords", "keywords")):
            if field_value(name):
                custom[key] = field_value(name)

        return DocumentMetadata(
            title=field_value("/Title") or source.stem,
            author=field_value("/Author"),
            publisher=field_value("/Producer"),
            created=field_value("/CreationDate"),
            modified=field_value("/ModDate"),
            custom_metadata=custom,
        )

    def _extract_chapters(
        self, text: PdfText, detection: DetectionResult, options: ParseOptions
    ) -> list[Chapter]:
        """Turn detected sections into chapters over line ranges."""
        sections = detection.located_sections()
        if not sections:
            return []

        spans: list[tuple[str, int, int, int, bool]] = []
        first_line = sections[0].line_number
        if first_line > 0 and any(line.strip() for line in text.lines[:first_line]):
            spans.append((FRONT_MATTER_TITLE, 1, 0, first_line, False))

        for i, section in enumerate(sections):
            end = sections[i + 1].line_number if i + 1 < len(sections) else len(text.lines)
            has_heading = section.pattern_type != "page_chunk" and _same_text(
                text.lines[section.line_number] if section.line_number < len(text.lines) else "",
                section.title,
            )
            spans.append((section.title, section.level, section.line_number, end, has_heading))

        chapters: list[Chapter] = []
        for title, level, start, end, has_heading in spans:
            position = len(chapters)
            paragraphs = self._build_paragraphs(text.lines[start:end], has_heading, position, options)
            if not paragraphs:
                log.debug(f"No content under '{title}', skipping")
                continue

            chapter = build_chapter(
                title,
                paragraphs,
                position,
                options.words_per_minute,
                level=level,
                start_position=text.line_offsets[start] if start < len(text.lines) else 0,
                end_position=text.span_end(start, end),
            )
            chapters.append(chapter)
            log.info(f"Chapter {position + 1}: {title} ({chapter.word_count} words)")

        return chapters

    @staticmethod
    def _build_paragraphs(
        lines: list[str], has_heading: bool, chapter_position: int, options: ParseOptions
    ) -> list[Paragraph]:
        blocks: list[tuple[str, ParagraphType]] = []
        if has_heading and lines:
            blocks.append((" ".join(lines[0].split()), ParagraphType.HEADING))
            lines = lines[1:]
        blocks.extend((p, ParagraphType.TEXT) for p in reflow_lines(lines))

        return [
            build_paragraph(
                block,
                f"chapter-{chapter_position + 1}-paragraph-{position + 1}",
                position,
                options.words_per_minute,
                paragraph_type=kind,
            )
            for position, (block, kind) in enumerate(blocks)
        ]


def _same_text(line: str, title: str) -> bool:
    return " ".join(line.split()).lower() == " ".join(title.split()).lower()
