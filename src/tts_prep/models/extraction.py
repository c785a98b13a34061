"""Data models for chapter boundary detection."""

from enum import Enum

from pydantic import BaseModel, Field


class ExtractionMethod(str, Enum):
    """How chapter boundaries were found."""

    EPUB_NATIVE = "epub_native"  # spine documents
    PDF_OUTLINE = "pdf_outline"  # bookmarks
    PDF_PATTERN = "pdf_pattern"  # "Chapter 1", "PART II", ...
    PDF_PAGE_CHUNKS = "pdf_page_chunks"
    MARKDOWN_HEADINGS = "markdown_headings"
    MARKDOWN_SINGLE = "markdown_single"  # no headings, one chapter


class Section(BaseModel):
    """A candidate chapter start inside extracted text."""

    title: str
    line_number: int | None = None  # index into the flattened page lines
    page_start: int | None = None
    page_end: int | None = None
    level: int = Field(default=1, ge=1)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    pattern_type: str | None = None  # which heading pattern matched


class DetectionResult(BaseModel):
    """Sections found by one detection layer."""

    sections: list[Section]
    method: ExtractionMethod
    confidence: float = Field(ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)

    def located_sections(self) -> list[Section]:
        """Sections that map to a line, in reading order."""
        return sorted(
            (s for s in self.sections if s.line_number is not None),
            key=lambda s: s.line_number,
        )
