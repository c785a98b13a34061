"""Data models for the normalized document structure (EPUB, PDF, Markdown)."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from tts_prep.models.extraction import ExtractionMethod
from tts_prep.models.validation import ValidationLevel


class ParagraphType(str, Enum):
    """Kind of content a paragraph holds."""

    TEXT = "text"
    IMAGE = "image"
    LIST_ITEM = "list_item"
    HEADING = "heading"
    CODE = "code"
    QUOTE = "quote"


class Sentence(BaseModel):
    """A single sentence, positioned within its paragraph."""

    id: str
    text: str
    position: int
    start_index: int
    end_index: int
    word_count: int = 0
    estimated_duration: float = 0.0  # seconds
    has_formatting: bool = False

    class Config:
        frozen = True


class Paragraph(BaseModel):
    """A paragraph and its sentences."""

    id: str
    type: ParagraphType = ParagraphType.TEXT
    sentences: list[Sentence] = Field(default_factory=list)
    position: int = 0
    raw_text: str = ""  # Pre-segmentation, may contain markup
    word_count: int = 0
    include_in_audio: bool = True
    confidence: float = 1.0

    class Config:
        frozen = True


class Chapter(BaseModel):
    """Chapter content and metadata."""

    id: str
    title: str
    level: int = 1
    paragraphs: list[Paragraph] = Field(default_factory=list)
    position: int = 0
    word_count: int = 0
    estimated_duration: float = 0.0  # seconds
    start_position: int = 0
    end_position: int = 0

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_positions(self) -> "Chapter":
        if self.end_position < self.start_position:
            raise ValueError(
                f"end_position ({self.end_position}) must not precede "
                f"start_position ({self.start_position})"
            )
        return self


class DocumentMetadata(BaseModel):
    """Document-level metadata."""

    title: str
    author: str | None = None
    language: str | None = None
    publisher: str | None = None
    created: str | None = None
    modified: str | None = None
    word_count: int = 0
    custom_metadata: dict[str, str] = Field(default_factory=dict)


class ProcessingMetrics(BaseModel):
    """Timing and error bookkeeping for one parse."""

    parse_start_time: datetime
    parse_end_time: datetime
    parse_duration_ms: float
    source_length: int = 0
    processing_errors: list[str] = Field(default_factory=list)


class DocumentStatistics(BaseModel):
    """Aggregated content counts."""

    chapter_count: int = 0
    total_paragraphs: int = 0
    total_sentences: int = 0
    total_words: int = 0
    estimated_reading_time: float = 0.0  # minutes
    image_count: int = 0
    table_count: int = 0


class PerformanceStats(BaseModel):
    """Parse performance plus the content statistics gathered so far."""

    parse_time_ms: float = 0.0
    memory_usage_mb: float = 0.0
    chapters_per_second: float = 0.0
    statistics: DocumentStatistics = Field(default_factory=DocumentStatistics)
    cache_hits: int = 0
    cache_misses: int = 0


class ExtractionSummary(BaseModel):
    """Extraction-method-tagged summary attached to a document."""

    method: ExtractionMethod
    source_format: str
    confidence: float = 1.0
    performance: PerformanceStats = Field(default_factory=PerformanceStats)
    warnings: list[str] = Field(default_factory=list)


class DocumentStructure(BaseModel):
    """Complete normalized document (unified for EPUB/PDF/Markdown)."""

    metadata: DocumentMetadata
    chapters: list[Chapter] = Field(default_factory=list)
    total_paragraphs: int = 0
    total_sentences: int = 0
    total_word_count: int = 0
    estimated_total_duration: float = 0.0  # seconds
    confidence: float = 1.0
    processing_metrics: ProcessingMetrics
    stats: ExtractionSummary

    class Config:
        frozen = True

    @property
    def total_chapters(self) -> int:
        return len(self.chapters)

    @model_validator(mode="after")
    def _check_word_total(self) -> "DocumentStructure":
        chapter_words = sum(ch.word_count for ch in self.chapters)
        if chapter_words != self.total_word_count:
            raise ValueError(
                f"total_word_count ({self.total_word_count}) does not match "
                f"chapter word counts ({chapter_words})"
            )
        return self


# =============================================================================
# Parser contract
# =============================================================================


ParseMode = Literal["tts", "full", "metadata-only"]


class ParseOptions(BaseModel):
    """Options shared by every format parser."""

    extract_media: bool = False
    preserve_html: bool = False
    chapter_sensitivity: float = Field(default=0.5, ge=0.0, le=1.0)
    strict_mode: bool = False
    mode: ParseMode = "tts"
    validation_level: ValidationLevel = ValidationLevel.STANDARD
    words_per_minute: int = Field(default=150, gt=0)


class DocumentError(BaseModel):
    """Typed failure returned by a parser instead of raising."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ParseResult(BaseModel):
    """Either a document or an error."""

    success: bool
    data: DocumentStructure | None = None
    error: DocumentError | None = None

    @classmethod
    def ok(cls, document: DocumentStructure) -> "ParseResult":
        return cls(success=True, data=document)

    @classmethod
    def fail(cls, code: str, message: str, **details: Any) -> "ParseResult":
        return cls(
            success=False,
            error=DocumentError(code=code, message=message, details=details),
        )
