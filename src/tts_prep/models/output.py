"""Data models for output format."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

OutputFormat = Literal["text", "markdown", "html"]


class ChapterMetadata(BaseModel):
    """Metadata accompanying chapter content."""

    chapter_id: str
    chapter_index: int
    title: str
    source_path: str
    extracted_at: datetime = Field(default_factory=datetime.now)
    word_count: int
    character_count: int
    paragraph_count: int
    sentence_count: int
    estimated_duration: float  # seconds
    extraction_method: str = "epub_native"


class ChapterOutput(BaseModel):
    """Complete chapter output, one spoken sentence per entry."""

    metadata: ChapterMetadata
    content: str
    format: OutputFormat = "text"
    sentences: list[str] = Field(default_factory=list)


class DocumentManifest(BaseModel):
    """Output manifest for a converted document."""

    title: str
    author: str | None = None
    language: str | None = None
    total_chapters: int
    extracted_chapters: list[int]
    output_directory: str
    created_at: datetime = Field(default_factory=datetime.now)
    chapters: list[ChapterMetadata]
    source_format: str = "epub"
    extraction_method: str = "epub_native"
    extraction_confidence: float = 1.0
    total_word_count: int = 0
    estimated_total_duration: float = 0.0  # seconds
    warnings: list[str] = Field(default_factory=list)
