"""Assemble sentences, paragraphs and chapters into a DocumentStructure."""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime

from tts_prep.core.segmenter import (
    count_words,
    estimate_duration,
    has_inline_formatting,
    split_into_sentences,
)
from tts_prep.core.statistics import calculate_statistics, update_performance_stats
from tts_prep.models.document import (
    Chapter,
    DocumentMetadata,
    DocumentStructure,
    ExtractionSummary,
    Paragraph,
    ParagraphType,
    PerformanceStats,
    ProcessingMetrics,
    Sentence,
)
from tts_prep.models.extraction import ExtractionMethod

log = logging.getLogger(__name__)

# Average characters per word, for sources whose length is not known
CHARS_PER_WORD = 5

LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+")
IMAGE_PATTERN = re.compile(r"^\s*(?:!\[[^\]]*\]\([^)]*\)|<img\b[^>]*>)\s*$", re.IGNORECASE)


@dataclass
class DocumentMetrics:
    """Totals derived from the chapters of a document."""

    total_word_count: int
    total_chapters: int
    estimated_total_duration: float


def infer_paragraph_type(raw_text: str) -> ParagraphType:
    """Guess a paragraph's type from Markdown-ish or HTML markers."""
    stripped = raw_text.strip()
    if IMAGE_PATTERN.match(stripped):
        return ParagraphType.IMAGE
    if stripped.startswith("#"):
        return ParagraphType.HEADING
    if stripped.startswith(("```", "~~~")):
        return ParagraphType.CODE
    if stripped.startswith(">"):
        return ParagraphType.QUOTE
    if LIST_ITEM_PATTERN.match(stripped):
        return ParagraphType.LIST_ITEM
    return ParagraphType.TEXT


def build_sentences(
    text: str,
    paragraph_id: str,
    words_per_minute: int,
    has_formatting: bool = False,
) -> list[Sentence]:
    sentences = []
    for position, span in enumerate(split_into_sentences(text, 0)):
        word_count = count_words(span.text)
        sentences.append(
            Sentence(
                id=f"{paragraph_id}-sentence-{position + 1}",
                text=span.text,
                position=position,
                start_index=span.start_index,
                end_index=span.end_index,
                word_count=word_count,
                estimated_duration=estimate_duration(word_count, words_per_minute),
                has_formatting=has_formatting,
            )
        )
    return sentences


def build_paragraph(
    text: str,
    paragraph_id: str,
    position: int,
    words_per_minute: int,
    raw_text: str | None = None,
    paragraph_type: ParagraphType | None = None,
    include_in_audio: bool | None = None,
    confidence: float = 1.0,
) -> Paragraph:
    """Segment one paragraph's clean text into sentences.

    Args:
        text: Clean text that will be spoken
        paragraph_id: Stable id, sentence ids derive from it
        position: Ordinal within the chapter
        words_per_minute: Speaking rate for duration estimates
        raw_text: Text before markup was stripped, defaults to text
        paragraph_type: Explicit type, inferred from raw_text when omitted
        include_in_audio: Explicit flag, defaults to False only for
            images without spoken text
        confidence: Extraction confidence for this paragraph
    """
    raw = text if raw_text is None else raw_text
    kind = paragraph_type or infer_paragraph_type(raw)
    formatting = raw != text and has_inline_formatting(raw)
    sentences = build_sentences(text, paragraph_id, words_per_minute, formatting)

    if include_in_audio is None:
        include_in_audio = not (kind == ParagraphType.IMAGE and not text.strip())

    return Paragraph(
        id=paragraph_id,
        type=kind,
        sentences=sentences,
        position=position,
        raw_text=raw,
        word_count=sum(s.word_count for s in sentences),
        include_in_audio=include_in_audio,
        confidence=confidence,
    )


def build_chapter(
    title: str,
    paragraphs: list[Paragraph],
    position: int,
    words_per_minute: int,
    level: int = 1,
    start_position: int = 0,
    end_position: int | None = None,
) -> Chapter:
    word_count = sum(p.word_count for p in paragraphs)
    if end_position is None:
        end_position = start_position + sum(len(p.raw_text) for p in paragraphs)

    return Chapter(
        id=f"chapter-{position + 1}",
        title=title,
        level=level,
        paragraphs=paragraphs,
        position=position,
        word_count=word_count,
        estimated_duration=estimate_duration(word_count, words_per_minute),
        start_position=start_position,
        end_position=max(start_position, end_position),
    )


def calculate_document_metrics(chapters: list[Chapter]) -> DocumentMetrics:
    return DocumentMetrics(
        total_word_count=sum(ch.word_count for ch in chapters),
        total_chapters=len(chapters),
        estimated_total_duration=sum(ch.estimated_duration for ch in chapters),
    )


def calculate_document_confidence(
    chapters: list[Chapter], extraction_confidence: float = 1.0
) -> float:
    """Mean paragraph confidence, scaled by how the structure was found."""
    paragraphs = [p for ch in chapters for p in ch.paragraphs]
    if not paragraphs:
        return 0.0
    mean = sum(p.confidence for p in paragraphs) / len(paragraphs)
    return round(max(0.0, min(1.0, mean * extraction_confidence)), 4)


def create_processing_metrics(
    parse_start_time: datetime,
    total_words: int,
    source_length: int | None = None,
    processing_errors: list[str] | None = None,
) -> ProcessingMetrics:
    parse_end_time = datetime.now()
    duration_ms = (parse_end_time - parse_start_time).total_seconds() * 1000
    return ProcessingMetrics(
        parse_start_time=parse_start_time,
        parse_end_time=parse_end_time,
        parse_duration_ms=duration_ms,
        source_length=(
            source_length if source_length is not None else total_words * CHARS_PER_WORD
        ),
        processing_errors=list(processing_errors or []),
    )


def build_document_structure(
    metadata: DocumentMetadata,
    chapters: list[Chapter],
    *,
    method: ExtractionMethod,
    source_format: str,
    parse_start_time: datetime,
    perf_start: float | None = None,
    extraction_confidence: float = 1.0,
    warnings: list[str] | None = None,
    source_length: int | None = None,
    processing_errors: list[str] | None = None,
    cache_stats: PerformanceStats | None = None,
) -> DocumentStructure:
    """Combine chapters, statistics and timing into the final document."""
    statistics = calculate_statistics(chapters)
    metrics = calculate_document_metrics(chapters)

    carried = (cache_stats or PerformanceStats()).model_copy(
        update={"statistics": statistics}
    )
    performance = update_performance_stats(
        perf_start if perf_start is not None else time.perf_counter(),
        len(chapters),
        carried,
    )

    log.info(
        f"Built document: {metrics.total_chapters} chapters, "
        f"{statistics.total_paragraphs} paragraphs, "
        f"{statistics.total_sentences} sentences, {metrics.total_word_count} words"
    )

    return DocumentStructure(
        metadata=metadata.model_copy(update={"word_count": metrics.total_word_count}),
        chapters=chapters,
        total_paragraphs=statistics.total_paragraphs,
        total_sentences=statistics.total_sentences,
        total_word_count=metrics.total_word_count,
        estimated_total_duration=metrics.estimated_total_duration,
        confidence=calculate_document_confidence(chapters, extraction_confidence),
        processing_metrics=create_processing_metrics(
            parse_start_time,
            metrics.total_word_count,
            source_length=source_length,
            processing_errors=processing_errors,
        ),
        stats=ExtractionSummary(
            method=method,
            source_format=source_format,
            confidence=extraction_confidence,
            performance=performance,
            warnings=list(warnings or []),
        ),
    )
