"""Document statistics and parse performance tracking."""

import logging
import re
import time

import psutil

from tts_prep.models.document import Chapter, DocumentStatistics, PerformanceStats

log = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
BYTES_PER_MB = 1024 * 1024


def calculate_statistics(chapters: list[Chapter]) -> DocumentStatistics:
    """Sum paragraph, sentence and word counts and count image/table tags."""
    # Compiled per call so no matcher state is shared between callers
    image_tag = re.compile(r"<img\b", re.IGNORECASE)
    table_tag = re.compile(r"<table\b", re.IGNORECASE)

    total_paragraphs = 0
    total_sentences = 0
    image_count = 0
    table_count = 0

    for chapter in chapters:
        total_paragraphs += len(chapter.paragraphs)
        for paragraph in chapter.paragraphs:
            total_sentences += len(paragraph.sentences)
            image_count += len(image_tag.findall(paragraph.raw_text))
            table_count += len(table_tag.findall(paragraph.raw_text))

    total_words = sum(chapter.word_count for chapter in chapters)

    return DocumentStatistics(
        chapter_count=len(chapters),
        total_paragraphs=total_paragraphs,
        total_sentences=total_sentences,
        total_words=total_words,
        estimated_reading_time=total_words / WORDS_PER_MINUTE,
        image_count=image_count,
        table_count=table_count,
    )


def get_memory_usage_mb() -> float:
    """Resident memory of the current process in MB."""
    try:
        return psutil.Process().memory_info().rss / BYTES_PER_MB
    except psutil.Error as e:
        log.warning(f"Could not read process memory: {e}")
        return 0.0


def update_performance_stats(
    start_time: float,
    chapter_count: int,
    current_stats: PerformanceStats,
) -> PerformanceStats:
    """Refresh timing, memory and throughput, carrying everything else forward.

    Args:
        start_time: ``time.perf_counter()`` value taken when parsing began
        chapter_count: Chapters processed so far
        current_stats: Stats to carry content counts and cache counters from

    Returns:
        A new PerformanceStats
    """
    parse_time_ms = (time.perf_counter() - start_time) * 1000

    if chapter_count > 0 and parse_time_ms > 0:
        chapters_per_second = chapter_count / parse_time_ms * 1000
    else:
        chapters_per_second = 0.0

    return current_stats.model_copy(
        update={
            "parse_time_ms": parse_time_ms,
            "memory_usage_mb": get_memory_usage_mb(),
            "chapters_per_second": chapters_per_second,
        }
    )
