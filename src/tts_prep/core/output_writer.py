"""Write converted chapters to an output directory."""

import logging
from datetime import datetime
from pathlib import Path

from tts_prep.core.content_processor import ContentProcessor
from tts_prep.models.document import Chapter, DocumentStructure
from tts_prep.models.output import (
    ChapterMetadata,
    ChapterOutput,
    DocumentManifest,
    OutputFormat,
)

log = logging.getLogger(__name__)


class OutputWriter:
    """Write converted chapters to an output directory."""

    def __init__(self, output_dir: Path, source_path: Path):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
            source_path: Path to the source document
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.processor = ContentProcessor()

    def write_chapter(
        self,
        chapter: Chapter,
        extraction_method: str,
        output_format: OutputFormat = "text",
    ) -> tuple[Path, ChapterMetadata]:
        """Write a single chapter to a JSON file."""
        content = self.processor.process(chapter, output_format)
        stats = self.processor.get_stats(content)

        metadata = ChapterMetadata(
            chapter_id=chapter.id,
            chapter_index=chapter.position,
            title=chapter.title,
            source_path=str(self.source_path),
            extracted_at=datetime.now(),
            word_count=chapter.word_count,
            character_count=stats["character_count"],
            paragraph_count=len(chapter.paragraphs),
            sentence_count=sum(len(p.sentences) for p in chapter.paragraphs),
            estimated_duration=chapter.estimated_duration,
            extraction_method=extraction_method,
        )

        output = ChapterOutput(
            metadata=metadata,
            content=content,
            format=output_format,
            sentences=self.processor.spoken_sentences(chapter),
        )

        filepath = self.output_dir / f"chapter_{chapter.position + 1:03d}.json"
        filepath.write_text(output.model_dump_json(indent=2), encoding="utf-8")
        log.debug(f"Wrote {filepath.name}")

        return filepath, metadata

    def write_document(self, document: DocumentStructure) -> Path:
        """Write the full normalized structure, sentences and offsets included."""
        filepath = self.output_dir / "document.json"
        filepath.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        return filepath

    def write_manifest(
        self,
        document: DocumentStructure,
        extracted_indices: list[int],
        chapter_metadata: list[ChapterMetadata],
    ) -> Path:
        """Write the document manifest file."""
        manifest = DocumentManifest(
            title=document.metadata.title,
            author=document.metadata.author,
            language=document.metadata.language,
            total_chapters=document.total_chapters,
            extracted_chapters=extracted_indices,
            output_directory=str(self.output_dir),
            created_at=datetime.now(),
            chapters=chapter_metadata,
            source_format=document.stats.source_format,
            extraction_method=document.stats.method.value,
            extraction_confidence=document.stats.confidence,
            total_word_count=sum(m.word_count for m in chapter_metadata),
            estimated_total_duration=sum(m.estimated_duration for m in chapter_metadata),
            warnings=document.stats.warnings,
        )

        filepath = self.output_dir / "manifest.json"
        filepath.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        return filepath
