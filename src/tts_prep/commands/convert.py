"""Convert command implementation."""

import logging
import re
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from tts_prep.cache.manager import CacheManager
from tts_prep.config.models import AppConfig
from tts_prep.core.output_writer import OutputWriter
from tts_prep.core.parser_factory import ParserFactory
from tts_prep.errors import DocumentParseError
from tts_prep.models.document import DocumentStructure, ParseMode, ParseOptions
from tts_prep.models.extraction import ExtractionMethod
from tts_prep.models.output import OutputFormat

log = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def parse_chapter_selection(selection: str, total_chapters: int) -> list[int]:
    """Parse a chapter selection string into 0-based indices.

    Supports: "1,3,5-7", "all", "1-10", etc.
    """
    selection = selection.strip().lower()

    if selection == "all":
        return list(range(total_chapters))

    indices = set()
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part:
            match = re.match(r"(\d+)\s*-\s*(\d+)", part)
            if match:
                start, end = int(match.group(1)), int(match.group(2))
                indices.update(range(start - 1, end))
        else:
            try:
                indices.add(int(part) - 1)
            except ValueError:
                continue

    return sorted(i for i in indices if 0 <= i < total_chapters)


def get_default_output_dir(source_path: Path) -> Path:
    """Default output directory based on the source filename."""
    clean_stem = re.sub(r"[^\w\s-]", "", source_path.stem).strip()
    clean_stem = re.sub(r"[-\s]+", "_", clean_stem)
    return source_path.parent / f"{clean_stem}_tts"


def load_document(
    source_path: Path,
    options: ParseOptions,
    config: AppConfig,
    force: bool = False,
    pages_per_chunk: int | None = None,
) -> DocumentStructure:
    """Parse a document, going through the cache when it is enabled.

    Raises:
        DocumentParseError: If the file is too large or parsing fails
    """
    max_bytes = config.processing.max_file_size_mb * BYTES_PER_MB
    size = source_path.stat().st_size
    if size > max_bytes:
        raise DocumentParseError(
            f"File is {size / BYTES_PER_MB:.1f} MB, limit is "
            f"{config.processing.max_file_size_mb} MB",
            code="FILE_TOO_LARGE",
        )

    cache_manager = None
    # Forced chunking changes the output without changing the options key
    if config.cache.enabled and pages_per_chunk is None:
        cache_manager = CacheManager(source_path.parent, config.cache.directory)
        if not force:
            cached = cache_manager.load(source_path, options)
            if cached is not None:
                return cached

    result = ParserFactory.parse(source_path, options, pages_per_chunk)
    if not result.success:
        error = result.error
        raise DocumentParseError(error.message, code=error.code, details=error.details)

    document = result.data
    if cache_manager is not None:
        cache_manager.save(source_path, document, options)
        document = cache_manager.with_cache_stats(document)
    return document


def execute_convert(
    source_path: Path,
    config: AppConfig,
    mode: ParseMode,
    strict: bool | None,
    chapters: str | None,
    output_dir: Path | None,
    output_format: OutputFormat,
    force: bool,
    quiet: bool,
    console: Console,
    by_page: int | None = None,
) -> None:
    """Execute the convert command."""
    if not ParserFactory.is_supported(source_path):
        supported = ", ".join(ParserFactory.SUPPORTED_FORMATS)
        raise DocumentParseError(
            f"Unsupported file format: {source_path.suffix}. Supported formats: {supported}",
            code="UNSUPPORTED_FORMAT",
        )

    options = config.to_parse_options(mode=mode, strict=strict)
    format_name = ParserFactory.detect_format(source_path).upper()

    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task(f"Parsing {format_name}...", total=None)
            document = load_document(source_path, options, config, force, by_page)
    else:
        document = load_document(source_path, options, config, force, by_page)

    if not quiet:
        console.print()
        console.print(
            Panel(
                "\n".join(document_info_lines(document)),
                title="Document Info",
                border_style="green",
            )
        )
        console.print()

    if chapters is None:
        selected_indices = list(range(document.total_chapters))
    else:
        selected_indices = parse_chapter_selection(chapters, document.total_chapters)

    final_output_dir = output_dir or get_default_output_dir(source_path)
    writer = OutputWriter(final_output_dir, source_path)
    writer.write_document(document)

    if not selected_indices:
        if mode != "metadata-only" and not quiet:
            console.print("[yellow]No chapters selected.[/]")
        manifest_path = writer.write_manifest(document, [], [])
    else:
        chapter_metadata = []
        method = document.stats.method.value
        if not quiet:
            with Progress(console=console) as progress:
                task = progress.add_task("Writing chapters...", total=len(selected_indices))
                for idx in selected_indices:
                    chapter = document.chapters[idx]
                    _, metadata = writer.write_chapter(chapter, method, output_format)
                    chapter_metadata.append(metadata)
                    progress.update(
                        task, advance=1, description=f"Writing: {chapter.title[:40]}..."
                    )
        else:
            for idx in selected_indices:
                _, metadata = writer.write_chapter(document.chapters[idx], method, output_format)
                chapter_metadata.append(metadata)

        manifest_path = writer.write_manifest(document, selected_indices, chapter_metadata)

    if not quiet:
        minutes = document.estimated_total_duration / 60
        console.print()
        console.print(
            Panel(
                "\n".join(
                    [
                        f"[green]Converted {len(selected_indices)} chapter(s)[/]",
                        "",
                        f"[dim]Output directory:[/] {final_output_dir}",
                        f"[dim]Manifest:[/] {manifest_path.name}",
                        f"[dim]Estimated audio:[/] {minutes:.1f} min",
                    ]
                ),
                title="Complete",
                border_style="green",
            )
        )


def document_info_lines(document: DocumentStructure) -> list[str]:
    """Rich-markup summary lines shared by convert and info."""
    meta = document.metadata
    stats = document.stats
    lines = [
        f"[bold]{meta.title}[/]",
        f"[dim]Author:[/] {meta.author or 'Unknown'}",
        f"[dim]Language:[/] {meta.language or 'Unknown'}",
        f"[dim]Format:[/] {stats.source_format.upper()}",
        f"[dim]Chapters:[/] {document.total_chapters}",
        f"[dim]Paragraphs / sentences:[/] {document.total_paragraphs:,} / {document.total_sentences:,}",
        f"[dim]Words:[/] {document.total_word_count:,}",
        f"[dim]Confidence:[/] {document.confidence:.0%}",
    ]

    if stats.source_format == "pdf":
        method_display = stats.method.value.replace("_", " ").title()
        lines.append(
            f"[dim]Detection:[/] {method_display} (confidence: {stats.confidence:.0%})"
        )

    if stats.warnings:
        lines.append("")
        for warning in stats.warnings:
            lines.append(f"[yellow]! {warning}[/]")

    if stats.method == ExtractionMethod.PDF_PAGE_CHUNKS and document.chapters:
        lines.append("")
        lines.append(
            "[cyan]Tip: Use --by-page N to adjust pages per section "
            "(e.g., --by-page 5 for smaller sections)[/]"
        )

    return lines
