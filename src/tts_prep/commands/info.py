"""Info command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tts_prep.commands.convert import document_info_lines, load_document
from tts_prep.config.models import AppConfig
from tts_prep.models.extraction import ExtractionMethod


def execute_info(source_path: Path, config: AppConfig, console: Console) -> None:
    """Display document metadata and the chapter list."""
    options = config.to_parse_options(mode="full")
    document = load_document(source_path, options, config)

    console.print()
    console.print(
        Panel(
            "\n".join(document_info_lines(document)),
            title="Document Information",
            border_style="green",
        )
    )

    console.print()
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Paragraphs", justify="right", style="dim")
    table.add_column("Words", justify="right", style="green")
    table.add_column("Audio", justify="right", style="dim")

    # Only outline-derived PDF levels are a real hierarchy worth indenting
    indent_levels = document.stats.method in (
        ExtractionMethod.PDF_OUTLINE,
        ExtractionMethod.EPUB_NATIVE,
    )
    for chapter in document.chapters:
        indent = "  " * (chapter.level - 1) if indent_levels else ""
        minutes, seconds = divmod(int(round(chapter.estimated_duration)), 60)
        table.add_row(
            str(chapter.position + 1),
            f"{indent}{chapter.title}",
            str(len(chapter.paragraphs)),
            f"{chapter.word_count:,}",
            f"{minutes}:{seconds:02d}",
        )

    console.print(table)
    console.print()
