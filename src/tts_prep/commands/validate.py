"""Validate command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tts_prep.core.epub_container import EbooklibContainer
from tts_prep.core.epub_validation import validate_epub_structure
from tts_prep.models.validation import (
    Severity,
    ValidationConfig,
    ValidationLevel,
    ValidationResult,
)

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
}


def execute_validate(epub_path: Path, level: ValidationLevel, console: Console) -> ValidationResult:
    """Run the EPUB structural validator and print its findings.

    Raises:
        DocumentParseError: If the file cannot be opened as an EPUB
    """
    container = EbooklibContainer(epub_path)
    try:
        result = validate_epub_structure(container, ValidationConfig(level=level))
    finally:
        container.close()

    meta = result.metadata
    status = "[green]VALID[/]" if result.is_valid else "[red]INVALID[/]"
    console.print()
    console.print(
        Panel(
            "\n".join(
                [
                    f"[bold]{meta.title or epub_path.name}[/]  {status}",
                    "",
                    f"[dim]Level:[/] {level.value}",
                    f"[dim]EPUB version:[/] {meta.epub_version or 'Unknown'}",
                    f"[dim]Language:[/] {meta.language or 'Unknown'}",
                    f"[dim]Spine / manifest items:[/] "
                    f"{meta.spine_item_count} / {meta.manifest_item_count}",
                    f"[dim]Navigation:[/] {'yes' if meta.has_navigation else 'no'}",
                ]
            ),
            title="EPUB Validation",
            border_style="green" if result.is_valid else "red",
        )
    )

    if result.errors:
        table = Table(title="Errors", show_header=True, header_style="bold red")
        table.add_column("Severity", width=9)
        table.add_column("Code", style="cyan")
        table.add_column("Message")
        table.add_column("Fix", style="dim")
        for error in result.errors:
            style = SEVERITY_STYLES[error.severity]
            table.add_row(
                f"[{style}]{error.severity.value}[/]", error.code, error.message, error.fix or ""
            )
        console.print(table)

    if result.warnings:
        table = Table(title="Warnings", show_header=True, header_style="bold yellow")
        table.add_column("Code", style="cyan")
        table.add_column("Message")
        table.add_column("Suggestion", style="dim")
        for warning in result.warnings:
            table.add_row(warning.code, warning.message, warning.suggestion or "")
        console.print(table)

    if not result.errors and not result.warnings:
        console.print("[green]No problems found[/]")

    return result
