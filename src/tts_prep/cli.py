"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tts_prep.cache.manager import CacheManager
from tts_prep.commands.convert import execute_convert
from tts_prep.config.manager import ConfigManager
from tts_prep.config.models import AppConfig
from tts_prep.config.profiles import ProfileManager
from tts_prep.core.parser_factory import ParserFactory
from tts_prep.models.validation import ValidationLevel

app = typer.Typer(
    name="tts-prep",
    help="Normalize EPUB, PDF and Markdown documents into speakable text for TTS.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

cache_app = typer.Typer(help="Cache management commands")
app.add_typer(cache_app, name="cache")
config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")
profile_app = typer.Typer(help="Configuration profile commands")
app.add_typer(profile_app, name="profile")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj["config"]


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Config file (default: ./tts-prep.config.json, then ~/.config/tts-prep/config.json)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Normalize EPUB, PDF and Markdown documents into speakable text for TTS."""
    manager = ConfigManager()
    try:
        config = manager.load(config_path)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    setup_logging("debug" if verbose else config.logging.level)
    ctx.obj = {"config": config, "config_path": manager.config_path}


@app.command()
def convert(
    ctx: typer.Context,
    source_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the document (EPUB, PDF or Markdown)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="Parse mode: tts, full, or metadata-only"),
    ] = "tts",
    strict: Annotated[
        Optional[bool],
        typer.Option(
            "--strict/--no-strict",
            help="Fail on content problems instead of warning (default: from config)",
        ),
    ] = None,
    chapters: Annotated[
        Optional[str],
        typer.Option(
            "--chapters",
            "-s",
            help="Chapters to write by index: '1,3,5-7' or 'all' (use 'tts-prep info' to see indices)",
        ),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output directory (default: {name}_tts/)"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Chapter content format: text, markdown, or html"),
    ] = "text",
    profile: Annotated[
        Optional[str],
        typer.Option("--profile", "-p", help="Apply a named profile (default: active profile)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Force re-parsing, ignore cache"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
    by_page: Annotated[
        Optional[int],
        typer.Option(
            "--by-page",
            help="Force page-based chunking with N pages per chapter (PDF only)",
            min=1,
        ),
    ] = None,
) -> None:
    """Parse a document and write speakable chapters plus a manifest."""
    if not ParserFactory.is_supported(source_path):
        console.print(f"[red]Unsupported file format: {source_path.suffix}[/]")
        console.print("[dim]Supported formats: .epub, .pdf, .md, .markdown[/]")
        raise typer.Exit(1)

    if mode not in ("tts", "full", "metadata-only"):
        console.print(f"[red]Invalid mode: {mode}. Use tts, full, or metadata-only.[/]")
        raise typer.Exit(1)

    if output_format not in ("markdown", "text", "html"):
        console.print(f"[red]Invalid format: {output_format}. Use text, markdown, or html.[/]")
        raise typer.Exit(1)

    try:
        config = ProfileManager().apply(_config(ctx), profile)
        execute_convert(
            source_path=source_path,
            config=config,
            mode=mode,  # type: ignore
            strict=strict,
            chapters=chapters,
            output_dir=output_dir,
            output_format=output_format,  # type: ignore
            force=force,
            quiet=quiet,
            console=console,
            by_page=by_page,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(
    ctx: typer.Context,
    source_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the document (EPUB, PDF or Markdown)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display document metadata and chapter list."""
    if not ParserFactory.is_supported(source_path):
        console.print(f"[red]Unsupported file format: {source_path.suffix}[/]")
        console.print("[dim]Supported formats: .epub, .pdf, .md, .markdown[/]")
        raise typer.Exit(1)

    try:
        from tts_prep.commands.info import execute_info

        execute_info(source_path, ProfileManager().apply(_config(ctx)), console)
    except Exception as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


@app.command()
def validate(
    epub_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the EPUB file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    level: Annotated[
        ValidationLevel,
        typer.Option("--level", "-l", help="Validation depth"),
    ] = ValidationLevel.STANDARD,
) -> None:
    """Check an EPUB's structure. Exits 1 when it is invalid."""
    try:
        from tts_prep.commands.validate import execute_validate

        result = execute_validate(epub_path, level, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def encoding(
    file_path: Annotated[
        Path,
        typer.Argument(
            help="Path to a text file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Detect a text file's encoding and report script and direction."""
    try:
        from tts_prep.commands.encoding import execute_encoding

        execute_encoding(file_path, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


# =============================================================================
# Cache
# =============================================================================


def _cache_manager(ctx: typer.Context, project_dir: Path) -> CacheManager:
    return CacheManager(project_dir.resolve(), _config(ctx).cache.directory)


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    project_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Directory containing the cache (default: current directory)",
        ),
    ] = Path("."),
) -> None:
    """Clear all cached documents."""
    count = _cache_manager(ctx, project_dir).clear_cache()

    if count > 0:
        console.print(f"[green]Cleared {count} cached file(s)[/]")
    else:
        console.print("[dim]No cache to clear[/]")


@cache_app.command("list")
def cache_list(
    ctx: typer.Context,
    project_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Directory containing the cache (default: current directory)",
        ),
    ] = Path("."),
) -> None:
    """List all cached documents."""
    cached = _cache_manager(ctx, project_dir).list_cached()

    if not cached:
        console.print("[dim]No cached files[/]")
        return

    table = Table(title="Cached Files", show_header=True, header_style="bold cyan")
    table.add_column("Path", style="white")
    table.add_column("Hash", style="dim", width=12)

    for path, file_hash in cached:
        display_path = path if len(path) < 60 else "..." + path[-57:]
        table.add_row(display_path, file_hash[:12])

    console.print(table)


# =============================================================================
# Config
# =============================================================================


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    from tts_prep.commands.config import execute_config_show

    execute_config_show(_config(ctx), ctx.obj["config_path"], console)


@config_app.command("sample")
def config_sample(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the sample to this file or directory"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing file"),
    ] = False,
) -> None:
    """Print or write a sample configuration file."""
    try:
        from tts_prep.commands.config import execute_config_sample

        execute_config_sample(output, force, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@config_app.command("validate")
def config_validate(
    config_path: Annotated[
        Path,
        typer.Argument(help="Config file to check", exists=True, dir_okay=False),
    ],
) -> None:
    """Validate a configuration file. Exits 1 when it is invalid."""
    from tts_prep.commands.config import execute_config_validate

    if not execute_config_validate(config_path, console):
        raise typer.Exit(1)


# =============================================================================
# Profiles
# =============================================================================


@profile_app.command("create")
def profile_create(
    name: Annotated[str, typer.Argument(help="Profile name (letters, digits, '-' or '_')")],
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Short description"),
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Add a tag (can be used multiple times)"),
    ] = None,
    from_file: Annotated[
        Optional[Path],
        typer.Option(
            "--from-file",
            help="JSON file with configuration overrides",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Create a configuration profile."""
    from tts_prep.commands.config import execute_profile_create

    try:
        ok = execute_profile_create(ProfileManager(), name, description, tags, from_file, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)
    if not ok:
        raise typer.Exit(1)


@profile_app.command("list")
def profile_list() -> None:
    """List configuration profiles; the active one is starred."""
    from tts_prep.commands.config import execute_profile_list

    execute_profile_list(ProfileManager(), console)


@profile_app.command("show")
def profile_show(
    name: Annotated[
        Optional[str],
        typer.Argument(help="Profile name (default: active profile)"),
    ] = None,
) -> None:
    """Show a profile's details and overrides."""
    from tts_prep.commands.config import execute_profile_show

    if not execute_profile_show(ProfileManager(), name, console):
        raise typer.Exit(1)


@profile_app.command("switch")
def profile_switch(
    name: Annotated[str, typer.Argument(help="Profile to activate")],
) -> None:
    """Make a profile the active one."""
    from tts_prep.commands.config import execute_profile_switch

    if not execute_profile_switch(ProfileManager(), name, console):
        raise typer.Exit(1)


@profile_app.command("delete")
def profile_delete(
    name: Annotated[str, typer.Argument(help="Profile to delete")],
) -> None:
    """Delete a profile. The active profile cannot be deleted."""
    from tts_prep.commands.config import execute_profile_delete

    if not execute_profile_delete(ProfileManager(), name, console):
        raise typer.Exit(1)


@profile_app.command("export")
def profile_export(
    name: Annotated[str, typer.Argument(help="Profile to export")],
    destination: Annotated[Path, typer.Argument(help="Destination JSON file")],
) -> None:
    """Export a profile to a JSON file."""
    from tts_prep.commands.config import execute_profile_export

    if not execute_profile_export(ProfileManager(), name, destination, console):
        raise typer.Exit(1)


@profile_app.command("import")
def profile_import(
    source: Annotated[
        Path,
        typer.Argument(help="Profile JSON file", exists=True, dir_okay=False),
    ],
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Import under a different name"),
    ] = None,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", help="Replace an existing profile of the same name"),
    ] = False,
) -> None:
    """Import a profile from a JSON file."""
    from tts_prep.commands.config import execute_profile_import

    if not execute_profile_import(ProfileManager(), source, name, overwrite, console):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
