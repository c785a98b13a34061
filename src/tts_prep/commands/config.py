"""Config and profile command implementations."""

import json
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from tts_prep.config.manager import CONFIG_FILENAME, ConfigManager
from tts_prep.config.models import AppConfig
from tts_prep.config.profiles import ProfileManager, ProfileResult
from tts_prep.errors import ConfigurationError

# =============================================================================
# Config
# =============================================================================


def execute_config_show(config: AppConfig, source: Path | None, console: Console) -> None:
    """Print the effective configuration as JSON."""
    console.print(f"[dim]Source:[/] {source or 'built-in defaults'}")
    console.print(Syntax(config.model_dump_json(indent=2), "json"))


def execute_config_sample(output: Path | None, force: bool, console: Console) -> None:
    """Print a sample config, or write it to a file."""
    sample = ConfigManager().create_sample_config()
    if output is None:
        console.print(Syntax(sample, "json"))
        return

    if output.is_dir():
        output = output / CONFIG_FILENAME
    if output.exists() and not force:
        raise ConfigurationError(f"{output} already exists (use --force to overwrite)")
    output.write_text(sample + "\n", encoding="utf-8")
    console.print(f"[green]Wrote sample configuration to {output}[/]")


def execute_config_validate(config_path: Path, console: Console) -> bool:
    """Validate a config file. Returns whether it is valid."""
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read {config_path}: {e}[/]")
        return False

    if not isinstance(data, dict):
        console.print(f"[red]{config_path} must contain a JSON object[/]")
        return False

    data.pop("_comment", None)
    problems = ConfigManager().validate(data)
    if problems:
        console.print(f"[red]{config_path.name} is invalid:[/]")
        for problem in problems:
            console.print(f"  [red]x[/] {problem}")
        return False

    console.print(f"[green]{config_path.name} is valid[/]")
    return True


# =============================================================================
# Profiles
# =============================================================================


def _report(result: ProfileResult, console: Console) -> bool:
    if result.success:
        if result.message:
            console.print(f"[green]{result.message}[/]")
        return True

    console.print(f"[red]{result.message}[/]")
    for error in result.errors:
        if error != result.message:
            console.print(f"  [red]x[/] {error}")
    return False


def execute_profile_create(
    manager: ProfileManager,
    name: str,
    description: str | None,
    tags: list[str] | None,
    from_file: Path | None,
    console: Console,
) -> bool:
    """Create a profile, optionally seeding its overrides from a JSON file."""
    overrides = {}
    if from_file is not None:
        try:
            overrides = json.loads(from_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read {from_file}: {e}") from e
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"{from_file} must contain a JSON object")
        overrides.pop("_comment", None)

    return _report(manager.create(name, description, tags, overrides), console)


def execute_profile_list(manager: ProfileManager, console: Console) -> None:
    result = manager.list_profiles()
    if not result.profiles:
        console.print("[dim]No profiles[/]")
    else:
        table = Table(title="Profiles", show_header=True, header_style="bold cyan")
        table.add_column("", width=1)
        table.add_column("Name", style="white")
        table.add_column("Description", style="dim")
        table.add_column("Tags", style="dim")
        table.add_column("Updated", style="dim")
        for profile in result.profiles:
            table.add_row(
                "[green]*[/]" if profile.is_active else "",
                profile.name,
                profile.description or "",
                ", ".join(profile.tags),
                profile.updated_at.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)

    for error in result.errors:
        console.print(f"[yellow]! {error}[/]")


def execute_profile_show(manager: ProfileManager, name: str | None, console: Console) -> bool:
    """Show a profile, the active one when no name is given."""
    name = name or manager.active_name()
    if name is None:
        console.print("[dim]No active profile[/]")
        return True

    result = manager.get(name)
    if not result.success:
        return _report(result, console)

    profile = result.profile
    lines = [
        f"[bold]{profile.name}[/]" + (" [green](active)[/]" if profile.is_active else ""),
        f"[dim]Description:[/] {profile.description or '-'}",
        f"[dim]Tags:[/] {', '.join(profile.tags) or '-'}",
        f"[dim]Created:[/] {profile.created_at:%Y-%m-%d %H:%M}",
        f"[dim]Updated:[/] {profile.updated_at:%Y-%m-%d %H:%M}",
    ]
    console.print(Panel("\n".join(lines), title="Profile", border_style="green"))
    console.print(Syntax(json.dumps(profile.config, indent=2), "json"))
    return True


def execute_profile_switch(manager: ProfileManager, name: str, console: Console) -> bool:
    return _report(manager.switch(name), console)


def execute_profile_delete(manager: ProfileManager, name: str, console: Console) -> bool:
    return _report(manager.delete(name), console)


def execute_profile_export(
    manager: ProfileManager, name: str, destination: Path, console: Console
) -> bool:
    return _report(manager.export_profile(name, destination), console)


def execute_profile_import(
    manager: ProfileManager,
    source: Path,
    name: str | None,
    overwrite: bool,
    console: Console,
) -> bool:
    return _report(manager.import_profile(source, name, overwrite), console)
