"""Encoding command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from tts_prep.core.encoding_conversion import decode_bytes
from tts_prep.core.encoding_validation import analyze_text_encoding, get_encoding_diagnostics
from tts_prep.core.text_analysis import detect_text_alignment
from tts_prep.models.encoding import DiagnosticReport

# Diagnostics only need a representative sample
SAMPLE_BYTES = 1024 * 1024


def execute_encoding(file_path: Path, console: Console) -> DiagnosticReport:
    """Decode a text file and print its encoding diagnostics."""
    with open(file_path, "rb") as f:
        data = f.read(SAMPLE_BYTES)

    decoded = decode_bytes(data)
    report = get_encoding_diagnostics(decoded.text)
    analysis = analyze_text_encoding(decoded.text)
    scripts = report.script_analysis

    lines = [
        f"[bold]{file_path.name}[/]",
        "",
        f"[dim]Decoded as:[/] {decoded.encoding} (confidence: {decoded.confidence:.0%})"
        + (" [red]lossy[/]" if decoded.lossy else ""),
        f"[dim]Text encoding:[/] {report.encoding} (confidence: {report.confidence:.0%})",
        f"[dim]Family:[/] {analysis.encoding_details.encoding_family}",
        f"[dim]BOM:[/] {'yes' if analysis.has_bom else 'no'}",
        f"[dim]Non-ASCII:[/] {analysis.non_ascii_ratio:.1%}",
        f"[dim]Scripts:[/] {', '.join(scripts.detected_scripts) or 'none detected'}",
        f"[dim]Direction:[/] {'right-to-left' if report.rtl_detection.is_rtl else 'left-to-right'}",
        f"[dim]Alignment:[/] {detect_text_alignment(decoded.text)}",
    ]

    if report.validation.issues:
        lines.append("")
        lines.extend(f"[red]x {issue}[/]" for issue in report.validation.issues)
    if report.validation.warnings:
        lines.append("")
        lines.extend(f"[yellow]! {warning}[/]" for warning in report.validation.warnings)
    if report.recommendations:
        lines.append("")
        lines.extend(f"[cyan]- {rec}[/]" for rec in report.recommendations)

    console.print()
    console.print(Panel("\n".join(lines), title="Encoding Diagnostics", border_style="green"))
    return report
