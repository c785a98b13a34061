from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tts_prep.cli import app
from tts_prep.config.manager import CONFIG_FILENAME

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's real config and profiles out of every test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("tts_prep.config.manager.GLOBAL_CONFIG_DIR", tmp_path / "global")
    monkeypatch.setattr("tts_prep.config.profiles.DEFAULT_PROFILES_DIR", tmp_path / "profiles")


def test_convert_markdown_writes_outputs(tmp_path: Path, sample_markdown: Path) -> None:
    out = tmp_path / "out"

    result = runner.invoke(app, ["convert", str(sample_markdown), "-o", str(out), "-q"])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.iterdir()) == [
        "chapter_001.json",
        "chapter_002.json",
        "chapter_003.json",
        "document.json",
        "manifest.json",
    ]
    manifest = json.loads((out / "manifest.json").read_text())
    assert manifest["extracted_chapters"] == [0, 1, 2]
    assert manifest["extraction_method"] == "markdown_headings"


def test_convert_selected_chapters_as_markdown(tmp_path: Path, sample_markdown: Path) -> None:
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        ["convert", str(sample_markdown), "-o", str(out), "-s", "2", "-f", "markdown", "-q"],
    )

    assert result.exit_code == 0, result.output
    assert not (out / "chapter_001.json").exists()
    chapter = json.loads((out / "chapter_002.json").read_text())
    assert chapter["format"] == "markdown"
    assert chapter["content"].startswith("## Morning")


def test_convert_default_output_dir_and_summary(tmp_path: Path, sample_markdown: Path) -> None:
    result = runner.invoke(app, ["convert", str(sample_markdown)])

    assert result.exit_code == 0, result.output
    assert "Field Notes" in result.output
    assert (tmp_path / "notes_tts" / "manifest.json").exists()


def test_convert_epub(tmp_path: Path, make_epub) -> None:
    out = tmp_path / "book"

    result = runner.invoke(app, ["convert", str(make_epub()), "-o", str(out), "-q"])

    assert result.exit_code == 0, result.output
    manifest = json.loads((out / "manifest.json").read_text())
    assert manifest["title"] == "Sample Book"
    assert manifest["total_chapters"] == 2


def test_convert_rejects_bad_mode_format_and_suffix(tmp_path: Path, sample_markdown: Path) -> None:
    bad_mode = runner.invoke(app, ["convert", str(sample_markdown), "-m", "fast"])
    assert bad_mode.exit_code == 1
    assert "Invalid mode" in bad_mode.output

    bad_format = runner.invoke(app, ["convert", str(sample_markdown), "-f", "docx"])
    assert bad_format.exit_code == 1
    assert "Invalid format" in bad_format.output

    text_file = tmp_path / "notes.txt"
    text_file.write_text("hello", encoding="utf-8")
    unsupported = runner.invoke(app, ["convert", str(text_file)])
    assert unsupported.exit_code == 1
    assert "Unsupported file format" in unsupported.output


def test_convert_strict_failure_exits_nonzero(tmp_path: Path) -> None:
    source = tmp_path / "heading.md"
    source.write_text("# Only a heading\n", encoding="utf-8")

    result = runner.invoke(app, ["convert", str(source), "--strict", "-q"])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_convert_with_missing_profile_fails(sample_markdown: Path) -> None:
    result = runner.invoke(app, ["convert", str(sample_markdown), "-p", "ghost", "-q"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_info_lists_chapters(sample_markdown: Path) -> None:
    result = runner.invoke(app, ["info", str(sample_markdown)])

    assert result.exit_code == 0, result.output
    assert "Field Notes" in result.output
    assert "Morning" in result.output
    assert "Evening" in result.output


def test_validate_exit_codes(make_epub) -> None:
    valid = runner.invoke(app, ["validate", str(make_epub())])
    assert valid.exit_code == 0, valid.output
    assert "INVALID" not in valid.output

    untitled = make_epub("untitled.epub", title=None)
    invalid = runner.invoke(app, ["validate", str(untitled), "--level", "basic"])
    assert invalid.exit_code == 1
    assert "INVALID" in invalid.output


def test_validate_unreadable_epub(tmp_path: Path) -> None:
    broken = tmp_path / "broken.epub"
    broken.write_bytes(b"junk")

    result = runner.invoke(app, ["validate", str(broken)])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_encoding_report(tmp_path: Path) -> None:
    source = tmp_path / "plain.txt"
    source.write_text("Plain English text for the report.\n", encoding="utf-8")

    result = runner.invoke(app, ["encoding", str(source)])

    assert result.exit_code == 0, result.output
    assert "Encoding Diagnostics" in result.output
    assert "left-to-right" in result.output


def test_missing_config_file_exits(sample_markdown: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "nope.json"), "info", str(sample_markdown)])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_config_sample_then_validate(tmp_path: Path) -> None:
    written = runner.invoke(app, ["config", "sample", "-o", str(tmp_path)])
    assert written.exit_code == 0, written.output
    sample = tmp_path / CONFIG_FILENAME
    assert sample.exists()

    again = runner.invoke(app, ["config", "sample", "-o", str(sample)])
    assert again.exit_code == 1
    assert "exists" in again.output

    assert runner.invoke(app, ["config", "validate", str(sample)]).exit_code == 0

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"tts": {"rate": 10}}), encoding="utf-8")
    rejected = runner.invoke(app, ["config", "validate", str(bad)])
    assert rejected.exit_code == 1
    assert "tts.rate" in rejected.output


def test_config_show_uses_project_file(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"tts": {"voice": "amy"}}), encoding="utf-8")

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0, result.output
    assert '"amy"' in result.output


def test_profile_lifecycle(tmp_path: Path) -> None:
    overrides = tmp_path / "fast.json"
    overrides.write_text(json.dumps({"tts": {"rate": 1.5}}), encoding="utf-8")

    created = runner.invoke(app, ["profile", "create", "fast", "-d", "Quick", "-t", "speed", "--from-file", str(overrides)])
    assert created.exit_code == 0, created.output
    assert runner.invoke(app, ["profile", "create", "slow"]).exit_code == 0
    assert runner.invoke(app, ["profile", "create", "fast"]).exit_code == 1

    assert runner.invoke(app, ["profile", "switch", "fast"]).exit_code == 0
    listed = runner.invoke(app, ["profile", "list"])
    assert "fast" in listed.output
    assert "slow" in listed.output

    shown = runner.invoke(app, ["profile", "show"])
    assert shown.exit_code == 0
    assert "1.5" in shown.output

    assert runner.invoke(app, ["profile", "delete", "fast"]).exit_code == 1
    assert runner.invoke(app, ["profile", "delete", "slow"]).exit_code == 0

    exported = tmp_path / "exported.json"
    assert runner.invoke(app, ["profile", "export", "fast", str(exported)]).exit_code == 0
    assert json.loads(exported.read_text())["config"] == {"tts": {"rate": 1.5}}


def test_profile_create_rejects_bad_name() -> None:
    result = runner.invoke(app, ["profile", "create", "bad name"])

    assert result.exit_code == 1
    assert "Invalid profile name" in result.output


def test_cache_list_and_clear(tmp_path: Path, sample_markdown: Path) -> None:
    assert "No cached files" in runner.invoke(app, ["cache", "list"]).output

    runner.invoke(app, ["convert", str(sample_markdown), "-o", str(tmp_path / "out"), "-q"])

    listed = runner.invoke(app, ["cache", "list", "--dir", str(tmp_path)])
    assert "Cached Files" in listed.output

    cleared = runner.invoke(app, ["cache", "clear", "--dir", str(tmp_path)])
    assert "Cleared 1 cached file(s)" in cleared.output
    assert "No cache to clear" in runner.invoke(app, ["cache", "clear"]).output
