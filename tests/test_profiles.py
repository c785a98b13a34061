from __future__ import annotations

import json
from pathlib import Path

import pytest

from tts_prep.config.models import AppConfig
from tts_prep.config.profiles import ACTIVE_PROFILE_FILE, ProfileManager, is_valid_profile_name
from tts_prep.errors import ConfigurationError


@pytest.fixture
def profiles(tmp_path: Path) -> ProfileManager:
    return ProfileManager(tmp_path / "profiles")


@pytest.mark.parametrize(
    ("name", "valid"),
    [("fast", True), ("audio_book-2", True), ("", False), ("has space", False), ("x" * 51, False)],
)
def test_profile_names(name: str, valid: bool) -> None:
    assert is_valid_profile_name(name) is valid


def test_create_and_get(profiles: ProfileManager) -> None:
    created = profiles.create("fast", "Quick reads", ["speed"], {"tts": {"rate": 1.5}})

    assert created.success
    found = profiles.get("fast")
    assert found.success
    assert found.profile.description == "Quick reads"
    assert found.profile.tags == ["speed"]
    assert found.profile.config == {"tts": {"rate": 1.5}}
    assert not found.profile.is_active


def test_create_rejects_bad_name_duplicate_and_config(profiles: ProfileManager) -> None:
    assert not profiles.create("bad name").success
    assert profiles.create("fast").success
    assert "already exists" in profiles.create("fast").message

    invalid = profiles.create("loud", config={"tts": {"volume": 5}})
    assert not invalid.success
    assert invalid.errors[0].startswith("tts.volume")


def test_get_missing(profiles: ProfileManager) -> None:
    result = profiles.get("ghost")

    assert not result.success
    assert "not found" in result.message


def test_switch_marks_single_active(profiles: ProfileManager) -> None:
    profiles.create("one")
    profiles.create("two")

    assert profiles.switch("one").profile.is_active
    profiles.switch("two")

    listed = profiles.list_profiles().profiles
    assert [(p.name, p.is_active) for p in listed] == [("one", False), ("two", True)]
    assert json.loads((profiles.profiles_dir / ACTIVE_PROFILE_FILE).read_text()) == {"active": "two"}


def test_switch_to_missing_profile_fails(profiles: ProfileManager) -> None:
    assert not profiles.switch("ghost").success
    assert profiles.active_name() is None


def test_delete_refuses_active_profile(profiles: ProfileManager) -> None:
    profiles.create("keep")
    profiles.create("drop")
    profiles.switch("keep")

    refused = profiles.delete("keep")
    assert not refused.success
    assert "active" in refused.message

    assert profiles.delete("drop").success
    assert [p.name for p in profiles.list_profiles().profiles] == ["keep"]


def test_list_reports_unreadable_files(profiles: ProfileManager) -> None:
    profiles.create("good")
    (profiles.profiles_dir / "broken.json").write_text("{", encoding="utf-8")

    result = profiles.list_profiles()

    assert [p.name for p in result.profiles] == ["good"]
    assert len(result.errors) == 1


def test_list_without_directory(profiles: ProfileManager) -> None:
    result = profiles.list_profiles()

    assert result.success
    assert result.profiles == []


def test_update_merges_config(profiles: ProfileManager) -> None:
    profiles.create("voice", config={"tts": {"voice": "amy"}})

    updated = profiles.update("voice", tags=["narration"], config={"tts": {"rate": 1.2}})

    assert updated.success
    assert updated.profile.config == {"tts": {"voice": "amy", "rate": 1.2}}
    assert profiles.get("voice").profile.tags == ["narration"]
    assert not profiles.update("voice", config={"tts": {"rate": 0}}).success


def test_export_then_import_under_new_name(profiles: ProfileManager, tmp_path: Path) -> None:
    profiles.create("share", config={"processing": {"strict_mode": True}})
    exported = tmp_path / "share.json"

    assert profiles.export_profile("share", exported).success
    assert not profiles.import_profile(exported).success

    imported = profiles.import_profile(exported, name="copy")
    assert imported.success
    assert profiles.get("copy").profile.config == {"processing": {"strict_mode": True}}
    assert profiles.import_profile(exported, overwrite=True).success


def test_import_unreadable_file(profiles: ProfileManager, tmp_path: Path) -> None:
    source = tmp_path / "junk.json"
    source.write_text("not json", encoding="utf-8")

    assert not profiles.import_profile(source).success


def test_apply_uses_named_or_active_profile(profiles: ProfileManager) -> None:
    base = AppConfig()
    profiles.create("slow", config={"processing": {"words_per_minute": 120}})

    assert profiles.apply(base) == base
    assert profiles.apply(base, "slow").processing.words_per_minute == 120

    profiles.switch("slow")
    assert profiles.apply(base).processing.words_per_minute == 120


def test_apply_missing_profile_raises(profiles: ProfileManager) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        profiles.apply(AppConfig(), "ghost")
