"""Named configuration profiles stored as JSON files."""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from tts_prep.config.manager import (
    GLOBAL_CONFIG_DIR,
    ConfigManager,
    deep_merge,
    format_validation_error,
)
from tts_prep.config.models import AppConfig
from tts_prep.errors import ConfigurationError

log = logging.getLogger(__name__)

PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,50}$")
ACTIVE_PROFILE_FILE = ".active-profile.json"
DEFAULT_PROFILES_DIR = GLOBAL_CONFIG_DIR / "profiles"


class Profile(BaseModel):
    """A named set of configuration overrides."""

    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    is_active: bool = False


class ProfileResult(BaseModel):
    """Outcome of a profile operation."""

    success: bool
    message: str = ""
    profile: Profile | None = None
    profiles: list[Profile] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def fail(cls, message: str, errors: list[str] | None = None) -> "ProfileResult":
        return cls(success=False, message=message, errors=errors or [message])


def is_valid_profile_name(name: str) -> bool:
    return bool(PROFILE_NAME_PATTERN.match(name))


class ProfileManager:
    """Create, switch, list and delete configuration profiles."""

    def __init__(self, profiles_dir: Path | None = None):
        self.profiles_dir = profiles_dir or DEFAULT_PROFILES_DIR
        self.active_path = self.profiles_dir / ACTIVE_PROFILE_FILE

    # =========================================================================
    # File Operations
    # =========================================================================

    def _profile_path(self, name: str) -> Path:
        return self.profiles_dir / f"{name}.json"

    def _read(self, path: Path) -> Profile:
        try:
            return Profile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to read profile {path.name}: {e}") from e

    def _write(self, profile: Profile) -> None:
        self.profiles_dir.mkdir(parents=True, exist_ok=True)
        stored = profile.model_copy(update={"is_active": False})
        self._profile_path(profile.name).write_text(
            stored.model_dump_json(indent=2), encoding="utf-8"
        )

    def active_name(self) -> str | None:
        """Name of the active profile, if any."""
        if not self.active_path.exists():
            return None
        try:
            data = json.loads(self.active_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning(f"Ignoring unreadable active profile marker: {e}")
            return None
        name = data.get("active") if isinstance(data, dict) else None
        return name if isinstance(name, str) and self._profile_path(name).exists() else None

    def _mark(self, profile: Profile) -> Profile:
        return profile.model_copy(update={"is_active": profile.name == self.active_name()})

    @staticmethod
    def _check_config(config: dict[str, Any]) -> list[str]:
        return ConfigManager().validate(config)

    # =========================================================================
    # Operations
    # =========================================================================

    def create(
        self,
        name: str,
        description: str | None = None,
        tags: list[str] | None = None,
        config: dict[str, Any] | None = None,
    ) -> ProfileResult:
        """Create a new profile. Fails if the name is invalid or taken."""
        if not is_valid_profile_name(name):
            return ProfileResult.fail(
                f"Invalid profile name '{name}': use 1-50 letters, digits, '-' or '_'"
            )
        if self._profile_path(name).exists():
            return ProfileResult.fail(f"Profile '{name}' already exists")

        problems = self._check_config(config or {})
        if problems:
            return ProfileResult.fail(f"Invalid configuration for profile '{name}'", problems)

        profile = Profile(name=name, description=description, tags=tags or [], config=config or {})
        self._write(profile)
        log.info(f"Created profile {name}")
        return ProfileResult(success=True, message=f"Created profile '{name}'", profile=profile)

    def get(self, name: str) -> ProfileResult:
        path = self._profile_path(name)
        if not is_valid_profile_name(name) or not path.exists():
            return ProfileResult.fail(f"Profile '{name}' not found")
        try:
            profile = self._read(path)
        except ConfigurationError as e:
            return ProfileResult.fail(str(e))
        return ProfileResult(success=True, profile=self._mark(profile))

    def list_profiles(self) -> ProfileResult:
        """All readable profiles sorted by name; unreadable files are reported."""
        if not self.profiles_dir.exists():
            return ProfileResult(success=True, message="No profiles")

        profiles: list[Profile] = []
        errors: list[str] = []
        for path in sorted(self.profiles_dir.glob("*.json")):
            if path.name == ACTIVE_PROFILE_FILE:
                continue
            try:
                profiles.append(self._mark(self._read(path)))
            except ConfigurationError as e:
                errors.append(str(e))

        return ProfileResult(
            success=True,
            message=f"{len(profiles)} profile(s)",
            profiles=profiles,
            errors=errors,
        )

    def switch(self, name: str) -> ProfileResult:
        """Make a profile the single active one."""
        found = self.get(name)
        if not found.success:
            return found

        self.profiles_dir.mkdir(parents=True, exist_ok=True)
        self.active_path.write_text(json.dumps({"active": name}, indent=2), encoding="utf-8")
        log.info(f"Switched to profile {name}")
        return ProfileResult(
            success=True,
            message=f"Switched to profile '{name}'",
            profile=found.profile.model_copy(update={"is_active": True}),
        )

    def delete(self, name: str) -> ProfileResult:
        """Delete a profile. The active profile cannot be deleted."""
        found = self.get(name)
        if not found.success:
            return found
        if self.active_name() == name:
            return ProfileResult.fail(
                f"Cannot delete active profile '{name}'; switch to another profile first"
            )

        self._profile_path(name).unlink()
        log.info(f"Deleted profile {name}")
        return ProfileResult(success=True, message=f"Deleted profile '{name}'", profile=found.profile)

    def update(
        self,
        name: str,
        description: str | None = None,
        tags: list[str] | None = None,
        config: dict[str, Any] | None = None,
    ) -> ProfileResult:
        """Update fields of a profile; config overrides merge into the existing ones."""
        found = self.get(name)
        if not found.success:
            return found

        profile = found.profile
        merged = deep_merge(profile.config, config or {})
        problems = self._check_config(merged)
        if problems:
            return ProfileResult.fail(f"Invalid configuration for profile '{name}'", problems)

        updated = profile.model_copy(
            update={
                "description": description if description is not None else profile.description,
                "tags": tags if tags is not None else profile.tags,
                "config": merged,
                "updated_at": datetime.now(),
            }
        )
        self._write(updated)
        return ProfileResult(success=True, message=f"Updated profile '{name}'", profile=updated)

    def export_profile(self, name: str, destination: Path) -> ProfileResult:
        found = self.get(name)
        if not found.success:
            return found
        try:
            destination.write_text(
                found.profile.model_copy(update={"is_active": False}).model_dump_json(indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            return ProfileResult.fail(f"Failed to export profile '{name}': {e}")
        return ProfileResult(
            success=True, message=f"Exported profile '{name}' to {destination}", profile=found.profile
        )

    def import_profile(
        self, source: Path, name: str | None = None, overwrite: bool = False
    ) -> ProfileResult:
        """Import a profile file, optionally under a new name."""
        try:
            imported = self._read(source)
        except ConfigurationError as e:
            return ProfileResult.fail(str(e))

        target = name or imported.name
        if not is_valid_profile_name(target):
            return ProfileResult.fail(f"Invalid profile name '{target}'")
        if self._profile_path(target).exists() and not overwrite:
            return ProfileResult.fail(f"Profile '{target}' already exists")

        problems = self._check_config(imported.config)
        if problems:
            return ProfileResult.fail(f"Invalid configuration in {source.name}", problems)

        profile = imported.model_copy(
            update={"name": target, "updated_at": datetime.now(), "is_active": False}
        )
        self._write(profile)
        return ProfileResult(success=True, message=f"Imported profile '{target}'", profile=profile)

    def apply(self, base: AppConfig, name: str | None = None) -> AppConfig:
        """Base configuration with a profile's overrides on top.

        Uses the active profile when no name is given.

        Raises:
            ConfigurationError: If the named profile is missing or its
                overrides are invalid
        """
        name = name or self.active_name()
        if name is None:
            return base

        found = self.get(name)
        if not found.success:
            raise ConfigurationError(found.message)

        try:
            return AppConfig.model_validate(
                deep_merge(base.model_dump(mode="json"), found.profile.config)
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Profile '{name}' is invalid: {'; '.join(format_validation_error(e))}"
            ) from e
