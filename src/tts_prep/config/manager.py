"""Loading, merging and validating the JSON configuration file."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tts_prep.config.models import AppConfig
from tts_prep.errors import ConfigurationError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "tts-prep.config.json"
GLOBAL_CONFIG_DIR = Path.home() / ".config" / "tts-prep"


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into a copy of target. Nested dicts merge, everything else replaces."""
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        elif value is not None:
            result[key] = value
    return result


def format_validation_error(error: ValidationError) -> list[str]:
    """One readable line per pydantic error, e.g. ``tts.rate: Input should be ...``."""
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]


class ConfigManager:
    """Find, load and validate the configuration."""

    def __init__(self, search_dir: Path | None = None, global_dir: Path | None = None):
        self.search_dir = search_dir or Path.cwd()
        self.global_dir = global_dir or GLOBAL_CONFIG_DIR
        self._config: AppConfig | None = None
        self._config_path: Path | None = None

    @property
    def global_config_path(self) -> Path:
        return self.global_dir / "config.json"

    @property
    def config_path(self) -> Path | None:
        """File the current configuration came from, None for defaults."""
        return self._config_path

    def search_paths(self) -> list[Path]:
        return [self.search_dir / CONFIG_FILENAME, self.global_config_path]

    def load(self, config_path: Path | None = None) -> AppConfig:
        """Load configuration from a file, merged over the defaults.

        Args:
            config_path: Explicit file; when omitted the search paths are
                tried in order and defaults are used if none exists

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if config_path is not None and not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        path = config_path or next((p for p in self.search_paths() if p.exists()), None)
        if path is None:
            log.debug("No config file found, using defaults")
            self._config = AppConfig()
            self._config_path = None
            return self._config

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load configuration from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {path} must be a JSON object")

        data.pop("_comment", None)
        try:
            self._config = self.merge_with_defaults(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration in {path}: {'; '.join(format_validation_error(e))}"
            ) from e

        self._config_path = path
        log.info(f"Loaded configuration from {path}")
        return self._config

    def get_config(self) -> AppConfig:
        """Current configuration.

        Raises:
            ConfigurationError: If load() has not been called
        """
        if self._config is None:
            raise ConfigurationError("Configuration not loaded. Call load() first.")
        return self._config

    @staticmethod
    def merge_with_defaults(data: dict[str, Any]) -> AppConfig:
        defaults = AppConfig().model_dump(mode="json")
        return AppConfig.model_validate(deep_merge(defaults, data))

    def validate(self, data: dict[str, Any]) -> list[str]:
        """Problems with a partial configuration, empty when it is valid."""
        try:
            self.merge_with_defaults(data)
        except ValidationError as e:
            return format_validation_error(e)
        return []

    def create_sample_config(self) -> str:
        sample = {
            "_comment": [
                "Sample configuration file for tts-prep",
                f"Copy this to {CONFIG_FILENAME} and modify as needed",
            ],
            **AppConfig().model_dump(mode="json"),
        }
        return json.dumps(sample, indent=2)

    def save(self, config: AppConfig, path: Path) -> None:
        """Write a configuration as JSON.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {path}: {e}") from e
        log.info(f"Saved configuration to {path}")
