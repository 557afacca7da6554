"""Configuration management for advanced-tab-groups using YAML files."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".advanced-tab-groups"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class Settings:
    """Typed view over the configuration values the service reads."""

    storage_dir: str | None = None
    colors_file: str = "tab_group_colors.json"
    icons_file: str = "tab_group_icons.json"
    kv_prefix: str = "advancedTabGroups_"
    save_interval: float = 30.0
    reconcile_delay: float = 1.0
    apply_delay: float = 0.5
    created_color_delay: float = 0.3
    folder_settle_delay: float = 0.2
    shutdown_timeout: float = 2.0
    alpha_threshold: int = 128
    brightness_threshold: int = 30
    log_level: str = "warning"

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> "Settings":
        """Build settings from a flat mapping, coercing each value to the field's type.

        Unknown keys are ignored and values that cannot be coerced fall back to the default.
        """
        settings = cls()
        for f in fields(cls):
            if f.name not in values or values[f.name] is None:
                continue
            raw = values[f.name]
            default = getattr(settings, f.name)
            try:
                value = str(raw) if default is None else type(default)(raw)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid config value", key=f.name, value=raw)
                continue
            setattr(settings, f.name, value)
        return settings


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read one config file; a missing file is an empty config.

    Raises:
        ValueError: if the file exists but is not a YAML mapping
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config", path=str(path), error=str(e))
        raise ValueError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a mapping, got {type(data).__name__}")
    logger.debug("Config file loaded", path=str(path), keys=list(data))
    return data


class Config:
    """Layered, read-only view over the YAML config files.

    The profile-level file is `.advanced-tab-groups/config.yaml` under the
    current directory; the user-level one lives under the home directory and
    fills in keys the profile file does not set. Passing `config_dir` reads
    that single directory and nothing else.
    """

    def __init__(self, config_dir: Path | str | None = None) -> None:
        if config_dir is not None:
            self.config_files = [Path(config_dir) / CONFIG_FILE_NAME]
        else:
            self.config_files = [
                Path.cwd() / CONFIG_DIR_NAME / CONFIG_FILE_NAME,
                Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME,
            ]

        self._values: dict[str, Any] = {}
        # Later files are fallbacks, so merge from the lowest priority up.
        for path in reversed(self.config_files):
            self._values.update(_read_yaml(path))
        logger.debug("Config initialized", files=[str(p) for p in self.config_files], keys=len(self._values))

    def settings(self) -> Settings:
        """Return the typed settings derived from the merged configuration."""
        return Settings.from_mapping(self._values)


def get_config(config_dir: Path | str | None = None) -> Config:
    """Get a configuration instance."""
    return Config(config_dir)
