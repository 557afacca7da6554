"""Tests for YAML configuration."""

from pathlib import Path
from unittest.mock import patch

import pytest

from advanced_tab_groups.config import Config, Settings, get_config


def write_config(directory: Path, text: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "config.yaml").write_text(text, encoding="utf-8")


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    """Test that an absent config file yields default settings."""
    assert Config(config_dir=tmp_path).settings() == Settings()


def test_reads_config_dir(tmp_path: Path) -> None:
    """Test reading a single config directory."""
    write_config(tmp_path, "log_level: info\nsave_interval: 10\n")

    settings = get_config(tmp_path).settings()

    assert settings.log_level == "info"
    assert settings.save_interval == 10.0


def test_profile_overrides_user_level(tmp_path: Path) -> None:
    """Test that profile-level values win over the home directory fallback."""
    home = tmp_path / "home"
    workdir = tmp_path / "work"
    write_config(home / ".advanced-tab-groups", "log_level: debug\nsave_interval: 60\n")
    write_config(workdir / ".advanced-tab-groups", "save_interval: 5\n")

    with patch("pathlib.Path.home", return_value=home), patch("pathlib.Path.cwd", return_value=workdir):
        settings = Config().settings()

    assert settings.log_level == "debug"
    assert settings.save_interval == 5.0


@pytest.mark.parametrize("text", ["key: [unclosed", "- just\n- a list\n"])
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    """Test that unparsable or non-mapping YAML is reported."""
    write_config(tmp_path, text)
    with pytest.raises(ValueError):
        Config(config_dir=tmp_path)


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.storage_dir is None
    assert settings.colors_file == "tab_group_colors.json"
    assert settings.icons_file == "tab_group_icons.json"
    assert settings.kv_prefix == "advancedTabGroups_"
    assert settings.alpha_threshold == 128
    assert settings.brightness_threshold == 30
    assert settings.shutdown_timeout == 2.0


def test_settings_from_mapping_coerces() -> None:
    """Test that YAML values are coerced to the field types and bad values ignored."""
    settings = Settings.from_mapping(
        {
            "save_interval": "15",
            "alpha_threshold": "100",
            "storage_dir": Path("/tmp/p"),
            "brightness_threshold": "x",
            "extra": 1,
        }
    )

    assert settings.save_interval == 15.0
    assert settings.alpha_threshold == 100
    assert settings.storage_dir == "/tmp/p"
    assert settings.brightness_threshold == 30
