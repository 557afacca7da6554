"""Tests for the key-value fallback backend."""

import asyncio
import json

import pytest

from advanced_tab_groups.backends import JsonFileBackend, KeyValueBackend
from advanced_tab_groups.errors import StorageError
from advanced_tab_groups.models import Namespace


def test_keys_per_namespace() -> None:
    """Test that each namespace lives under its own prefixed key."""
    storage: dict[str, str] = {}
    backend = KeyValueBackend(storage)

    asyncio.run(backend.write(Namespace.COLORS, {"g1": "red"}))
    asyncio.run(backend.write(Namespace.ICONS, {"g1": "icon.svg"}))

    assert json.loads(storage["advancedTabGroups_colors"]) == {"g1": "red"}
    assert json.loads(storage["advancedTabGroups_icons"]) == {"g1": "icon.svg"}


def test_missing_and_empty_keys_read_as_empty() -> None:
    """Test that an absent or blank key is no saved data."""
    backend = KeyValueBackend({"advancedTabGroups_icons": ""})

    assert asyncio.run(backend.read(Namespace.COLORS)) == {}
    assert asyncio.run(backend.read(Namespace.ICONS)) == {}


def test_corrupt_value_raises() -> None:
    """Test that an unparsable value is reported as a storage error."""
    backend = KeyValueBackend({"advancedTabGroups_colors": "{{{"})

    with pytest.raises(StorageError):
        asyncio.run(backend.read(Namespace.COLORS))


def test_format_compatible_with_file_backend(file_backend: JsonFileBackend) -> None:
    """Test that a mapping written to files reads back identically through the key-value backend."""
    asyncio.run(file_backend.write(Namespace.COLORS, {"g1": "red", "g2": "blue"}))
    text = file_backend.path_for(Namespace.COLORS).read_text(encoding="utf-8")

    backend = KeyValueBackend({"advancedTabGroups_colors": text})

    assert asyncio.run(backend.read(Namespace.COLORS)) == {"g1": "red", "g2": "blue"}
