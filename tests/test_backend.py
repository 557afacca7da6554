"""Tests for the backend interface and the shared storage format."""

import asyncio

import pytest

from advanced_tab_groups.backend import StorageBackend, decode_mapping, encode_mapping
from advanced_tab_groups.errors import StorageError
from advanced_tab_groups.models import Namespace
from tests.conftest import MemoryBackend


def test_backend_is_abstract() -> None:
    """Test that the interface cannot be instantiated directly."""
    with pytest.raises(TypeError):
        StorageBackend()


def test_memory_backend_read_write() -> None:
    """Test a minimal backend implementation."""
    backend = MemoryBackend()
    asyncio.run(backend.write(Namespace.COLORS, {"g1": "red"}))
    assert asyncio.run(backend.read(Namespace.COLORS)) == {"g1": "red"}
    assert asyncio.run(backend.read(Namespace.ICONS)) == {}
    assert backend.writes == 1


def test_encode_mapping() -> None:
    """Test the 2-space indented JSON object format."""
    assert encode_mapping({"a": "1", "b": "2"}) == '{\n  "a": "1",\n  "b": "2"\n}'
    assert encode_mapping({}) == "{}"


def test_decode_mapping() -> None:
    """Test decoding a stored namespace."""
    assert decode_mapping(Namespace.ICONS, '{"g1": "icon.svg"}') == {"g1": "icon.svg"}


@pytest.mark.parametrize("text", ["", "not json", "[]", '"x"', '{"g1": 1}', '{"g1": null}', '{"g1": {"nested": "x"}}'])
def test_decode_mapping_rejects_corrupt(text: str) -> None:
    """Test that anything other than a flat string mapping raises."""
    with pytest.raises(StorageError) as exc_info:
        decode_mapping(Namespace.COLORS, text)
    assert exc_info.value.namespace == "colors"
