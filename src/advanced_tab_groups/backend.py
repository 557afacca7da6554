"""Storage backend interface for persisted group metadata."""

import json
from abc import ABC, abstractmethod

from advanced_tab_groups.errors import StorageError
from advanced_tab_groups.models import Namespace


def decode_mapping(namespace: Namespace, text: str) -> dict[str, str]:
    """Parse a stored namespace blob into a flat `id -> value` mapping.

    Raises:
        StorageError: if the text is not JSON, not an object, or holds non-string values
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise StorageError(namespace.value, f"malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(namespace.value, f"expected an object, got {type(data).__name__}")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise StorageError(namespace.value, "mapping holds non-string values")
    return data


def encode_mapping(mapping: dict[str, str]) -> str:
    return json.dumps(mapping, indent=2)


class StorageBackend(ABC):
    """Abstract base class for namespace storage backends.

    Both implementations store each namespace as the same flat JSON object so a
    mapping written by one can be read by the other.
    """

    name: str = "abstract"

    @abstractmethod
    async def read(self, namespace: Namespace) -> dict[str, str]:
        """Read a namespace. Missing data is an empty mapping; corrupt data raises StorageError."""
        pass

    @abstractmethod
    async def write(self, namespace: Namespace, mapping: dict[str, str]) -> None:
        """Replace the stored mapping for a namespace."""
        pass
