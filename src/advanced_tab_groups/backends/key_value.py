"""Fallback backend over the host's simple string key-value store."""

import structlog

from advanced_tab_groups.backend import StorageBackend, decode_mapping, encode_mapping
from advanced_tab_groups.host import KeyValueStorage
from advanced_tab_groups.models import Namespace

logger = structlog.get_logger()


class KeyValueBackend(StorageBackend):
    """Stores each namespace as a JSON string under `<prefix><namespace>`."""

    name = "key-value"

    def __init__(self, storage: KeyValueStorage, prefix: str = "advancedTabGroups_") -> None:
        self.storage = storage
        self.prefix = prefix
        logger.debug("Initializing key-value backend", prefix=prefix)

    def key_for(self, namespace: Namespace) -> str:
        return f"{self.prefix}{namespace.value}"

    async def read(self, namespace: Namespace) -> dict[str, str]:
        raw = self.storage.get(self.key_for(namespace))
        if not raw:
            return {}
        return decode_mapping(namespace, raw)

    async def write(self, namespace: Namespace, mapping: dict[str, str]) -> None:
        self.storage[self.key_for(namespace)] = encode_mapping(mapping)
        logger.debug("Namespace key written", namespace=namespace.value, count=len(mapping))
