"""Persistent key-value store for group colors and icons."""

import asyncio
from collections.abc import Callable

import structlog

from advanced_tab_groups.backend import StorageBackend
from advanced_tab_groups.backends import JsonFileBackend, KeyValueBackend
from advanced_tab_groups.config import Settings
from advanced_tab_groups.errors import HostUnavailableError, StorageError
from advanced_tab_groups.host import GroupNode, KeyValueStorage
from advanced_tab_groups.models import Namespace

logger = structlog.get_logger()


def is_excluded(node: GroupNode) -> bool:
    """Split views and folders are never decorated or restored."""
    return bool(node.is_split_view or node.is_folder)


class PersistentStore:
    """Read-modify-write access to the `colors` and `icons` namespaces.

    Failures never propagate: a namespace that cannot be read is empty, and a
    write that fails is logged and dropped. Mutations of one namespace are
    serialized so their read and write legs do not interleave.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._locks = {ns: asyncio.Lock() for ns in Namespace}
        logger.debug("Persistent store created", backend=backend.name)

    async def _load(self, namespace: Namespace) -> dict[str, str]:
        try:
            return await self.backend.read(namespace)
        except StorageError as e:
            logger.warning("Stored data unreadable, treating as empty", namespace=namespace.value, error=str(e))
        except Exception as e:
            logger.error("Storage read failed", namespace=namespace.value, error=str(e))
        return {}

    async def _store(self, namespace: Namespace, mapping: dict[str, str]) -> bool:
        try:
            await self.backend.write(namespace, mapping)
            return True
        except Exception as e:
            logger.error("Storage write failed", namespace=namespace.value, error=str(e))
            return False

    async def get(self, namespace: Namespace | str) -> dict[str, str]:
        """Return the full current mapping for a namespace."""
        return await self._load(Namespace(namespace))

    async def put(self, namespace: Namespace | str, key: str, value: str) -> None:
        """Set one key, leaving every other saved record untouched."""
        await self.put_many(namespace, {key: value})

    async def put_many(self, namespace: Namespace | str, values: dict[str, str]) -> None:
        """Merge several keys into a namespace in one read-modify-write."""
        ns = Namespace(namespace)
        if not values:
            return
        async with self._locks[ns]:
            mapping = await self._load(ns)
            mapping.update(values)
            if await self._store(ns, mapping):
                logger.debug("Saved records", namespace=ns.value, keys=list(values))

    async def remove(self, namespace: Namespace | str, key: str) -> bool:
        """Delete a key. Returns False (and writes nothing) if it was absent."""
        ns = Namespace(namespace)
        async with self._locks[ns]:
            mapping = await self._load(ns)
            if key not in mapping:
                return False
            del mapping[key]
            removed = await self._store(ns, mapping)
        if removed:
            logger.info("Removed saved record", namespace=ns.value, group_id=key)
        return removed

    async def apply_all(
        self,
        namespace: Namespace | str,
        apply_fn: Callable[[GroupNode, str], None],
        lookup: Callable[[str], GroupNode | None],
    ) -> int:
        """Call `apply_fn(node, value)` for every saved key whose group is still live.

        Returns:
            Number of records applied
        """
        ns = Namespace(namespace)
        mapping = await self._load(ns)
        applied = 0
        for group_id, value in mapping.items():
            node = lookup(group_id)
            if node is None or is_excluded(node):
                continue
            try:
                apply_fn(node, value)
            except Exception as e:
                logger.error("Failed to apply saved record", namespace=ns.value, group_id=group_id, error=str(e))
                continue
            applied += 1
        logger.debug("Applied saved records", namespace=ns.value, applied=applied, saved=len(mapping))
        return applied


def create_backend(settings: Settings, host_storage: KeyValueStorage | None = None) -> StorageBackend:
    """Pick the storage backend once, preferring JSON files over the host key-value store.

    Raises:
        HostUnavailableError: if neither backend can be used
    """
    if JsonFileBackend.is_usable(settings.storage_dir):
        return JsonFileBackend(
            settings.storage_dir,
            {Namespace.COLORS: settings.colors_file, Namespace.ICONS: settings.icons_file},
        )
    if host_storage is None:
        raise HostUnavailableError("No storage directory configured and no key-value store provided")
    logger.warning("File storage not available, using key-value fallback")
    return KeyValueBackend(host_storage, prefix=settings.kv_prefix)


def create_store(settings: Settings, host_storage: KeyValueStorage | None = None) -> PersistentStore:
    return PersistentStore(create_backend(settings, host_storage))
