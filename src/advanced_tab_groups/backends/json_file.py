"""JSON file backend, one file per namespace."""

import asyncio
import os
import tempfile
from pathlib import Path

import structlog

from advanced_tab_groups.backend import StorageBackend, decode_mapping, encode_mapping
from advanced_tab_groups.errors import StorageError
from advanced_tab_groups.models import Namespace

logger = structlog.get_logger()


class JsonFileBackend(StorageBackend):
    """Stores each namespace as a UTF-8 JSON file inside a profile directory."""

    name = "json-file"

    def __init__(self, directory: Path | str, filenames: dict[Namespace, str]) -> None:
        """Initialize the file backend.

        Args:
            directory: Directory holding the namespace files
            filenames: File name for each namespace
        """
        self.directory = Path(directory)
        self.filenames = filenames
        logger.debug("Initializing JSON file backend", directory=str(self.directory))

    @staticmethod
    def is_usable(directory: Path | str | None) -> bool:
        """Whether the directory exists (or can be created) and is writable."""
        if directory is None:
            return False
        path = Path(directory)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug("Storage directory not usable", directory=str(path), error=str(e))
            return False
        return os.access(path, os.W_OK)

    def path_for(self, namespace: Namespace) -> Path:
        return self.directory / self.filenames[namespace]

    async def read(self, namespace: Namespace) -> dict[str, str]:
        return await asyncio.to_thread(self._read_sync, namespace)

    async def write(self, namespace: Namespace, mapping: dict[str, str]) -> None:
        await asyncio.to_thread(self._write_sync, namespace, mapping)

    def _read_sync(self, namespace: Namespace) -> dict[str, str]:
        path = self.path_for(namespace)
        if not path.exists():
            logger.debug("No saved file found, starting fresh", namespace=namespace.value, path=str(path))
            return {}
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(namespace.value, f"cannot read {path}: {e}") from e
        mapping = decode_mapping(namespace, text)
        logger.debug("Namespace file read", namespace=namespace.value, count=len(mapping))
        return mapping

    def _write_sync(self, namespace: Namespace, mapping: dict[str, str]) -> None:
        path = self.path_for(namespace)
        # Sibling temp file, swapped in with os.replace.
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(encode_mapping(mapping))
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(namespace.value, f"cannot write {path}: {e}") from e
        logger.debug("Namespace file written", namespace=namespace.value, count=len(mapping))
