"""Exception types for advanced tab groups."""


class TabGroupsError(Exception):
    """Base class for errors raised inside the package."""


class StorageError(TabGroupsError):
    """A storage backend could not read or write a namespace."""

    def __init__(self, namespace: str, message: str) -> None:
        super().__init__(f"{namespace}: {message}")
        self.namespace = namespace


class HostUnavailableError(TabGroupsError):
    """A host feature (picker, folders, storage) is not present."""
