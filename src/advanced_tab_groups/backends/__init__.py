"""Backend implementations."""

from advanced_tab_groups.backends.json_file import JsonFileBackend
from advanced_tab_groups.backends.key_value import KeyValueBackend

__all__ = ["JsonFileBackend", "KeyValueBackend"]
