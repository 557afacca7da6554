"""Shared fixtures: in-memory fakes for the host collaborators."""

import asyncio
from collections.abc import Callable
from io import BytesIO
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from advanced_tab_groups.backend import StorageBackend
from advanced_tab_groups.backends import JsonFileBackend
from advanced_tab_groups.config import Settings
from advanced_tab_groups.models import Namespace, PickerDot, PickerSample
from advanced_tab_groups.store import PersistentStore


def png_bytes(color: tuple[int, int, int, int], size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a solid-color PNG."""
    buf = BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeGroup:
    """Stand-in for a host tab group."""

    def __init__(
        self,
        id: str,
        label: str = "Work",
        sources: list[str | None] | None = None,
        is_split_view: bool = False,
        is_folder: bool = False,
        label_container: bool = True,
        default_label: str | None = "New Group",
    ) -> None:
        self.id = id
        self.label = label
        self.default_label = default_label
        self.collapsed = False
        self.is_split_view = is_split_view
        self.is_folder = is_folder
        self.workspace_id: str | None = "ws-1"
        self.label_container = label_container
        self.sources = sources or []
        self.color: str | None = None
        self.icon: str | None = None
        self.tabs: list[Any] = []
        self.ungrouped = False

    def has_label_container(self) -> bool:
        return self.label_container

    def get_color(self) -> str | None:
        return self.color

    def set_color(self, value: str) -> None:
        self.color = value

    def get_icon(self) -> str | None:
        return self.icon

    def set_icon(self, icon_ref: str | None) -> None:
        self.icon = icon_ref

    def image_sources(self) -> list[str | None]:
        return list(self.sources)

    def items(self) -> list[Any]:
        return list(self.tabs)

    def ungroup(self) -> None:
        self.ungrouped = True


class FakeFolder:
    def __init__(self, id: str, label: str = "", items: list[Any] | None = None) -> None:
        self.id = id
        self.label = label
        self.is_connected = True
        self._items = items or []
        self.deleted = False

    def all_items(self) -> list[Any]:
        return list(self._items)

    def delete(self) -> None:
        self.deleted = True
        self.is_connected = False


class FakeTab:
    def __init__(self, name: str, pinned: bool = False, empty: bool = False) -> None:
        self.name = name
        self.pinned = pinned
        self.empty = empty


class FakeHost:
    """In-memory host tree."""

    def __init__(self, groups: list[FakeGroup] | None = None, images: dict[str, bytes] | None = None) -> None:
        self._groups: dict[str, FakeGroup] = {g.id: g for g in groups or []}
        self.images = images or {}
        self.folders: dict[str, FakeFolder] = {}
        self.folders_enabled = True
        self.removed: list[str] = []
        self.loads: list[str] = []
        self._next = 0

    def add(self, group: FakeGroup) -> FakeGroup:
        self._groups[group.id] = group
        return group

    def groups(self) -> list[FakeGroup]:
        return list(self._groups.values())

    def find_group(self, group_id: str) -> FakeGroup | None:
        return self._groups.get(group_id)

    def remove_group(self, node: FakeGroup) -> None:
        self._groups.pop(node.id, None)
        self.removed.append(node.id)

    def create_group(self, label: str, items: list[Any]) -> FakeGroup:
        self._next += 1
        group = FakeGroup(f"created-{self._next}", label=label)
        group.tabs = list(items)
        return self.add(group)

    def folders_available(self) -> bool:
        return self.folders_enabled

    def create_folder(self, items: list[Any], label: str, workspace_id: str | None) -> FakeFolder:
        self._next += 1
        folder = FakeFolder(f"folder-{self._next}", label=label, items=items)
        self.folders[folder.id] = folder
        return folder

    def folder_ids(self) -> list[str]:
        return list(self.folders)

    def is_tab(self, item: Any) -> bool:
        return isinstance(item, FakeTab)

    def is_empty_tab(self, item: Any) -> bool:
        return item.empty

    def is_pinned(self, item: Any) -> bool:
        return item.pinned

    def unpin(self, item: Any) -> None:
        item.pinned = False

    async def load_image(self, source: str) -> bytes:
        self.loads.append(source)
        await asyncio.sleep(0)
        if source not in self.images:
            raise FileNotFoundError(source)
        return self.images[source]


class FakeDecorator:
    """Records attach calls and keeps the callbacks so tests can click buttons."""

    def __init__(self) -> None:
        self.attached: list[str] = []
        self.callbacks: dict[str, dict[str, Callable]] = {}

    def attach(self, node, on_close, on_toggle, on_context_menu) -> None:
        self.attached.append(node.id)
        self.callbacks[node.id] = {"close": on_close, "toggle": on_toggle, "context": on_context_menu}


class FakeSurface:
    def __init__(self) -> None:
        self.shown: list[tuple[str, str, bool]] = []
        self.hidden: list[str] = []

    def show_editor(self, node, text: str, select_all: bool) -> None:
        self.shown.append((node.id, text, select_all))

    def hide_editor(self, node) -> None:
        self.hidden.append(node.id)


class FakeMenu:
    def __init__(self, on_action: Callable[[str], Any], on_close: Callable[[], None]) -> None:
        self.on_action = on_action
        self.on_close = on_close
        self.opened_at: list[tuple[int, int]] = []

    def open_at(self, x: int, y: int) -> None:
        self.opened_at.append((x, y))

    def click(self, action: str) -> Any:
        """Fire an action and then close, in the order the host does."""
        result = self.on_action(action)
        self.on_close()
        return result


class FakeMenuFactory:
    def __init__(self) -> None:
        self.menus: list[FakeMenu] = []

    def create_menu(self, on_action, on_close) -> FakeMenu:
        menu = FakeMenu(on_action, on_close)
        self.menus.append(menu)
        return menu


class FakeThemePicker:
    """Gradient picker with swappable hooks and a close signal."""

    def __init__(self, dots: list[PickerDot] | None = None) -> None:
        self.theme_updates: list[tuple] = []
        self.workspace_changes: list[tuple] = []
        self._dots = dots or []
        self._close_listeners: list[Callable[[], None]] = []
        self.opened = 0
        self.cleared = 0
        self.dot_colors = ["rgb(1, 2, 3)"]
        self.update_current_workspace = self._original_update
        self.on_workspace_change = self._original_workspace_change

    async def _original_update(self, *args: Any, **kwargs: Any) -> None:
        self.theme_updates.append(args)

    async def _original_workspace_change(self, *args: Any, **kwargs: Any) -> None:
        self.workspace_changes.append(args)

    def dots(self) -> list[PickerDot]:
        return list(self._dots)

    def get_gradient(self, samples: list[PickerSample]) -> str:
        stops = ", ".join(f"rgb({s.c[0]}, {s.c[1]}, {s.c[2]})" for s in samples)
        return f"linear-gradient({stops})"

    def clear_dot_colors(self) -> None:
        self.cleared += 1
        self.dot_colors = []

    def add_close_listener(self, listener: Callable[[], None]) -> None:
        self._close_listeners.append(listener)

    def remove_close_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._close_listeners:
            self._close_listeners.remove(listener)

    def open(self) -> None:
        self.opened += 1

    def close(self) -> None:
        for listener in list(self._close_listeners):
            listener()

    @property
    def listener_count(self) -> int:
        return len(self._close_listeners)


class FakeIconPicker:
    def __init__(self, result: Any) -> None:
        self.result = result
        self.opened: list[str] = []

    async def open(self, node) -> Any:
        self.opened.append(node.id)
        return self.result


class MemoryBackend(StorageBackend):
    """Backend keeping namespaces in a dict, counting writes."""

    name = "memory"

    def __init__(self, data: dict[Namespace, dict[str, str]] | None = None) -> None:
        self.data = {ns: dict((data or {}).get(ns, {})) for ns in Namespace}
        self.writes = 0

    async def read(self, namespace: Namespace) -> dict[str, str]:
        await asyncio.sleep(0)
        return dict(self.data[namespace])

    async def write(self, namespace: Namespace, mapping: dict[str, str]) -> None:
        await asyncio.sleep(0)
        self.writes += 1
        self.data[namespace] = dict(mapping)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary storage directory with near-zero delays."""
    return Settings(
        storage_dir=str(tmp_path / "profile"),
        save_interval=3600,
        reconcile_delay=0,
        apply_delay=0,
        created_color_delay=0,
        folder_settle_delay=0,
    )


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def memory_store(memory_backend: MemoryBackend) -> PersistentStore:
    return PersistentStore(memory_backend)


@pytest.fixture
def file_backend(tmp_path: Path) -> JsonFileBackend:
    return JsonFileBackend(
        tmp_path,
        {Namespace.COLORS: "tab_group_colors.json", Namespace.ICONS: "tab_group_icons.json"},
    )
