"""Boundary of the host browser this package decorates.

Everything here is implemented by the host integration layer. The core only
talks to these protocols, so tests can drive it with plain fakes.
"""

from collections.abc import Callable, Iterable, MutableMapping
from typing import Any, Awaitable, Protocol

from advanced_tab_groups.models import PickerDot, PickerSample


class GroupNode(Protocol):
    """A tab group as exposed by the host document tree."""

    id: str
    label: str
    default_label: str | None
    collapsed: bool
    is_split_view: bool
    is_folder: bool
    workspace_id: str | None

    def has_label_container(self) -> bool:
        """Whether the host has finished building the label sub-element."""
        ...

    def get_color(self) -> str | None: ...

    def set_color(self, value: str) -> None: ...

    def get_icon(self) -> str | None: ...

    def set_icon(self, icon_ref: str | None) -> None: ...

    def image_sources(self) -> list[str | None]:
        """Favicon source of every tab in the group, None for tabs without one."""
        ...

    def items(self) -> list[Any]: ...

    def ungroup(self) -> None: ...


class FolderNode(Protocol):
    """A folder container; its items may include nested folders."""

    id: str
    label: str
    is_connected: bool

    def all_items(self) -> list[Any]: ...

    def delete(self) -> None: ...


class HostTree(Protocol):
    """Document-tree operations the host offers."""

    def groups(self) -> Iterable[GroupNode]: ...

    def find_group(self, group_id: str) -> GroupNode | None: ...

    def remove_group(self, node: GroupNode) -> None: ...

    def create_group(self, label: str, items: list[Any]) -> GroupNode: ...

    def folders_available(self) -> bool: ...

    def create_folder(self, items: list[Any], label: str, workspace_id: str | None) -> FolderNode | None: ...

    def folder_ids(self) -> list[str]: ...

    def is_tab(self, item: Any) -> bool: ...

    def is_empty_tab(self, item: Any) -> bool: ...

    def is_pinned(self, item: Any) -> bool: ...

    def unpin(self, item: Any) -> None: ...

    def load_image(self, source: str) -> Awaitable[bytes]:
        """Fetch the raw bytes behind an image source."""
        ...


class Decorator(Protocol):
    """Builds the per-group affordances (buttons, icon slot, context binding)."""

    def attach(
        self,
        node: GroupNode,
        on_close: Callable[[], None],
        on_toggle: Callable[[], None],
        on_context_menu: Callable[[int, int], None],
    ) -> None: ...


class RenameSurface(Protocol):
    """Inline label editor shown in place of the group label."""

    def show_editor(self, node: GroupNode, text: str, select_all: bool) -> None: ...

    def hide_editor(self, node: GroupNode) -> None: ...


class Menu(Protocol):
    def open_at(self, x: int, y: int) -> None: ...


class MenuFactory(Protocol):
    def create_menu(self, on_action: Callable[[str], None], on_close: Callable[[], None]) -> Menu: ...


class IconPicker(Protocol):
    def open(self, node: GroupNode) -> Awaitable[Any]:
        """Resolve to an icon reference, REMOVE_ICON, or None when cancelled."""
        ...


class ThemePicker(Protocol):
    """The host's gradient color picker.

    `update_current_workspace` and `on_workspace_change` are the hooks the host
    calls while the user drags color dots. They are plain attributes so they
    can be swapped for the duration of a group color session.
    """

    update_current_workspace: Callable[..., Awaitable[Any]]
    on_workspace_change: Callable[..., Awaitable[Any]]

    def dots(self) -> list[PickerDot]:
        """Current dots of the panel, unset ones included."""
        ...

    def get_gradient(self, samples: list[PickerSample]) -> str: ...

    def clear_dot_colors(self) -> None: ...

    def add_close_listener(self, listener: Callable[[], None]) -> None: ...

    def remove_close_listener(self, listener: Callable[[], None]) -> None: ...

    def open(self) -> None: ...


KeyValueStorage = MutableMapping[str, str]
