"""The advanced tab groups service: wiring, host event feed, startup and teardown."""

from dataclasses import dataclass
from typing import Literal

import structlog

from advanced_tab_groups.actions import GroupActions
from advanced_tab_groups.aggregator import ColorAggregator
from advanced_tab_groups.config import Config, Settings
from advanced_tab_groups.context_menu import (
    CHANGE_GROUP_ICON,
    CLOSE_GROUP,
    COLLAPSE_GROUP,
    CONVERT_GROUP_TO_FOLDER,
    RENAME_GROUP,
    SET_GROUP_COLOR,
    UNGROUP_TABS,
    USE_FAVICON_COLOR,
    ContextMenuCoordinator,
)
from advanced_tab_groups.host import (
    Decorator,
    FolderNode,
    GroupNode,
    HostTree,
    IconPicker,
    KeyValueStorage,
    MenuFactory,
    RenameSurface,
    ThemePicker,
)
from advanced_tab_groups.log import configure_logging
from advanced_tab_groups.models import Namespace
from advanced_tab_groups.registry import GroupRegistry, apply_color, apply_icon
from advanced_tab_groups.rename import RenameSession
from advanced_tab_groups.scheduling import Scheduler
from advanced_tab_groups.store import PersistentStore, create_store
from advanced_tab_groups.theme_bridge import ThemeBridge

logger = structlog.get_logger()

EventKind = Literal["added", "removed", "created"]


@dataclass
class TreeEvent:
    """One notification from the host's document-tree change feed."""

    kind: EventKind
    node: GroupNode


class AdvancedTabGroups:
    """Owns one instance of every service and connects them to the host."""

    def __init__(
        self,
        host: HostTree,
        decorator: Decorator,
        rename_surface: RenameSurface,
        menu_factory: MenuFactory,
        settings: Settings | None = None,
        host_storage: KeyValueStorage | None = None,
        icon_picker: IconPicker | None = None,
        theme_picker: ThemePicker | None = None,
        store: PersistentStore | None = None,
    ) -> None:
        self.host = host
        self.settings = settings or Settings()
        self.scheduler = Scheduler()
        self.store = store or create_store(self.settings, host_storage)
        self.rename = RenameSession(rename_surface)
        self.menu = ContextMenuCoordinator(menu_factory)
        self.aggregator = ColorAggregator(
            host,
            self.store,
            alpha_threshold=self.settings.alpha_threshold,
            brightness_threshold=self.settings.brightness_threshold,
        )
        self.theme_bridge = ThemeBridge(self.store, self.scheduler, theme_picker)
        self.actions = GroupActions(host, self.store, icon_picker, folder_settle_delay=self.settings.folder_settle_delay)
        self.registry = GroupRegistry(
            host,
            decorator,
            self.store,
            self.rename,
            self.menu,
            self.aggregator,
            self.scheduler,
            on_close=self.close_group,
            on_toggle=self.actions.toggle_collapsed,
            created_color_delay=self.settings.created_color_delay,
        )
        self.started = False
        self._bind_menu()

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "AdvancedTabGroups":
        """Build the service from a YAML config, configuring logging on the way."""
        settings = config.settings()
        configure_logging(settings.log_level)
        return cls(settings=settings, **kwargs)

    def _bind_menu(self) -> None:
        spawn = self.scheduler.spawn
        self.menu.bind(SET_GROUP_COLOR, self.theme_bridge.open_for)
        self.menu.bind(USE_FAVICON_COLOR, lambda node: spawn(self.aggregator.run(node)))
        self.menu.bind(RENAME_GROUP, lambda node: self.rename.start(node))
        self.menu.bind(CHANGE_GROUP_ICON, lambda node: spawn(self.actions.change_icon(node)))
        self.menu.bind(UNGROUP_TABS, self.actions.ungroup)
        self.menu.bind(CONVERT_GROUP_TO_FOLDER, lambda node: spawn(self.actions.convert_group_to_folder(node)))
        self.menu.bind(COLLAPSE_GROUP, self.actions.toggle_collapsed)
        self.menu.bind(CLOSE_GROUP, self.close_group)

    def close_group(self, node: GroupNode) -> None:
        self.scheduler.spawn(self.actions.close_group(node), name=f"close-{node.id}")

    async def convert_folder_to_group(self, folder: FolderNode) -> GroupNode | None:
        """Convert a folder and decorate the group that replaces it."""
        group = await self.actions.convert_folder_to_group(folder)
        if group is not None:
            self.registry.on_entity_discovered(group)
        return group

    async def start(self) -> None:
        """Restore saved decorations and begin tracking groups. Calling it twice is a no-op."""
        if self.started:
            return
        self.started = True
        logger.info("Initializing advanced tab groups", backend=self.store.backend.name)

        self.theme_bridge.clear_picker_state()
        self.registry.reconcile()
        await self.apply_saved()

        # Discovery can race the host building group internals; rescan once things settle.
        self.scheduler.call_later(self.settings.reconcile_delay, self.registry.reconcile, name="reconcile")
        self.scheduler.call_later(self.settings.apply_delay, self.apply_saved, name="apply-saved")
        self.scheduler.every(self.settings.save_interval, self.save_colors, name="periodic-save")

    async def apply_saved(self) -> None:
        """Apply saved colors and icons to every live group."""
        await self.store.apply_all(Namespace.COLORS, apply_color, self.host.find_group)
        await self.store.apply_all(Namespace.ICONS, apply_icon, self.host.find_group)

    def handle_event(self, event: TreeEvent) -> None:
        """Feed one host change notification; duplicates and reordering are tolerated."""
        if event.kind == "added":
            self.registry.on_entity_discovered(event.node)
        elif event.kind == "removed":
            self.registry.on_entity_removed(event.node)
        elif event.kind == "created":
            self.registry.on_entity_created(event.node)
        else:
            logger.warning("Unknown tree event", kind=event.kind)

    async def save_colors(self) -> int:
        """Capture the color of every live group into the saved colors.

        Returns:
            Number of colors captured
        """
        colors = {}
        for node in self.registry.live_nodes():
            color = node.get_color()
            if color:
                colors[node.id] = color
        await self.store.put_many(Namespace.COLORS, colors)
        return len(colors)

    async def shutdown(self) -> None:
        """Finish outstanding work, stop timers and write a final color snapshot.

        Work still running after `shutdown_timeout` seconds (an icon picker
        waiting on the user, a stalled favicon fetch) is cancelled so the
        snapshot is always written.
        """
        if not self.started:
            return
        self.theme_bridge.clear_picker_state()
        self.rename.reset()
        self.menu.reset()
        await self.scheduler.drain(timeout=self.settings.shutdown_timeout)
        await self.scheduler.shutdown()
        await self.save_colors()
        self.started = False
        logger.info("Advanced tab groups shut down")
