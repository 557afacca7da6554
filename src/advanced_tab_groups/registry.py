"""Registry of the tab groups found in the host tree.

Discovery notifications can arrive more than once, out of order, or before
the host has finished building a group. The registry is what makes
decoration happen exactly once per group: it keeps an explicit lifecycle state
per group id and only promotes a group to INITIALIZED after its affordances
were attached.
"""

from collections.abc import Callable
from typing import Any

import structlog

from advanced_tab_groups.aggregator import ColorAggregator
from advanced_tab_groups.context_menu import ContextMenuCoordinator
from advanced_tab_groups.host import Decorator, GroupNode, HostTree
from advanced_tab_groups.models import Entity, LifecycleState, Namespace
from advanced_tab_groups.rename import RenameSession
from advanced_tab_groups.scheduling import Scheduler
from advanced_tab_groups.store import PersistentStore, is_excluded

logger = structlog.get_logger()


def has_default_label(node: GroupNode) -> bool:
    """A group still carrying no label, or the host's placeholder, counts as new."""
    if not node.label:
        return True
    return node.default_label is not None and node.label == node.default_label


def apply_color(node: GroupNode, value: str) -> None:
    node.set_color(value)


def apply_icon(node: GroupNode, value: str) -> None:
    node.set_icon(value)


class GroupRegistry:
    """Tracks groups by id and decorates each one at most once."""

    def __init__(
        self,
        host: HostTree,
        decorator: Decorator,
        store: PersistentStore,
        rename: RenameSession,
        menu: ContextMenuCoordinator,
        aggregator: ColorAggregator,
        scheduler: Scheduler,
        on_close: Callable[[GroupNode], Any],
        on_toggle: Callable[[GroupNode], Any],
        created_color_delay: float = 0.3,
    ) -> None:
        self.host = host
        self.decorator = decorator
        self.store = store
        self.rename = rename
        self.menu = menu
        self.aggregator = aggregator
        self.scheduler = scheduler
        self.on_close = on_close
        self.on_toggle = on_toggle
        self.created_color_delay = created_color_delay
        self._states: dict[str, LifecycleState] = {}
        self._nodes: dict[str, GroupNode] = {}

    def state(self, group_id: str) -> LifecycleState | None:
        return self._states.get(group_id)

    def is_initialized(self, group_id: str) -> bool:
        return self._states.get(group_id) is LifecycleState.INITIALIZED

    def get(self, group_id: str) -> Entity | None:
        """Snapshot of a tracked group, or None if it is not tracked."""
        node = self._nodes.get(group_id)
        if node is None:
            return None
        return Entity(
            id=node.id,
            label=node.label or "",
            color_value=node.get_color(),
            icon_ref=node.get_icon(),
            lifecycle_state=self._states[group_id],
            collapsed=bool(node.collapsed),
            metadata={"excluded": is_excluded(node)},
        )

    def initialized_nodes(self) -> list[GroupNode]:
        return [node for gid, node in self._nodes.items() if self._states[gid] is LifecycleState.INITIALIZED]

    def live_nodes(self) -> list[GroupNode]:
        """Tracked groups that are neither excluded nor destroyed."""
        return [
            node
            for gid, node in self._nodes.items()
            if self._states[gid] is not LifecycleState.DESTROYED and not is_excluded(node)
        ]

    def on_entity_discovered(self, node: GroupNode) -> bool:
        """Decorate a newly seen group. Safe to call any number of times.

        Returns:
            True if this call initialized the group
        """
        group_id = node.id
        if is_excluded(node):
            self._states.setdefault(group_id, LifecycleState.DISCOVERED)
            self._nodes.setdefault(group_id, node)
            return False
        if self._states.get(group_id) is LifecycleState.INITIALIZED:
            return False

        self._states[group_id] = LifecycleState.DISCOVERED
        self._nodes[group_id] = node

        if not node.has_label_container():
            # The host builds group internals after announcing the group; a later reconcile picks it up.
            logger.debug("No label container found for group", group_id=group_id)
            return False

        try:
            self.decorator.attach(
                node,
                on_close=lambda: self.on_close(node),
                on_toggle=lambda: self.on_toggle(node),
                on_context_menu=lambda x, y: self.menu.open(node, x, y),
            )
        except Exception as e:
            logger.error("Failed to attach group affordances", group_id=group_id, error=str(e))
            return False

        self._states[group_id] = LifecycleState.INITIALIZED
        logger.info("Group initialized", group_id=group_id)

        self.scheduler.spawn(self._restore(node), name=f"restore-{group_id}")
        if has_default_label(node):
            self.rename.start(node, select_all=False)
            self.scheduler.spawn(self.aggregator.run(node), name=f"favicon-color-{group_id}")
        return True

    def on_entity_created(self, node: GroupNode) -> None:
        """Handle the host's "group created" signal.

        Favicons of brand-new groups are often still loading, so the favicon
        color is sampled again after a short delay.
        """
        if is_excluded(node):
            return
        self.on_entity_discovered(node)
        if not has_default_label(node):
            return
        if not self.rename.active and self.is_initialized(node.id):
            self.rename.start(node, select_all=False)
        self.scheduler.call_later(
            self.created_color_delay,
            lambda: self.aggregator.run(node),
            name=f"created-color-{node.id}",
        )

    def on_entity_removed(self, node: GroupNode) -> None:
        """Forget a group the host removed.

        A removal followed by re-insertion (a move) is not a destruction; the
        host still knows the group, so its state is kept.
        """
        group_id = node.id
        if group_id not in self._nodes:
            return
        if self.host.find_group(group_id) is not None:
            return
        self._destroy(group_id)

    def _destroy(self, group_id: str) -> None:
        self._states[group_id] = LifecycleState.DESTROYED
        node = self._nodes.pop(group_id, None)
        if node is not None and self.rename.target is node:
            self.rename.cancel()
        if node is not None and self.menu.current_target is node:
            self.menu.on_close()
        logger.debug("Group destroyed", group_id=group_id)

    def reconcile(self) -> int:
        """Rescan every group the host reports and drop the ones that are gone.

        Returns:
            Number of groups initialized by this pass
        """
        seen: set[str] = set()
        initialized = 0
        for node in list(self.host.groups()):
            seen.add(node.id)
            if self.on_entity_discovered(node):
                initialized += 1
        for group_id in [gid for gid in self._nodes if gid not in seen]:
            self._destroy(group_id)
        logger.debug("Reconciled groups", seen=len(seen), initialized=initialized)
        return initialized

    async def _restore(self, node: GroupNode) -> None:
        colors = await self.store.get(Namespace.COLORS)
        if node.id in colors:
            apply_color(node, colors[node.id])
        icons = await self.store.get(Namespace.ICONS)
        if node.id in icons:
            apply_icon(node, icons[node.id])

    def reset(self) -> None:
        self._states.clear()
        self._nodes.clear()
