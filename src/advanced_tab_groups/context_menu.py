"""One context menu shared by every group."""

from collections.abc import Callable
from typing import Any

import structlog

from advanced_tab_groups.host import GroupNode, Menu, MenuFactory

logger = structlog.get_logger()

SET_GROUP_COLOR = "set-group-color"
USE_FAVICON_COLOR = "use-favicon-color"
RENAME_GROUP = "rename-group"
CHANGE_GROUP_ICON = "change-group-icon"
UNGROUP_TABS = "ungroup-tabs"
CONVERT_GROUP_TO_FOLDER = "convert-group-to-folder"
COLLAPSE_GROUP = "collapse-group"
CLOSE_GROUP = "close-group"

ACTIONS = (
    SET_GROUP_COLOR,
    USE_FAVICON_COLOR,
    RENAME_GROUP,
    CHANGE_GROUP_ICON,
    UNGROUP_TABS,
    CONVERT_GROUP_TO_FOLDER,
    COLLAPSE_GROUP,
    CLOSE_GROUP,
)

Handler = Callable[[GroupNode], Any]


class ContextMenuCoordinator:
    """Tracks which group the shared menu was opened for.

    The popup is built on first use. Its target is set on open and cleared on
    close, and handlers run against whatever target is current when the action
    fires. The host fires the action before the close notification.
    """

    def __init__(self, factory: MenuFactory) -> None:
        self.factory = factory
        self.current_target: GroupNode | None = None
        self._menu: Menu | None = None
        self._handlers: dict[str, Handler] = {}

    def bind(self, action: str, handler: Handler) -> None:
        if action not in ACTIONS:
            raise ValueError(f"Unknown context menu action: {action}")
        self._handlers[action] = handler

    def ensure_menu(self) -> Menu:
        if self._menu is None:
            self._menu = self.factory.create_menu(self.dispatch, self.on_close)
            logger.debug("Shared context menu created")
        return self._menu

    def open(self, node: GroupNode, x: int, y: int) -> bool:
        """Show the menu for `node`. A second open while the popup is up is ignored."""
        if self.current_target is not None:
            logger.debug("Context menu already open", group_id=node.id, target=self.current_target.id)
            return False
        try:
            menu = self.ensure_menu()
            self.current_target = node
            menu.open_at(x, y)
        except Exception as e:
            # No close notification follows a popup that never showed.
            logger.error("Failed to open context menu", group_id=node.id, error=str(e))
            self.current_target = None
            return False
        return True

    def dispatch(self, action: str) -> Any:
        node = self.current_target
        if node is None:
            logger.debug("Context menu action without target", action=action)
            return None
        handler = self._handlers.get(action)
        if handler is None:
            logger.warning("No handler for context menu action", action=action)
            return None
        logger.debug("Context menu action", action=action, group_id=node.id)
        try:
            return handler(node)
        except Exception as e:
            logger.error("Context menu action failed", action=action, group_id=node.id, error=str(e))
            return None

    def on_close(self) -> None:
        self.current_target = None

    def reset(self) -> None:
        self.current_target = None
        self._menu = None
