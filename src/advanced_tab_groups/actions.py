"""Group lifecycle actions: close, collapse, ungroup, icon and folder conversion."""

import asyncio
from collections.abc import Iterable

import structlog

from advanced_tab_groups.host import FolderNode, GroupNode, HostTree, IconPicker
from advanced_tab_groups.models import REMOVE_ICON, Namespace
from advanced_tab_groups.store import PersistentStore

logger = structlog.get_logger()

DEFAULT_FOLDER_LABEL = "New Folder"
DEFAULT_GROUP_LABEL = "New Group"


class GroupActions:
    """User-triggered operations on a single group or folder."""

    def __init__(
        self,
        host: HostTree,
        store: PersistentStore,
        icon_picker: IconPicker | None = None,
        folder_settle_delay: float = 0.2,
    ) -> None:
        self.host = host
        self.store = store
        self.icon_picker = icon_picker
        self.folder_settle_delay = folder_settle_delay

    async def forget(self, group_id: str) -> None:
        """Drop the saved color and icon of a group that is going away."""
        await self.store.remove(Namespace.COLORS, group_id)
        await self.store.remove(Namespace.ICONS, group_id)

    async def close_group(self, node: GroupNode) -> None:
        logger.info("Closing group", group_id=node.id)
        await self.forget(node.id)
        try:
            self.host.remove_group(node)
        except Exception as e:
            logger.error("Error removing tab group", group_id=node.id, error=str(e))

    def toggle_collapsed(self, node: GroupNode) -> bool:
        """Flip the collapsed flag and return the new value."""
        node.collapsed = not node.collapsed
        logger.debug("Group collapsed" if node.collapsed else "Group expanded", group_id=node.id)
        return node.collapsed

    def ungroup(self, node: GroupNode) -> None:
        try:
            node.ungroup()
        except Exception as e:
            logger.error("Error ungrouping tabs", group_id=node.id, error=str(e))

    async def change_icon(self, node: GroupNode) -> str | None:
        """Let the user pick an icon for the group.

        Returns:
            The new icon reference, or None if it was removed, cancelled or the picker is missing
        """
        if self.icon_picker is None:
            logger.warning("Icon picker not available", group_id=node.id)
            return None

        selected = await self.icon_picker.open(node)
        if selected is REMOVE_ICON:
            node.set_icon(None)
            await self.store.remove(Namespace.ICONS, node.id)
            logger.info("Group icon removed", group_id=node.id)
            return None
        if not selected:
            logger.debug("Icon selection cancelled", group_id=node.id)
            return None

        node.set_icon(selected)
        await self.store.put(Namespace.ICONS, node.id, selected)
        logger.info("Group icon changed", group_id=node.id, icon=selected)
        return selected

    async def convert_group_to_folder(self, node: GroupNode) -> FolderNode | None:
        """Move the group's tabs into a new folder and remove the group."""
        if not self.host.folders_available():
            logger.error("Folders functionality not available", group_id=node.id)
            return None

        items = list(node.items())
        if not items:
            logger.debug("Group has no tabs to convert", group_id=node.id)
            return None

        folder = self.host.create_folder(items, label=node.label or DEFAULT_FOLDER_LABEL, workspace_id=node.workspace_id)
        if folder is None:
            logger.error("Failed to create folder", group_id=node.id)
            return None

        try:
            self.host.remove_group(node)
        except Exception as e:
            logger.error("Error removing original group", group_id=node.id, error=str(e))
        await self.forget(node.id)
        logger.info("Group converted to folder", group_id=node.id, folder_id=folder.id, tabs=len(items))
        return folder

    async def convert_folder_to_group(self, folder: FolderNode) -> GroupNode | None:
        """Regroup a folder's tabs into a new tab group and delete the folder.

        Empty folders are simply deleted.
        """
        tabs = [item for item in folder.all_items() if self.host.is_tab(item) and not self.host.is_empty_tab(item)]
        label = folder.label or DEFAULT_GROUP_LABEL

        if not tabs:
            logger.info("No tabs in folder, removing empty folder", folder_id=folder.id)
            if folder.is_connected:
                folder.delete()
            return None

        for tab in tabs:
            if self.host.is_pinned(tab):
                self.host.unpin(tab)

        # Unpinning moves tabs in the host; let it settle before regrouping.
        await asyncio.sleep(self.folder_settle_delay)

        try:
            group = self.host.create_group(label, tabs)
        except Exception as e:
            logger.error("Error creating group from folder", folder_id=folder.id, error=str(e))
            return None
        if folder.is_connected:
            folder.delete()
        logger.info("Folder converted to group", folder_id=folder.id, group_id=group.id, tabs=len(tabs))
        return group

    def hidden_move_to_group_ids(self, menu_group_ids: Iterable[str]) -> list[str]:
        """Entries of the "move tab to group" menu that point at folders and should be hidden."""
        folders = set(self.host.folder_ids())
        return [group_id for group_id in menu_group_ids if group_id in folders]
