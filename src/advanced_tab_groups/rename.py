"""Inline group rename, one group at a time."""

from enum import Enum

import structlog

from advanced_tab_groups.host import GroupNode, RenameSurface

logger = structlog.get_logger()


class RenameState(Enum):
    IDLE = "idle"
    EDITING = "editing"


class RenameSession:
    """Single-flight label editor.

    Only one group can be in rename mode. Every way out of EDITING (commit,
    cancel, focus loss, reset) hides the editor and returns to IDLE.
    """

    def __init__(self, surface: RenameSurface) -> None:
        self.surface = surface
        self.state = RenameState.IDLE
        self.target: GroupNode | None = None
        self.edit_buffer = ""
        self.select_all = True

    @property
    def active(self) -> bool:
        return self.state is RenameState.EDITING

    def start(self, node: GroupNode, select_all: bool = True) -> bool:
        """Begin editing `node`'s label. Ignored (returns False) while another edit is open.

        New groups are renamed with `select_all=False` so the caret lands at the end.
        """
        if self.active:
            logger.debug("Rename already in progress", group_id=node.id, editing=self.target.id)
            return False
        self.state = RenameState.EDITING
        self.target = node
        self.edit_buffer = node.label or ""
        self.select_all = select_all
        try:
            self.surface.show_editor(node, self.edit_buffer, select_all)
        except Exception as e:
            logger.error("Failed to show rename editor", group_id=node.id, error=str(e))
            self._end()
            return False
        logger.debug("Rename started", group_id=node.id, select_all=select_all)
        return True

    def update(self, text: str) -> None:
        if self.active:
            self.edit_buffer = text

    def commit(self) -> bool:
        """Apply the trimmed buffer if it is non-empty and changed. Returns whether the label changed."""
        if not self.active:
            return False
        node = self.target
        new_label = self.edit_buffer.strip()
        changed = False
        try:
            if new_label and new_label != node.label:
                node.label = new_label
                changed = True
                logger.info("Group renamed", group_id=node.id, label=new_label)
        finally:
            self._end()
        return changed

    def cancel(self) -> None:
        """Drop the buffer without touching the group."""
        if self.active:
            logger.debug("Rename cancelled", group_id=self.target.id)
            self._end()

    def halt_on_focus_loss(self, focus_still_on_editor: bool = False) -> None:
        """Focus left the editor without Enter or Escape: same as cancel."""
        if focus_still_on_editor:
            return
        self.cancel()

    def handle_key(self, key: str) -> None:
        if key == "Enter":
            self.commit()
        elif key == "Escape":
            self.cancel()

    def reset(self) -> None:
        self.cancel()
        self.edit_buffer = ""

    def _end(self) -> None:
        node = self.target
        self.state = RenameState.IDLE
        self.target = None
        self.edit_buffer = ""
        try:
            self.surface.hide_editor(node)
        except Exception as e:
            logger.error("Failed to hide rename editor", group_id=node.id, error=str(e))
