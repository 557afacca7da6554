"""Borrow the host's gradient picker to color a single group.

The picker normally recolors the whole browser theme. While a group color
session is open its update hooks are swapped for ones that paint the group
instead; when the session ends, by the panel closing or by an error, the
original hooks go back and the picker's transient dot colors are wiped.
"""

from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from typing import Any, Awaitable

import structlog

from advanced_tab_groups.colors import picker_sample_from_css
from advanced_tab_groups.host import GroupNode, ThemePicker
from advanced_tab_groups.models import Namespace, PickerSample
from advanced_tab_groups.scheduling import Scheduler
from advanced_tab_groups.store import PersistentStore

logger = structlog.get_logger()


class PassThroughHooks:
    """The picker's own behaviour: changes go to the global theme."""

    def __init__(self, picker: ThemePicker) -> None:
        self.update_current_workspace: Callable[..., Awaitable[Any]] = picker.update_current_workspace
        self.on_workspace_change: Callable[..., Awaitable[Any]] = picker.on_workspace_change

    def install(self, picker: ThemePicker) -> None:
        picker.update_current_workspace = self.update_current_workspace
        picker.on_workspace_change = self.on_workspace_change


class RedirectHooks:
    """Sends color commits to one group and blocks theme changes."""

    def __init__(self, node: GroupNode, picker: ThemePicker, store: PersistentStore, scheduler: Scheduler) -> None:
        self.node = node
        self.picker = picker
        self.store = store
        self.scheduler = scheduler
        self.applied: str | None = None

    def install(self, picker: ThemePicker) -> None:
        picker.update_current_workspace = self.update_current_workspace
        picker.on_workspace_change = self.on_workspace_change

    def _samples(self) -> list[PickerSample]:
        samples = (picker_sample_from_css(dot.color, dot.is_primary, dot.type) for dot in self.picker.dots())
        return [s for s in samples if s is not None]

    def _apply(self) -> str | None:
        samples = self._samples()
        if not samples:
            return None
        gradient = self.picker.get_gradient(samples)
        self.node.set_color(gradient)
        self.applied = gradient
        logger.debug("Applied picker color to group", group_id=self.node.id, color=gradient, samples=len(samples))
        return gradient

    async def update_current_workspace(self, *args: Any, **kwargs: Any) -> None:
        try:
            gradient = self._apply()
        except Exception as e:
            logger.error("Error applying color to group", group_id=self.node.id, error=str(e))
            return
        if gradient is not None:
            await self.store.put(Namespace.COLORS, self.node.id, gradient)

    async def on_workspace_change(self, *args: Any, **kwargs: Any) -> None:
        logger.debug("Blocking theme change while coloring group", group_id=self.node.id)

    def apply_final(self) -> str | None:
        """Apply the picker's final color when the panel closes and persist it in the background."""
        gradient = self._apply()
        if gradient is not None:
            logger.info("Final color applied to group", group_id=self.node.id, color=gradient)
            self.scheduler.spawn(self.store.put(Namespace.COLORS, self.node.id, gradient), name="save-picker-color")
        return gradient


class ThemeBridge:
    """Runs group color sessions on the shared theme picker, one at a time."""

    def __init__(self, store: PersistentStore, scheduler: Scheduler, picker: ThemePicker | None = None) -> None:
        self.store = store
        self.scheduler = scheduler
        self.picker = picker
        self.active: RedirectHooks | None = None
        self._session: ExitStack | None = None

    @contextmanager
    def bind_temporary_override(self, node: GroupNode, picker: ThemePicker) -> Iterator[RedirectHooks]:
        """Point the picker at `node` for the duration of the block.

        The original hooks are reinstalled and the dot colors cleared on every
        exit path.
        """
        original = PassThroughHooks(picker)
        redirect = RedirectHooks(node, picker, self.store, self.scheduler)
        redirect.install(picker)
        self.active = redirect
        logger.debug("Theme picker redirected to group", group_id=node.id)
        try:
            yield redirect
        finally:
            original.install(picker)
            self.active = None
            self._clear_dots(picker)
            logger.debug("Theme picker restored", group_id=node.id)

    def open_for(self, node: GroupNode) -> bool:
        """Open the picker for `node`; the session ends when the panel closes.

        Returns:
            False if the picker is unavailable, busy, or failed to open
        """
        picker = self.picker
        if picker is None:
            logger.warning("Gradient picker not available", group_id=node.id)
            return False
        if self._session is not None:
            logger.debug("Color session already open", group_id=node.id)
            return False

        session = ExitStack()
        redirect = session.enter_context(self.bind_temporary_override(node, picker))
        self._session = session

        def handle_close() -> None:
            try:
                redirect.apply_final()
            except Exception as e:
                logger.error("Error applying final picker color", group_id=node.id, error=str(e))
            finally:
                self._end_session()

        session.callback(picker.remove_close_listener, handle_close)
        try:
            picker.add_close_listener(handle_close)
            picker.open()
        except Exception as e:
            logger.error("Error opening gradient picker", group_id=node.id, error=str(e))
            self._end_session()
            return False
        return True

    def _end_session(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.close()
        except Exception as e:
            logger.error("Error during picker cleanup", error=str(e))

    def _clear_dots(self, picker: ThemePicker) -> None:
        try:
            picker.clear_dot_colors()
        except Exception as e:
            logger.error("Error clearing picker dot colors", error=str(e))

    def clear_picker_state(self) -> None:
        """End any open session and wipe leftover dot colors."""
        self._end_session()
        if self.picker is not None:
            self._clear_dots(self.picker)

    def reset(self) -> None:
        self.clear_picker_state()
