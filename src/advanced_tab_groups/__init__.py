"""Per-group color, icon, rename and lifecycle controls for tab groups."""

from advanced_tab_groups.app import AdvancedTabGroups, TreeEvent
from advanced_tab_groups.models import REMOVE_ICON, Entity, LifecycleState, Namespace

__all__ = ["AdvancedTabGroups", "TreeEvent", "Entity", "LifecycleState", "Namespace", "REMOVE_ICON"]
