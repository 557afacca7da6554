"""Data models for advanced tab groups."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LifecycleState(Enum):
    """Where a tracked group is in its lifecycle."""

    DISCOVERED = "discovered"
    INITIALIZED = "initialized"
    DESTROYED = "destroyed"


class Namespace(str, Enum):
    """The independent persisted record sets."""

    COLORS = "colors"
    ICONS = "icons"


class _RemoveIcon:
    """Sentinel returned by an icon picker when the user asks to clear the icon."""

    _instance: "_RemoveIcon | None" = None

    def __new__(cls) -> "_RemoveIcon":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REMOVE_ICON"


REMOVE_ICON = _RemoveIcon()


@dataclass
class Entity:
    """Snapshot of a group-like object tracked by the registry."""

    id: str
    label: str = ""
    color_value: str | None = None
    icon_ref: str | None = None
    lifecycle_state: LifecycleState = LifecycleState.DISCOVERED
    collapsed: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PickerDot:
    """A color dot as the picker panel renders it: the raw CSS color and its role."""

    color: str | None
    is_primary: bool = False
    type: str | None = None


@dataclass
class PickerSample:
    """One color dot read from the theme picker panel."""

    c: tuple[int, int, int]
    is_primary: bool = False
    type: str | None = None
