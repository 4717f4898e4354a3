"""Core data structures for the swarm layout pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Literal, Optional, Tuple

Orientation = Literal["vertical", "horizontal"]
GroupKey = Hashable

ORIENTATIONS: Tuple[str, ...] = ("vertical", "horizontal")


class LayoutConfigError(ValueError):
    """Raised when a layout is requested with an invalid configuration."""


@dataclass(frozen=True)
class Group:
    """One category bucket along the group axis."""

    key: GroupKey
    index: int
    center: float
    extent: float

    @property
    def lower(self) -> float:
        return self.center - self.extent

    @property
    def upper(self) -> float:
        return self.center + self.extent


@dataclass
class Node:
    """A single circle of the swarm.

    ``primary`` is the value-axis coordinate and is fixed once the node is
    initialized; ``secondary`` is the group-axis coordinate adjusted by the
    collision resolver.
    """

    index: int
    id: Any
    group: GroupKey
    value: float
    radius: float
    primary: float
    secondary: float
    color: Any = None
    data: Any = None
    orientation: Orientation = "vertical"

    @property
    def x(self) -> float:
        return self.secondary if self.orientation == "vertical" else self.primary

    @property
    def y(self) -> float:
        return self.primary if self.orientation == "vertical" else self.secondary


@dataclass
class LayoutConfig:
    """Numeric knobs of the layout engine."""

    spacing: float = 2.0
    gap: float = 0.0
    force_strength: float = 1.0
    iterations: int = 120
    orientation: Orientation = "vertical"
    unified: bool = False
    bounded: bool = True
    centering: float = 0.1


@dataclass(frozen=True)
class Bounds:
    """Realized extents of a layout, in pixels."""

    secondary_min: float
    secondary_max: float
    primary_min: float
    primary_max: float

    def as_xy(self, orientation: Orientation) -> Tuple[float, float, float, float]:
        """Return ``(x_min, x_max, y_min, y_max)`` for ``orientation``."""

        if orientation == "vertical":
            return self.secondary_min, self.secondary_max, self.primary_min, self.primary_max
        return self.primary_min, self.primary_max, self.secondary_min, self.secondary_max


@dataclass
class LayoutResult:
    nodes: List[Node]
    bounds: Optional[Bounds]
    groups: Dict[GroupKey, Group] = field(default_factory=dict)
    iterations: int = 0
    residual_overlap: float = 0.0
    orientation: Orientation = "vertical"

    def positions(self) -> List[Tuple[float, float]]:
        """Return ``(x, y)`` per node, in input order."""

        return [(node.x, node.y) for node in self.nodes]


__all__ = [
    "Bounds",
    "Group",
    "GroupKey",
    "LayoutConfig",
    "LayoutConfigError",
    "LayoutResult",
    "Node",
    "ORIENTATIONS",
    "Orientation",
]
