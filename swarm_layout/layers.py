"""Layer dispatch over a computed swarm.

A chart is drawn as a sequence of layers. Five layers are built in
(``grid``, ``axes``, ``circles``, ``annotations``, ``mesh``); any callable
taking a :class:`LayerContext` may be inserted as a custom layer. Renderers
implement :class:`LayerVisitor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .layout import SwarmComputation
from .mesh import NodeMesh
from .model import Bounds, Group, GroupKey, LayoutConfigError, Node, Orientation

T = TypeVar("T")

LAYER_NAMES: Tuple[str, ...] = ("grid", "axes", "circles", "annotations", "mesh")
DEFAULT_LAYERS: Tuple[str, ...] = LAYER_NAMES


@dataclass(frozen=True)
class Annotation:
    """Note attached to every node accepted by ``match``.

    ``match`` is a predicate on nodes or a mapping of node attribute values
    that must all be equal.
    """

    match: Union[Callable[[Node], bool], Mapping[str, Any]]
    note: str
    offset: Tuple[float, float] = (12.0, -12.0)

    def matches(self, node: Node) -> bool:
        if callable(self.match):
            return bool(self.match(node))
        return all(getattr(node, key, None) == expected for key, expected in self.match.items())


@dataclass(frozen=True)
class LayerContext:
    """Read-only view handed to every layer."""

    nodes: Tuple[Node, ...]
    bounds: Optional[Bounds]
    groups: Tuple[Group, ...]
    value_scale: Any
    width: float
    height: float
    orientation: Orientation
    annotations: Tuple[Annotation, ...] = ()
    mesh: Optional[NodeMesh] = None

    def group(self, key: GroupKey) -> Group:
        for group in self.groups:
            if group.key == key:
                return group
        raise KeyError(key)


def build_layer_context(
    computation: SwarmComputation, annotations: Sequence[Annotation] = ()
) -> LayerContext:
    result = computation.result
    groups = sorted(computation.group_scale.groups.values(), key=lambda g: g.index)
    return LayerContext(
        nodes=tuple(result.nodes),
        bounds=result.bounds,
        groups=tuple(groups),
        value_scale=computation.value_scale,
        width=computation.width,
        height=computation.height,
        orientation=computation.config.orientation,
        annotations=tuple(annotations),
        mesh=NodeMesh(result.nodes),
    )


class LayerVisitor(Generic[T]):
    """Renderer interface; one method per layer kind."""

    def visit_grid(self, context: LayerContext) -> T:
        raise NotImplementedError

    def visit_axes(self, context: LayerContext) -> T:
        raise NotImplementedError

    def visit_circles(self, context: LayerContext) -> T:
        raise NotImplementedError

    def visit_annotations(self, context: LayerContext) -> T:
        raise NotImplementedError

    def visit_mesh(self, context: LayerContext) -> T:
        raise NotImplementedError

    def visit_custom(self, layer: "CustomLayer", context: LayerContext) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class NamedLayer:
    name: str

    def accept(self, visitor: LayerVisitor[T], context: LayerContext) -> T:
        return getattr(visitor, f"visit_{self.name}")(context)


@dataclass(frozen=True)
class CustomLayer:
    func: Callable[[LayerContext], Any]
    label: str = field(default="custom")

    def accept(self, visitor: LayerVisitor[T], context: LayerContext) -> T:
        return visitor.visit_custom(self, context)


Layer = Union[NamedLayer, CustomLayer]
LayerSpec = Union[str, Callable[[LayerContext], Any], NamedLayer, CustomLayer]


def as_layer(spec: LayerSpec) -> Layer:
    if isinstance(spec, (NamedLayer, CustomLayer)):
        return spec
    if isinstance(spec, str):
        if spec not in LAYER_NAMES:
            raise LayoutConfigError(f"unknown layer {spec!r}; expected one of {', '.join(LAYER_NAMES)}")
        return NamedLayer(spec)
    if callable(spec):
        return CustomLayer(spec, getattr(spec, "__name__", "custom"))
    raise LayoutConfigError(f"layer must be a name or a callable, got {spec!r}")


def render_layers(
    layers: Sequence[LayerSpec], context: LayerContext, visitor: LayerVisitor[T]
) -> List[T]:
    """Visit ``layers`` in order and collect each layer's output."""

    return [as_layer(spec).accept(visitor, context) for spec in layers]


__all__ = [
    "Annotation",
    "CustomLayer",
    "DEFAULT_LAYERS",
    "LAYER_NAMES",
    "Layer",
    "LayerContext",
    "LayerSpec",
    "LayerVisitor",
    "NamedLayer",
    "as_layer",
    "build_layer_context",
    "render_layers",
]
