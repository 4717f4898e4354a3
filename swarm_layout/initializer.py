"""Turn raw data rows into swarm nodes resting on their group centerline."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .accessors import Accessor
from .model import Group, GroupKey, LayoutConfigError, Node, Orientation
from .scales import ScaleAdapters
from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)


def _node_radius(size: Any, index: int) -> float:
    try:
        diameter = float(size)
    except (TypeError, ValueError):
        logger.warning("Row %d: size %r is not numeric, using radius 0", index, size)
        return 0.0
    if math.isnan(diameter) or diameter < 0:
        logger.warning("Row %d: invalid size %.6g clamped to 0", index, diameter)
        return 0.0
    return diameter * 0.5


def sort_key(node: Node):
    """Working order: ascending value, input index breaks ties."""

    return (node.value, node.index)


def _as_group(key: GroupKey, index: int, span: Any) -> Group:
    if isinstance(span, Group):
        return span
    if isinstance(span, Mapping):
        try:
            return Group(key=key, index=index, center=float(span["center"]), extent=float(span["extent"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise LayoutConfigError(f"group {key!r}: span needs numeric center and extent") from exc
    if isinstance(span, (tuple, list)) and len(span) == 2:
        try:
            return Group(key=key, index=index, center=float(span[0]), extent=float(span[1]))
        except (TypeError, ValueError) as exc:
            raise LayoutConfigError(f"group {key!r}: span needs numeric center and extent") from exc
    raise LayoutConfigError(f"group scale returned {span!r} for {key!r}")


def resolve_groups(keys: Iterable[GroupKey], scales: ScaleAdapters) -> Dict[GroupKey, Group]:
    """Ask the group scale for the span of every distinct key.

    The scale may answer with a :class:`Group`, a ``{center, extent}``
    mapping or a ``(center, extent)`` pair.
    """

    groups: Dict[GroupKey, Group] = {}
    for key in keys:
        if key in groups:
            continue
        try:
            span = scales.group_scale(key)
        except (KeyError, IndexError) as exc:
            raise LayoutConfigError(f"unknown group key {key!r}") from exc
        groups[key] = _as_group(key, len(groups), span)
    return groups


def initialize_nodes(
    data: Sequence[Any],
    *,
    value: Accessor,
    group: Accessor,
    size: Accessor,
    scales: ScaleAdapters,
    groups: Optional[Mapping[GroupKey, Group]] = None,
    color: Optional[Accessor] = None,
    id: Optional[Accessor] = None,
    orientation: Orientation = "vertical",
) -> List[Node]:
    """Build nodes sorted by working order.

    ``primary`` comes from the value scale and ``secondary`` starts on the
    center of the node's group. ``size`` returns a diameter; invalid sizes
    are clamped to zero so a single bad row never fails the layout.
    """

    keys = [group(datum) for datum in data]
    spans = groups if groups is not None else resolve_groups(keys, scales)
    nodes: List[Node] = []

    for index, (datum, key) in enumerate(zip(data, keys)):
        raw_value = value(datum)
        try:
            numeric = float(raw_value)
        except (TypeError, ValueError) as exc:
            raise LayoutConfigError(f"row {index}: value {raw_value!r} is not numeric") from exc
        if not math.isfinite(numeric):
            raise LayoutConfigError(f"row {index}: value {raw_value!r} is not finite")
        primary = float(scales.value_scale(numeric))
        if not math.isfinite(primary):
            raise LayoutConfigError(f"row {index}: value {raw_value!r} maps outside the value scale")

        nodes.append(
            Node(
                index=index,
                id=id(datum) if id is not None else index,
                group=key,
                value=numeric,
                radius=_node_radius(size(datum), index),
                primary=primary,
                secondary=float(spans[key].center),
                color=color(datum) if color is not None else None,
                data=datum,
                orientation=orientation,
            )
        )

    nodes.sort(key=sort_key)
    logger.info("Initialized %d node(s) across %d group(s)", len(nodes), len(set(keys)))
    return nodes


apply_debug_logging(globals(), logger=logger, skip={"sort_key", "_node_radius", "_as_group"})


__all__ = ["initialize_nodes", "resolve_groups", "sort_key"]
