"""Layout orchestration: validate, initialize, resolve, report."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .accessors import AccessorSpec, SizeLike, property_accessor, size_accessor
from .config import default_layout_config
from .initializer import initialize_nodes, resolve_groups
from .model import Bounds, GroupKey, LayoutConfig, LayoutConfigError, LayoutResult, Node
from .resolver import resolve_collisions
from .scales import (
    BandScale,
    ScaleAdapters,
    ValueScaleSpec,
    compute_group_scale,
    compute_value_scale,
    infer_group_keys,
    value_scale_spec_from_mapping,
)
from .validate import validate_config, validate_groups
from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)


def _bounds(nodes: Sequence[Node]) -> Optional[Bounds]:
    if not nodes:
        return None
    secondary = [node.secondary for node in nodes]
    primary = [node.primary for node in nodes]
    return Bounds(
        secondary_min=min(secondary),
        secondary_max=max(secondary),
        primary_min=min(primary),
        primary_max=max(primary),
    )


def _numeric_values(rows: Sequence[Any], read: Any) -> List[float]:
    values = []
    for index, row in enumerate(rows):
        raw = read(row)
        try:
            values.append(float(raw))
        except (TypeError, ValueError) as exc:
            raise LayoutConfigError(f"row {index}: value {raw!r} is not numeric") from exc
    return values


def layout(
    data: Iterable[Any],
    config: Optional[LayoutConfig] = None,
    *,
    scales: ScaleAdapters,
    value: AccessorSpec = "value",
    group: AccessorSpec = "group",
    size: SizeLike = 6,
    color: Optional[AccessorSpec] = None,
    id: Optional[AccessorSpec] = None,
) -> LayoutResult:
    """Place ``data`` as non-overlapping circles.

    Output nodes follow input order. Configuration problems raise
    :class:`~swarm_layout.model.LayoutConfigError` before any simulation
    work; residual overlap is reported on the result, never raised.
    """

    config = config if config is not None else default_layout_config()
    validate_config(config)

    rows = list(data)
    read_value = property_accessor(value)
    read_group = property_accessor(group)
    read_size = size_accessor(size)
    read_color = property_accessor(color) if color is not None else None
    read_id = property_accessor(id) if id is not None else None

    if not rows:
        logger.info("Layout requested for empty data")
        return LayoutResult(nodes=[], bounds=None, orientation=config.orientation)

    keys = [read_group(row) for row in rows]
    groups = resolve_groups(keys, scales)
    validate_groups(keys, groups)

    nodes = initialize_nodes(
        rows,
        value=read_value,
        group=read_group,
        size=read_size,
        scales=scales,
        groups=groups,
        color=read_color,
        id=read_id,
        orientation=config.orientation,
    )
    overlap = resolve_collisions(nodes, groups, config)

    ordered: List[Node] = sorted(nodes, key=lambda node: node.index)
    bounds = _bounds(ordered)
    logger.info(
        "Laid out %d node(s) in %d group(s) over %d iteration(s); bounds=%s",
        len(ordered),
        len(groups),
        config.iterations,
        bounds,
    )
    return LayoutResult(
        nodes=ordered,
        bounds=bounds,
        groups=groups,
        iterations=int(config.iterations),
        residual_overlap=overlap,
        orientation=config.orientation,
    )


@dataclass
class SwarmComputation:
    """A layout together with the stock scales it was computed with."""

    result: LayoutResult
    value_scale: Any
    group_scale: BandScale
    width: float
    height: float
    config: LayoutConfig


def compute_swarm(
    data: Iterable[Any],
    *,
    width: float,
    height: float,
    groups: Optional[Sequence[GroupKey]] = None,
    value: AccessorSpec = "value",
    group: AccessorSpec = "group",
    size: SizeLike = 6,
    color: Optional[AccessorSpec] = None,
    id: Optional[AccessorSpec] = None,
    value_scale: Union[ValueScaleSpec, Mapping[str, Any], None] = None,
    config: Optional[LayoutConfig] = None,
) -> SwarmComputation:
    """Build a value scale and a band group scale for a ``width`` x ``height`` area, then lay out.

    ``groups`` fixes the order of the bands; by default it is the order of
    first appearance in ``data``.
    """

    config = config if config is not None else default_layout_config()
    validate_config(config)
    rows = list(data)

    if value_scale is None:
        spec = ValueScaleSpec()
    elif isinstance(value_scale, ValueScaleSpec):
        spec = value_scale
    else:
        spec = value_scale_spec_from_mapping(value_scale)

    read_value = property_accessor(value)
    keys = list(groups) if groups is not None else infer_group_keys(rows, property_accessor(group))
    value_mapping = compute_value_scale(
        spec,
        _numeric_values(rows, read_value),
        width=width,
        height=height,
        orientation=config.orientation,
    )
    band = compute_group_scale(
        keys, width=width, height=height, gap=config.gap, orientation=config.orientation
    )

    result = layout(
        rows,
        config,
        scales=ScaleAdapters(value_scale=value_mapping, group_scale=band),
        value=read_value,
        group=group,
        size=size,
        color=color,
        id=id,
    )
    return SwarmComputation(
        result=result,
        value_scale=value_mapping,
        group_scale=band,
        width=float(width),
        height=float(height),
        config=config,
    )


apply_debug_logging(globals(), logger=logger, skip={"_bounds", "_numeric_values"})


__all__ = ["SwarmComputation", "compute_swarm", "layout"]
