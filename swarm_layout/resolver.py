"""Iterative collision resolution along the secondary (group) axis.

Every pass orients each overlapping pair by the current secondary order,
builds the tightest arrangement that keeps those orientations, re-centers
each connected cluster and moves ``force_strength`` of the way there. Nodes
start on their group center, so the resolved arrangement does not change
from pass to pass and every pair distance only grows along the way.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

from .model import Group, GroupKey, LayoutConfig, Node
from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)

# step fractions tried, in order, before a partition is left unchanged for an iteration
_BACKTRACK_STEPS = (1.0, 0.5, 0.25, 0.125, 0.0625)
# slack when testing whether a pre-spread slot clears its neighbours
_SLOT_TOLERANCE = 1e-9
# pre-spread slots tested per batch
_SLOT_BATCH = 64


@dataclass
class CollisionState:
    """Array view of the working-order nodes.

    ``pairs`` lists candidate pairs ``(a, b)`` with ``a < b`` in working
    order; since primaries never move, the candidate set is fixed for the
    whole run. ``pair_gap`` is the secondary separation a pair needs,
    ``seed`` the pre-spread placement that breaks ties between coincident
    nodes and ``component`` labels clusters linked by candidate pairs.
    """

    primary: np.ndarray
    secondary: np.ndarray
    radius: np.ndarray
    center: np.ndarray
    extent: np.ndarray
    partition: np.ndarray
    partition_count: int
    pairs: np.ndarray
    pair_target: np.ndarray
    pair_dp: np.ndarray
    pair_gap: np.ndarray
    pair_partition: np.ndarray
    seed: np.ndarray
    component: np.ndarray
    component_count: int
    spacing: float
    bounded: bool
    target_key: Optional[Tuple[bytes, float]] = None
    target: Optional[np.ndarray] = None

    @property
    def size(self) -> int:
        return int(self.secondary.size)


def _candidate_pairs(primary: np.ndarray, reach: float) -> np.ndarray:
    if primary.size < 2 or reach <= 0.0:
        return np.zeros((0, 2), dtype=np.intp)
    tree = cKDTree(primary.reshape(-1, 1))
    pairs = tree.query_pairs(r=reach, output_type="ndarray")
    if pairs.size == 0:
        return np.zeros((0, 2), dtype=np.intp)
    pairs = np.sort(pairs.astype(np.intp), axis=1)
    order = np.lexsort((pairs[:, 1], pairs[:, 0]))
    return pairs[order]


def _components(count: int, pairs: np.ndarray) -> Tuple[int, np.ndarray]:
    if count == 0:
        return 0, np.zeros(0, dtype=np.intp)
    graph = coo_matrix(
        (np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])), shape=(count, count)
    )
    total, labels = connected_components(graph, directed=False)
    return int(total), labels.astype(np.intp)


def _closest_free_slot(
    center: float, low: float, high: float, blocked: np.ndarray, reach: np.ndarray
) -> float:
    """Position nearest ``center`` inside ``[low, high]`` clear of every blocked node.

    Ties go to the positive side.
    """

    if low > high:
        return low
    home = min(max(center, low), high)
    if not blocked.size:
        return home
    # offsets from the center, so slots mirrored around it tie exactly
    others = blocked - center
    slots = np.concatenate(([home - center], others - reach, others + reach))
    slots = slots[(slots >= low - center) & (slots <= high - center)]
    slots = slots[np.lexsort((-slots, np.abs(slots)))]
    for start in range(0, slots.size, _SLOT_BATCH):
        batch = slots[start:start + _SLOT_BATCH]
        clear = np.all(
            np.abs(batch[:, None] - others[None, :]) >= reach[None, :] - _SLOT_TOLERANCE, axis=1
        )
        if np.any(clear):
            return center + float(batch[np.argmax(clear)])
    return max(low, float(np.max(blocked + reach)))


def _seed_positions(
    center: np.ndarray, pairs: np.ndarray, gap: np.ndarray, dp: np.ndarray
) -> np.ndarray:
    """Greedy pre-spread: place nodes in working order as close to their center as possible.

    Neighbours from a lower group center stay below, those from a higher one
    stay above, and nodes sharing a primary stack upwards in working order.
    """

    seed = center.astype(float).copy()
    if not len(pairs):
        return seed
    placed_before: List[List[Tuple[int, float, bool]]] = [[] for _ in range(seed.size)]
    for (a, b), need, same in zip(pairs.tolist(), gap.tolist(), (dp == 0.0).tolist()):
        placed_before[b].append((a, need, same))

    for node, neighbours in enumerate(placed_before):
        if not neighbours:
            continue
        home = float(center[node])
        low, high = -math.inf, math.inf
        blocked: List[float] = []
        reach: List[float] = []
        for other, need, same in neighbours:
            other_center = float(center[other])
            if other_center < home or (other_center == home and same):
                low = max(low, seed[other] + need)
            elif other_center > home:
                high = min(high, seed[other] - need)
            else:
                blocked.append(seed[other])
                reach.append(need)
        seed[node] = _closest_free_slot(home, low, high, np.asarray(blocked), np.asarray(reach))
    return seed


def build_collision_state(
    nodes: Sequence[Node], groups: Mapping[GroupKey, Group], config: LayoutConfig
) -> CollisionState:
    """Snapshot ``nodes`` (already in working order) into arrays."""

    count = len(nodes)
    primary = np.fromiter((n.primary for n in nodes), dtype=float, count=count)
    secondary = np.fromiter((n.secondary for n in nodes), dtype=float, count=count)
    radius = np.fromiter((n.radius for n in nodes), dtype=float, count=count)
    center = np.fromiter((groups[n.group].center for n in nodes), dtype=float, count=count)
    extent = np.fromiter((groups[n.group].extent for n in nodes), dtype=float, count=count)

    if config.unified:
        partition = np.zeros(count, dtype=np.intp)
    else:
        ids: Dict[GroupKey, int] = {}
        partition = np.fromiter(
            (ids.setdefault(n.group, len(ids)) for n in nodes), dtype=np.intp, count=count
        )
    partition_count = int(partition.max()) + 1 if count else 0

    spacing = float(config.spacing)
    reach = 2.0 * float(radius.max()) + spacing if count else 0.0
    pairs = _candidate_pairs(primary, reach)
    a, b = pairs[:, 0], pairs[:, 1]
    target = radius[a] + radius[b] + spacing
    dp = primary[b] - primary[a]
    keep = (partition[a] == partition[b]) & (np.abs(dp) < target)
    pairs = pairs[keep]
    target = target[keep]
    dp = dp[keep]
    gap = np.sqrt(np.maximum(target ** 2 - dp ** 2, 0.0))
    component_count, component = _components(count, pairs)

    state = CollisionState(
        primary=primary,
        secondary=secondary,
        radius=radius,
        center=center,
        extent=extent,
        partition=partition,
        partition_count=partition_count,
        pairs=pairs,
        pair_target=target,
        pair_dp=dp,
        pair_gap=gap,
        pair_partition=partition[pairs[:, 0]],
        seed=_seed_positions(center, pairs, gap, dp),
        component=component,
        component_count=component_count,
        spacing=spacing,
        bounded=bool(config.bounded),
    )
    logger.debug(
        "build_collision_state: %d node(s), %d partition(s), %d candidate pair(s), %d cluster(s)",
        count,
        partition_count,
        len(pairs),
        component_count,
    )
    return state


def _pair_distances(state: CollisionState, secondary: np.ndarray) -> np.ndarray:
    ds = secondary[state.pairs[:, 1]] - secondary[state.pairs[:, 0]]
    return np.hypot(state.pair_dp, ds)


def partition_min_distance(state: CollisionState, secondary: Optional[np.ndarray] = None) -> np.ndarray:
    """Smallest center distance among candidate pairs, per partition (``inf`` if none)."""

    if secondary is None:
        secondary = state.secondary
    mins = np.full(state.partition_count, np.inf)
    if len(state.pairs):
        np.minimum.at(mins, state.pair_partition, _pair_distances(state, secondary))
    return mins


def residual_overlap(state: CollisionState, secondary: Optional[np.ndarray] = None) -> float:
    """Largest amount by which any pair still violates its target distance."""

    if secondary is None:
        secondary = state.secondary
    if not len(state.pairs):
        return 0.0
    overlap = state.pair_target - _pair_distances(state, secondary)
    return float(max(np.max(overlap), 0.0))


def _rank(state: CollisionState, secondary: np.ndarray) -> np.ndarray:
    # ties on the secondary axis fall back to the pre-spread, then to working order
    order = np.lexsort((np.arange(state.size), state.seed, secondary))
    rank = np.empty(state.size, dtype=np.intp)
    rank[order] = np.arange(state.size)
    return rank


def _lift(state: CollisionState, rank: np.ndarray) -> np.ndarray:
    """Lowest non-negative offsets from the group centers that satisfy every oriented pair."""

    a, b = state.pairs[:, 0], state.pairs[:, 1]
    a_below = rank[a] < rank[b]
    lower = np.where(a_below, a, b)
    upper = np.where(a_below, b, a)
    weight = np.maximum(state.pair_gap - (state.center[upper] - state.center[lower]), 0.0)

    lift = [0.0] * state.size
    sweep = np.argsort(rank[upper], kind="stable")
    for low, high, need in zip(lower[sweep].tolist(), upper[sweep].tolist(), weight[sweep].tolist()):
        reach = lift[low] + need
        if reach > lift[high]:
            lift[high] = reach
    return np.asarray(lift, dtype=float)


def resolved_target(state: CollisionState, secondary: np.ndarray, centering: float) -> np.ndarray:
    """Overlap-free secondaries that keep the current order of every candidate pair.

    Each cluster is anchored between the mean and the midpoint of its
    offsets, ``centering`` choosing how far towards the midpoint. In a
    bounded layout a cluster wider than its band is scaled down to fit.
    """

    if not len(state.pairs):
        return state.center.copy()
    rank = _rank(state, secondary)
    key = ((rank[state.pairs[:, 0]] < rank[state.pairs[:, 1]]).tobytes(), centering)
    if state.target is not None and state.target_key == key:
        return state.target

    lift = _lift(state, rank)
    component = state.component
    total = state.component_count
    members = np.bincount(component, minlength=total)
    mean = np.bincount(component, weights=lift, minlength=total) / members
    low = np.full(total, np.inf)
    high = np.full(total, -np.inf)
    np.minimum.at(low, component, lift)
    np.maximum.at(high, component, lift)
    anchor = mean + centering * (0.5 * (low + high) - mean)
    offset = lift - anchor[component]

    if state.bounded:
        magnitude = np.abs(offset)
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(magnitude > state.extent, state.extent / magnitude, 1.0)
        shrink = np.ones(total)
        np.minimum.at(shrink, component, ratio)
        offset = offset * shrink[component]

    state.target_key = key
    state.target = state.center + offset
    return state.target


def fold_into_extent(values: np.ndarray, center: np.ndarray, extent: np.ndarray) -> np.ndarray:
    """Reflect values lying outside ``[center - extent, center + extent]`` back inside.

    The fold is a triangle wave, so it is continuous in its input.
    """

    lower = center - extent
    upper = center + extent
    outside = (values < lower) | (values > upper)
    if not np.any(outside):
        return values
    out = values.copy()
    width = 2.0 * extent[outside]
    offset = values[outside] - lower[outside]
    with np.errstate(divide="ignore", invalid="ignore"):
        phase = np.mod(offset, 2.0 * width)
    folded = lower[outside] + width - np.abs(phase - width)
    out[outside] = np.where(width > 0.0, folded, center[outside])
    return out


def _guarded_update(
    state: CollisionState,
    current: np.ndarray,
    move: np.ndarray,
    baseline: np.ndarray,
    pending: np.ndarray,
    result: np.ndarray,
) -> np.ndarray:
    for fraction in _BACKTRACK_STEPS:
        candidate = current + fraction * move
        if state.bounded:
            candidate = fold_into_extent(candidate, state.center, state.extent)
        ok = (partition_min_distance(state, candidate) >= baseline) & pending
        if np.any(ok):
            take = ok[state.partition]
            result[take] = candidate[take]
            pending = pending & ~ok
        if not pending.any():
            break
    return pending


def step(state: CollisionState, config: LayoutConfig) -> np.ndarray:
    """Run one resolver pass and return the new secondary coordinates.

    Nodes move ``force_strength`` of the way towards :func:`resolved_target`.
    The minimum pair distance of a partition never decreases: when the step
    would shrink it, shorter steps are tried and failing those the partition
    stays as is for this pass.
    """

    current = state.secondary
    target = resolved_target(state, current, float(config.centering))
    move = float(config.force_strength) * (target - current)
    if not np.any(move):
        return current.copy()

    baseline = partition_min_distance(state, current)
    result = current.copy()
    pending = np.ones(state.partition_count, dtype=bool)
    pending = _guarded_update(state, current, move, baseline, pending, result)
    if pending.any():
        logger.debug("step: %d partition(s) held in place", int(pending.sum()))
    return result


def resolve_collisions(
    nodes: List[Node], groups: Mapping[GroupKey, Group], config: LayoutConfig
) -> float:
    """Run exactly ``config.iterations`` passes over ``nodes`` in place.

    Only ``secondary`` is written back. Returns the residual overlap left
    after the last pass.
    """

    state = build_collision_state(nodes, groups, config)
    for _ in range(int(config.iterations)):
        state.secondary = step(state, config)

    for node, secondary in zip(nodes, state.secondary):
        node.secondary = float(secondary)

    overlap = residual_overlap(state)
    if overlap > 1e-6:
        logger.info(
            "Residual overlap %.4g px after %d iteration(s)", overlap, config.iterations
        )
    return overlap


apply_debug_logging(
    globals(),
    logger=logger,
    skip={
        "step",
        "fold_into_extent",
        "partition_min_distance",
        "resolved_target",
        "_guarded_update",
        "_closest_free_slot",
        "_lift",
        "_rank",
        "_pair_distances",
    },
)


__all__ = [
    "CollisionState",
    "build_collision_state",
    "fold_into_extent",
    "partition_min_distance",
    "resolved_target",
    "residual_overlap",
    "resolve_collisions",
    "step",
]
