import numpy as np
import pytest

from swarm_layout.model import Group, LayoutConfig, Node
from swarm_layout.resolver import (
    build_collision_state,
    fold_into_extent,
    partition_min_distance,
    residual_overlap,
    resolve_collisions,
    resolved_target,
    step,
)


def _nodes(primaries, groups, radius=5.0, centers=None):
    centers = centers or {}
    nodes = []
    for index, (primary, key) in enumerate(zip(primaries, groups)):
        nodes.append(
            Node(
                index=index,
                id=index,
                group=key,
                value=float(primary),
                radius=radius,
                primary=float(primary),
                secondary=centers.get(key, 100.0),
            )
        )
    nodes.sort(key=lambda node: (node.value, node.index))
    return nodes


def test_candidate_pairs_are_limited_to_primary_window():
    nodes = _nodes([0.0, 5.0, 11.0, 40.0], ["a"] * 4)
    groups = {"a": Group("a", 0, 100.0, 50.0)}

    state = build_collision_state(nodes, groups, LayoutConfig(spacing=2.0))

    # target distance is 12: (0, 5), (0, 11) and (5, 11) qualify, 40 is alone
    assert state.pairs.tolist() == [[0, 1], [0, 2], [1, 2]]
    assert state.pair_target.tolist() == [12.0, 12.0, 12.0]


def test_candidate_pairs_respect_groups_unless_unified():
    nodes = _nodes([0.0, 0.0], ["a", "b"])
    groups = {"a": Group("a", 0, 100.0, 50.0), "b": Group("b", 1, 100.0, 50.0)}

    separate = build_collision_state(nodes, groups, LayoutConfig())
    unified = build_collision_state(nodes, groups, LayoutConfig(unified=True))

    assert len(separate.pairs) == 0
    assert separate.partition_count == 2
    assert unified.pairs.tolist() == [[0, 1]]
    assert unified.partition_count == 1


def test_min_distance_never_decreases_between_iterations():
    rng = np.random.default_rng(7)
    primaries = rng.uniform(0.0, 60.0, size=40)
    keys = ["a" if i % 3 else "b" for i in range(40)]
    nodes = _nodes(primaries, keys, radius=4.0, centers={"a": 100.0, "b": 220.0})
    groups = {"a": Group("a", 0, 100.0, 40.0), "b": Group("b", 1, 220.0, 40.0)}
    config = LayoutConfig(spacing=1.0, force_strength=0.8)

    state = build_collision_state(nodes, groups, config)
    previous = partition_min_distance(state)
    for _ in range(60):
        state.secondary = step(state, config)
        current = partition_min_distance(state)
        assert np.all(current >= previous)
        previous = current


def test_step_only_moves_secondary():
    nodes = _nodes([0.0, 1.0, 2.0], ["a"] * 3)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    config = LayoutConfig()
    state = build_collision_state(nodes, groups, config)
    primary = state.primary.copy()

    state.secondary = step(state, config)

    assert np.array_equal(state.primary, primary)
    assert not np.allclose(state.secondary, 100.0)


def test_force_strength_damps_first_step():
    nodes = _nodes([0.0, 0.0], ["a", "a"], radius=10.0)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    config = LayoutConfig(spacing=2.0, force_strength=0.5)
    state = build_collision_state(nodes, groups, config)

    moved = step(state, config)

    assert moved.tolist() == pytest.approx([94.5, 105.5])


def test_resolve_collisions_writes_back_and_reports_overlap():
    nodes = _nodes([0.0, 0.0, 0.0], ["a"] * 3, radius=10.0)
    groups = {"a": Group("a", 0, 100.0, 50.0)}

    overlap = resolve_collisions(nodes, groups, LayoutConfig(spacing=2.0, iterations=1))

    assert [node.secondary for node in nodes] == pytest.approx([78.0, 100.0, 122.0])
    assert overlap == pytest.approx(0.0, abs=1e-9)


def test_residual_overlap_is_largest_violation():
    nodes = _nodes([0.0, 0.0], ["a", "a"], radius=10.0)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    state = build_collision_state(nodes, groups, LayoutConfig(spacing=2.0))

    assert residual_overlap(state) == pytest.approx(22.0)
    assert residual_overlap(state, np.array([90.0, 110.0])) == pytest.approx(2.0)
    assert residual_overlap(state, np.array([0.0, 200.0])) == 0.0


def test_fold_reflects_back_into_extent():
    center = np.array([100.0, 100.0, 100.0, 100.0])
    extent = np.array([50.0, 50.0, 50.0, 0.0])
    values = np.array([120.0, 160.0, 30.0, 130.0])

    folded = fold_into_extent(values, center, extent)

    assert folded.tolist() == pytest.approx([120.0, 140.0, 70.0, 100.0])


def test_fold_returns_input_when_inside():
    center = np.array([0.0])
    extent = np.array([10.0])
    values = np.array([3.0])

    assert fold_into_extent(values, center, extent) is values


def test_damped_steps_approach_the_resolved_target_geometrically():
    nodes = _nodes([0.0, 0.0], ["a", "a"], radius=10.0)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    config = LayoutConfig(spacing=2.0, force_strength=0.5)
    state = build_collision_state(nodes, groups, config)

    for _ in range(4):
        state.secondary = step(state, config)

    spread = 11.0 * (1.0 - 0.5 ** 4)
    assert state.secondary.tolist() == pytest.approx([100.0 - spread, 100.0 + spread])
    assert resolved_target(state, state.secondary, config.centering).tolist() == pytest.approx([89.0, 111.0])


def test_equal_primaries_stack_in_working_order():
    nodes = _nodes([3.0, 3.0, 3.0, 3.0], ["a"] * 4)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    state = build_collision_state(nodes, groups, LayoutConfig(spacing=2.0))

    assert state.seed.tolist() == pytest.approx([100.0, 112.0, 124.0, 136.0])
    target = resolved_target(state, state.secondary, 0.1)
    assert target.tolist() == pytest.approx([82.0, 94.0, 106.0, 118.0])


def test_chained_neighbours_alternate_sides():
    nodes = _nodes([0.0, 8.0, 16.0, 24.0], ["a"] * 4)
    groups = {"a": Group("a", 0, 100.0, 50.0)}

    resolve_collisions(nodes, groups, LayoutConfig(spacing=2.0, iterations=1))

    half = 0.5 * np.sqrt(12.0 ** 2 - 8.0 ** 2)
    assert [node.secondary for node in nodes] == pytest.approx(
        [100.0 - half, 100.0 + half, 100.0 - half, 100.0 + half]
    )


def test_unified_nodes_keep_the_order_of_their_group_centers():
    nodes = _nodes([0.0, 0.0], ["a", "b"], radius=5.0, centers={"a": 100.0, "b": 104.0})
    groups = {"a": Group("a", 0, 100.0, 50.0), "b": Group("b", 1, 104.0, 50.0)}
    config = LayoutConfig(spacing=2.0, unified=True, force_strength=0.3)
    state = build_collision_state(nodes, groups, config)

    gaps = []
    for _ in range(80):
        state.secondary = step(state, config)
        gaps.append(state.secondary[1] - state.secondary[0])

    assert all(later >= earlier for earlier, later in zip(gaps, gaps[1:]))
    assert gaps[-1] == pytest.approx(12.0)
    assert residual_overlap(state) == pytest.approx(0.0, abs=1e-9)


def test_cluster_wider_than_band_is_scaled_into_it():
    nodes = _nodes([0.0] * 6, ["a"] * 6)
    groups = {"a": Group("a", 0, 100.0, 20.0)}
    state = build_collision_state(nodes, groups, LayoutConfig(spacing=2.0))

    target = resolved_target(state, state.secondary, 0.1)

    assert target.min() == pytest.approx(80.0)
    assert target.max() == pytest.approx(120.0)
    assert np.all(np.diff(target) > 0.0)


def test_isolated_nodes_stay_on_center():
    nodes = _nodes([0.0, 1.0, 50.0], ["a"] * 3)
    groups = {"a": Group("a", 0, 100.0, 50.0)}
    state = build_collision_state(nodes, groups, LayoutConfig(spacing=2.0))

    target = resolved_target(state, state.secondary, 1.0)

    assert state.component_count == 2
    assert target[2] == 100.0
    assert target[0] + target[1] == pytest.approx(200.0)
