from __future__ import annotations

import math

import pytest

import layerscope.radial.radial_layout as radial_layout
from layerscope.model.composition import CompositionNode
from layerscope.model.tree_utils import find_by_id
from layerscope.radial.radial_layout import (
    RadialConfig,
    RadialLayoutEngine,
    build_visible_hierarchy,
    compute_radial_layout,
    polar_to_canvas,
)
from layerscope.radial.tidy_tree import HierarchyNode, tidy_tree


def _by_id(nodes) -> dict:
    return {entry.id: entry for entry in nodes}


def test_tidy_tree_spreads_two_leaves() -> None:
    root = HierarchyNode(data="root")
    left = root.add_child("left")
    right = root.add_child("right")

    tidy_tree(root)

    assert root.x == pytest.approx(0.5)
    assert left.x == pytest.approx(0.25)
    assert right.x == pytest.approx(0.75)
    assert (root.y, left.y, right.y) == (0, 1, 1)


def test_tidy_tree_keeps_subtrees_apart() -> None:
    root = HierarchyNode(data="root")
    first = root.add_child("first")
    second = root.add_child("second")
    for index in range(3):
        first.add_child(f"first-{index}")
        second.add_child(f"second-{index}")

    tidy_tree(root, size=(10, 2))

    leaves = [node for node in root.each_before() if node.depth == 2]
    xs = [node.x for node in leaves]
    assert xs == sorted(xs)
    assert all(0 <= x <= 10 for x in xs)
    assert first.x < root.x < second.x
    assert root.x == pytest.approx((first.x + second.x) / 2)
    assert [node.y for node in leaves] == [2] * 6


def test_polar_to_canvas_puts_angle_zero_on_top() -> None:
    x, y = polar_to_canvas(0.0, 50.0, 400, 300)
    assert x == pytest.approx(400)
    assert y == pytest.approx(250)


@pytest.mark.parametrize("width, height", [(0, 600), (800, 0), (-10, 600)])
def test_degenerate_canvas_yields_empty_layout(sample_root: CompositionNode, width: float, height: float) -> None:
    assert compute_radial_layout(sample_root, {"root"}, width, height) == []


def test_missing_root_yields_empty_layout() -> None:
    assert compute_radial_layout(None, {"root"}, 800, 600) == []


def test_single_node_sits_at_centre() -> None:
    lone = CompositionNode.from_dict(
        {"id": "x", "name": "Solo", "type": "element", "percentage": 100, "confidence": "verified"}
    )
    nodes = compute_radial_layout(lone, {"root"}, 800, 600)
    assert len(nodes) == 1
    only = nodes[0]
    assert (only.x, only.y) == pytest.approx((400, 300))
    assert only.parent_x is None and only.parent_y is None
    assert only.path == "root"


def test_first_ring_spreads_evenly(sample_root: CompositionNode) -> None:
    nodes = _by_id(compute_radial_layout(sample_root, {"root"}, 800, 600))

    assert list(nodes) == ["r", "a", "b", "c"]
    assert (nodes["r"].x, nodes["r"].y) == pytest.approx((400, 300))
    assert [nodes[key].angle for key in "abc"] == pytest.approx([math.pi / 3, math.pi, 5 * math.pi / 3])
    assert all(nodes[key].radius == pytest.approx(200) for key in "abc")
    assert (nodes["b"].x, nodes["b"].y) == pytest.approx((400, 500))
    assert (nodes["a"].x, nodes["a"].y) == pytest.approx((400 + 100 * math.sqrt(3), 200))
    assert (nodes["a"].parent_x, nodes["a"].parent_y) == pytest.approx((400, 300))

    assert nodes["a"].has_children and not nodes["a"].is_expanded
    assert not nodes["c"].has_children
    assert nodes["b"].path == "root.children[1]"


def test_expanded_paths_open_the_next_ring(sample_root: CompositionNode) -> None:
    nodes = _by_id(compute_radial_layout(sample_root, {"root", "root.children[0]"}, 800, 600))

    assert set(nodes) == {"r", "a", "a1", "a2", "b", "c"}
    assert nodes["a"].is_expanded
    assert nodes["a2"].path == "root.children[0].children[1]"
    assert nodes["a2"].depth == 2
    assert nodes["a2"].radius == pytest.approx(200)
    assert nodes["a"].radius == pytest.approx(100)
    assert (nodes["a1"].parent_x, nodes["a1"].parent_y) == pytest.approx((nodes["a"].x, nodes["a"].y))


def test_second_ring_halves_cousin_separation(sample_root: CompositionNode) -> None:
    paths = {"root", "root.children[0]", "root.children[1]"}
    nodes = _by_id(compute_radial_layout(sample_root, paths, 800, 600))

    # Siblings at depth 2 sit 1/2 apart and cousins 2/2 apart, spanning 3.5 units
    unit = 2 * math.pi / 3.5
    expected = {"a1": 0.5, "a2": 1.0, "b1": 2.0, "c": 3.0, "a": 0.75, "b": 2.0}
    assert {key: nodes[key].angle / unit for key in expected} == pytest.approx(expected)
    assert nodes["a2"].angle - nodes["a1"].angle == pytest.approx(0.5 * unit)
    assert nodes["b1"].angle - nodes["a2"].angle == pytest.approx(1.0 * unit)


def test_expanded_path_under_collapsed_parent_stays_hidden(sample_root: CompositionNode) -> None:
    nodes = _by_id(compute_radial_layout(sample_root, {"root.children[0]"}, 800, 600))
    assert list(nodes) == ["r"]
    assert nodes["r"].has_children and not nodes["r"].is_expanded


def test_layout_is_deterministic(sample_root: CompositionNode) -> None:
    paths = {"root", "root.children[0]", "root.children[1]"}
    assert compute_radial_layout(sample_root, paths, 800, 600) == compute_radial_layout(sample_root, paths, 800, 600)


def test_margin_larger_than_canvas_collapses_radius(sample_root: CompositionNode) -> None:
    nodes = compute_radial_layout(sample_root, {"root"}, 150, 150, RadialConfig(margin=100))
    assert all(entry.radius == 0 for entry in nodes)
    assert all((entry.x, entry.y) == pytest.approx((75, 75)) for entry in nodes)


def test_radial_config_from_settings() -> None:
    assert RadialConfig.from_settings({"margin": "40"}).margin == 40.0
    assert RadialConfig.from_settings({"margin": -5}).margin == 0.0
    assert RadialConfig.from_settings({}).margin == 100.0


def test_cyclic_child_is_skipped_but_paths_keep_positions(sample_root: CompositionNode) -> None:
    alpha = find_by_id(sample_root, "a")
    object.__setattr__(alpha, "children", (sample_root,) + alpha.children)

    hierarchy = build_visible_hierarchy(sample_root, {"root", "root.children[0]"})
    alpha_entry = hierarchy.children[0]
    assert [child.data.node.id for child in alpha_entry.children] == ["a1", "a2"]
    assert [child.data.path for child in alpha_entry.children] == [
        "root.children[0].children[1]",
        "root.children[0].children[2]",
    ]


def test_engine_reuses_layout_until_inputs_change(sample_root: CompositionNode, monkeypatch) -> None:
    calls = []
    real_layout = radial_layout.compute_radial_layout

    def counting(*args, **kwargs):
        calls.append(args)
        return real_layout(*args, **kwargs)

    monkeypatch.setattr(radial_layout, "compute_radial_layout", counting)
    engine = RadialLayoutEngine()

    first = engine.layout(sample_root, {"root"}, 800, 600)
    second = engine.layout(sample_root, frozenset({"root"}), 800.0, 600.0)
    assert len(calls) == 1
    assert first == second
    assert first is not second

    engine.layout(sample_root, {"root"}, 900, 600)
    engine.layout(sample_root, {"root", "root.children[1]"}, 900, 600)
    assert len(calls) == 3

    engine.invalidate()
    engine.layout(sample_root, {"root", "root.children[1]"}, 900, 600)
    assert len(calls) == 4
