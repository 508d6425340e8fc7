from __future__ import annotations

import math

import pytest
from PySide6.QtGui import QVector3D

from layerscope.model.composition import CompositionNode
from layerscope.model.tree_utils import find_by_id
from layerscope.visual3d.exploded_layout import (
    ExplodedConfig,
    build_exploded_layout,
    compose_world_positions,
    exploded_offset,
)


def _xyz(vector: QVector3D) -> tuple[float, float, float]:
    return (vector.x(), vector.y(), vector.z())


@pytest.mark.parametrize(
    "index, count, depth, exploded",
    [(0, 4, 1, False), (3, 4, 2, False), (0, 0, 1, True), (0, -2, 1, True)],
)
def test_offset_is_zero_when_collapsed_or_empty(index: int, count: int, depth: int, exploded: bool) -> None:
    assert _xyz(exploded_offset(index, count, depth, exploded)) == (0, 0, 0)


def test_offset_fans_out_on_flattened_ring() -> None:
    assert _xyz(exploded_offset(0, 4, 1, True)) == pytest.approx((2.0, 0.0, 0.0))
    assert _xyz(exploded_offset(1, 4, 1, True)) == pytest.approx((0.0, 0.6, 2.0), abs=1e-6)
    assert _xyz(exploded_offset(2, 4, 3, True)) == pytest.approx((-3.0, 0.0, 0.0), abs=1e-6)

    third = exploded_offset(1, 3, 1, True)
    assert _xyz(third) == pytest.approx((-1.0, 2 * math.sin(2 * math.pi / 3) * 0.3, 2 * math.sin(2 * math.pi / 3)), abs=1e-6)


def test_offset_honours_config() -> None:
    config = ExplodedConfig(base_radius=1.0, radius_increment=1.0, vertical_flatten=0.0)
    assert _xyz(exploded_offset(1, 4, 1, True, config)) == pytest.approx((0.0, 0.0, 2.0), abs=1e-6)


def test_exploded_config_from_settings() -> None:
    config = ExplodedConfig.from_settings({"base_radius": "2", "vertical_flatten": "flat"})
    assert config.base_radius == 2.0
    assert config.vertical_flatten == 0.3
    assert config.radius_increment == 0.5


def test_collapsed_layout_stacks_everything(sample_root: CompositionNode, sample_ids: list[str]) -> None:
    placements = build_exploded_layout(sample_root, False, set())
    assert list(placements) == sample_ids
    assert all(_xyz(placement.offset) == (0, 0, 0) for placement in placements.values())
    world = compose_world_positions(placements)
    assert all(_xyz(position) == (0, 0, 0) for position in world.values())


def test_exploding_one_node_moves_only_its_children(sample_root: CompositionNode) -> None:
    placements = build_exploded_layout(sample_root, False, {"a"})

    assert _xyz(placements["a1"].offset) == pytest.approx((2.5, 0.0, 0.0))
    assert _xyz(placements["a2"].offset) == pytest.approx((-2.5, 0.0, 0.0), abs=1e-6)
    assert placements["a"].children_exploded
    assert not placements["r"].children_exploded
    for node_id in ("r", "a", "a2x", "fe", "b", "b1", "c"):
        assert _xyz(placements[node_id].offset) == (0, 0, 0)

    world = compose_world_positions(placements)
    # Collapsed descendants ride along with their moved ancestor
    assert _xyz(world["fe"]) == pytest.approx(_xyz(world["a2"]))


def test_global_flag_explodes_every_level(sample_root: CompositionNode) -> None:
    placements = build_exploded_layout(sample_root, True, set())

    assert _xyz(placements["r"].offset) == (0, 0, 0)
    assert _xyz(placements["a"].offset) == pytest.approx((2.0, 0.0, 0.0))
    assert placements["b"].index == 1 and placements["b"].sibling_count == 3
    assert placements["fe"].depth == 4
    assert _xyz(placements["fe"].offset) == pytest.approx((3.5, 0.0, 0.0))
    assert all(placement.children_exploded for placement in placements.values())

    world = compose_world_positions(placements)
    assert _xyz(world["a1"]) == pytest.approx((2.0 + 2.5, 0.0, 0.0))


def test_placements_carry_size_and_colour(sample_root: CompositionNode) -> None:
    placements = build_exploded_layout(sample_root, False, set())
    assert placements["r"].size == pytest.approx(0.5)
    assert placements["r"].parent_id is None
    assert placements["fe"].parent_id == "a2x"
    assert placements["fe"].color.startswith("#")


def test_repeated_ids_are_placed_once(sample_root: CompositionNode) -> None:
    alpha = find_by_id(sample_root, "a")
    object.__setattr__(alpha, "children", alpha.children + (sample_root,))

    placements = build_exploded_layout(sample_root, True, set())
    assert list(placements).count("r") == 1
    assert placements["r"].parent_id is None
    assert len(placements) == 9


def test_missing_root_yields_no_placements() -> None:
    assert build_exploded_layout(None, True, set()) == {}


def test_compose_prefers_supplied_offsets(sample_root: CompositionNode) -> None:
    placements = build_exploded_layout(sample_root, False, set())
    world = compose_world_positions(placements, {"a": QVector3D(1, 0, 0), "a2": QVector3D(0, 1, 0)})
    assert _xyz(world["a2x"]) == (1, 1, 0)
    assert _xyz(world["b"]) == (0, 0, 0)
