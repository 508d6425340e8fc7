from __future__ import annotations

import itertools

import pytest
from PySide6.QtCore import Qt

from layerscope.model.composition import CompositionNode
from layerscope.outline.flatten import (
    OutlineConfig,
    VirtualWindow,
    compute_window,
    flatten_tree,
    index_of,
    scroll_to_reveal,
)
from layerscope.outline.navigator import KeyboardNavigator, NavigationKey, navigation_key_from_qt
from layerscope.state.composition_store import CompositionStore


def _ids(flat) -> list[str]:
    return [entry.node.id for entry in flat]


def test_flatten_respects_expansion(sample_root: CompositionNode, sample_ids: list[str]) -> None:
    flat = flatten_tree(sample_root, {"r"})
    assert _ids(flat) == ["r", "a", "b", "c"]
    assert [entry.depth for entry in flat] == [0, 1, 1, 1]
    assert flat[0].is_expanded and flat[0].has_children
    assert not flat[1].is_expanded and flat[1].has_children
    assert not flat[3].has_children

    assert _ids(flatten_tree(sample_root, set(sample_ids))) == sample_ids
    assert _ids(flatten_tree(sample_root, set())) == ["r"]
    assert flatten_tree(None, {"r"}) == []


def test_flatten_needs_every_ancestor_expanded(sample_root: CompositionNode) -> None:
    flat = flatten_tree(sample_root, {"r", "a2", "a2x"})
    assert "a2" not in _ids(flat)
    flat = flatten_tree(sample_root, {"r", "a", "a2", "a2x"})
    assert _ids(flat) == ["r", "a", "a1", "a2", "a2x", "fe", "b", "c"]
    assert flat[5].depth == 4


def test_flatten_is_monotonic_in_expansion(sample_root: CompositionNode, sample_ids: list[str]) -> None:
    for size in range(len(sample_ids) + 1):
        for subset in itertools.combinations(sample_ids, size):
            smaller = set(subset)
            for extra in sample_ids:
                larger = smaller | {extra}
                assert len(flatten_tree(sample_root, smaller)) <= len(flatten_tree(sample_root, larger))


def test_index_of(sample_root: CompositionNode) -> None:
    flat = flatten_tree(sample_root, {"r"})
    assert index_of(flat, "b") == 2
    assert index_of(flat, "b1") == -1


def test_compute_window_matches_scrolled_viewport() -> None:
    window = compute_window(30, 560, 280, 28, 2)
    assert (window.start_index, window.end_index) == (18, 30)
    assert window.offset_y == 18 * 28
    assert window.total_height == 30 * 28
    assert len(window) == 12
    assert list(window.indices()) == list(range(18, 30))

    longer = compute_window(100, 560, 280, 28, 2)
    assert (longer.start_index, longer.end_index) == (18, 32)


def test_compute_window_clamps_edges() -> None:
    top = compute_window(50, 0, 280, 28, 5)
    assert (top.start_index, top.end_index) == (0, 15)
    short = compute_window(3, 0, 280, 28, 5)
    assert (short.start_index, short.end_index) == (0, 3)
    assert compute_window(0, 0, 280, 28, 5) == VirtualWindow(0, 0, 0.0, 0.0)
    assert len(compute_window(10, 0, 280, 0, 5)) == 0


@pytest.mark.parametrize(
    "index, scroll, expected",
    [
        (2, 0, 0),  # already visible
        (20, 0, 21 * 28 - 280),  # below: becomes the bottom edge
        (1, 100, 28),  # above: becomes the top edge
        (-1, 100, 100),
    ],
)
def test_scroll_to_reveal(index: int, scroll: float, expected: float) -> None:
    assert scroll_to_reveal(index, scroll, 280, 28) == expected


def test_outline_config_from_settings() -> None:
    config = OutlineConfig.from_settings({"item_height": "32", "overscan": -1, "unknown": 5})
    assert config.item_height == 32
    assert config.overscan == 0
    assert config.indent == 12
    assert OutlineConfig.from_settings({"item_height": "tall"}).item_height == 28


def test_navigation_key_from_qt() -> None:
    assert navigation_key_from_qt(Qt.Key_Up) is NavigationKey.UP
    assert navigation_key_from_qt(Qt.Key_Return) is NavigationKey.ENTER
    assert navigation_key_from_qt(Qt.Key_Enter) is NavigationKey.ENTER
    assert navigation_key_from_qt(Qt.Key_A) is None


def test_navigator_ignores_keys_without_selection(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    assert not navigator.handle_key(NavigationKey.DOWN)
    assert store.selected_node is None


def test_navigator_ignores_keys_in_text_inputs(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.select_node(store.composition)
    assert not navigator.handle_key(NavigationKey.DOWN, text_input_focused=True)
    assert store.selected_node.id == "r"


def test_navigator_ignores_hidden_selection(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.select_node(store.node_by_id("a1"))
    assert not navigator.handle_key(NavigationKey.DOWN)
    assert store.selected_node.id == "a1"


def test_navigator_up_down_stay_in_bounds(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.select_node(store.composition)

    for _ in range(10):
        assert navigator.handle_key(NavigationKey.UP)
    assert store.selected_node.id == "r"

    for _ in range(10):
        assert navigator.handle_key(NavigationKey.DOWN)
    assert store.selected_node.id == "c"

    navigator.handle_key(NavigationKey.UP)
    assert store.selected_node.id == "b"


def test_navigator_right_expands_then_descends(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.select_node(store.node_by_id("a"))

    navigator.handle_key(NavigationKey.RIGHT)
    assert "a" in store.tree_expanded_ids
    assert store.selected_node.id == "a"

    navigator.handle_key(NavigationKey.RIGHT)
    assert store.selected_node.id == "a1"

    # Leaf: nothing to expand or enter
    navigator.handle_key(NavigationKey.RIGHT)
    assert store.selected_node.id == "a1"


def test_navigator_left_collapses_then_climbs(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.toggle_tree_node("a")
    store.select_node(store.node_by_id("a1"))

    navigator.handle_key(NavigationKey.LEFT)
    assert store.selected_node.id == "a"
    assert "a" in store.tree_expanded_ids

    navigator.handle_key(NavigationKey.LEFT)
    assert "a" not in store.tree_expanded_ids
    assert store.selected_node.id == "a"

    navigator.handle_key(NavigationKey.LEFT)
    assert store.selected_node.id == "r"


def test_navigator_enter_toggles_without_moving(store: CompositionStore) -> None:
    navigator = KeyboardNavigator(store)
    store.select_node(store.node_by_id("b"))

    navigator.handle_key(NavigationKey.ENTER)
    assert "b" in store.tree_expanded_ids
    navigator.handle_key(NavigationKey.ENTER)
    assert "b" not in store.tree_expanded_ids
    assert store.selected_node.id == "b"

    store.select_node(store.node_by_id("c"))
    before = store.tree_expanded_ids
    assert navigator.handle_key(NavigationKey.ENTER)
    assert store.tree_expanded_ids == before
