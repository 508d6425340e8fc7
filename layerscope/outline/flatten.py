"""Flattening and windowing for the virtualized outline.

The flattened list is the single ordering shared by the outline renderer and
the keyboard navigator: "next" and "previous" are simply index +/- 1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import AbstractSet, List, Sequence

from layerscope.core.config import settings_value
from layerscope.model.composition import CompositionNode
from layerscope.model.tree_utils import child_nodes


@dataclass(frozen=True)
class OutlineConfig:
    """Row geometry for the outline."""

    item_height: int = 28
    overscan: int = 5
    indent: int = 12

    @classmethod
    def from_settings(cls, settings: dict) -> "OutlineConfig":
        defaults = cls()
        return cls(
            item_height=max(1, settings_value(settings, "item_height", defaults.item_height, int)),
            overscan=max(0, settings_value(settings, "overscan", defaults.overscan, int)),
            indent=max(0, settings_value(settings, "indent", defaults.indent, int)),
        )


@dataclass(frozen=True)
class FlattenedNode:
    """One visible row of the outline."""

    node: CompositionNode
    depth: int
    is_expanded: bool
    has_children: bool


@dataclass(frozen=True)
class VirtualWindow:
    """Slice of the flattened list that needs to be materialized."""

    start_index: int
    end_index: int
    offset_y: float
    total_height: float

    def __len__(self) -> int:
        return max(0, self.end_index - self.start_index)

    def indices(self) -> range:
        return range(self.start_index, self.end_index)


def flatten_tree(root: CompositionNode | None, expanded_ids: AbstractSet[str]) -> List[FlattenedNode]:
    """Depth-first pre-order list of visible nodes.

    A node's children are visited only when it has children and its id is in
    ``expanded_ids``. A child repeating an ancestor's id ends that branch.
    """

    if root is None:
        return []

    result: List[FlattenedNode] = []
    stack: List[tuple[CompositionNode, int, frozenset[str]]] = [(root, 0, frozenset())]
    while stack:
        node, depth, ancestor_ids = stack.pop()
        has_children = node.has_children
        is_expanded = node.id in expanded_ids
        result.append(FlattenedNode(node, depth, is_expanded, has_children))
        if has_children and is_expanded:
            inner = ancestor_ids | {node.id}
            for child in reversed(child_nodes(node, inner)):
                stack.append((child, depth + 1, inner))
    return result


def index_of(flat: Sequence[FlattenedNode], node_id: str) -> int:
    """Row index of ``node_id`` in ``flat``, or -1 when it is not visible."""

    for index, entry in enumerate(flat):
        if entry.node.id == node_id:
            return index
    return -1


def compute_window(
    item_count: int,
    scroll_offset: float,
    viewport_height: float,
    item_height: float,
    overscan: int,
) -> VirtualWindow:
    """Compute the ``[start, end)`` row range to render for a scroll position."""

    if item_count <= 0 or item_height <= 0:
        return VirtualWindow(0, 0, 0.0, 0.0)

    scroll_offset = max(0.0, scroll_offset)
    viewport_height = max(0.0, viewport_height)
    start = max(0, math.floor(scroll_offset / item_height) - overscan)
    end = min(item_count, math.ceil((scroll_offset + viewport_height) / item_height) + overscan)
    start = min(start, end)
    return VirtualWindow(
        start_index=start,
        end_index=end,
        offset_y=start * item_height,
        total_height=item_count * item_height,
    )


def scroll_to_reveal(
    index: int,
    scroll_offset: float,
    viewport_height: float,
    item_height: float,
) -> float:
    """Return the scroll offset that brings row ``index`` into view.

    A row above the viewport becomes the new top edge, a row below becomes the
    new bottom edge; a row already in view leaves the offset untouched.
    """

    if index < 0 or item_height <= 0:
        return scroll_offset

    row_top = index * item_height
    row_bottom = row_top + item_height
    if row_top < scroll_offset:
        return float(row_top)
    if row_bottom > scroll_offset + viewport_height:
        return float(max(0.0, row_bottom - viewport_height))
    return scroll_offset
