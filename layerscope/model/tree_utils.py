"""Pure helpers over composition trees.

Every traversal here tolerates malformed input (duplicate ids, a node listed
as its own descendant): a branch ends as soon as a node id repeats along the
chain of ancestors, so nothing loops forever.
"""

from __future__ import annotations

import dataclasses
import math
from typing import Iterator, List, Optional, Tuple

from layerscope.model.composition import CompositionNode, CompositionType

NodePath = Tuple[CompositionNode, ...]

TYPE_COLORS = {
    CompositionType.PRODUCT: "#4ecdc4",
    CompositionType.COMPONENT: "#45b7d1",
    CompositionType.MATERIAL: "#96ceb4",
    CompositionType.CHEMICAL: "#ffeaa7",
    CompositionType.ELEMENT: "#dfe6e9",
}

# CPK colouring for common element symbols
ELEMENT_COLORS = {
    "H": "#ffffff",
    "C": "#909090",
    "N": "#3050f8",
    "O": "#ff0d0d",
    "F": "#90e050",
    "Cl": "#1ff01f",
    "Br": "#a62929",
    "I": "#940094",
    "S": "#ffff30",
    "P": "#ff8000",
    "Fe": "#e06633",
    "Au": "#ffd123",
    "Ag": "#c0c0c0",
    "Cu": "#c88033",
    "Na": "#ab5cf2",
    "K": "#8f40d4",
    "Ca": "#3dff00",
    "Mg": "#8aff00",
    "Zn": "#7d80b0",
    "Al": "#bfa6a6",
    "Si": "#f0c8a0",
}


def child_nodes(node: CompositionNode, ancestor_ids: set[str] | frozenset[str]) -> List[CompositionNode]:
    """Children of ``node`` that do not repeat an id already on the ancestor chain."""

    return [child for child in node.children if child.id not in ancestor_ids]


def walk(root: CompositionNode) -> Iterator[NodePath]:
    """Yield the chain from ``root`` to every reachable node, in pre-order."""

    stack: List[NodePath] = [(root,)]
    while stack:
        path = stack.pop()
        yield path
        ancestor_ids = {node.id for node in path}
        for child in reversed(child_nodes(path[-1], ancestor_ids)):
            stack.append(path + (child,))


def count_nodes(root: CompositionNode) -> int:
    return sum(1 for _ in walk(root))


def get_max_depth(root: CompositionNode) -> int:
    """Depth of the deepest node, with the root at depth 0."""

    return max(len(path) - 1 for path in walk(root))


def all_node_ids(root: CompositionNode) -> List[str]:
    """Every distinct node id, in pre-order of first appearance."""

    seen: dict[str, None] = {}
    for path in walk(root):
        seen.setdefault(path[-1].id, None)
    return list(seen)


def find_path_to_id(root: CompositionNode, node_id: str) -> Optional[List[CompositionNode]]:
    """Return the chain ``[root, ..., target]`` for the first node with ``node_id``."""

    for path in walk(root):
        if path[-1].id == node_id:
            return list(path)
    return None


def find_by_id(root: CompositionNode, node_id: str) -> Optional[CompositionNode]:
    path = find_path_to_id(root, node_id)
    return path[-1] if path else None


def find_parent(root: CompositionNode, node_id: str) -> Optional[CompositionNode]:
    path = find_path_to_id(root, node_id)
    if not path or len(path) < 2:
        return None
    return path[-2]


def find_by_name(root: CompositionNode, name: str) -> Optional[CompositionNode]:
    """Find the first node whose display name matches, ignoring case and padding."""

    wanted = name.strip().casefold()
    if not wanted:
        return None
    for path in walk(root):
        if path[-1].name.strip().casefold() == wanted:
            return path[-1]
    return None


def filter_by_depth(root: CompositionNode, max_depth: int) -> CompositionNode:
    """Return a copy of the tree with every node deeper than ``max_depth`` dropped.

    The source tree is never modified.
    """

    def _truncate(node: CompositionNode, depth: int, ancestor_ids: frozenset[str]) -> CompositionNode:
        if depth >= max_depth:
            return dataclasses.replace(node, children=())
        inner = ancestor_ids | {node.id}
        return dataclasses.replace(
            node,
            children=tuple(_truncate(child, depth + 1, inner) for child in child_nodes(node, inner)),
        )

    return _truncate(root, 0, frozenset())


def calculate_node_size(percentage: float, depth: int) -> float:
    """Sphere radius for a node in the 3D scene."""

    base_size = 0.5
    depth_factor = 0.6 ** depth
    percentage_factor = max(0.2, math.sqrt(max(percentage, 0.0) / 100))
    return base_size * depth_factor * percentage_factor


def node_color(node: CompositionNode) -> str:
    """Hex colour for a node: element CPK colour, explicit override, then type colour."""

    if node.type is CompositionType.ELEMENT and node.symbol:
        return ELEMENT_COLORS.get(node.symbol, TYPE_COLORS[CompositionType.ELEMENT])
    override = node.metadata.get("color")
    if isinstance(override, str) and override:
        return override
    return TYPE_COLORS[node.type]


def format_percentage(value: float) -> str:
    if value >= 10:
        return f"{math.floor(value + 0.5)}%"
    if value >= 1:
        return f"{value:.1f}%"
    if value >= 0.1:
        return f"{value:.2f}%"
    return "<0.1%"
