"""Radial 2D layout of a partially expanded composition tree.

The visible hierarchy is rebuilt on every call from the set of expanded
structural paths, laid out as a tidy tree in polar coordinates and converted
to canvas coordinates around the canvas centre.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Tuple

from layerscope.core.config import settings_value
from layerscope.model.composition import CompositionNode
from layerscope.radial.tidy_tree import HierarchyNode, tidy_tree
from layerscope.state.composition_store import ROOT_PATH, canvas_child_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RadialConfig:
    """Configuration for the radial layout."""

    margin: float = 100.0

    @classmethod
    def from_settings(cls, settings: dict) -> "RadialConfig":
        defaults = cls()
        return cls(margin=max(0.0, settings_value(settings, "margin", defaults.margin, float)))


@dataclass(frozen=True)
class RadialLayoutNode:
    """A visible node placed on the canvas."""

    id: str
    node: CompositionNode
    x: float
    y: float
    parent_x: Optional[float]
    parent_y: Optional[float]
    depth: int
    path: str
    has_children: bool
    is_expanded: bool
    angle: float
    radius: float


@dataclass(frozen=True)
class _Visible:
    node: CompositionNode
    path: str
    has_children: bool
    is_expanded: bool


def radial_separation(a: HierarchyNode, b: HierarchyNode) -> float:
    """Siblings sit one unit apart, cousins two, both tightened on outer rings."""

    return (1.0 if a.parent is b.parent else 2.0) / max(1, a.depth)


def polar_to_canvas(angle: float, radius: float, center_x: float, center_y: float) -> Tuple[float, float]:
    """Angle 0 points straight up from the centre."""

    return (
        center_x + radius * math.cos(angle - math.pi / 2),
        center_y + radius * math.sin(angle - math.pi / 2),
    )


def build_visible_hierarchy(root: CompositionNode, expanded_paths: AbstractSet[str]) -> HierarchyNode:
    """Copy of the tree keeping children only under expanded paths.

    A collapsed node stays in the copy as a leaf that still reports
    ``has_children`` so views can draw an expand affordance.
    """

    def _visible(node: CompositionNode, path: str) -> _Visible:
        return _Visible(
            node=node,
            path=path,
            has_children=node.has_children,
            is_expanded=node.has_children and path in expanded_paths,
        )

    top = HierarchyNode(data=_visible(root, ROOT_PATH))
    pending: List[Tuple[HierarchyNode, frozenset[str]]] = [(top, frozenset({root.id}))]
    while pending:
        parent, ancestor_ids = pending.pop()
        info: _Visible = parent.data
        if not info.is_expanded:
            continue
        for index, child in enumerate(info.node.children):
            # Positional paths count every child so they match the source tree
            if child.id in ancestor_ids:
                continue
            entry = parent.add_child(_visible(child, canvas_child_path(info.path, index)))
            pending.append((entry, ancestor_ids | {child.id}))
    return top


def compute_radial_layout(
    root: Optional[CompositionNode],
    expanded_paths: AbstractSet[str],
    width: float,
    height: float,
    config: Optional[RadialConfig] = None,
) -> List[RadialLayoutNode]:
    """Place every visible node of ``root`` on a ``width`` x ``height`` canvas.

    Degenerate canvases yield an empty layout.
    """

    config = config or RadialConfig()
    if root is None or width <= 0 or height <= 0:
        return []

    radius = max(0.0, min(width, height) / 2 - config.margin)
    center_x = width / 2
    center_y = height / 2

    hierarchy = tidy_tree(
        build_visible_hierarchy(root, expanded_paths),
        size=(2 * math.pi, radius),
        separation=radial_separation,
    )

    placed: List[RadialLayoutNode] = []
    for entry in hierarchy.each_before():
        info: _Visible = entry.data
        x, y = polar_to_canvas(entry.x, entry.y, center_x, center_y)
        parent_x = parent_y = None
        if entry.parent is not None:
            parent_x, parent_y = polar_to_canvas(entry.parent.x, entry.parent.y, center_x, center_y)
        placed.append(
            RadialLayoutNode(
                id=info.node.id,
                node=info.node,
                x=x,
                y=y,
                parent_x=parent_x,
                parent_y=parent_y,
                depth=entry.depth,
                path=info.path,
                has_children=info.has_children,
                is_expanded=info.is_expanded,
                angle=entry.x,
                radius=entry.y,
            )
        )
    return placed


class RadialLayoutEngine:
    """Compute radial layouts, reusing the last result when nothing changed."""

    def __init__(self, config: Optional[RadialConfig] = None) -> None:
        self.config = config or RadialConfig()
        self._key: Optional[tuple] = None
        self._nodes: List[RadialLayoutNode] = []

    def layout(
        self,
        root: Optional[CompositionNode],
        expanded_paths: AbstractSet[str],
        width: float,
        height: float,
    ) -> List[RadialLayoutNode]:
        key = (root, frozenset(expanded_paths), float(width), float(height))
        if key != self._key:
            self._nodes = compute_radial_layout(root, expanded_paths, width, height, self.config)
            self._key = key
            logger.debug("Radial layout recomputed: %d nodes", len(self._nodes))
        return list(self._nodes)

    def invalidate(self) -> None:
        self._key = None
        self._nodes = []
