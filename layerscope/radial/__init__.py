"""Radial 2D view of a composition.

Modules:
- tidy_tree: Reingold-Tilford tidy tree layout over a generic hierarchy
- radial_layout: Polar placement of the expanded part of a composition
- radial_canvas: QPainter surface with pan, zoom and layer toggles
"""

from .radial_layout import (
    RadialConfig,
    RadialLayoutEngine,
    RadialLayoutNode,
    compute_radial_layout,
)
from .tidy_tree import HierarchyNode, tidy_tree

__all__ = [
    "HierarchyNode",
    "RadialConfig",
    "RadialLayoutEngine",
    "RadialLayoutNode",
    "compute_radial_layout",
    "tidy_tree",
]
