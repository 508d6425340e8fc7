"""Exploded 3D placement of composition nodes.

Every node gets an offset relative to its parent. Children of a collapsed
node stack exactly on it; children of an exploded node fan out on a flattened
ring whose radius grows with depth. Composing offsets down the hierarchy is
left to the scene, so a moving parent carries its subtree along.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Optional, Tuple

from PySide6.QtGui import QVector3D

from layerscope.core.config import settings_value
from layerscope.model.composition import CompositionNode
from layerscope.model.tree_utils import calculate_node_size, node_color

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplodedConfig:
    """Ring geometry for exploded children."""

    base_radius: float = 1.5
    radius_increment: float = 0.5
    vertical_flatten: float = 0.3

    @classmethod
    def from_settings(cls, settings: dict) -> "ExplodedConfig":
        defaults = cls()
        return cls(
            base_radius=settings_value(settings, "base_radius", defaults.base_radius, float),
            radius_increment=settings_value(settings, "radius_increment", defaults.radius_increment, float),
            vertical_flatten=settings_value(settings, "vertical_flatten", defaults.vertical_flatten, float),
        )


def exploded_offset(
    index: int,
    sibling_count: int,
    depth: int,
    is_exploded: bool,
    config: Optional[ExplodedConfig] = None,
) -> QVector3D:
    """Offset of the ``index``-th of ``sibling_count`` siblings from their parent."""

    if not is_exploded or sibling_count <= 0:
        return QVector3D(0, 0, 0)

    config = config or ExplodedConfig()
    angle = 2 * math.pi * index / sibling_count
    radius = config.base_radius + depth * config.radius_increment
    return QVector3D(
        radius * math.cos(angle),
        radius * math.sin(angle) * config.vertical_flatten,
        radius * math.sin(angle),
    )


@dataclass
class ExplodedPlacement:
    """Static placement of one node in the exploded scene."""

    node: CompositionNode
    parent_id: Optional[str]
    depth: int
    index: int
    sibling_count: int
    offset: QVector3D
    children_exploded: bool
    size: float
    color: str

    @property
    def id(self) -> str:
        return self.node.id


def build_exploded_layout(
    root: Optional[CompositionNode],
    is_exploded: bool,
    exploded_ids: AbstractSet[str],
    config: Optional[ExplodedConfig] = None,
) -> Dict[str, ExplodedPlacement]:
    """Local offsets for every node of ``root``, keyed by node id, in pre-order.

    The root sits at the origin. A node's children explode when the global
    flag is set or when the node itself is in ``exploded_ids``. Only the first
    occurrence of a repeated id is placed.
    """

    if root is None:
        return {}

    config = config or ExplodedConfig()
    placements: Dict[str, ExplodedPlacement] = {}
    stack: List[Tuple[CompositionNode, Optional[str], int, int, int, QVector3D]] = [
        (root, None, 0, 0, 1, QVector3D(0, 0, 0))
    ]
    while stack:
        node, parent_id, depth, index, sibling_count, offset = stack.pop()
        if node.id in placements:
            logger.debug("Skipping repeated node id %r in exploded layout", node.id)
            continue
        children_exploded = is_exploded or node.id in exploded_ids
        placements[node.id] = ExplodedPlacement(
            node=node,
            parent_id=parent_id,
            depth=depth,
            index=index,
            sibling_count=sibling_count,
            offset=offset,
            children_exploded=children_exploded,
            size=calculate_node_size(node.percentage, depth),
            color=node_color(node),
        )
        count = len(node.children)
        for child_index in range(count - 1, -1, -1):
            child = node.children[child_index]
            stack.append(
                (
                    child,
                    node.id,
                    depth + 1,
                    child_index,
                    count,
                    exploded_offset(child_index, count, depth + 1, children_exploded, config),
                )
            )
    return placements


def compose_world_positions(
    placements: Dict[str, ExplodedPlacement],
    offsets: Optional[Dict[str, QVector3D]] = None,
) -> Dict[str, QVector3D]:
    """Sum local offsets from the root down.

    ``offsets`` overrides the static offsets (e.g. with animated values);
    placements must be in pre-order so every parent resolves first.
    """

    world: Dict[str, QVector3D] = {}
    for node_id, placement in placements.items():
        local = offsets.get(node_id, placement.offset) if offsets else placement.offset
        parent_world = world.get(placement.parent_id) if placement.parent_id else None
        world[node_id] = QVector3D(local) if parent_world is None else parent_world + local
    return world
