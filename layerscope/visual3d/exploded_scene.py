"""Animated exploded scene graph following the composition store.

The scene owns no rendering. It keeps, per node, the animated local offset
and emphasis scale, and answers "where is node X in world space" for the
camera and any renderer drawing the scene.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QVector3D

from layerscope.model.composition import CompositionNode
from layerscope.model.tree_utils import filter_by_depth
from layerscope.state.composition_store import CompositionStore
from layerscope.visual3d.animation import AnimationConfig, DampedAnimator
from layerscope.visual3d.exploded_layout import (
    ExplodedConfig,
    ExplodedPlacement,
    build_exploded_layout,
    compose_world_positions,
)

logger = logging.getLogger(__name__)

_OFFSET = "offset"
_SCALE = "scale"


class ExplodedScene(QObject):
    """Exploded 3D layout with damped transitions.

    Signals:
        layout_changed: Emitted after the set of placed nodes was rebuilt
        frame_advanced: Emitted after every animation step
        focus_target: (node id, world position) when the store asks for camera focus
    """

    layout_changed = Signal()
    frame_advanced = Signal()
    focus_target = Signal(str, QVector3D)

    def __init__(
        self,
        store: CompositionStore,
        layout_config: ExplodedConfig | None = None,
        animation_config: AnimationConfig | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.store = store
        self.layout_config = layout_config or ExplodedConfig()
        self.animation_config = animation_config or AnimationConfig()
        self._placements: Dict[str, ExplodedPlacement] = {}

        self._animator = DampedAnimator(self.animation_config, self)
        self._animator.frame_advanced.connect(self.frame_advanced.emit)

        store.composition_changed.connect(self._on_composition_changed)
        store.exploded_changed.connect(self._rebuild)
        store.node_explosion_changed.connect(self._rebuild)
        store.depth_level_changed.connect(self._rebuild)
        store.selection_changed.connect(self._update_scales)
        store.hover_changed.connect(self._update_scales)
        store.focus_requested.connect(self._on_focus_requested)

        if store.composition is not None:
            self._rebuild()

    # --- Queries ---

    @property
    def animator(self) -> DampedAnimator:
        return self._animator

    @property
    def is_settled(self) -> bool:
        return self._animator.is_settled

    def node_ids(self) -> List[str]:
        """Placed node ids in pre-order."""

        return list(self._placements)

    def placement(self, node_id: str) -> Optional[ExplodedPlacement]:
        return self._placements.get(node_id)

    def offset(self, node_id: str) -> Optional[QVector3D]:
        """Current animated offset of ``node_id`` relative to its parent."""

        return self._animator.value((_OFFSET, node_id))

    def target_offset(self, node_id: str) -> Optional[QVector3D]:
        return self._animator.target((_OFFSET, node_id))

    def scale(self, node_id: str) -> Optional[float]:
        return self._animator.value((_SCALE, node_id))

    def world_position(self, node_id: str) -> Optional[QVector3D]:
        """Animated world position, composed through every ancestor's current offset."""

        if node_id not in self._placements:
            return None
        return self._compose(node_id, self._animator.value)

    def target_world_position(self, node_id: str) -> Optional[QVector3D]:
        """World position once every running transition has settled."""

        if node_id not in self._placements:
            return None
        return self._compose(node_id, self._animator.target)

    def world_positions(self) -> Dict[str, QVector3D]:
        offsets = {node_id: self._animator.value((_OFFSET, node_id)) for node_id in self._placements}
        return compose_world_positions(self._placements, offsets)

    def _compose(self, node_id: str, read) -> QVector3D:
        position = QVector3D(0, 0, 0)
        current: Optional[str] = node_id
        while current is not None:
            local = read((_OFFSET, current))
            if local is not None:
                position += local
            current = self._placements[current].parent_id
        return position

    # --- Driving ---

    def step(self) -> bool:
        """Advance the animation by one frame. Returns True while anything still moves."""

        return self._animator.step()

    def snap(self) -> None:
        self._animator.snap_all()

    # --- Store reactions ---

    def _on_composition_changed(self, root: Optional[CompositionNode]) -> None:
        self._animator.clear()
        self._placements = {}
        self._rebuild()

    def _rebuild(self, *_args) -> None:
        root = self.store.composition
        if root is None:
            if self._placements:
                self._animator.clear()
                self._placements = {}
                self.layout_changed.emit()
            return

        visible = filter_by_depth(root, self.store.depth_level)
        placements = build_exploded_layout(
            visible,
            self.store.is_exploded,
            self.store.node_exploded_ids,
            self.layout_config,
        )

        for stale in set(self._placements) - set(placements):
            self._animator.remove((_OFFSET, stale))
            self._animator.remove((_SCALE, stale))

        for node_id, placement in placements.items():
            # Newly shown nodes start stacked on their parent
            self._animator.set_target((_OFFSET, node_id), placement.offset, initial=QVector3D(0, 0, 0))
        self._placements = placements
        self._update_scales()
        logger.debug("Exploded layout rebuilt with %d nodes", len(placements))
        self.layout_changed.emit()

    def _update_scales(self, *_args) -> None:
        hovered = self.store.hovered_node
        selected = self.store.selected_node
        for node_id in self._placements:
            if hovered is not None and hovered.id == node_id:
                target = self.animation_config.hover_scale
            elif selected is not None and selected.id == node_id:
                target = self.animation_config.selected_scale
            else:
                target = 1.0
            self._animator.set_target((_SCALE, node_id), target, initial=1.0)

    def _on_focus_requested(self, node_id: str, request_id: int) -> None:
        position = self.target_world_position(node_id)
        if position is None:
            logger.debug("Focus request %d for node %r outside the 3D scene", request_id, node_id)
            return
        self.focus_target.emit(node_id, position)
