"""Single source of truth for expansion, selection and focus across all views.

The outline, the radial canvas and the exploded 3D scene each keep their own
expansion set, because each view opens and closes nodes on its own triggers.
The only cross-view propagation is :meth:`CompositionStore.expand_to_node`,
which reveals a node picked in the 2D or 3D view inside the outline.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from layerscope.core.config import settings_value
from layerscope.model.composition import CompositionNode, ViewMode
from layerscope.model.tree_utils import (
    all_node_ids,
    count_nodes,
    find_by_name,
    find_path_to_id,
    get_max_depth,
    walk,
)

logger = logging.getLogger(__name__)

ROOT_PATH = "root"
SELECTED_PATH_PREFIX = "node-"
_PATH_STEP = re.compile(r"\.children\[(\d+)\]")


@dataclass(frozen=True)
class StoreConfig:
    """Tunables for the store: focus signal lifetime and 3D depth limits."""

    clear_delay_ms: int = 100
    depth_level: int = 4
    max_depth: int = 5

    @classmethod
    def from_settings(cls, settings: dict) -> "StoreConfig":
        defaults = cls()
        max_depth = max(1, settings_value(settings, "max_depth", defaults.max_depth, int))
        depth_level = settings_value(settings, "depth_level", defaults.depth_level, int)
        return cls(
            clear_delay_ms=max(0, settings_value(settings, "clear_delay_ms", defaults.clear_delay_ms, int)),
            depth_level=min(max(1, depth_level), max_depth),
            max_depth=max_depth,
        )


def canvas_child_path(parent_path: str, index: int) -> str:
    """Structural path of the ``index``-th child under ``parent_path``."""

    return f"{parent_path}.children[{index}]"


def resolve_canvas_path(root: CompositionNode | None, path: str) -> Optional[CompositionNode]:
    """Follow a structural path such as ``root.children[2]`` down from ``root``.

    A step onto a node whose id already appears among its ancestors resolves
    to None, matching the hierarchy the radial layout builds.
    """

    if root is None or not path.startswith(ROOT_PATH):
        return None
    remainder = path[len(ROOT_PATH):]
    node = root
    ancestor_ids = {root.id}
    position = 0
    while position < len(remainder):
        match = _PATH_STEP.match(remainder, position)
        if not match:
            return None
        index = int(match.group(1))
        if index >= len(node.children):
            return None
        node = node.children[index]
        if node.id in ancestor_ids:
            return None
        ancestor_ids.add(node.id)
        position = match.end()
    return node


class CompositionStore(QObject):
    """Process-wide view state for the active composition.

    Signals:
        composition_changed: New tree (or None) after :meth:`set_composition` / :meth:`reset`
        selection_changed: Selected node or None
        hover_changed: Hovered node or None
        tree_expansion_changed: frozenset of ids expanded in the outline
        canvas_expansion_changed: frozenset of structural paths expanded in the radial view
        node_explosion_changed: frozenset of ids exploded locally in 3D
        focus_requested: (node id, request number) one-shot camera focus request
        focus_cleared: Focus target was cleared
        exploded_changed: Global explode flag
        depth_level_changed: 3D depth limit
        view_mode_changed: ViewMode of the 3D scene
    """

    composition_changed = Signal(object)
    selection_changed = Signal(object)
    hover_changed = Signal(object)
    tree_expansion_changed = Signal(object)
    canvas_expansion_changed = Signal(object)
    node_explosion_changed = Signal(object)
    focus_requested = Signal(str, int)
    focus_cleared = Signal()
    exploded_changed = Signal(bool)
    depth_level_changed = Signal(int)
    view_mode_changed = Signal(object)

    def __init__(self, config: StoreConfig | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.config = config or StoreConfig()

        self._root: Optional[CompositionNode] = None
        self._members: set[CompositionNode] = set()
        self._first_by_id: dict[str, CompositionNode] = {}

        self._selected: Optional[CompositionNode] = None
        self._selected_path: Optional[str] = None
        self._hovered: Optional[CompositionNode] = None

        self._tree_expanded: frozenset[str] = frozenset()
        self._canvas_paths: frozenset[str] = frozenset({ROOT_PATH})
        self._exploded_ids: frozenset[str] = frozenset()

        self._focused_node_id: Optional[str] = None
        self._focus_request_id = 0
        self._focus_timer = QTimer(self)
        self._focus_timer.setSingleShot(True)
        self._focus_timer.setInterval(self.config.clear_delay_ms)
        self._focus_timer.timeout.connect(self._on_focus_timeout)

        self._is_exploded = False
        self._depth_level = self.config.depth_level
        self._view_mode = ViewMode.EXPLODED

    # --- Read-only state ---

    @property
    def composition(self) -> Optional[CompositionNode]:
        return self._root

    @property
    def selected_node(self) -> Optional[CompositionNode]:
        return self._selected

    @property
    def selected_path(self) -> Optional[str]:
        return self._selected_path

    @property
    def hovered_node(self) -> Optional[CompositionNode]:
        return self._hovered

    @property
    def tree_expanded_ids(self) -> frozenset[str]:
        return self._tree_expanded

    @property
    def canvas_expanded_paths(self) -> frozenset[str]:
        return self._canvas_paths

    @property
    def node_exploded_ids(self) -> frozenset[str]:
        return self._exploded_ids

    @property
    def focused_node_id(self) -> Optional[str]:
        return self._focused_node_id

    @property
    def focus_request_id(self) -> int:
        return self._focus_request_id

    @property
    def is_exploded(self) -> bool:
        return self._is_exploded

    @property
    def depth_level(self) -> int:
        return self._depth_level

    @property
    def max_depth(self) -> int:
        return self.config.max_depth

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def node_by_id(self, node_id: str) -> Optional[CompositionNode]:
        """First node in the current tree carrying ``node_id``."""

        return self._first_by_id.get(node_id)

    def contains(self, node: CompositionNode) -> bool:
        """Whether ``node`` is (reference-)part of the current tree."""

        return node in self._members

    # --- Composition lifecycle ---

    def set_composition(self, root: CompositionNode) -> None:
        """Replace the tree and reset every view to a clean baseline."""

        self._index(root)
        self._focus_timer.stop()
        self._selected = None
        self._selected_path = None
        self._hovered = None
        self._focused_node_id = None
        self._is_exploded = False
        self._exploded_ids = frozenset()
        self._tree_expanded = frozenset({root.id})
        self._canvas_paths = frozenset({ROOT_PATH})
        logger.info("Loaded composition %r with %d nodes", root.name, len(self._members))
        self._emit_all()

    def reset(self) -> None:
        """Drop the composition and return every piece of view state to its initial value."""

        self._index(None)
        self._focus_timer.stop()
        self._selected = None
        self._selected_path = None
        self._hovered = None
        self._focused_node_id = None
        self._is_exploded = False
        self._depth_level = self.config.depth_level
        self._view_mode = ViewMode.EXPLODED
        self._exploded_ids = frozenset()
        self._tree_expanded = frozenset()
        self._canvas_paths = frozenset({ROOT_PATH})
        self._emit_all()
        self.depth_level_changed.emit(self._depth_level)
        self.view_mode_changed.emit(self._view_mode)

    def _index(self, root: Optional[CompositionNode]) -> None:
        self._root = root
        self._members = set()
        self._first_by_id = {}
        if root is None:
            return
        for path in walk(root):
            node = path[-1]
            self._members.add(node)
            self._first_by_id.setdefault(node.id, node)

    def _emit_all(self) -> None:
        self.composition_changed.emit(self._root)
        self.selection_changed.emit(None)
        self.hover_changed.emit(None)
        self.tree_expansion_changed.emit(self._tree_expanded)
        self.canvas_expansion_changed.emit(self._canvas_paths)
        self.node_explosion_changed.emit(self._exploded_ids)
        self.exploded_changed.emit(self._is_exploded)
        self.focus_cleared.emit()

    # --- Selection and hover ---

    def select_node(self, node: Optional[CompositionNode]) -> bool:
        """Select ``node`` (or clear with None). Nodes outside the current tree are ignored."""

        if node is not None and not self.contains(node):
            logger.debug("Ignoring selection of node %r outside the current tree", node.id)
            return False
        path = f"{SELECTED_PATH_PREFIX}{node.id}" if node is not None else None
        if node is self._selected and path == self._selected_path:
            return True
        self._selected = node
        self._selected_path = path
        self.selection_changed.emit(node)
        return True

    def set_selected_path(self, token: Optional[str]) -> bool:
        """Select the node named by a ``node-<id>`` token, or clear with None."""

        if token is None:
            return self.select_node(None)
        if not token.startswith(SELECTED_PATH_PREFIX):
            logger.debug("Ignoring malformed selection token %r", token)
            return False
        node = self.node_by_id(token[len(SELECTED_PATH_PREFIX):])
        if node is None:
            logger.debug("Ignoring selection token %r for unknown node", token)
            return False
        return self.select_node(node)

    def set_hovered_node(self, node: Optional[CompositionNode]) -> bool:
        if node is not None and not self.contains(node):
            return False
        if node is self._hovered:
            return True
        self._hovered = node
        self.hover_changed.emit(node)
        return True

    # --- Expansion sets ---

    def toggle_tree_node(self, node_id: str) -> bool:
        """Flip outline expansion of ``node_id``."""

        if node_id not in self._first_by_id:
            logger.debug("Ignoring outline toggle for unknown node %r", node_id)
            return False
        self._tree_expanded = self._tree_expanded ^ {node_id}
        self.tree_expansion_changed.emit(self._tree_expanded)
        return True

    def toggle_canvas_path(self, path: str) -> bool:
        """Flip radial-view expansion of the structural ``path``."""

        if resolve_canvas_path(self._root, path) is None:
            logger.debug("Ignoring canvas toggle for unknown path %r", path)
            return False
        self._canvas_paths = self._canvas_paths ^ {path}
        self.canvas_expansion_changed.emit(self._canvas_paths)
        return True

    def toggle_node_explosion(self, node_id: str) -> bool:
        """Flip local 3D explosion of ``node_id``'s children."""

        if node_id not in self._first_by_id:
            logger.debug("Ignoring explosion toggle for unknown node %r", node_id)
            return False
        self._exploded_ids = self._exploded_ids ^ {node_id}
        self.node_explosion_changed.emit(self._exploded_ids)
        return True

    def expand_to_node(self, node_id: str) -> bool:
        """Expand every outline ancestor of ``node_id`` (not the node itself)."""

        if self._root is None:
            return False
        path = find_path_to_id(self._root, node_id)
        if path is None:
            logger.debug("Ignoring expand-to for unknown node %r", node_id)
            return False
        expanded = self._tree_expanded | {ancestor.id for ancestor in path[:-1]}
        if expanded != self._tree_expanded:
            self._tree_expanded = expanded
            self.tree_expansion_changed.emit(self._tree_expanded)
        return True

    def collapse_all_tree(self) -> None:
        self._tree_expanded = frozenset({self._root.id}) if self._root else frozenset()
        self.tree_expansion_changed.emit(self._tree_expanded)

    def expand_all_tree(self) -> None:
        if self._root is None:
            return
        self._tree_expanded = frozenset(all_node_ids(self._root))
        self.tree_expansion_changed.emit(self._tree_expanded)

    # --- Camera focus (one-shot) ---

    def set_focused_node(self, node_id: Optional[str]) -> bool:
        """Raise a one-shot camera focus request, or clear the target with None.

        Each request carries an increasing number so that asking for the same
        node twice still reads as two requests; the target clears itself after
        ``clear_delay_ms``.
        """

        if node_id is None:
            self._focus_timer.stop()
            self._focused_node_id = None
            self.focus_cleared.emit()
            return True
        if node_id not in self._first_by_id:
            logger.debug("Ignoring focus request for unknown node %r", node_id)
            return False
        self._focused_node_id = node_id
        self._focus_request_id += 1
        self.focus_requested.emit(node_id, self._focus_request_id)
        self._focus_timer.start(self.config.clear_delay_ms)
        return True

    def _on_focus_timeout(self) -> None:
        if self._focused_node_id is None:
            return
        self._focused_node_id = None
        self.focus_cleared.emit()

    # --- 3D scene controls ---

    def toggle_exploded(self) -> None:
        self.set_exploded(not self._is_exploded)

    def set_exploded(self, exploded: bool) -> None:
        exploded = bool(exploded)
        if exploded == self._is_exploded:
            return
        self._is_exploded = exploded
        self.exploded_changed.emit(exploded)

    def set_depth_level(self, level: int) -> None:
        clamped = max(1, min(int(level), self.config.max_depth))
        if clamped == self._depth_level:
            return
        self._depth_level = clamped
        self.depth_level_changed.emit(clamped)

    def set_view_mode(self, mode: ViewMode | str) -> None:
        mode = ViewMode(mode)
        if mode is self._view_mode:
            return
        self._view_mode = mode
        self.view_mode_changed.emit(mode)

    # --- Queries for surrounding chrome ---

    def resolve_node_reference(self, name: str) -> Optional[str]:
        """Resolve a node mentioned by display name to its id."""

        if self._root is None:
            return None
        node = find_by_name(self._root, name)
        return node.id if node else None

    def focus_node_by_name(self, name: str) -> bool:
        """Select, reveal and focus the node referenced by ``name``."""

        node_id = self.resolve_node_reference(name)
        if node_id is None:
            logger.debug("No node named %r in the current composition", name)
            return False
        node = self._first_by_id[node_id]
        self.select_node(node)
        self.expand_to_node(node_id)
        self.set_focused_node(node_id)
        return True

    def summary(self) -> dict[str, int]:
        """Counts for status displays."""

        if self._root is None:
            return {
                "nodes": 0,
                "max_depth": 0,
                "tree_expanded": 0,
                "canvas_expanded": len(self._canvas_paths),
                "exploded": 0,
            }
        return {
            "nodes": count_nodes(self._root),
            "max_depth": get_max_depth(self._root),
            "tree_expanded": len(self._tree_expanded),
            "canvas_expanded": len(self._canvas_paths),
            "exploded": len(self._exploded_ids),
        }
