"""Keyboard traversal of the outline.

The navigator is a small state machine keyed off the selected node's index
in the flattened visible list. It only ever calls store operations; the list
itself is recomputed from the store's expansion set on the next render.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from PySide6.QtCore import Qt

from layerscope.outline.flatten import FlattenedNode, flatten_tree, index_of
from layerscope.state.composition_store import CompositionStore


class NavigationKey(Enum):
    """Keys the outline reacts to."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"


_QT_KEYS = {
    int(Qt.Key_Up): NavigationKey.UP,
    int(Qt.Key_Down): NavigationKey.DOWN,
    int(Qt.Key_Left): NavigationKey.LEFT,
    int(Qt.Key_Right): NavigationKey.RIGHT,
    int(Qt.Key_Return): NavigationKey.ENTER,
    int(Qt.Key_Enter): NavigationKey.ENTER,
}


def navigation_key_from_qt(key: int) -> Optional[NavigationKey]:
    """Map a Qt key code to a navigation key, or None for unrelated keys."""

    return _QT_KEYS.get(int(key))


class KeyboardNavigator:
    """Translate directional keys into store operations."""

    def __init__(self, store: CompositionStore) -> None:
        self.store = store

    def visible_nodes(self) -> List[FlattenedNode]:
        return flatten_tree(self.store.composition, self.store.tree_expanded_ids)

    def handle_key(self, key: NavigationKey, *, text_input_focused: bool = False) -> bool:
        """Apply ``key`` to the current selection.

        Returns True when the key was consumed. Nothing happens while a text
        input has focus, when nothing is selected, or when the selection is
        not visible in the outline.
        """

        if text_input_focused:
            return False
        selected = self.store.selected_node
        if selected is None:
            return False
        flat = self.visible_nodes()
        if not flat:
            return False
        index = index_of(flat, selected.id)
        if index == -1:
            return False

        if key is NavigationKey.DOWN:
            self._select_and_reveal(flat[min(index + 1, len(flat) - 1)])
        elif key is NavigationKey.UP:
            self._select_and_reveal(flat[max(index - 1, 0)])
        elif key is NavigationKey.RIGHT:
            self._step_in(flat, index)
        elif key is NavigationKey.LEFT:
            self._step_out(flat, index)
        elif key is NavigationKey.ENTER:
            entry = flat[index]
            if entry.has_children:
                self.store.toggle_tree_node(entry.node.id)
        else:
            return False
        return True

    def _select_and_reveal(self, entry: FlattenedNode) -> None:
        self.store.select_node(entry.node)
        self.store.expand_to_node(entry.node.id)

    def _step_in(self, flat: List[FlattenedNode], index: int) -> None:
        entry = flat[index]
        if not entry.has_children:
            return
        if not entry.is_expanded:
            self.store.toggle_tree_node(entry.node.id)
            return
        following = index + 1
        if following < len(flat) and flat[following].depth == entry.depth + 1:
            self.store.select_node(flat[following].node)

    def _step_out(self, flat: List[FlattenedNode], index: int) -> None:
        entry = flat[index]
        if entry.has_children and entry.is_expanded:
            self.store.toggle_tree_node(entry.node.id)
            return
        for candidate in range(index - 1, -1, -1):
            if flat[candidate].depth == entry.depth - 1:
                self.store.select_node(flat[candidate].node)
                return
