"""Command registry behind the viewer's single-key shortcuts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from PySide6.QtCore import Qt

logger = logging.getLogger(__name__)

_KEY_LABELS = {
    "escape": "Esc",
}

_QT_NAMED_KEYS = {
    int(Qt.Key_Escape): "escape",
}


def shortcut_from_qt(key: int) -> str | None:
    """Normalised shortcut name for a Qt key code (letters lower-cased)."""

    key = int(key)
    if key in _QT_NAMED_KEYS:
        return _QT_NAMED_KEYS[key]
    if int(Qt.Key_A) <= key <= int(Qt.Key_Z):
        return chr(key).lower()
    return None


def format_shortcut_key(key: str) -> str:
    return _KEY_LABELS.get(key.lower(), key.upper())


@dataclass
class CommandDescriptor:
    """A named viewer action, optionally bound to a key."""

    id: str
    description: str
    category: str
    callback: Callable[..., Any]
    shortcut: str | None = None

    @property
    def label(self) -> str:
        if self.shortcut:
            return f"{self.description} ({format_shortcut_key(self.shortcut)})"
        return self.description


class CommandRegistry:
    def __init__(self) -> None:
        self._commands: list[CommandDescriptor] = []

    def register_command(self, command: CommandDescriptor) -> None:
        self._commands = [cmd for cmd in self._commands if cmd.id != command.id]
        self._commands.append(command)

    def get(self, command_id: str) -> CommandDescriptor | None:
        for cmd in self._commands:
            if cmd.id == command_id:
                return cmd
        return None

    def for_shortcut(self, key: str) -> CommandDescriptor | None:
        key = key.lower()
        for cmd in self._commands:
            if cmd.shortcut and cmd.shortcut.lower() == key:
                return cmd
        return None

    def execute(self, descriptor: CommandDescriptor) -> Any:
        logger.debug("Executing command %s", descriptor.id)
        return descriptor.callback()

    def handle_shortcut(self, key: str | None, *, text_input_focused: bool = False) -> bool:
        """Run the command bound to ``key``. Returns True when one ran.

        Keys typed into a text input never trigger shortcuts.
        """

        if text_input_focused or not key:
            return False
        command = self.for_shortcut(key)
        if command is None:
            return False
        result = self.execute(command)
        return result is not False


def register_viewer_commands(registry: CommandRegistry, store) -> None:
    """Bind the viewer shortcuts to ``store`` operations."""

    def _focus_selected() -> bool:
        selected = store.selected_node
        if selected is None:
            return False
        return store.set_focused_node(selected.id)

    registry.register_command(
        CommandDescriptor("selection.clear", "Deselect", "Selection", lambda: store.select_node(None), "escape")
    )
    registry.register_command(
        CommandDescriptor("view.toggle_explode", "Toggle exploded view", "View", store.toggle_exploded, "e")
    )
    registry.register_command(
        CommandDescriptor("view.focus_selected", "Focus selected node", "View", _focus_selected, "f")
    )
    registry.register_command(
        CommandDescriptor("view.reset_focus", "Reset view", "View", lambda: store.set_focused_node(None), "h")
    )
    registry.register_command(
        CommandDescriptor("outline.expand_all", "Expand all", "Outline", store.expand_all_tree)
    )
    registry.register_command(
        CommandDescriptor("outline.collapse_all", "Collapse all", "Outline", store.collapse_all_tree)
    )
