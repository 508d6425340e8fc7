"""Virtualized outline of a composition.

Modules:
- flatten: Visible-row flattening, windowing and auto-scroll offsets
- navigator: Arrow-key traversal over the flattened rows
- outline_view: Scroll area painting only the rows in the current window
"""

from .flatten import (
    FlattenedNode,
    OutlineConfig,
    VirtualWindow,
    compute_window,
    flatten_tree,
    index_of,
    scroll_to_reveal,
)
from .navigator import KeyboardNavigator, NavigationKey, navigation_key_from_qt

__all__ = [
    "FlattenedNode",
    "KeyboardNavigator",
    "NavigationKey",
    "OutlineConfig",
    "VirtualWindow",
    "compute_window",
    "flatten_tree",
    "index_of",
    "navigation_key_from_qt",
    "scroll_to_reveal",
]
