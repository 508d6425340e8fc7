"""Shared view state for the outline, radial and exploded views."""

from .composition_store import (
    ROOT_PATH,
    CompositionStore,
    StoreConfig,
    canvas_child_path,
    resolve_canvas_path,
)

__all__ = [
    "ROOT_PATH",
    "CompositionStore",
    "StoreConfig",
    "canvas_child_path",
    "resolve_canvas_path",
]
