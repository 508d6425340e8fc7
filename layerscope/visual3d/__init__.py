"""Exploded 3D view of a composition.

Modules:
- exploded_layout: Per-node ring offsets relative to the parent
- animation: Damped per-frame approach towards target values
- exploded_scene: Animated scene state with world-position queries
"""

from .animation import AnimationConfig, DampedAnimator, DampedValue, damp
from .exploded_layout import (
    ExplodedConfig,
    ExplodedPlacement,
    build_exploded_layout,
    compose_world_positions,
    exploded_offset,
)
from .exploded_scene import ExplodedScene

__all__ = [
    "AnimationConfig",
    "DampedAnimator",
    "DampedValue",
    "ExplodedConfig",
    "ExplodedPlacement",
    "ExplodedScene",
    "build_exploded_layout",
    "compose_world_positions",
    "damp",
    "exploded_offset",
]
