"""Damped-approach animation for the exploded scene.

Each animated value moves a fixed fraction of its remaining distance to the
target on every frame. Changing a target mid-flight simply retargets from
wherever the value currently is, so there is nothing to cancel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QVector3D

from layerscope.core.config import settings_value

logger = logging.getLogger(__name__)

Animatable = Union[float, QVector3D]


@dataclass(frozen=True)
class AnimationConfig:
    """Frame rate, smoothing and emphasis scales."""

    fps: int = 60
    damping: float = 0.1
    settle_epsilon: float = 0.001
    hover_scale: float = 1.15
    selected_scale: float = 1.1

    @classmethod
    def from_settings(cls, settings: dict) -> "AnimationConfig":
        defaults = cls()
        return cls(
            fps=max(1, settings_value(settings, "fps", defaults.fps, int)),
            damping=min(1.0, max(0.0, settings_value(settings, "damping", defaults.damping, float))),
            settle_epsilon=max(0.0, settings_value(settings, "settle_epsilon", defaults.settle_epsilon, float)),
            hover_scale=settings_value(settings, "hover_scale", defaults.hover_scale, float),
            selected_scale=settings_value(settings, "selected_scale", defaults.selected_scale, float),
        )

    @property
    def frame_interval_ms(self) -> int:
        return max(1, 1000 // self.fps)


def damp(current: Animatable, target: Animatable, factor: float) -> Animatable:
    """Move ``current`` a ``factor`` share of the way towards ``target``."""

    return current + (target - current) * factor


def distance(current: Animatable, target: Animatable) -> float:
    if isinstance(current, QVector3D):
        return (target - current).length()
    return abs(target - current)


def _copy(value: Animatable) -> Animatable:
    return QVector3D(value) if isinstance(value, QVector3D) else float(value)


class DampedValue:
    """A current value chasing a target."""

    __slots__ = ("current", "target")

    def __init__(self, current: Animatable, target: Animatable) -> None:
        self.current = _copy(current)
        self.target = _copy(target)

    def step(self, factor: float) -> None:
        self.current = damp(self.current, self.target, factor)

    def snap(self) -> None:
        self.current = _copy(self.target)

    def is_settled(self, epsilon: float) -> bool:
        return distance(self.current, self.target) <= epsilon


class DampedAnimator(QObject):
    """Per-frame ticker for a set of damped values.

    The timer runs only while some value is still moving and stops itself once
    everything has settled.

    Signals:
        frame_advanced: Emitted after every tick
        settled: Emitted when the last moving value reaches its target
    """

    frame_advanced = Signal()
    settled = Signal()

    def __init__(self, config: AnimationConfig | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.config = config or AnimationConfig()
        self._values: Dict[Hashable, DampedValue] = {}

        self._timer = QTimer(self)
        self._timer.setInterval(self.config.frame_interval_ms)
        self._timer.timeout.connect(self._on_tick)

    # --- Values ---

    def set_target(self, key: Hashable, target: Animatable, initial: Optional[Animatable] = None) -> None:
        """Point ``key`` at ``target``.

        A new key starts at ``initial`` (or directly at the target); an
        existing key keeps its current value and retargets from there.
        """

        value = self._values.get(key)
        if value is None:
            self._values[key] = DampedValue(target if initial is None else initial, target)
        else:
            value.target = _copy(target)
        self._ensure_running()

    def value(self, key: Hashable) -> Optional[Animatable]:
        entry = self._values.get(key)
        return _copy(entry.current) if entry else None

    def target(self, key: Hashable) -> Optional[Animatable]:
        entry = self._values.get(key)
        return _copy(entry.target) if entry else None

    def remove(self, key: Hashable) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()
        self._timer.stop()

    def keys(self) -> Iterator[Hashable]:
        return iter(list(self._values))

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    # --- Stepping ---

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def is_settled(self) -> bool:
        epsilon = self.config.settle_epsilon
        return all(value.is_settled(epsilon) for value in self._values.values())

    def step(self) -> bool:
        """Advance every value by one frame. Returns True while anything still moves."""

        factor = self.config.damping
        epsilon = self.config.settle_epsilon
        moving = False
        for value in self._values.values():
            if value.is_settled(epsilon):
                value.snap()
                continue
            value.step(factor)
            moving = True
        self.frame_advanced.emit()
        return moving

    def snap_all(self) -> None:
        """Jump every value straight to its target."""

        for value in self._values.values():
            value.snap()
        self._timer.stop()
        self.frame_advanced.emit()

    def start(self) -> None:
        if not self._timer.isActive():
            self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _ensure_running(self) -> None:
        if not self.is_settled:
            self.start()

    def _on_tick(self) -> None:
        if not self.step():
            self._timer.stop()
            logger.debug("Animation settled with %d values", len(self._values))
            self.settled.emit()
