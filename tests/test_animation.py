from __future__ import annotations

import time

import pytest
from PySide6.QtGui import QVector3D

from layerscope.visual3d.animation import AnimationConfig, DampedAnimator, DampedValue, damp


def _pump_until(qt_app, predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        qt_app.processEvents()
        if predicate():
            return True
        time.sleep(0.001)
    return predicate()


def test_damp_moves_a_fraction_of_the_gap() -> None:
    assert damp(0.0, 10.0, 0.1) == pytest.approx(1.0)
    assert damp(10.0, 0.0, 0.5) == pytest.approx(5.0)
    moved = damp(QVector3D(0, 0, 0), QVector3D(10, -10, 0), 0.1)
    assert (moved.x(), moved.y(), moved.z()) == pytest.approx((1.0, -1.0, 0.0))


def test_damped_value_settles_and_snaps() -> None:
    value = DampedValue(10.0, 0.0)
    value.step(0.1)
    assert value.current == pytest.approx(9.0)
    assert not value.is_settled(0.001)
    value.snap()
    assert value.current == 0.0
    assert value.is_settled(0.0)


def test_damped_value_copies_vectors() -> None:
    target = QVector3D(1, 2, 3)
    value = DampedValue(QVector3D(0, 0, 0), target)
    target.setX(100)
    assert value.target.x() == 1


def test_new_key_starts_at_initial_value(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    animator.set_target("scale", 2.0, initial=1.0)
    assert animator.value("scale") == 1.0
    assert animator.target("scale") == 2.0
    assert animator.is_running
    animator.stop()


def test_new_key_without_initial_starts_settled(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    animator.set_target("scale", 2.0)
    assert animator.value("scale") == 2.0
    assert animator.is_settled
    assert not animator.is_running


def test_retarget_keeps_current_value(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig(damping=0.5))
    animator.set_target("x", 10.0, initial=0.0)
    animator.step()
    animator.step()
    assert animator.value("x") == pytest.approx(7.5)

    animator.set_target("x", -10.0, initial=0.0)
    assert animator.value("x") == pytest.approx(7.5)
    animator.step()
    assert animator.value("x") == pytest.approx(-1.25)
    animator.stop()


def test_step_converges_and_reports_settling(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    animator.set_target("x", 0.0, initial=10.0)
    animator.stop()

    steps = 0
    while animator.step():
        steps += 1
        assert steps < 200
    assert 80 <= steps <= 95
    assert animator.value("x") == 0.0
    assert animator.is_settled


def test_frame_signal_fires_per_step(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    frames = []
    animator.frame_advanced.connect(lambda: frames.append(1))
    animator.set_target("x", 1.0, initial=0.0)
    animator.stop()
    animator.step()
    animator.step()
    assert len(frames) == 2


def test_snap_all_jumps_to_targets(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    animator.set_target("x", 5.0, initial=0.0)
    animator.set_target("v", QVector3D(1, 1, 1), initial=QVector3D(0, 0, 0))
    animator.snap_all()
    assert animator.value("x") == 5.0
    assert animator.value("v") == QVector3D(1, 1, 1)
    assert not animator.is_running


def test_remove_and_clear(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig())
    animator.set_target("x", 1.0, initial=0.0)
    animator.set_target("y", 1.0, initial=0.0)
    animator.remove("x")
    animator.remove("missing")
    assert "x" not in animator
    assert list(animator.keys()) == ["y"]
    assert animator.value("x") is None

    animator.clear()
    assert len(animator) == 0
    assert not animator.is_running


def test_timer_drives_values_to_rest(qt_app) -> None:
    animator = DampedAnimator(AnimationConfig(fps=1000, damping=0.5))
    settled = []
    animator.settled.connect(lambda: settled.append(True))
    animator.set_target("x", 1.0, initial=0.0)

    assert _pump_until(qt_app, lambda: bool(settled))
    assert animator.value("x") == 1.0
    assert not animator.is_running


def test_animation_config_from_settings() -> None:
    config = AnimationConfig.from_settings({"fps": 0, "damping": 3, "hover_scale": "1.3"})
    assert config.fps == 1
    assert config.damping == 1.0
    assert config.hover_scale == pytest.approx(1.3)
    assert config.frame_interval_ms == 1000
    assert AnimationConfig().frame_interval_ms == 16
    assert AnimationConfig.from_settings({"damping": -1}).damping == 0.0
