"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import copy
import os
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402

from layerscope.model.composition import CompositionNode  # noqa: E402
from layerscope.state.composition_store import CompositionStore, StoreConfig  # noqa: E402

_qt_app = QApplication.instance() or QApplication([])


@pytest.fixture(scope="session")
def qt_app():
    """Provide a shared QApplication instance for widget tests."""

    return _qt_app


def _node(node_id: str, name: str, node_type: str, percentage: float, children=(), **extra: Any) -> dict:
    data = {
        "id": node_id,
        "name": name,
        "type": node_type,
        "percentage": percentage,
        "confidence": extra.pop("confidence", "estimated"),
        **extra,
    }
    if children:
        data["children"] = list(children)
    return data


SAMPLE_TREE = _node(
    "r",
    "Root widget",
    "product",
    100,
    [
        _node(
            "a",
            "Alpha",
            "component",
            60,
            [
                _node("a1", "Alpha one", "material", 40, confidence="verified"),
                _node(
                    "a2",
                    "Alpha two",
                    "material",
                    20,
                    [
                        _node(
                            "a2x",
                            "Iron oxide",
                            "chemical",
                            20,
                            [_node("fe", "Iron", "element", 14, symbol="Fe", atomicNumber=26)],
                            casNumber="1309-37-1",
                        )
                    ],
                ),
            ],
        ),
        _node("b", "Beta", "component", 30, [_node("b1", "Beta one", "material", 30)]),
        _node("c", "Gamma", "component", 10, confidence="speculative"),
    ],
)

SAMPLE_IDS = ["r", "a", "a1", "a2", "a2x", "fe", "b", "b1", "c"]


@pytest.fixture
def sample_ids() -> list[str]:
    """Node ids of the sample composition in pre-order."""

    return list(SAMPLE_IDS)


@pytest.fixture
def sample_data() -> dict:
    """Wire-format dict of the sample composition (fresh copy per test)."""

    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def sample_root(sample_data: dict) -> CompositionNode:
    """Nine-node, four-level composition::

        r ─┬─ a ─┬─ a1
           │     └─ a2 ── a2x ── fe
           ├─ b ── b1
           └─ c
    """

    return CompositionNode.from_dict(sample_data)


@pytest.fixture
def store(qt_app, sample_root: CompositionNode) -> CompositionStore:
    composition_store = CompositionStore(StoreConfig(clear_delay_ms=10))
    composition_store.set_composition(sample_root)
    return composition_store
