"""Composition tree data model.

A composition is a rooted tree describing what something is made of, refined
level by level: product -> component -> material -> chemical -> element.
Nodes are immutable once built; every piece of view state (expansion,
selection, focus) lives in :mod:`layerscope.state.composition_store`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class CompositionType(Enum):
    """Abstraction level of a node, from coarsest to finest."""

    PRODUCT = "product"
    COMPONENT = "component"
    MATERIAL = "material"
    CHEMICAL = "chemical"
    ELEMENT = "element"


class ConfidenceLevel(Enum):
    """How well-established a node's estimate is."""

    VERIFIED = "verified"
    ESTIMATED = "estimated"
    SPECULATIVE = "speculative"


class ViewMode(Enum):
    """Presentation mode of the 3D scene."""

    EXPLODED = "exploded"
    COMPACT = "compact"
    SLICE = "slice"


class CompositionFormatError(ValueError):
    """Raised when external data cannot be turned into a composition tree."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


_EMPTY_METADATA: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class CompositionNode:
    """A single node of a composition tree.

    Equality is identity: two nodes are the same only if they are the same
    object, which is what "reference-equal to a node in the current tree"
    means for selection and hover.
    """

    id: str
    name: str
    type: CompositionType
    percentage: float
    confidence: ConfidenceLevel
    children: Tuple["CompositionNode", ...] = ()
    symbol: Optional[str] = None
    atomic_number: Optional[int] = None
    cas_number: Optional[str] = None
    description: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_METADATA)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def __repr__(self) -> str:
        return f"CompositionNode(id={self.id!r}, name={self.name!r}, type={self.type.value})"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "root") -> "CompositionNode":
        """Build a node (and its subtree) from a JSON-style mapping.

        Keys follow the wire format of the research service (``atomicNumber``,
        ``casNumber``). Raises :class:`CompositionFormatError` naming the
        offending field path.
        """

        if not isinstance(data, Mapping):
            raise CompositionFormatError(path, "expected an object")

        node_id = _required_str(data, "id", path)
        name = _required_str(data, "name", path)
        node_type = _enum_value(CompositionType, data.get("type"), f"{path}.type")
        confidence = _enum_value(ConfidenceLevel, data.get("confidence"), f"{path}.confidence")

        percentage = data.get("percentage")
        if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
            raise CompositionFormatError(f"{path}.percentage", "expected a number")

        raw_children = data.get("children") or []
        if not isinstance(raw_children, list):
            raise CompositionFormatError(f"{path}.children", "expected a list")
        children = tuple(
            cls.from_dict(child, f"{path}.children[{index}]")
            for index, child in enumerate(raw_children)
        )

        atomic_number = data.get("atomicNumber")
        if atomic_number is not None and (isinstance(atomic_number, bool) or not isinstance(atomic_number, int)):
            raise CompositionFormatError(f"{path}.atomicNumber", "expected an integer")

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise CompositionFormatError(f"{path}.metadata", "expected an object")

        return cls(
            id=node_id,
            name=name,
            type=node_type,
            percentage=float(percentage),
            confidence=confidence,
            children=children,
            symbol=_optional_str(data, "symbol", path),
            atomic_number=atomic_number,
            cas_number=_optional_str(data, "casNumber", path),
            description=_optional_str(data, "description", path),
            metadata=MappingProxyType(dict(metadata)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the wire format accepted by :meth:`from_dict`."""

        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "percentage": self.percentage,
            "confidence": self.confidence.value,
        }
        if self.symbol is not None:
            data["symbol"] = self.symbol
        if self.atomic_number is not None:
            data["atomicNumber"] = self.atomic_number
        if self.cas_number is not None:
            data["casNumber"] = self.cas_number
        if self.description is not None:
            data["description"] = self.description
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def _required_str(data: Mapping[str, Any], key: str, path: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise CompositionFormatError(f"{path}.{key}", "expected a non-empty string")
    return value


def _optional_str(data: Mapping[str, Any], key: str, path: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise CompositionFormatError(f"{path}.{key}", "expected a string")
    return value


def _enum_value(enum_cls: type[Enum], value: Any, path: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise CompositionFormatError(path, f"expected one of {allowed}, got {value!r}") from None


def load_composition(path: str | Path) -> CompositionNode:
    """Load a composition tree from a JSON file.

    Accepts either a bare node object or a composition record carrying the
    tree under a ``root`` key.
    """

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise CompositionFormatError(str(source), f"invalid JSON ({exc.msg})") from exc
    except UnicodeDecodeError as exc:
        raise CompositionFormatError(str(source), f"not UTF-8 text ({exc.reason} at byte {exc.start})") from exc

    if isinstance(payload, Mapping) and "root" in payload:
        payload = payload["root"]
    return CompositionNode.from_dict(payload)
