"""Tidy tree layout (Reingold-Tilford, in Buchheim et al.'s linear-time form).

Assigns every node of a hierarchy a breadth coordinate ``x`` in ``[0, dx]``
and a depth coordinate ``y`` in ``[0, dy]``. With ``size=(2*pi, radius)`` the
result reads directly as polar coordinates for a radial tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Tuple

Separation = Callable[["HierarchyNode", "HierarchyNode"], float]


@dataclass(eq=False)
class HierarchyNode:
    """A laid-out node: arbitrary payload plus tree links and coordinates."""

    data: Any
    depth: int = 0
    parent: Optional["HierarchyNode"] = None
    children: List["HierarchyNode"] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0

    def add_child(self, data: Any) -> "HierarchyNode":
        child = HierarchyNode(data=data, depth=self.depth + 1, parent=self)
        self.children.append(child)
        return child

    def each_before(self) -> Iterator["HierarchyNode"]:
        """Pre-order traversal."""

        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def default_separation(a: HierarchyNode, b: HierarchyNode) -> float:
    return 1.0 if a.parent is b.parent else 2.0


class _Walker:
    """Per-node bookkeeping for the two walks."""

    __slots__ = ("node", "parent", "children", "A", "a", "z", "m", "c", "s", "t", "i")

    def __init__(self, node: Optional[HierarchyNode], index: int) -> None:
        self.node = node
        self.parent: Optional[_Walker] = None
        self.children: List[_Walker] = []
        self.A: Optional[_Walker] = None  # default ancestor
        self.a: _Walker = self  # ancestor
        self.z = 0.0  # prelim
        self.m = 0.0  # mod
        self.c = 0.0  # change
        self.s = 0.0  # shift
        self.t: Optional[_Walker] = None  # thread
        self.i = index

    def each_after(self) -> Iterator["_Walker"]:
        stack: List[Tuple["_Walker", bool]] = [(self, False)]
        while stack:
            walker, expanded = stack.pop()
            if expanded:
                yield walker
                continue
            stack.append((walker, True))
            for child in reversed(walker.children):
                stack.append((child, False))

    def each_before(self) -> Iterator["_Walker"]:
        stack = [self]
        while stack:
            walker = stack.pop()
            yield walker
            stack.extend(reversed(walker.children))


def _next_left(v: _Walker) -> Optional[_Walker]:
    return v.children[0] if v.children else v.t


def _next_right(v: _Walker) -> Optional[_Walker]:
    return v.children[-1] if v.children else v.t


def _move_subtree(wm: _Walker, wp: _Walker, shift: float) -> None:
    change = shift / (wp.i - wm.i)
    wp.c -= change
    wp.s += shift
    wm.c += change
    wp.z += shift
    wp.m += shift


def _execute_shifts(v: _Walker) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.z += shift
        w.m += shift
        change += w.c
        shift += w.s + change


def _next_ancestor(vim: _Walker, v: _Walker, ancestor: _Walker) -> _Walker:
    return vim.a if vim.a.parent is v.parent else ancestor


def _build_walkers(root: HierarchyNode) -> _Walker:
    tree = _Walker(root, 0)
    pending = [tree]
    while pending:
        walker = pending.pop()
        for index, child in enumerate(walker.node.children):
            child_walker = _Walker(child, index)
            child_walker.parent = walker
            walker.children.append(child_walker)
            pending.append(child_walker)
    sentinel = _Walker(None, 0)
    sentinel.children = [tree]
    tree.parent = sentinel
    return tree


def tidy_tree(
    root: HierarchyNode,
    size: Tuple[float, float] = (1.0, 1.0),
    separation: Separation = default_separation,
) -> HierarchyNode:
    """Lay out ``root`` in place and return it."""

    dx, dy = size

    def first_walk(v: _Walker) -> None:
        siblings = v.parent.children
        w = siblings[v.i - 1] if v.i else None
        if v.children:
            _execute_shifts(v)
            midpoint = (v.children[0].z + v.children[-1].z) / 2
            if w is not None:
                v.z = w.z + separation(v.node, w.node)
                v.m = v.z - midpoint
            else:
                v.z = midpoint
        elif w is not None:
            v.z = w.z + separation(v.node, w.node)
        v.parent.A = apportion(v, w, v.parent.A or siblings[0])

    def second_walk(v: _Walker) -> None:
        v.node.x = v.z + v.parent.m
        v.m += v.parent.m

    def apportion(v: _Walker, w: Optional[_Walker], ancestor: _Walker) -> _Walker:
        if w is None:
            return ancestor
        vip = vop = v
        vim: Optional[_Walker] = w
        vom = v.parent.children[0]
        sip = vip.m
        sop = vop.m
        sim = vim.m
        som = vom.m
        while True:
            vim = _next_right(vim)
            vip = _next_left(vip)
            if vim is None or vip is None:
                break
            vom = _next_left(vom)
            vop = _next_right(vop)
            vop.a = v
            shift = vim.z + sim - vip.z - sip + separation(vim.node, vip.node)
            if shift > 0:
                _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
                sip += shift
                sop += shift
            sim += vim.m
            sip += vip.m
            som += vom.m
            sop += vop.m
        if vim is not None and _next_right(vop) is None:
            vop.t = vim
            vop.m += sim - sop
        if vip is not None and _next_left(vom) is None:
            vom.t = vip
            vom.m += sip - som
            ancestor = v
        return ancestor

    tree = _build_walkers(root)
    for walker in tree.each_after():
        first_walk(walker)
    tree.parent.m = -tree.z
    for walker in tree.each_before():
        second_walk(walker)

    left = right = bottom = root
    for node in root.each_before():
        if node.x < left.x:
            left = node
        if node.x > right.x:
            right = node
        if node.depth > bottom.depth:
            bottom = node
    s = 1.0 if left is right else separation(left, right) / 2
    tx = s - left.x
    kx = dx / (right.x + s + tx)
    ky = dy / (bottom.depth or 1)
    for node in root.each_before():
        node.x = (node.x + tx) * kx
        node.y = node.depth * ky
    return root
