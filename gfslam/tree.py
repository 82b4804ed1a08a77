"""Trajectory tree shared by the particles and its weight bookkeeping."""

from __future__ import annotations

import copy
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from .pose import OrientedPoint

_TOLERANCE = 0.0001


class TreeWeightError(ValueError):
    """Raised when weights do not propagate consistently through the tree."""


@dataclass(eq=False)
class TNode:
    """One step of a particle trajectory; children count references to it."""

    pose: OrientedPoint = field(default_factory=OrientedPoint)
    weight: float = 0.0
    parent: TNode | None = field(default=None, repr=False)
    childs: int = 0
    reading: Any = field(default=None, repr=False)
    gweight: float = 0.0
    acc_weight: float = 0.0
    visit_counter: int = 0
    flag: bool = False

    def __post_init__(self) -> None:
        if self.parent is not None:
            self.parent.childs += 1

    def detach(self) -> None:
        """Release this node; ancestors left without children are released too."""
        if self.childs:
            raise ValueError("cannot detach a node that still has children")
        node = self
        while node is not None:
            parent = node.parent
            node.parent = None
            if parent is None:
                return
            parent.childs -= 1
            if parent.childs > 0:
                return
            node = parent

    def path(self) -> Iterator[TNode]:
        """Yield this node and then its ancestors up to the root."""
        node: TNode | None = self
        while node is not None:
            yield node
            node = node.parent


def reset_tree(leaves: Sequence[TNode]) -> None:
    """Clear the accumulated weights on every path from the given leaves."""
    for leaf in leaves:
        for node in leaf.path():
            node.acc_weight = 0.0
            node.visit_counter = 0


def propagate_weight(node: TNode | None, weight: float) -> float:
    """Add ``weight`` to ``node``; once all its children reported, pass it up.

    Returns the weight that reached past the root, or 0 if propagation stopped.
    """
    while node is not None:
        node.visit_counter += 1
        node.acc_weight += weight
        if node.visit_counter > node.childs:
            raise TreeWeightError("node visited more often than it has children")
        if node.visit_counter != node.childs:
            return 0.0
        weight = node.acc_weight
        node = node.parent
    return weight


def propagate_weights(leaves: Sequence[TNode], weights: Sequence[float]) -> float:
    """Push normalized leaf weights up the tree; returns the root's weight."""
    leaf_total = 0.0
    root_weight = 0.0
    for leaf, weight in zip(leaves, weights, strict=True):
        leaf_total += weight
        leaf.acc_weight = weight
        root_weight += propagate_weight(leaf.parent, weight)
    if abs(leaf_total - 1.0) > _TOLERANCE or abs(root_weight - 1.0) > _TOLERANCE:
        raise TreeWeightError(
            f"root weight {root_weight} and leaf weight sum {leaf_total} must both be 1"
        )
    return root_weight


def update_tree_weights(leaves: Sequence[TNode], weights: Sequence[float]) -> float:
    """Normalize the weights, reset the tree and propagate; returns the root weight."""
    total = sum(weights)
    if total <= 0:
        raise TreeWeightError("weights must have a positive sum")
    normalized = [w / total for w in weights]
    reset_tree(leaves)
    return propagate_weights(leaves, normalized)


def copy_trajectories(leaves: Sequence[TNode]) -> list[TNode]:
    """Deep-copy the tree reachable from the leaves, preserving shared ancestors.

    Each leaf is copied once per occurrence; every inner node is copied once.
    """
    copies: dict[int, TNode] = {}

    def clone(node: TNode) -> TNode:
        duplicate = copy.copy(node)
        duplicate.flag = False
        return duplicate

    result = []
    for leaf in leaves:
        new_leaf = clone(leaf)
        result.append(new_leaf)
        child = new_leaf
        original = leaf.parent
        while original is not None:
            known = copies.get(id(original))
            if known is not None:
                child.parent = known
                break
            duplicate = clone(original)
            copies[id(original)] = duplicate
            child.parent = duplicate
            child = duplicate
            original = original.parent
    return result