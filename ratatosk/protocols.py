"""Structural protocols for traversal node capabilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Hashable, Protocol, Sequence, runtime_checkable

from jaxtyping import Array

if TYPE_CHECKING:
    from .state import TraversalState


@runtime_checkable
class TraversalNode(Protocol):
    """Node that reports its own children for a traversal.

    ``children`` must return the same ordered sequence for the same
    ``(node, state)``; the engine neither detects nor guards against
    non-deterministic or unbounded child lists.
    """

    def children(self, state: "TraversalState") -> Sequence[object]: ...


@runtime_checkable
class IdentifiedNode(Protocol):
    """Node exposing an explicit identity key for the seen-set."""

    @property
    def traversal_key(self) -> Hashable: ...


class TreeStructureProtocol(Protocol):
    """Minimal array structure needed for parent/child traversal."""

    parent: Array
    left_child: Array
    right_child: Array


class AdjacencyProtocol(Protocol):
    """Compressed adjacency rows: ``targets[offsets[i]:offsets[i + 1]]``."""

    offsets: Array
    targets: Array


__all__ = [
    "AdjacencyProtocol",
    "IdentifiedNode",
    "TraversalNode",
    "TreeStructureProtocol",
]
