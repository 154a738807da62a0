"""Immutable traversal bookkeeping threaded through a reduction."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Hashable, Iterable, Optional

from pyrsistent import PList, PSet, plist, pset

from .protocols import IdentifiedNode


def node_identity(node: object) -> Hashable:
    """Return the seen-set key for ``node``.

    Nodes implementing :class:`IdentifiedNode` supply ``traversal_key``;
    anything else is keyed by its own hash/equality.
    """

    if isinstance(node, IdentifiedNode):
        return node.traversal_key
    try:
        hash(node)
    except TypeError:
        raise TypeError(
            f"node of type '{type(node).__name__}' is unhashable; "
            "define a traversal_key to give it a seen-set identity"
        ) from None
    return node


@dataclass(frozen=True)
class TraversalState:
    """Schema, visited identities and ancestor chain for one reduction run.

    ``seen`` and ``ancestors`` are persistent structures: recording a node or
    descending one level shares everything with the previous state, so a run
    over ``n`` nodes stays close to linear.

    Attributes:
        schema: Opaque context handed to node capabilities.
        seen: Identity keys of every node evaluated so far in this run.
        ancestors: Ancestors of the node currently being evaluated, nearest
            first. Use :attr:`path` for the root-first tuple.
    """

    schema: object = None
    seen: PSet = field(default_factory=pset)
    ancestors: PList = field(default_factory=plist)

    @classmethod
    def new(cls, schema: object) -> "TraversalState":
        """Return a fresh state with nothing seen and an empty path."""

        return cls(schema=schema)

    def is_seen(self, node: object) -> bool:
        return node_identity(node) in self.seen

    def mark_seen(self, node: object) -> "TraversalState":
        """Return a state with ``node`` recorded as visited."""

        key = node_identity(node)
        if key in self.seen:
            return self
        return replace(self, seen=self.seen.add(key))

    def push_path(self, node: object) -> "TraversalState":
        """Return a state whose path ends with ``node``."""

        return replace(self, ancestors=self.ancestors.cons(node))

    def with_path(self, path: Iterable[object]) -> "TraversalState":
        return replace(self, ancestors=plist(path, reverse=True))

    def with_ancestors(self, ancestors: PList) -> "TraversalState":
        return replace(self, ancestors=ancestors)

    def with_schema(self, schema: object) -> "TraversalState":
        return replace(self, schema=schema)

    @property
    def path(self) -> tuple:
        """Ancestors from the root down to, but excluding, the current node."""

        return tuple(self.ancestors.reverse())

    @property
    def depth(self) -> int:
        """Number of ancestors above the current node."""

        return len(self.ancestors)

    @property
    def parent(self) -> Optional[object]:
        """Closest ancestor, or ``None`` at the root."""

        return self.ancestors.first if self.ancestors else None

    def __contains__(self, node: object) -> bool:
        return self.is_seen(node)


__all__ = ["TraversalState", "node_identity"]
