"""Node capabilities for array-encoded trees and graphs.

Two layouts are supported:

* Binary tree topologies exposing ``parent``, ``left_child`` and
  ``right_child`` buffers. Child buffers may cover only the internal nodes
  (the leading ``len(left_child)`` indices); every later index is a leaf.
  Negative child entries mean "no child".
* Compressed adjacency (CSR) graphs with ``offsets`` and ``targets``, where
  the successors of node ``i`` are ``targets[offsets[i]:offsets[i + 1]]``.
  Graphs may contain cycles and shared successors.

Both are materialized on the host once so that per-node child lookups are
plain integer indexing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import Sequence
from jaxtyping import Array, Int, jaxtyped

from .dtypes import INDEX_DTYPE, to_host_index
from .protocols import AdjacencyProtocol, TreeStructureProtocol
from .state import TraversalState


@dataclass(frozen=True, eq=False)
class ArrayTopology:
    """Host copy of a parent/left/right binary tree topology."""

    parent: np.ndarray
    left_child: np.ndarray
    right_child: np.ndarray

    @property
    def num_nodes(self) -> int:
        return int(self.parent.shape[0])

    @property
    def num_internal_nodes(self) -> int:
        return int(self.left_child.shape[0])

    def node(self, index: int) -> "TopologyNode":
        if not 0 <= index < self.num_nodes:
            raise IndexError(f"node index {index} out of range [0, {self.num_nodes})")
        return TopologyNode(self, int(index))

    def root(self) -> "TopologyNode":
        """Return the first node without a parent."""

        roots = np.flatnonzero(self.parent < 0)
        if roots.shape[0] == 0:
            raise ValueError("topology has no root (every node has a parent)")
        return self.node(int(roots[0]))

    def child_indices(self, index: int) -> tuple[int, ...]:
        if index >= self.num_internal_nodes:
            return ()
        candidates = (int(self.left_child[index]), int(self.right_child[index]))
        return tuple(child for child in candidates if child >= 0)


@dataclass(frozen=True, eq=False)
class TopologyNode:
    """Node ``index`` of an :class:`ArrayTopology`."""

    topology: ArrayTopology
    index: int

    @property
    def traversal_key(self) -> Hashable:
        return (id(self.topology), self.index)

    def children(self, state: TraversalState) -> Sequence["TopologyNode"]:
        del state
        return tuple(
            TopologyNode(self.topology, child)
            for child in self.topology.child_indices(self.index)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopologyNode):
            return NotImplemented
        return self.traversal_key == other.traversal_key

    def __hash__(self) -> int:
        return hash(self.traversal_key)

    def __repr__(self) -> str:
        return f"TopologyNode({self.index})"


@jaxtyped(typechecker=beartype)
def build_array_topology(
    parent: Int[Array, "num_nodes"],
    left_child: Int[Array, "num_internal"],
    right_child: Int[Array, "num_internal"],
) -> ArrayTopology:
    """Validate tree buffers and copy them to the host."""

    num_nodes = parent.shape[0]
    if left_child.shape[0] > num_nodes:
        raise ValueError("child buffers must not be longer than parent")
    host_parent = to_host_index(parent)
    host_left = to_host_index(left_child)
    host_right = to_host_index(right_child)
    if num_nodes and (host_parent.min() < -1 or host_parent.max() >= num_nodes):
        raise ValueError(f"parent entries must lie in [-1, {num_nodes})")
    for name, children in (("left_child", host_left), ("right_child", host_right)):
        if children.shape[0] and children.max() >= num_nodes:
            raise ValueError(f"{name} entries must be negative or < {num_nodes}")
    return ArrayTopology(
        parent=host_parent,
        left_child=host_left,
        right_child=host_right,
    )


def topology_from_tree(tree: object) -> ArrayTopology:
    """Adapt any object satisfying ``TreeStructureProtocol``."""

    topology = getattr(tree, "topology", None)
    source: TreeStructureProtocol = tree if topology is None else topology
    missing = [
        name
        for name in ("parent", "left_child", "right_child")
        if not hasattr(source, name)
    ]
    if missing:
        raise ValueError(f"topology is missing required fields: {', '.join(missing)}")
    return build_array_topology(
        jnp.asarray(source.parent, dtype=INDEX_DTYPE),
        jnp.asarray(source.left_child, dtype=INDEX_DTYPE),
        jnp.asarray(source.right_child, dtype=INDEX_DTYPE),
    )


def topology_root(tree: object) -> TopologyNode:
    """Return the traversal root of a tree-like object."""

    return topology_from_tree(tree).root()


@dataclass(frozen=True, eq=False)
class AdjacencyGraph:
    """Host copy of a CSR adjacency structure."""

    offsets: np.ndarray
    targets: np.ndarray

    @property
    def num_nodes(self) -> int:
        return int(self.offsets.shape[0]) - 1

    @property
    def num_edges(self) -> int:
        return int(self.targets.shape[0])

    def node(self, index: int) -> "GraphNode":
        if not 0 <= index < self.num_nodes:
            raise IndexError(f"node index {index} out of range [0, {self.num_nodes})")
        return GraphNode(self, int(index))

    def successors(self, index: int) -> tuple[int, ...]:
        start, stop = int(self.offsets[index]), int(self.offsets[index + 1])
        return tuple(int(target) for target in self.targets[start:stop])


@dataclass(frozen=True, eq=False)
class GraphNode:
    """Node ``index`` of an :class:`AdjacencyGraph`."""

    graph: AdjacencyGraph
    index: int

    @property
    def traversal_key(self) -> Hashable:
        return (id(self.graph), self.index)

    def children(self, state: TraversalState) -> Sequence["GraphNode"]:
        del state
        return tuple(
            GraphNode(self.graph, target) for target in self.graph.successors(self.index)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.traversal_key == other.traversal_key

    def __hash__(self) -> int:
        return hash(self.traversal_key)

    def __repr__(self) -> str:
        return f"GraphNode({self.index})"


@jaxtyped(typechecker=beartype)
def build_adjacency_graph(
    offsets: Int[Array, "num_nodes_plus_one"],
    targets: Int[Array, "num_edges"],
) -> AdjacencyGraph:
    """Validate CSR buffers and copy them to the host."""

    if offsets.shape[0] < 1:
        raise ValueError("offsets must contain at least one entry")
    host_offsets = to_host_index(offsets)
    host_targets = to_host_index(targets)
    if host_offsets[0] != 0 or host_offsets[-1] != host_targets.shape[0]:
        raise ValueError("offsets must start at 0 and end at len(targets)")
    if np.any(np.diff(host_offsets) < 0):
        raise ValueError("offsets must be non-decreasing")
    num_nodes = host_offsets.shape[0] - 1
    if host_targets.shape[0] and (
        host_targets.min() < 0 or host_targets.max() >= num_nodes
    ):
        raise ValueError(f"targets must lie in [0, {num_nodes})")
    return AdjacencyGraph(offsets=host_offsets, targets=host_targets)


def graph_from_csr(csr: AdjacencyProtocol) -> AdjacencyGraph:
    """Adapt any object exposing CSR ``offsets`` and ``targets`` buffers."""

    return build_adjacency_graph(
        jnp.asarray(csr.offsets, dtype=INDEX_DTYPE),
        jnp.asarray(csr.targets, dtype=INDEX_DTYPE),
    )


@beartype
def graph_from_edges(
    num_nodes: int,
    edges: Sequence[tuple[int, int]],
) -> AdjacencyGraph:
    """Build a CSR graph from ``(source, target)`` pairs.

    Successors keep the order in which their edges were listed.
    """

    if num_nodes < 1:
        raise ValueError("num_nodes must be >= 1")
    if edges:
        pairs = jnp.asarray(edges, dtype=INDEX_DTYPE).reshape(-1, 2)
    else:
        pairs = jnp.zeros((0, 2), dtype=INDEX_DTYPE)
    sources = pairs[:, 0]
    if pairs.shape[0] and (int(jnp.min(pairs)) < 0 or int(jnp.max(pairs)) >= num_nodes):
        raise ValueError(f"edge endpoints must lie in [0, {num_nodes})")
    order = jnp.argsort(sources)
    counts = jnp.bincount(sources, length=num_nodes)
    offsets = jnp.concatenate(
        [
            jnp.zeros((1,), dtype=INDEX_DTYPE),
            jnp.cumsum(counts, dtype=INDEX_DTYPE),
        ],
        axis=0,
    )
    return build_adjacency_graph(offsets, pairs[order, 1])


__all__ = [
    "AdjacencyGraph",
    "ArrayTopology",
    "GraphNode",
    "TopologyNode",
    "build_adjacency_graph",
    "build_array_topology",
    "graph_from_csr",
    "graph_from_edges",
    "topology_from_tree",
    "topology_root",
]
