"""Ratatosk: cycle-safe reduction over heterogeneous trees and graphs."""

from jax import config as _jax_config

# Array topologies index nodes with int64.
_jax_config.update("jax_enable_x64", True)

from .dtypes import INDEX_DTYPE, as_index
from .instructions import (
    Continue,
    Evaluator,
    Fail,
    Instruction,
    Prune,
    fold_evaluator,
    guarded_evaluator,
)
from .nodes import (
    is_traversable,
    node_children,
    register_node_type,
    registered_node_types,
    unregister_node_type,
)
from .policies import TraversalPolicy, set_default_traversal_policy
from .protocols import (
    AdjacencyProtocol,
    IdentifiedNode,
    TraversalNode,
    TreeStructureProtocol,
)
from .schema import (
    FieldDefinition,
    ObjectType,
    ScalarType,
    Schema,
    SchemaError,
    reachable_types,
    recursive_fields,
)
from .state import TraversalState, node_identity
from .syntax import node_type_counts, parse_source
from .topology import (
    AdjacencyGraph,
    ArrayTopology,
    GraphNode,
    TopologyNode,
    build_adjacency_graph,
    build_array_topology,
    graph_from_csr,
    graph_from_edges,
    topology_from_tree,
    topology_root,
)
from .traversal import TraversalError, reduce, reduce_with_state
from .types import ReductionResult, TraversalEvent, log_traversal_event

__all__ = [
    "INDEX_DTYPE",
    "AdjacencyGraph",
    "AdjacencyProtocol",
    "ArrayTopology",
    "Continue",
    "Evaluator",
    "Fail",
    "FieldDefinition",
    "GraphNode",
    "IdentifiedNode",
    "Instruction",
    "ObjectType",
    "Prune",
    "ReductionResult",
    "ScalarType",
    "Schema",
    "SchemaError",
    "TopologyNode",
    "TraversalError",
    "TraversalEvent",
    "TraversalNode",
    "TraversalPolicy",
    "TraversalState",
    "TreeStructureProtocol",
    "as_index",
    "build_adjacency_graph",
    "build_array_topology",
    "fold_evaluator",
    "graph_from_csr",
    "graph_from_edges",
    "guarded_evaluator",
    "is_traversable",
    "log_traversal_event",
    "node_children",
    "node_identity",
    "node_type_counts",
    "parse_source",
    "reachable_types",
    "recursive_fields",
    "reduce",
    "reduce_with_state",
    "register_node_type",
    "registered_node_types",
    "set_default_traversal_policy",
    "topology_from_tree",
    "topology_root",
    "unregister_node_type",
]
