"""Node capability dispatch and the adapter registry."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from .protocols import TraversalNode
from .state import TraversalState

ChildrenFn = Callable[[object, TraversalState], Sequence[object]]

_NODE_ADAPTERS: dict[type, ChildrenFn] = {}


def register_node_type(
    node_type: type, children_fn: ChildrenFn, *, overwrite: bool = False
) -> None:
    """Register ``children_fn`` as the node capability for ``node_type``.

    Subclasses of ``node_type`` resolve to the same adapter unless they are
    registered themselves.
    """

    if not isinstance(node_type, type):
        raise ValueError("node_type must be a class")
    if (node_type in _NODE_ADAPTERS) and (not overwrite):
        raise ValueError(
            f"node type '{node_type.__qualname__}' is already registered; "
            "pass overwrite=True to replace it"
        )
    _NODE_ADAPTERS[node_type] = children_fn


def unregister_node_type(node_type: type) -> None:
    """Drop the adapter registered for exactly ``node_type``."""

    if node_type not in _NODE_ADAPTERS:
        raise ValueError(f"node type '{node_type.__qualname__}' is not registered")
    del _NODE_ADAPTERS[node_type]


def registered_node_types() -> tuple[type, ...]:
    """Return the node types with an explicit adapter, sorted by name."""

    return tuple(sorted(_NODE_ADAPTERS, key=lambda cls: cls.__qualname__))


def resolve_children_fn(node: object) -> Optional[ChildrenFn]:
    """Return the registered adapter for ``node``'s class or nearest base."""

    for cls in type(node).__mro__:
        children_fn = _NODE_ADAPTERS.get(cls)
        if children_fn is not None:
            return children_fn
    return None


def node_children(node: object, state: TraversalState) -> Sequence[object]:
    """Return ``node``'s children for the traversal described by ``state``.

    A registered adapter wins over the node's own ``children`` method so
    that third-party types can be overridden without subclassing.
    """

    children_fn = resolve_children_fn(node)
    if children_fn is not None:
        return children_fn(node, state)
    if isinstance(node, TraversalNode) and callable(node.children):
        return node.children(state)
    raise TypeError(
        f"node of type '{type(node).__name__}' does not implement children(state) "
        "and no adapter is registered for it"
    )


def is_traversable(node: object) -> bool:
    """Whether ``node`` has a usable node capability."""

    if resolve_children_fn(node) is not None:
        return True
    return isinstance(node, TraversalNode) and callable(node.children)


__all__ = [
    "ChildrenFn",
    "is_traversable",
    "node_children",
    "register_node_type",
    "registered_node_types",
    "resolve_children_fn",
    "unregister_node_type",
]
