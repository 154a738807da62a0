"""Cycle-safe depth-first reduction over heterogeneous nodes.

The engine folds an accumulator over every node reachable from a root,
visiting each node identity at most once. Children are obtained through the
node capability (see :mod:`ratatosk.nodes`) and folded strictly in the order
they are returned, so the accumulator produced by a child's whole subtree is
the input to its next sibling.

The walk keeps an explicit stack of child iterators rather than recursing,
which keeps deep chains clear of the interpreter recursion limit while
preserving pre-order semantics.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, NamedTuple, Optional

from beartype import beartype
from beartype.door import is_bearable
from beartype.typing import Callable
from pyrsistent import PList

from .instructions import Continue, Evaluator, Fail, Instruction, Prune
from .nodes import node_children
from .policies import TraversalPolicy, resolve_traversal_policy
from .state import TraversalState
from .types import EventKind, ReductionResult, TraversalEvent

logger = logging.getLogger(__name__)

EventLogger = Callable[[TraversalEvent], None]

_EXHAUSTED = object()


class TraversalError(RuntimeError):
    """Raised when an evaluator fails or a policy limit is hit.

    Attributes:
        reason: Value carried by the failing instruction.
        node: Node being evaluated when the traversal stopped.
        path: Ancestors of ``node`` from the root.
    """

    def __init__(self, reason: Any, *, node: object = None, path: tuple = ()):
        super().__init__(f"traversal failed at depth {len(path)}: {reason}")
        self.reason = reason
        self.node = node
        self.path = path


class _Frame(NamedTuple):
    """Children still to fold for one node, and the ancestors to restore after."""

    ancestors: PList
    children: Iterator[object]


def _check_instruction(instruction: object, node: object) -> None:
    if not is_bearable(instruction, Instruction):
        raise TypeError(
            "evaluator must return Continue, Prune or Fail; "
            f"got {type(instruction).__name__} for node {node!r}"
        )
    if isinstance(instruction, (Continue, Prune)) and not is_bearable(
        instruction.state, TraversalState
    ):
        raise TypeError(
            f"{type(instruction).__name__}.state must be a TraversalState; "
            f"got {type(instruction.state).__name__}"
        )


def _walk(
    root: object,
    state: TraversalState,
    value: Any,
    evaluator: Evaluator,
    policy: TraversalPolicy,
    event_logger: Optional[EventLogger],
) -> tuple[Any, TraversalState, int]:
    evaluations = 0

    def _emit(kind: EventKind, node: object, depth: int) -> None:
        if event_logger is None:
            return
        event = TraversalEvent(
            kind=kind, depth=depth, node=node, evaluations=evaluations
        )
        try:
            event_logger(event)
        except Exception:
            logger.exception("event_logger raised", exc_info=True)

    frames: list[_Frame] = []
    pending: object = root
    while True:
        if pending is not _EXHAUSTED:
            node, pending = pending, _EXHAUSTED
            # One frame per ancestor of the pending node.
            depth = len(frames)
            if state.is_seen(node):
                _emit("skip", node, depth)
            else:
                if policy.max_depth is not None and depth > policy.max_depth:
                    _emit("fail", node, depth)
                    raise TraversalError(
                        f"maximum depth {policy.max_depth} exceeded",
                        node=node,
                        path=state.path,
                    )
                instruction = evaluator(node, state, value)
                evaluations += 1
                if policy.check_instructions:
                    _check_instruction(instruction, node)

                # The path is owned by the engine; evaluators only thread
                # schema and seen-set changes through their returned state.
                ancestors = state.ancestors
                if isinstance(instruction, Continue):
                    value = instruction.value
                    marked = instruction.state.mark_seen(node).with_ancestors(
                        ancestors
                    )
                    children = node_children(node, marked)
                    _emit("continue", node, depth)
                    frames.append(_Frame(ancestors=ancestors, children=iter(children)))
                    state = marked.push_path(node)
                elif isinstance(instruction, Prune):
                    value = instruction.value
                    state = instruction.state.mark_seen(node).with_ancestors(ancestors)
                    _emit("prune", node, depth)
                elif isinstance(instruction, Fail):
                    _emit("fail", node, depth)
                    raise TraversalError(
                        instruction.reason, node=node, path=state.path
                    )
                else:
                    raise TypeError(
                        f"unsupported instruction {type(instruction).__name__}"
                    )

        if not frames:
            break
        child = next(frames[-1].children, _EXHAUSTED)
        if child is _EXHAUSTED:
            state = state.with_ancestors(frames.pop().ancestors)
        else:
            pending = child

    return value, state, evaluations


@beartype
def reduce_with_state(
    root: object,
    schema: object,
    initial_value: object,
    evaluator: Callable[..., object],
    *,
    policy: Optional[TraversalPolicy] = None,
    event_logger: Optional[Callable[..., object]] = None,
) -> ReductionResult:
    """Reduce from ``root`` and return the accumulator with the final state."""

    resolved = resolve_traversal_policy(policy)
    state = TraversalState.new(schema)
    try:
        value, state, evaluations = _walk(
            root, state, initial_value, evaluator, resolved, event_logger
        )
    except TraversalError as exc:
        logger.debug("Reduction aborted at depth %d: %s", len(exc.path), exc.reason)
        raise
    logger.debug(
        "Reduction finished: %d evaluations, %d nodes seen",
        evaluations,
        len(state.seen),
    )
    return ReductionResult(value=value, state=state, evaluations=evaluations)


@beartype
def reduce(
    root: object,
    schema: object,
    initial_value: object,
    evaluator: Callable[..., object],
    *,
    policy: Optional[TraversalPolicy] = None,
    event_logger: Optional[Callable[..., object]] = None,
) -> object:
    """Traverse from ``root``, reducing nodes with ``evaluator``.

    Args:
        root: First node to visit; must have a node capability.
        schema: Opaque context stored on the traversal state and handed to
            every children lookup.
        initial_value: Accumulator seed.
        evaluator: ``evaluator(node, state, accumulator)`` returning a
            :class:`Continue`, :class:`Prune` or :class:`Fail` instruction.
        policy: Engine limits; falls back to the module default policy.
        event_logger: Optional callback receiving a :class:`TraversalEvent`
            for every node the engine handles, including skipped repeats.

    Returns:
        The accumulator after every reachable node has been folded once.

    Raises:
        TraversalError: The evaluator returned :class:`Fail` or the policy
            depth limit was exceeded. No partial accumulator is returned.
    """

    return reduce_with_state(
        root,
        schema,
        initial_value,
        evaluator,
        policy=policy,
        event_logger=event_logger,
    ).value


__all__ = [
    "EventLogger",
    "TraversalError",
    "reduce",
    "reduce_with_state",
]
