"""Evaluator instructions and helpers for building evaluators.

An evaluator is called once per newly reached node as
``evaluator(node, state, accumulator)`` and answers with one of:

* :class:`Continue` - the node contributes ``value`` and its children are
  folded next, starting from ``state``.
* :class:`Prune` - the node contributes ``value``; its children are skipped.
* :class:`Fail` - the whole traversal aborts with ``reason``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .state import TraversalState


@dataclass(frozen=True)
class Continue:
    """Keep ``value`` and descend into the node's children."""

    value: Any
    state: TraversalState


@dataclass(frozen=True)
class Prune:
    """Keep ``value`` without visiting the node's children."""

    value: Any
    state: TraversalState


@dataclass(frozen=True)
class Fail:
    """Abort the traversal, explained by ``reason``."""

    reason: Any


Instruction = Union[Continue, Prune, Fail]
Evaluator = Callable[[Any, TraversalState, Any], Instruction]


def fold_evaluator(
    step: Callable[[Any, Any], Any],
    *,
    prune: Optional[Callable[[Any, TraversalState], bool]] = None,
) -> Evaluator:
    """Lift ``step(node, accumulator) -> accumulator`` into an evaluator.

    Every node is folded with ``step``. When ``prune(node, state)`` is true
    the node still contributes but its children are not visited.
    """

    def evaluator(node: Any, state: TraversalState, accumulator: Any) -> Instruction:
        value = step(node, accumulator)
        if prune is not None and prune(node, state):
            return Prune(value, state)
        return Continue(value, state)

    return evaluator


def guarded_evaluator(
    evaluator: Evaluator,
    check: Callable[[Any, TraversalState], Optional[str]],
) -> Evaluator:
    """Wrap ``evaluator`` so nodes for which ``check`` returns a message fail."""

    def guarded(node: Any, state: TraversalState, accumulator: Any) -> Instruction:
        reason = check(node, state)
        if reason is not None:
            return Fail(reason)
        return evaluator(node, state, accumulator)

    return guarded


__all__ = [
    "Continue",
    "Evaluator",
    "Fail",
    "Instruction",
    "Prune",
    "fold_evaluator",
    "guarded_evaluator",
]
