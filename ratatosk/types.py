"""Shared result and event contracts for Ratatosk consumers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, NamedTuple, Optional

from .state import TraversalState

EventKind = Literal["continue", "prune", "skip", "fail"]


class TraversalEvent(NamedTuple):
    """Metadata describing how the engine handled a single node."""

    kind: EventKind
    depth: int
    node: object
    evaluations: int


def log_traversal_event(
    event: TraversalEvent,
    *,
    level: int = logging.DEBUG,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a traversal event using the provided (or module) logger."""

    target_logger = logger or logging.getLogger(__name__)
    target_logger.log(
        level,
        "Traversal %s (depth %d, evaluation %d): %r",
        event.kind,
        event.depth,
        event.evaluations,
        event.node,
    )


@dataclass(frozen=True)
class ReductionResult:
    """Final accumulator together with the state the walk ended in."""

    value: Any
    state: TraversalState
    evaluations: int

    @property
    def visited(self) -> int:
        """Number of distinct node identities marked seen."""

        return len(self.state.seen)


__all__ = [
    "EventKind",
    "ReductionResult",
    "TraversalEvent",
    "log_traversal_event",
]
