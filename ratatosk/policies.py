"""Traversal policy helpers for Ratatosk."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TraversalPolicy:
    """Top-level traversal policy contract.

    Attributes:
        max_depth: Deepest path length the engine may descend to before
            failing the run. ``None`` leaves depth unbounded.
        check_instructions: Validate every evaluator result against the
            instruction union before acting on it.
    """

    max_depth: Optional[int] = None
    check_instructions: bool = True
    description: str = "Unbounded depth-first reduction."

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")


_GLOBAL_TRAVERSAL_POLICY: Optional[TraversalPolicy] = None


def set_default_traversal_policy(policy: Optional[TraversalPolicy]) -> None:
    """Set the module-level fallback policy used when ``policy=None``."""

    global _GLOBAL_TRAVERSAL_POLICY
    _GLOBAL_TRAVERSAL_POLICY = policy


def resolve_traversal_policy(policy: Optional[TraversalPolicy]) -> TraversalPolicy:
    if policy is not None:
        return policy
    if _GLOBAL_TRAVERSAL_POLICY is not None:
        return _GLOBAL_TRAVERSAL_POLICY
    return TraversalPolicy()


__all__ = [
    "TraversalPolicy",
    "resolve_traversal_policy",
    "set_default_traversal_policy",
]
