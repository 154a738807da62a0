"""Node capability for Python abstract syntax trees."""

from __future__ import annotations

import ast
from collections import Counter

from beartype import beartype

from .instructions import fold_evaluator
from .nodes import register_node_type
from .state import TraversalState
from .traversal import reduce


def syntax_children(node: ast.AST, state: TraversalState) -> list[ast.AST]:
    """Return direct child nodes in field order."""

    del state
    return list(ast.iter_child_nodes(node))


def register_syntax_nodes(*, overwrite: bool = False) -> None:
    register_node_type(ast.AST, syntax_children, overwrite=overwrite)


@beartype
def parse_source(source: str, filename: str = "<unknown>") -> ast.Module:
    """Parse ``source`` into a module node ready for traversal."""

    return ast.parse(source, filename=filename)


@beartype
def node_type_counts(tree: ast.AST) -> dict[str, int]:
    """Count syntax node class names reachable from ``tree``."""

    def count(node: ast.AST, counts: Counter) -> Counter:
        updated = counts.copy()
        updated[type(node).__name__] += 1
        return updated

    counts = reduce(tree, None, Counter(), fold_evaluator(count))
    return dict(counts)


register_syntax_nodes()


__all__ = [
    "node_type_counts",
    "parse_source",
    "register_syntax_nodes",
    "syntax_children",
]
