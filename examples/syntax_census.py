"""Census of syntax node types and recursive schema fields.

Run from the repository root:
    python examples/syntax_census.py path/to/module.py --max-depth 64
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from ratatosk import (
    Schema,
    TraversalError,
    TraversalPolicy,
    fold_evaluator,
    log_traversal_event,
    parse_source,
    recursive_fields,
    reduce,
)


def _census(path: pathlib.Path, policy: TraversalPolicy, verbose: bool) -> dict[str, int]:
    tree = parse_source(path.read_text(), filename=str(path))

    def count(node, counts):
        name = type(node).__name__
        return {**counts, name: counts.get(name, 0) + 1}

    return reduce(
        tree,
        None,
        {},
        fold_evaluator(count),
        policy=policy,
        event_logger=log_traversal_event if verbose else None,
    )


def _schema_probe() -> tuple[str, ...]:
    schema = Schema.from_definitions(
        {
            "Query": {"viewer": "User"},
            "User": {"name": "String", "manager": "User", "team": "Team"},
            "Team": {"lead": "User", "title": "String"},
        }
    )
    return recursive_fields(schema, "Query")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("source", type=pathlib.Path)
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--top", type=int, default=10)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    print("config:", vars(args))

    policy = TraversalPolicy(max_depth=args.max_depth)
    try:
        counts = _census(args.source, policy, args.verbose)
    except TraversalError as exc:
        print(f"[census] aborted: {exc}")
        return 1

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    print("[census] node types:", dict(ranked[: args.top]))
    print("[schema] recursive fields:", _schema_probe())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
