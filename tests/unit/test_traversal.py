"""Tests for the depth-first reduce engine."""

import logging

import pytest

from ratatosk import (
    Continue,
    Fail,
    Prune,
    TraversalError,
    TraversalPolicy,
    TraversalState,
    reduce,
    reduce_with_state,
)
from tests.unit.graph_fixtures import CYCLE, DIAMOND, Vertex, recording_evaluator


def test_self_loop_is_evaluated_once():
    schema = {"A": ("A", "B"), "B": ()}
    log = []

    result = reduce(Vertex("A"), schema, 0, recording_evaluator(log))

    assert result == 2
    assert [name for name, _ in log] == ["A", "B"]


def test_single_node_without_children_yields_continue_value():
    def evaluator(node, state, acc):
        return Continue("value", state)

    assert reduce(Vertex("solo"), {}, "seed", evaluator) == "value"


def test_shared_subtree_is_folded_once():
    log = []

    result = reduce(Vertex("root"), DIAMOND, 0, recording_evaluator(log))

    assert [name for name, _ in log] == ["root", "left", "shared", "leaf", "right"]
    assert result == 5


def test_cycle_visits_every_node_once():
    log = []

    result = reduce(Vertex("a"), CYCLE, 0, recording_evaluator(log))

    assert [name for name, _ in log] == ["a", "b", "c", "d"]
    assert result == 4


def test_children_fold_left_to_right_through_subtrees():
    schema = {"r": ("c1", "c2", "c3"), "c1": ("g1", "g2"), "c2": (), "c3": ()}
    log = []

    reduce(Vertex("r"), schema, 0, recording_evaluator(log))

    # c2 receives the accumulator produced by c1 and both grandchildren.
    assert log == [("r", 0), ("c1", 1), ("g1", 2), ("g2", 3), ("c2", 4), ("c3", 5)]


def test_prune_skips_children():
    schema = {"r": ("a", "b"), "a": ("a1", "a2"), "a1": (), "a2": (), "b": ()}
    seen = []

    def evaluator(node, state, acc):
        seen.append(node.name)
        if node.name == "a":
            return Prune(acc + [node.name], state)
        return Continue(acc + [node.name], state)

    result = reduce(Vertex("r"), schema, [], evaluator)

    assert result == ["r", "a", "b"]
    assert seen == ["r", "a", "b"]


def test_pruned_node_is_marked_seen():
    schema = {"r": ("p", "x"), "p": ("child",), "x": ("p",), "child": ()}
    seen = []

    def evaluator(node, state, acc):
        seen.append(node.name)
        if node.name == "p":
            return Prune(acc, state)
        return Continue(acc, state)

    reduce(Vertex("r"), schema, None, evaluator)

    assert seen == ["r", "p", "x"]


def test_fail_aborts_and_reports_reason():
    schema = {"r": ("a", "bad", "c"), "a": (), "bad": ("deep",), "deep": (), "c": ()}
    seen = []

    def evaluator(node, state, acc):
        seen.append(node.name)
        if node.name == "bad":
            return Fail("bad node")
        return Continue(acc + 1, state)

    with pytest.raises(TraversalError, match="bad node") as excinfo:
        reduce(Vertex("r"), schema, 0, evaluator)

    assert seen == ["r", "a", "bad"]
    assert excinfo.value.reason == "bad node"
    assert excinfo.value.node == Vertex("bad")
    assert excinfo.value.path == (Vertex("r"),)


def test_fail_at_root_evaluates_nothing_else():
    calls = []

    def evaluator(node, state, acc):
        calls.append(node)
        return Fail({"code": 7})

    with pytest.raises(TraversalError) as excinfo:
        reduce(Vertex("a"), CYCLE, 0, evaluator)

    assert calls == [Vertex("a")]
    assert excinfo.value.reason == {"code": 7}
    assert excinfo.value.path == ()


def test_evaluator_exceptions_propagate_unchanged():
    def evaluator(node, state, acc):
        raise KeyError("boom")

    with pytest.raises(KeyError, match="boom"):
        reduce(Vertex("a"), CYCLE, 0, evaluator)


def test_path_holds_ancestors_and_is_isolated_between_siblings():
    schema = {"r": ("a", "b"), "a": ("a1",), "a1": (), "b": ()}
    paths = {}

    def evaluator(node, state, acc):
        paths[node.name] = tuple(v.name for v in state.path)
        return Continue(acc, state)

    reduce(Vertex("r"), schema, None, evaluator)

    assert paths == {"r": (), "a": ("r",), "a1": ("r", "a"), "b": ("r",)}


def test_children_see_state_with_node_marked_and_parent_path():
    observed = []

    class Probe(Vertex):
        def children(self, state):
            observed.append((state.is_seen(self), tuple(v.name for v in state.path)))
            return super().children(state)

    schema = {"r": ("x",), "x": ()}

    def evaluator(node, state, acc):
        return Continue(acc, state)

    reduce(Probe("r"), schema, None, evaluator)

    assert observed == [(True, ())]


def test_schema_swap_threads_into_children_and_siblings():
    first = {"r": ("a", "b"), "a": ()}
    second = {"a": ("from_second",), "b": ("b_child",), "from_second": (), "b_child": ()}
    log = []

    def evaluator(node, state, acc):
        log.append(node.name)
        if node.name == "a":
            return Continue(acc, state.with_schema(second))
        return Continue(acc, state)

    result = reduce_with_state(Vertex("r"), first, None, evaluator)

    assert log == ["r", "a", "from_second", "b", "b_child"]
    assert result.state.schema is second


def test_reduce_with_state_reports_seen_and_evaluations():
    result = reduce_with_state(Vertex("root"), DIAMOND, 0, recording_evaluator([]))

    assert result.value == 5
    assert result.evaluations == 5
    assert result.visited == 5
    assert result.state.path == ()
    assert Vertex("shared") in result.state


def test_state_seen_by_evaluator_accumulates_across_siblings():
    schema = {"r": ("a", "b"), "a": (), "b": ()}
    snapshot = {}

    def evaluator(node, state, acc):
        snapshot[node.name] = state.is_seen(Vertex("a"))
        return Continue(acc, state)

    reduce(Vertex("r"), schema, None, evaluator)

    assert snapshot == {"r": False, "a": False, "b": True}


def test_deep_chain_does_not_hit_recursion_limit():
    depth = 3_000
    schema = {str(i): (str(i + 1),) for i in range(depth)}
    schema[str(depth)] = ()

    def evaluator(node, state, acc):
        return Continue(acc + 1, state)

    assert reduce(Vertex("0"), schema, 0, evaluator) == depth + 1


def test_max_depth_policy_fails_below_limit():
    schema = {"a": ("b",), "b": ("c",), "c": ()}
    policy = TraversalPolicy(max_depth=1)

    def evaluator(node, state, acc):
        return Continue(acc + 1, state)

    with pytest.raises(TraversalError, match="maximum depth 1 exceeded") as excinfo:
        reduce(Vertex("a"), schema, 0, evaluator, policy=policy)

    assert excinfo.value.node == Vertex("c")


def test_max_depth_policy_allows_walk_within_limit():
    schema = {"a": ("b",), "b": ()}

    def evaluator(node, state, acc):
        return Continue(acc + 1, state)

    assert reduce(Vertex("a"), schema, 0, evaluator, policy=TraversalPolicy(max_depth=1)) == 2


def test_non_instruction_result_raises_type_error():
    def evaluator(node, state, acc):
        return acc + 1

    with pytest.raises(TypeError, match="must return Continue, Prune or Fail"):
        reduce(Vertex("a"), CYCLE, 0, evaluator)


def test_instruction_with_bad_state_raises_type_error():
    def evaluator(node, state, acc):
        return Continue(acc, {"not": "a state"})

    with pytest.raises(TypeError, match="must be a TraversalState"):
        reduce(Vertex("a"), CYCLE, 0, evaluator)


def test_event_logger_receives_skip_events():
    events = []

    reduce(
        Vertex("root"),
        DIAMOND,
        0,
        recording_evaluator([]),
        event_logger=events.append,
    )

    kinds = [(event.kind, event.node.name) for event in events]
    assert kinds == [
        ("continue", "root"),
        ("continue", "left"),
        ("continue", "shared"),
        ("continue", "leaf"),
        ("continue", "right"),
        ("skip", "shared"),
    ]
    assert [event.depth for event in events] == [0, 1, 2, 3, 1, 2]


def test_event_logger_exception_is_logged_not_raised(caplog):
    def broken_logger(event):
        raise RuntimeError("logger down")

    with caplog.at_level(logging.ERROR, logger="ratatosk.traversal"):
        result = reduce(
            Vertex("a"),
            CYCLE,
            0,
            recording_evaluator([]),
            event_logger=broken_logger,
        )

    assert result == 4
    assert "event_logger raised" in caplog.text


def test_reduce_logs_completion_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="ratatosk.traversal"):
        reduce(Vertex("a"), CYCLE, 0, recording_evaluator([]))

    assert "Reduction finished: 4 evaluations, 4 nodes seen" in caplog.text


def test_fresh_state_per_call():
    evaluator = recording_evaluator([])

    first = reduce(Vertex("a"), CYCLE, 0, evaluator)
    second = reduce(Vertex("a"), CYCLE, 0, evaluator)

    assert first == second == 4


def test_initial_state_passed_to_root_evaluation():
    states = []

    def evaluator(node, state, acc):
        states.append(state)
        return Prune(acc, state)

    reduce(Vertex("a"), CYCLE, 0, evaluator)

    assert states == [TraversalState.new(CYCLE)]
