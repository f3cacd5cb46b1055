"""Tests for the dispatch loop."""
from unittest.mock import patch

import pytest

from knotwork.node_sdk import BaseNode, NodeOperationError
from knotwork.workflow_runtime import (
    DefaultNodeExecutor,
    ExecutionStatus,
    NodeType,
    WorkflowExecutor,
)


class ExplodingNode(BaseNode):
    type = "input"

    def execute(self, context):
        raise RuntimeError("boom")


class RefusingNode(BaseNode):
    type = "input"

    def execute(self, context):
        raise NodeOperationError("refused", node_id=context.node_id)


def _handles(run, node_id):
    return [r.active_handle for r in run.trace if r.node_id == node_id]


class TestBranching:
    """Test active-handle branch selection."""

    def test_condition_enqueues_exactly_one_branch(self, run_flow):
        run = run_flow(
            [
                ("in", "input", {"value": "42", "type": "number"}),
                ("check", "condition", {"condition": "greaterThan", "targetValue": "10"}),
                ("yes", "caseSuccess"),
                ("no", "caseFail"),
            ],
            [("in", "check"), ("check", "yes", "true"), ("check", "no", "false")],
        )

        check = run.results["check"]
        assert check.active_handle == "true"
        assert check.output["result"] is True
        assert "yes" in run.results
        assert "no" not in run.results
        assert not run.has_errors

    def test_false_branch(self, run_flow):
        run = run_flow(
            [
                ("in", "input", {"value": "3", "type": "number"}),
                ("check", "condition", {"condition": "greaterThan", "targetValue": "10"}),
                ("yes", "caseSuccess"),
                ("no", "caseFail"),
            ],
            [("in", "check"), ("check", "yes", "true"), ("check", "no", "false")],
        )

        assert "yes" not in run.results
        assert run.results["no"].is_error
        assert run.has_errors
        assert [r.node_id for r in run.error_results()] == ["no"]

    def test_no_active_handle_fans_out(self, run_flow):
        run = run_flow(
            [("in", "input", {"value": "x"}), ("a", "output"), ("b", "output")],
            [("in", "a", "whatever"), ("in", "b")],
        )

        assert set(run.results) == {"in", "a", "b"}

    def test_branching_continues_from_error_results(self, run_flow):
        run = run_flow(
            [("fail", "caseFail"), ("after", "output")],
            [("fail", "after")],
        )

        assert run.results["fail"].is_error
        assert run.results["after"].status == ExecutionStatus.SUCCESS


class TestOrdering:
    """Test LIFO scheduling."""

    def test_stack_order_pops_highest_root_first(self, run_flow):
        run = run_flow([("a", "input"), ("b", "input"), ("c", "input")])

        assert [r.node_id for r in run.trace] == ["c", "b", "a"]

    def test_node_can_run_before_all_predecessors(self, run_flow):
        run = run_flow(
            [("a", "input", {"value": "1"}), ("b", "input", {"value": "2"}), ("dbg", "debug")],
            [("a", "dbg"), ("b", "dbg")],
        )

        first, last = [r for r in run.trace if r.node_id == "dbg"]
        # b is popped first, so the first visit sees no result for a
        assert first.output["connected_results"] == {"a": None, "b": {"data": "2"}}
        assert first.output["data"] is None
        # last write wins
        assert run.results["dbg"] is last
        assert last.output["data"] == "1"

    def test_dangling_edge_target_is_ignored(self, run_flow):
        run = run_flow([("a", "input")], [("a", "ghost")])

        assert list(run.results) == ["a"]


class TestLoops:
    """Test loop re-queue and termination."""

    @pytest.mark.parametrize("items", [[], [7], [1, 2, 3], list(range(25))])
    def test_n_body_results_then_one_done(self, run_flow, items):
        import json

        run = run_flow(
            [
                ("src", "input", {"value": json.dumps(items), "type": "json"}),
                ("loop", "loop"),
                ("collect", "counter", {"variable": "seen", "operation": "append"}),
                ("end", "caseSuccess"),
            ],
            [("src", "loop"), ("loop", "collect", "body"), ("loop", "end", "done")],
        )

        handles = _handles(run, "loop")
        assert handles == ["body"] * len(items) + ["done"]
        indices = [r.output["index"] for r in run.trace if r.node_id == "loop"]
        assert indices == list(range(len(items) + 1))
        assert run.variables.get("seen", []) == items
        assert run.results["end"].output == {"status": "completed"}

    def test_visit_cap_drops_silently(self, make_flow, fake_http):
        executor = WorkflowExecutor(http_client=fake_http, max_visits=5)
        flow = make_flow([("s", "start"), ("a", "output")], [("s", "a"), ("a", "s")])

        run = executor.execute(flow)

        assert len([r for r in run.trace if r.node_id == "s"]) == 5
        assert len([r for r in run.trace if r.node_id == "a"]) == 5
        assert run.skipped_visits == {"s": 1}
        assert not run.has_errors

    def test_visit_cap_defaults_from_settings(self, monkeypatch, fake_http):
        monkeypatch.setenv("KNOTWORK_MAX_NODE_VISITS", "3")

        executor = WorkflowExecutor(http_client=fake_http)

        assert executor._max_visits == 3


class TestFailures:
    """Test that handler failures never abort a run."""

    def test_exception_becomes_error_result(self, make_flow, fake_http):
        node_executor = DefaultNodeExecutor()
        node_executor.register_node(NodeType.INPUT, ExplodingNode)
        executor = WorkflowExecutor(node_executor=node_executor, http_client=fake_http)

        run = executor.execute(make_flow([("a", "input"), ("b", "output")], [("a", "b")]))

        assert run.results["a"].status == ExecutionStatus.ERROR
        assert run.results["a"].output is None
        assert run.results["a"].error == "boom"
        assert run.results["b"].status == ExecutionStatus.SUCCESS

    def test_node_operation_error_message(self, make_flow, fake_http):
        node_executor = DefaultNodeExecutor()
        node_executor.register_node(NodeType.INPUT, RefusingNode)
        executor = WorkflowExecutor(node_executor=node_executor, http_client=fake_http)

        run = executor.execute(make_flow([("a", "input")]))

        assert run.results["a"].error == "refused"

    def test_unknown_type_is_skipped(self, run_flow):
        run = run_flow([("w", "fancyWidget"), ("next", "output")], [("w", "next")])

        assert run.results["w"].status == ExecutionStatus.SKIPPED
        assert run.results["w"].output == {"message": "Unknown node type"}
        assert "next" in run.results

    def test_failure_is_logged(self, make_flow, fake_http):
        node_executor = DefaultNodeExecutor()
        node_executor.register_node(NodeType.INPUT, ExplodingNode)
        executor = WorkflowExecutor(node_executor=node_executor, http_client=fake_http)

        with patch("knotwork.workflow_runtime.executor.logger") as mock_logger:
            executor.execute(make_flow([("a", "input")]))

        assert mock_logger.warning.called


class TestRunIsolation:
    """Test determinism and per-run state."""

    def test_repeated_runs_are_identical(self, executor, make_flow):
        flow = make_flow(
            [
                ("src", "input", {"value": '[{"n": 1}, {"n": 2}]', "type": "json"}),
                ("loop", "loop"),
                ("count", "counter", {"variable": "total", "operation": "increment", "amount": "2"}),
                ("map", "mapper", {"mapping": {"x": "y"}}),
            ],
            [("src", "loop"), ("loop", "count", "body"), ("loop", "map", "done")],
        )

        first = executor.execute(flow, initial_variables={"total": 1})
        second = executor.execute(flow, initial_variables={"total": 1})

        assert first.results == second.results
        assert first.variables == second.variables == {"total": 5}

    def test_initial_variables_not_mutated(self, run_flow):
        seed = {"list": ["a"]}

        run = run_flow(
            [("in", "input", {"value": "b"}), ("push", "counter", {"variable": "list", "operation": "append"})],
            [("in", "push")],
            variables=seed,
        )

        assert run.variables["list"] == ["a", "b"]
        assert seed == {"list": ["a"]}

    def test_accepts_flow_dict(self, executor, sample_flow_dict):
        run = executor.execute(sample_flow_dict, run_id="run-1")

        assert run.run_id == "run-1"
        assert run.results["check"].active_handle == "true"

    def test_to_dict(self, run_flow):
        data = run_flow([("a", "input", {"value": "v"})]).to_dict()

        assert data["results"]["a"]["output"] == {"data": "v"}
        assert data["variables"] == {}
