"""
Workflow Executor - Stack-driven dispatch loop.

Runs a flow on one thread of control: pop a ready node id, execute its
handler, store the result, then push the ids selected by the result's
active handle. Runs are fully independent; every call to execute() owns
a fresh result map, Variable Store and ready stack.

Ordering is LIFO, not topological. A node may run before all of its
predecessors have results, and the last write per node id wins.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Type

from knotwork.config import get_settings
from knotwork.observability import with_run_context

from .graph import GraphIndex
from .models import ExecutionResult, ExecutionStatus, Flow, FlowNode, NodeType, parse_flow
from .variables import VariableStore

if TYPE_CHECKING:
    from knotwork.node_sdk.basenode import BaseNode, NodeExecutionContext
    from knotwork.node_sdk.http import HttpClient


logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """
    Result of one run.

    `results` keeps the last result per node id, `trace` every execution in
    order (loop iterations included).
    """
    run_id: str
    results: Dict[str, ExecutionResult] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    trace: List[ExecutionResult] = field(default_factory=list)
    skipped_visits: Dict[str, int] = field(default_factory=dict)
    duration_ms: float = 0

    @property
    def has_errors(self) -> bool:
        return any(result.is_error for result in self.results.values())

    def error_results(self) -> List[ExecutionResult]:
        return [result for result in self.results.values() if result.is_error]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "results": {node_id: r.to_dict() for node_id, r in self.results.items()},
            "variables": self.variables,
            "skipped_visits": self.skipped_visits,
            "duration_ms": self.duration_ms,
        }


class DefaultNodeExecutor:
    """
    Node executor backed by a NodeType -> node class registry.

    Unregistered types resolve to the unknown-node fallback, which yields a
    skipped result instead of failing the run.
    """

    def __init__(self, node_registry: Optional[Mapping[NodeType, Type["BaseNode"]]] = None):
        # Import here to avoid circular imports
        from knotwork.nodepacks.core.manifest import NODE_CLASSES
        from knotwork.nodepacks.core.nodes import UnknownNode

        self._registry: Dict[NodeType, Type["BaseNode"]] = dict(
            NODE_CLASSES if node_registry is None else node_registry
        )
        self._fallback = UnknownNode

    def register_node(self, node_type: NodeType, node_class: Type["BaseNode"]) -> None:
        """Register (or replace) the class handling a node type."""
        self._registry[node_type] = node_class

    def get_node_class(self, node: FlowNode) -> Type["BaseNode"]:
        return self._registry.get(NodeType.from_tag(node.type), self._fallback)

    def execute_node(self, node: FlowNode, context: "NodeExecutionContext") -> ExecutionResult:
        """Execute one node with its registered handler."""
        handler = self.get_node_class(node)()
        return handler.execute(context)


class WorkflowExecutor:
    """
    Dispatch loop.

    Usage:
        executor = WorkflowExecutor()
        run = executor.execute(flow, initial_variables={"token": "abc"})
        if run.has_errors:
            ...

    Handlers never abort a run. Any exception raised by a handler becomes
    an error-status result and branching continues from it.
    """

    def __init__(
        self,
        node_executor: Optional[DefaultNodeExecutor] = None,
        http_client: Optional["HttpClient"] = None,
        max_visits: Optional[int] = None,
        entry_types: Iterable[str] = (NodeType.START.value,),
    ):
        """
        Initialize executor.

        Args:
            node_executor: Resolves and runs node handlers
            http_client: Adapter used by httpRequest nodes
            max_visits: Visits per node id before it is dropped
            entry_types: Types placed in the initial ready set regardless of
                incoming edges
        """
        settings = get_settings()

        if http_client is None:
            from knotwork.node_sdk.http import HttpClient
            http_client = HttpClient(timeout=settings.http_timeout_s)

        self._node_executor = node_executor or DefaultNodeExecutor()
        self._http_client = http_client
        self._max_visits = max_visits if max_visits is not None else settings.max_node_visits
        self._entry_types = tuple(entry_types)

    @property
    def node_executor(self) -> DefaultNodeExecutor:
        return self._node_executor

    def execute(
        self,
        flow: Flow | Dict[str, Any],
        initial_variables: Optional[Mapping[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        """
        Execute a flow once.

        Args:
            flow: Flow or flow JSON dict
            initial_variables: Seed for the run's Variable Store (not mutated)
            run_id: Optional id used in logs

        Returns:
            RunResult with the last result per node and final variables
        """
        from knotwork.node_sdk.basenode import NodeExecutionContext

        if isinstance(flow, dict):
            flow = parse_flow(flow)

        run_id = run_id or uuid.uuid4().hex[:12]
        start_time = time.perf_counter()

        graph = GraphIndex(flow)
        variables = VariableStore(initial_variables)
        results: Dict[str, ExecutionResult] = {}
        trace: List[ExecutionResult] = []
        visits: Dict[str, int] = defaultdict(int)
        skipped: Dict[str, int] = {}

        stack = graph.initial_ready_ids(self._entry_types)

        logger.info(
            f"Run started: {len(flow.nodes)} nodes, {len(flow.edges)} edges",
            extra=with_run_context(run_id=run_id),
        )

        while stack:
            node_id = stack.pop()
            node = graph.get_node(node_id)
            if node is None:
                continue

            visits[node_id] += 1
            if visits[node_id] > self._max_visits:
                if node_id not in skipped:
                    logger.warning(
                        f"Node {node_id} exceeded {self._max_visits} visits, dropping",
                        extra=with_run_context(run_id=run_id, node_id=node_id, node_type=node.type),
                    )
                skipped[node_id] = skipped.get(node_id, 0) + 1
                continue

            context = NodeExecutionContext(
                node=node,
                results=MappingProxyType(dict(results)),
                reverse_adjacency=graph.reverse,
                variables=variables,
                http_client=self._http_client,
                run_id=run_id,
            )
            result = self._execute_node(node, context, run_id)

            results[node_id] = result
            trace.append(result)

            if node.type == NodeType.LOOP.value and result.active_handle == "body":
                stack.append(node_id)

            for edge, target_id in graph.successors(node_id):
                if result.active_handle is None or edge.source_handle == result.active_handle:
                    stack.append(target_id)

        duration = (time.perf_counter() - start_time) * 1000
        run = RunResult(
            run_id=run_id,
            results=results,
            variables=variables.snapshot(),
            trace=trace,
            skipped_visits=skipped,
            duration_ms=duration,
        )

        logger.info(
            f"Run finished in {duration:.1f}ms: {len(trace)} executions, "
            f"{len(run.error_results())} errors",
            extra=with_run_context(run_id=run_id),
        )
        return run

    def _execute_node(
        self,
        node: FlowNode,
        context: "NodeExecutionContext",
        run_id: str,
    ) -> ExecutionResult:
        """Execute a single node, converting any exception into an error result."""
        log_extra = with_run_context(run_id=run_id, node_id=node.id, node_type=node.type)
        logger.debug(f"Executing node: {node.id} ({node.type})", extra=log_extra)

        start_time = time.perf_counter()
        try:
            result = self._node_executor.execute_node(node, context)
        except Exception as e:
            logger.warning(f"Node {node.id} raised: {e}", exc_info=True, extra=log_extra)
            result = ExecutionResult(
                node_id=node.id,
                status=ExecutionStatus.ERROR,
                output=None,
                error=str(e),
            )

        result.duration_ms = (time.perf_counter() - start_time) * 1000

        if result.is_error:
            logger.info(f"Node {node.id} failed: {result.error}", extra=log_extra)

        return result


__all__ = [
    "WorkflowExecutor",
    "DefaultNodeExecutor",
    "RunResult",
]
