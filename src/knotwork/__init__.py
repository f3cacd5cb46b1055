"""
knotwork - Runtime for visual node/edge API automation flows.

Given a flow (typed nodes connected by edges) and initial variables, the
runtime decides execution order, evaluates branches, drives loops, and
returns every node's result plus the final variables.
"""

from knotwork.workflow_runtime import (
    ExecutionResult,
    ExecutionStatus,
    Flow,
    RunResult,
    WorkflowExecutor,
    load_flow,
    parse_flow,
)

__version__ = "0.1.0"

__all__ = [
    "ExecutionResult",
    "ExecutionStatus",
    "Flow",
    "RunResult",
    "WorkflowExecutor",
    "load_flow",
    "parse_flow",
    "__version__",
]
