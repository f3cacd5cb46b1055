"""
Workflow Runtime - Single-run execution of node/edge flows.

This package provides:
- Flow: JSON structure written by the visual editor
- GraphIndex: id lookup and forward/reverse adjacency
- VariableStore: run-scoped variables and {{name}} substitution
- WorkflowExecutor: stack-driven dispatch loop

All execution is synchronous; one run never shares state with another.
"""

from .models import (
    Flow,
    FlowNode,
    FlowEdge,
    NodeType,
    ExecutionResult,
    ExecutionStatus,
    FlowLoadError,
    parse_flow,
    load_flow,
    save_flow,
    load_environment,
)
from .graph import GraphIndex
from .variables import VariableStore, substitute
from .executor import WorkflowExecutor, DefaultNodeExecutor, RunResult

__all__ = [
    # Models
    "Flow",
    "FlowNode",
    "FlowEdge",
    "NodeType",
    "ExecutionResult",
    "ExecutionStatus",
    "FlowLoadError",
    "parse_flow",
    "load_flow",
    "save_flow",
    "load_environment",
    # Graph
    "GraphIndex",
    # Variables
    "VariableStore",
    "substitute",
    # Executor
    "WorkflowExecutor",
    "DefaultNodeExecutor",
    "RunResult",
]
