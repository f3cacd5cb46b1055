"""
Core Nodes - Literal inputs, passthroughs, lookups and terminals.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import Field

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import normalize_number, parse_json, parse_number, to_json_text
from knotwork.workflow_runtime.models import ExecutionResult, ExecutionStatus


logger = logging.getLogger(__name__)


class InputConfig(NodeConfig):
    value: str = ""
    type: str = "string"


class InputNode(BaseNode):
    """
    Input Node - Emit a literal value.

    The literal is substituted against the Variable Store, then coerced to
    the declared type. Unparsable number/json values stay raw strings.
    """

    type = "input"
    config_model = InputConfig

    description = {
        "displayName": "Input",
        "group": ["input"],
        "description": "Emits a literal string, number or JSON value",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: InputConfig = self.get_config(context)
        raw = context.variables.substitute(config.value)

        value: Any = raw
        if config.type == "number":
            number = parse_number(raw)
            if number is not None:
                value = normalize_number(number)
        elif config.type == "json":
            try:
                value = parse_json(raw)
            except ValueError:
                value = raw

        return self.success(context, {"data": value})


class PassthroughNode(BaseNode):
    """
    Passthrough - Echo the primary input.

    Used by start, output and the display-oriented node types whose real
    work happens in the editor.
    """

    type = "passthrough"

    description = {
        "displayName": "Passthrough",
        "group": ["display"],
        "description": "Passes the upstream data through unchanged",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        return self.success(context, {"status": "ok", "data": context.get_primary_input()})


class DebugNode(BaseNode):
    """
    Debug Node - Show everything connected to it.

    Unlike most nodes it scans all predecessors, not just the first.
    """

    type = "debug"

    description = {
        "displayName": "Debug",
        "group": ["display"],
        "description": "Collects the outputs of every connected node",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        connected: Dict[str, Any] = {}
        for parent_id, result in context.iter_predecessor_results():
            if parent_id not in connected:
                connected[parent_id] = result.output if result is not None else None

        return self.success(context, {
            "status": "ok",
            "connected_results": connected,
            "data": context.get_primary_input(),
        })


class MapperConfig(NodeConfig):
    mapping: Dict[str, Any] = Field(default_factory=dict)
    fallback: Any = "Unknown"


class MapperNode(BaseNode):
    """
    Mapper Node - Look up the primary input in a fixed mapping.
    """

    type = "mapper"
    config_model = MapperConfig

    description = {
        "displayName": "Mapper",
        "group": ["transform"],
        "description": "Maps a value to another through a lookup table",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: MapperConfig = self.get_config(context)
        value = context.get_primary_input()

        result = config.fallback
        for key in self._lookup_keys(value):
            if key in config.mapping:
                result = config.mapping[key]
                break

        return self.success(context, {"data": result})

    @staticmethod
    def _lookup_keys(value: Any) -> list:
        if isinstance(value, str):
            return [value]
        if isinstance(value, bool) or value is None:
            return [""]
        if isinstance(value, (int, float)):
            keys = [to_json_text(value)]
            if isinstance(value, float) and value.is_integer():
                keys.append(str(int(value)))
            return keys
        return [""]


class CaseSuccessNode(BaseNode):
    """Terminal marking a successful outcome."""

    type = "caseSuccess"

    description = {
        "displayName": "Success",
        "group": ["terminal"],
        "description": "Marks the flow outcome as successful",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        return self.success(context, {"status": "completed"})


class CaseFailNode(BaseNode):
    """Terminal marking a failed outcome."""

    type = "caseFail"

    description = {
        "displayName": "Fail",
        "group": ["terminal"],
        "description": "Marks the flow outcome as failed",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        return self.failure(
            context,
            "Explicit Failure Node Triggered",
            output={"status": "failed"},
        )


class UnknownNode(BaseNode):
    """Fallback for unrecognized type tags; the run continues."""

    type = "unknown"

    description = {
        "displayName": "Unknown",
        "group": [],
        "description": "Skips nodes whose type is not recognized",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        self.logger.debug(f"Skipping node {context.node_id} of unknown type {context.node.type!r}")
        return self.success(
            context,
            {"message": "Unknown node type"},
            status=ExecutionStatus.SKIPPED,
        )


__all__ = [
    "InputNode",
    "PassthroughNode",
    "DebugNode",
    "MapperNode",
    "CaseSuccessNode",
    "CaseFailNode",
    "UnknownNode",
]
