"""
State Nodes - Write into the run's Variable Store.
"""

from __future__ import annotations

import logging
from typing import Any

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import (
    extract_path,
    normalize_number,
    parse_number,
    stringify,
    to_array,
)
from knotwork.workflow_runtime.models import ExecutionResult


logger = logging.getLogger(__name__)


class CaptureConfig(NodeConfig):
    path: str = ""
    variable: str = ""


class CaptureNode(BaseNode):
    """
    Capture Node - Extract a dotted path from the input into a variable.

    A missing path segment extracts null. With no variable name configured
    the value is only emitted.
    """

    type = "capture"
    config_model = CaptureConfig

    description = {
        "displayName": "Capture",
        "group": ["state"],
        "description": "Stores a value from the input in a variable",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: CaptureConfig = self.get_config(context)
        extracted = extract_path(context.get_primary_input(), config.path)

        if config.variable:
            context.variables.set(config.variable, extracted)

        return self.success(context, {"variable": config.variable, "data": extracted})


class CounterConfig(NodeConfig):
    variable: str = ""
    operation: str = "increment"
    amount: Any = ""


class CounterNode(BaseNode):
    """
    Counter Node - Numeric and array mutations of one variable.

    Operations:
    - increment / decrement / set: numeric, amount is substituted then
      parsed (0 when unparsable)
    - assign: replace with the primary input
    - append / prepend: push the primary input (ignored when null)
    - pop / shift: drop the last / first element
    """

    type = "counter"
    config_model = CounterConfig

    description = {
        "displayName": "Counter",
        "group": ["state"],
        "description": "Updates a numeric or array variable",
    }

    NUMERIC_OPERATIONS = ("increment", "decrement", "set")
    ARRAY_OPERATIONS = ("append", "prepend", "pop", "shift")

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: CounterConfig = self.get_config(context)
        name = config.variable
        operation = config.operation

        if name:
            if operation in self.NUMERIC_OPERATIONS:
                self._apply_numeric(context, config)
            elif operation == "assign":
                context.variables.set(name, context.get_primary_input())
            elif operation in self.ARRAY_OPERATIONS:
                self._apply_array(context, config)
            else:
                self.logger.debug(f"Unknown counter operation {operation!r}, variable unchanged")

        return self.success(context, {"variable": name, "status": "updated"})

    def _apply_numeric(self, context: NodeExecutionContext, config: CounterConfig) -> None:
        amount = parse_number(context.variables.substitute(stringify(config.amount)))
        if amount is None:
            amount = 0.0

        current = parse_number(context.variables.get(config.variable))
        if current is None:
            current = 0.0

        if config.operation == "increment":
            value = current + amount
        elif config.operation == "decrement":
            value = current - amount
        else:
            value = amount

        context.variables.set(config.variable, normalize_number(value))

    def _apply_array(self, context: NodeExecutionContext, config: CounterConfig) -> None:
        items = to_array(context.variables.get(config.variable))
        operation = config.operation

        if operation in ("append", "prepend"):
            value = context.get_primary_input()
            if value is not None:
                if operation == "append":
                    items.append(value)
                else:
                    items.insert(0, value)
        elif operation == "pop":
            if items:
                items.pop()
        elif items:
            items.pop(0)

        context.variables.set(config.variable, items)


__all__ = [
    "CaptureNode",
    "CounterNode",
]
