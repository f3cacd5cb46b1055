"""
Control Nodes - Branching, iteration and assertions.

condition and loop select an outgoing branch through the result's active
handle; assert turns a failed check into an error result.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List, Optional

from pydantic import Field

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import parse_number, regex_search, stringify
from knotwork.workflow_runtime.models import ExecutionResult


logger = logging.getLogger(__name__)

EPSILON = sys.float_info.epsilon


def _compare_numbers(operator: str, left: float, right: float) -> Optional[bool]:
    """Numeric comparison; None when the operator has no numeric meaning."""
    if operator == "equal":
        return abs(left - right) < EPSILON
    if operator == "notEqual":
        return abs(left - right) >= EPSILON
    if operator == "greaterThan":
        return left > right
    if operator == "lessThan":
        return left < right
    return None


class ConditionConfig(NodeConfig):
    condition: str = "equal"
    target_value: Any = Field("", alias="targetValue")


class ConditionNode(BaseNode):
    """
    Condition Node - Route to the "true" or "false" branch.

    Both sides are compared numerically when both parse as numbers
    (equality within machine epsilon), otherwise as strings.
    """

    type = "condition"
    config_model = ConditionConfig

    description = {
        "displayName": "Condition",
        "group": ["control"],
        "description": "Compares the input to a target and picks the true/false branch",
        "outputs": ["true", "false"],
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: ConditionConfig = self.get_config(context)
        value = context.get_primary_input()
        is_true = self.evaluate(config.condition, value, stringify(config.target_value))

        return self.success(
            context,
            {"result": is_true, "input": value},
            active_handle="true" if is_true else "false",
        )

    @staticmethod
    def evaluate(operator: str, value: Any, target: str) -> bool:
        left_number = parse_number(value)
        right_number = parse_number(target)
        if left_number is not None and right_number is not None:
            outcome = _compare_numbers(operator, left_number, right_number)
            if outcome is not None:
                return outcome

        text = stringify(value)
        if operator == "equal":
            return text == target
        if operator == "notEqual":
            return text != target
        if operator == "greaterThan":
            return text > target
        if operator == "lessThan":
            return text < target
        if operator == "contains":
            return target in text
        return False


class LoopNode(BaseNode):
    """
    Loop Node - Emit one array item per visit.

    The index advances from this node's own previous result. While in
    bounds the result selects "body" (and the dispatch loop re-queues the
    node); past the end it selects "done".
    """

    type = "loop"

    description = {
        "displayName": "Loop",
        "group": ["control"],
        "description": "Iterates over the first non-empty array from its inputs",
        "outputs": ["body", "done"],
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        index = 0
        previous = context.get_previous_result()
        if previous is not None:
            index = self._previous_index(previous.output) + 1

        items = self._find_array(context)

        if index < len(items):
            item = items[index]
            return self.success(
                context,
                {"index": index, "item": item, "data": item},
                active_handle="body",
            )

        return self.success(context, {"status": "done", "index": index}, active_handle="done")

    @staticmethod
    def _previous_index(output: Any) -> int:
        if isinstance(output, dict):
            index = output.get("index")
            if isinstance(index, int) and not isinstance(index, bool) and index >= 0:
                return index
        return 0

    @staticmethod
    def _find_array(context: NodeExecutionContext) -> List[Any]:
        for _, result in context.iter_predecessor_results():
            if result is None:
                continue
            payload = result.payload
            if isinstance(payload, list):
                if payload:
                    return payload
            elif isinstance(result.output, list) and result.output:
                return result.output
        return []


class AssertConfig(NodeConfig):
    condition: str = "equals"
    value: Any = ""
    message: str = "Assertion failed"


class AssertNode(BaseNode):
    """
    Assert Node - Check the primary input.

    Passing echoes the input; failing produces an error result describing
    the expectation.
    """

    type = "assert"
    config_model = AssertConfig

    description = {
        "displayName": "Assert",
        "group": ["control"],
        "description": "Fails the node when the input does not match the expectation",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: AssertConfig = self.get_config(context)
        actual = context.get_primary_input()
        expected = stringify(config.value)
        actual_text = stringify(actual)

        if self.check(config.condition, actual, expected):
            return self.success(context, {"status": "passed", "data": actual})

        message = config.message or "Assertion failed"
        return self.failure(
            context,
            f"{message}: Expected {config.condition} '{expected}', got '{actual_text}'",
            output={"status": "failed", "actual": actual, "expected": expected},
        )

    @staticmethod
    def check(operator: str, actual: Any, expected: str) -> bool:
        text = stringify(actual)

        if operator == "equals":
            return text == expected
        if operator == "notEquals":
            return text != expected
        if operator == "contains":
            return expected in text
        if operator == "notContains":
            return expected not in text
        if operator in ("greaterThan", "lessThan"):
            left = parse_number(actual)
            right = parse_number(expected)
            if left is None or right is None:
                return False
            return left > right if operator == "greaterThan" else left < right
        if operator == "regex":
            return regex_search(expected, text)
        return False


__all__ = [
    "ConditionNode",
    "LoopNode",
    "AssertNode",
    "EPSILON",
]
