"""
Transform Nodes - Array filtering and projection.

Both nodes coerce the primary input to an array and always emit
`total == len(items)`.
"""

from __future__ import annotations

import logging
from typing import Any, List

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import extract_path, regex_search, stringify, to_array
from knotwork.workflow_runtime.models import ExecutionResult


logger = logging.getLogger(__name__)


def _items_output(items: List[Any]) -> dict:
    return {"items": items, "total": len(items), "data": items}


class FilterConfig(NodeConfig):
    property: str = ""
    condition: str = "equals"
    value: Any = ""


class FilterNode(BaseNode):
    """
    Filter Node - Keep array items matching a condition.

    The condition is evaluated against the item's dotted-path `property`
    (the item itself when empty). Supported conditions: exists, notExists,
    equals, notEquals, contains, regex and extension (comma-separated
    suffixes, case-insensitive).
    """

    type = "filter"
    config_model = FilterConfig

    description = {
        "displayName": "Filter",
        "group": ["transform"],
        "description": "Keeps the array items that match a condition",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: FilterConfig = self.get_config(context)
        expected = stringify(config.value)

        items = [
            item for item in to_array(context.get_primary_input())
            if self.matches(config.condition, extract_path(item, config.property), expected)
        ]
        return self.success(context, _items_output(items))

    @staticmethod
    def matches(condition: str, subject: Any, expected: str) -> bool:
        if condition == "exists":
            return subject is not None
        if condition == "notExists":
            return subject is None

        text = stringify(subject)
        if condition == "equals":
            return text == expected
        if condition == "notEquals":
            return text != expected
        if condition == "contains":
            return expected in text
        if condition == "regex":
            return regex_search(expected, text)
        if condition == "extension":
            suffixes = [part.strip().lower() for part in expected.split(",") if part.strip()]
            lowered = text.lower()
            return any(lowered.endswith(suffix) for suffix in suffixes)
        return False


class ArrayMapConfig(NodeConfig):
    path: str = ""


class ArrayMapNode(BaseNode):
    """Array Map Node - Project each item through a dotted path, dropping nulls."""

    type = "arrayMap"
    config_model = ArrayMapConfig

    description = {
        "displayName": "Array Map",
        "group": ["transform"],
        "description": "Extracts a field from every array item",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: ArrayMapConfig = self.get_config(context)

        items = []
        for item in to_array(context.get_primary_input()):
            value = extract_path(item, config.path)
            if value is not None:
                items.append(value)

        return self.success(context, _items_output(items))


__all__ = [
    "FilterNode",
    "ArrayMapNode",
]
