"""
Variable Store - run-scoped mutable name -> value mapping.

One instance per run, passed explicitly to every handler that reads or
writes variables. Values are JSON-compatible.
"""

from __future__ import annotations

import copy
import re
from typing import Any, Dict, Iterator, Mapping, Optional

from knotwork.node_sdk.values import stringify


PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]*)\}\}")


def substitute(text: str, variables: Mapping[str, Any]) -> str:
    """
    Replace every {{name}} in text with the variable's value.

    Strings are inserted verbatim, other values as compact JSON. A single
    left-to-right pass; inserted text is not rescanned. Placeholders whose
    name is not in the mapping are left unchanged.
    """
    if not text or "{{" not in text:
        return text

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return stringify(variables[name])

    return PLACEHOLDER_PATTERN.sub(_replace, text)


class VariableStore:
    """
    Mutable variable mapping owned by exactly one run.

    Seeded with a deep copy of the caller's initial variables so the caller's
    mapping is never mutated.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def delete(self, name: str) -> None:
        self._values.pop(name, None)

    def substitute(self, text: str) -> str:
        """Apply {{name}} substitution against this store."""
        return substitute(text, self._values)

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the current values."""
        return copy.deepcopy(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"


__all__ = [
    "VariableStore",
    "substitute",
    "PLACEHOLDER_PATTERN",
]
