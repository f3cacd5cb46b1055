"""
Value helpers shared by node implementations.

All values are plain JSON-compatible Python objects (dict, list, str,
int/float, bool, None).
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, List, Optional


logger = logging.getLogger(__name__)


def to_json_text(value: Any) -> str:
    """Compact JSON text for a value."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def stringify(value: Any) -> str:
    """Strings verbatim, everything else as compact JSON text."""
    if isinstance(value, str):
        return value
    return to_json_text(value)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"{text} does not fit a finite float")
    return number


def parse_json(text: str) -> Any:
    """
    Strict JSON decode.

    NaN/Infinity tokens and floats that overflow are rejected, so decoded
    values always serialize back to valid JSON.

    Raises:
        ValueError: If the text is not strict JSON
    """
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?", re.ASCII)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a value as a finite number.

    JSON numbers are used directly (booleans are not numbers); strings must
    be JSON number literals with no surrounding whitespace. Returns None when
    the value is not numeric or does not fit a finite float.
    """
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)) and not (
        isinstance(value, str) and NUMBER_PATTERN.fullmatch(value)
    ):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


def normalize_number(number: float) -> Any:
    """Integral floats become ints so stored counters read naturally."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def extract_path(value: Any, path: str) -> Any:
    """
    Walk a dotted path ("a.b.0.c") into a value.

    Dict segments are keys, list segments are non-negative indices. An empty
    path returns the value itself; any missing segment yields None.

    Numeric segments index into lists on purpose, so "items.0.id" reaches
    the first element. A key-only lookup would return None for any array.
    """
    if not path:
        return value

    current = value
    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(current, list) and part.isdecimal():
            index = int(part)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def to_array(value: Any) -> List[Any]:
    """None -> [], list -> copy, scalar/object -> [value]."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def regex_search(pattern: str, text: str) -> bool:
    """Regex search; an invalid pattern never matches."""
    try:
        return re.search(pattern, text) is not None
    except re.error:
        logger.debug(f"Invalid regex {pattern!r}, treating as no match")
        return False


__all__ = [
    "to_json_text",
    "stringify",
    "parse_json",
    "parse_number",
    "normalize_number",
    "extract_path",
    "to_array",
    "regex_search",
]
