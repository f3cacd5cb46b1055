"""
Node SDK - Base classes and helpers for node behaviors.

This package provides:
- BaseNode / NodeConfig: base classes for node types
- NodeExecutionContext: runtime context for one node execution
- HttpClient: timeout-bounded HTTP adapter
- values: shared JSON value helpers
"""

from .basenode import (
    BaseNode,
    NodeConfig,
    NodeExecutionContext,
    NodeOperationError,
    NodeApiError,
    decode_config,
)
from .http import HttpClient, HttpResponse, HttpApiError, NodeTimeoutError

__all__ = [
    # Base classes
    "BaseNode",
    "NodeConfig",
    "decode_config",
    # Context
    "NodeExecutionContext",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    "HttpApiError",
    "NodeTimeoutError",
    # HTTP
    "HttpClient",
    "HttpResponse",
]
