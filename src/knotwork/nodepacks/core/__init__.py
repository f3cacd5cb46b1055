"""
Core Node Pack - The node behavior library.

One handler class per node type:
- input, mapper, debug, passthrough types, case terminals
- condition, loop, assert
- capture, counter
- filter, arrayMap, scraper
- httpRequest
- serverTrigger, serverResponse
"""

from .control import AssertNode, ConditionNode, LoopNode
from .http_request import HttpRequestNode
from .nodes import (
    CaseFailNode,
    CaseSuccessNode,
    DebugNode,
    InputNode,
    MapperNode,
    PassthroughNode,
    UnknownNode,
)
from .scraper import ScraperNode
from .server import ServerResponseNode, ServerTriggerNode
from .state import CaptureNode, CounterNode
from .transform import ArrayMapNode, FilterNode
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "InputNode",
    "ConditionNode",
    "LoopNode",
    "CaptureNode",
    "CounterNode",
    "HttpRequestNode",
    "MapperNode",
    "ScraperNode",
    "FilterNode",
    "ArrayMapNode",
    "AssertNode",
    "ServerTriggerNode",
    "ServerResponseNode",
    "DebugNode",
    "PassthroughNode",
    "CaseSuccessNode",
    "CaseFailNode",
    "UnknownNode",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
