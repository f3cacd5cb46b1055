"""
Core Node Pack Manifest - Node type to handler class registry.
"""

from typing import Dict, List, Tuple, Type

from pydantic import BaseModel, Field

from knotwork.node_sdk.basenode import BaseNode
from knotwork.workflow_runtime.models import NodeType

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


class NodePackManifest(BaseModel):
    """Metadata describing a node pack."""
    name: str
    version: str
    description: str = ""
    nodes: List[str] = Field(default_factory=list)


# Node classes by type
NODE_CLASSES: Dict[NodeType, Type[BaseNode]] = {
    NodeType.INPUT: InputNode,
    NodeType.CONDITION: ConditionNode,
    NodeType.LOOP: LoopNode,
    NodeType.CAPTURE: CaptureNode,
    NodeType.COUNTER: CounterNode,
    NodeType.HTTP_REQUEST: HttpRequestNode,
    NodeType.MAPPER: MapperNode,
    NodeType.SCRAPER: ScraperNode,
    NodeType.FILTER: FilterNode,
    NodeType.ARRAY_MAP: ArrayMapNode,
    NodeType.ASSERT: AssertNode,
    NodeType.SERVER_TRIGGER: ServerTriggerNode,
    NodeType.SERVER_RESPONSE: ServerResponseNode,
    NodeType.DEBUG: DebugNode,
    NodeType.START: PassthroughNode,
    NodeType.OUTPUT: PassthroughNode,
    NodeType.COMMENT: PassthroughNode,
    NodeType.GROUP: PassthroughNode,
    NodeType.DISPLAY: PassthroughNode,
    NodeType.TABULIZE: PassthroughNode,
    NodeType.VALUE_SELECTOR: PassthroughNode,
    NodeType.CAROUSEL: PassthroughNode,
    NodeType.CASE_SUCCESS: CaseSuccessNode,
    NodeType.CASE_FAIL: CaseFailNode,
    NodeType.UNKNOWN: UnknownNode,
}


MANIFEST = NodePackManifest(
    name="core",
    version="1.0.0",
    description="Node types understood by the flow runtime",
    nodes=[node_type.value for node_type in NODE_CLASSES if node_type is not NodeType.UNKNOWN],
)


def register_nodes() -> Tuple[NodePackManifest, Dict[NodeType, Type[BaseNode]]]:
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes).
    """
    return MANIFEST, NODE_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "NodePackManifest",
    "register_nodes",
]
