"""
Workflow Models - JSON structures for flow definitions and run results.

These models match the flow JSON written by the visual editor:
{"nodes": [{id, type, position, data}], "edges": [{id, source, target, sourceHandle, ...}]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class FlowLoadError(Exception):
    """Raised when a flow (or environment) document cannot be loaded."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class NodeType(str, Enum):
    """Closed set of node type tags understood by the runtime."""
    INPUT = "input"
    CONDITION = "condition"
    LOOP = "loop"
    CAPTURE = "capture"
    COUNTER = "counter"
    HTTP_REQUEST = "httpRequest"
    MAPPER = "mapper"
    SCRAPER = "scraper"
    FILTER = "filter"
    ARRAY_MAP = "arrayMap"
    ASSERT = "assert"
    SERVER_TRIGGER = "serverTrigger"
    SERVER_RESPONSE = "serverResponse"
    DEBUG = "debug"
    START = "start"
    OUTPUT = "output"
    COMMENT = "comment"
    GROUP = "group"
    DISPLAY = "display"
    TABULIZE = "tabulize"
    VALUE_SELECTOR = "valueselector"
    CAROUSEL = "carousel"
    CASE_SUCCESS = "caseSuccess"
    CASE_FAIL = "caseFail"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "NodeType":
        """Map a raw type tag to a member; unrecognized tags are UNKNOWN."""
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class NodePosition(BaseModel):
    """Node position in the canvas (cosmetic)."""
    x: float = 0
    y: float = 0


class FlowNode(BaseModel):
    """
    A node in a flow.

    `data` is the open, type-specific configuration payload. Handlers decode
    it into their own typed config at dispatch time.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Unique node id")
    type: str = Field(..., description="Node type tag (e.g. 'httpRequest')")
    position: NodePosition = Field(default_factory=NodePosition)
    data: Any = Field(default_factory=dict, description="Type-specific configuration")


class FlowEdge(BaseModel):
    """
    Directed connection between two nodes.

    Dangling references (unknown source/target ids) are tolerated.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Edge id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    source_handle: Optional[str] = Field(
        None, alias="sourceHandle", description="Branch selected on the source node"
    )
    target_handle: Optional[str] = Field(None, alias="targetHandle")
    animated: bool = False
    style: Optional[Any] = None


class Flow(BaseModel):
    """Complete node + edge graph for one workflow."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        """Get the first node with the given id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_nodes(self, node_type: str) -> List[FlowNode]:
        """Get all nodes of a type, in flow order."""
        return [node for node in self.nodes if node.type == node_type]


class ExecutionStatus(str, Enum):
    """Status of one node execution."""
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
    COMPLETED = "completed"


@dataclass
class ExecutionResult:
    """
    Result of executing a single node.

    `output` follows the convention of carrying the primary payload under a
    `data` key. `active_handle` selects the outgoing branch; None fires all
    outgoing edges.
    """
    node_id: str
    status: ExecutionStatus
    output: Any = None
    error: Optional[str] = None
    active_handle: Optional[str] = None
    duration_ms: float = field(default=0, compare=False)

    @property
    def is_success(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == ExecutionStatus.ERROR

    @property
    def payload(self) -> Any:
        """Primary payload: output['data'] when present, else the whole output."""
        if isinstance(self.output, dict) and "data" in self.output:
            return self.output["data"]
        return self.output

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "active_handle": self.active_handle,
            "duration_ms": self.duration_ms,
        }


def parse_flow(data: Union[Dict[str, Any], str, bytes]) -> Flow:
    """
    Parse flow JSON (text or decoded dict) into a Flow.

    Raises:
        FlowLoadError: If the document is not valid JSON or not a flow
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise FlowLoadError(f"Flow is not valid JSON: {e}") from e

    try:
        return Flow.model_validate(data)
    except ValidationError as e:
        raise FlowLoadError(f"Invalid flow: {e}") from e


def load_flow(path: Union[str, Path]) -> Flow:
    """Load a flow from a JSON file."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FlowLoadError(f"Cannot read flow file: {e}", path=str(path)) from e

    try:
        return parse_flow(content)
    except FlowLoadError as e:
        raise FlowLoadError(f"{path}: {e}", path=str(path)) from e


def save_flow(path: Union[str, Path], flow: Flow) -> None:
    """Save a flow as pretty JSON, keeping the editor's key names."""
    data = flow.model_dump(mode="json", by_alias=True)
    Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")


def load_environment(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load an environment file (JSON object of name -> value).

    A missing file is an empty environment.
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise FlowLoadError(f"Cannot load environment: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise FlowLoadError("Environment must be a JSON object", path=str(path))

    return {str(key): value for key, value in data.items()}


__all__ = [
    "Flow",
    "FlowNode",
    "FlowEdge",
    "NodePosition",
    "NodeType",
    "ExecutionResult",
    "ExecutionStatus",
    "FlowLoadError",
    "parse_flow",
    "load_flow",
    "save_flow",
    "load_environment",
]
