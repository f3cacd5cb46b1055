"""
BaseNode - Abstract base class for node behaviors.

Each node type is one BaseNode subclass. The dispatch loop instantiates the
class registered for a node's type and calls execute() with a
NodeExecutionContext giving access to:
- the node itself and its typed configuration
- a read-only view of prior results
- the reverse adjacency of the graph
- the run's mutable Variable Store
- the HTTP client adapter

Handlers never abort a run: failures are returned as error-status results
(or raised as NodeOperationError and converted by the dispatch loop).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from pydantic import BaseModel, ConfigDict, ValidationError

from knotwork.workflow_runtime.models import ExecutionResult, ExecutionStatus, FlowNode

if TYPE_CHECKING:
    from knotwork.node_sdk.http import HttpClient
    from knotwork.workflow_runtime.variables import VariableStore


logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


# ==============================================================================
# NodeConfig - typed view over a node's `data` payload
# ==============================================================================

class NodeConfig(BaseModel):
    """
    Base class for per-type node configuration.

    Unknown keys are ignored; field aliases match the editor's camelCase keys.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def decode_config(model: Type[ConfigT], data: Any) -> ConfigT:
    """
    Decode a loose payload into a typed config without ever raising.

    Fields that fail validation are dropped and take their defaults; a
    payload that is not an object decodes to all defaults.
    """
    payload: Dict[str, Any] = dict(data) if isinstance(data, Mapping) else {}

    while True:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            invalid = {
                err["loc"][0] for err in e.errors()
                if err.get("loc") and err["loc"][0] in payload
            }
            if not invalid:
                logger.debug(f"Config for {model.__name__} fell back to defaults: {e}")
                return model()
            logger.debug(f"Config for {model.__name__} dropped invalid fields: {sorted(invalid)}")
            for key in invalid:
                payload.pop(key)


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to a node during one execution.

    `results` is a read-only mapping of node id -> latest ExecutionResult.
    `variables` is the run's mutable VariableStore.
    """

    def __init__(
        self,
        node: FlowNode,
        results: Mapping[str, ExecutionResult],
        reverse_adjacency: Mapping[str, List[str]],
        variables: "VariableStore",
        http_client: Optional["HttpClient"] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.node = node
        self.results = results
        self.reverse_adjacency = reverse_adjacency
        self.variables = variables
        self.http_client = http_client
        self.run_id = run_id

    @property
    def node_id(self) -> str:
        return self.node.id

    def get_predecessor_ids(self) -> List[str]:
        """Ids of the node's upstream nodes, in edge order."""
        return list(self.reverse_adjacency.get(self.node.id, []))

    def get_previous_result(self) -> Optional[ExecutionResult]:
        """This node's own result from an earlier visit, if any."""
        return self.results.get(self.node.id)

    def iter_predecessor_results(self) -> Iterator[Tuple[str, Optional[ExecutionResult]]]:
        """(id, result or None) for every predecessor."""
        for parent_id in self.get_predecessor_ids():
            yield parent_id, self.results.get(parent_id)

    def get_primary_input(self) -> Any:
        """
        Primary input: the first predecessor's payload.

        Uses output['data'] when present, else the whole output. No
        predecessor or no result yet means no input (None).
        """
        parents = self.reverse_adjacency.get(self.node.id, [])
        if not parents:
            return None
        result = self.results.get(parents[0])
        if result is None:
            return None
        return result.payload


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all node behaviors.

    Subclasses define:
    - type: node type tag handled by the class
    - config_model: NodeConfig subclass decoded from the node's data
    - description: metadata dict shown by `knotwork nodes`

    and implement execute(context) -> ExecutionResult.

    Example:

        class UpperNode(BaseNode):
            type = "upper"
            config_model = NodeConfig

            description = {
                "displayName": "Upper",
                "group": ["transform"],
                "description": "Uppercases the primary input",
            }

            def execute(self, context):
                value = context.get_primary_input()
                return self.success(context, {"data": str(value).upper()})
    """

    type: str = "base"
    config_model: Type[NodeConfig] = NodeConfig

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "group": [],
        "description": "",
    }

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"node.{self.type}")

    @abstractmethod
    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        """
        Execute the node once.

        Raises:
            NodeOperationError: On failure (converted to an error result)
        """
        raise NotImplementedError

    # ==== Helper methods for subclasses ====

    def get_config(self, context: NodeExecutionContext) -> Any:
        """Decode the node's data into this type's config model."""
        return decode_config(self.config_model, context.node.data)

    def success(
        self,
        context: NodeExecutionContext,
        output: Any,
        active_handle: Optional[str] = None,
        status: ExecutionStatus = ExecutionStatus.SUCCESS,
    ) -> ExecutionResult:
        return ExecutionResult(
            node_id=context.node_id,
            status=status,
            output=output,
            active_handle=active_handle,
        )

    def failure(
        self,
        context: NodeExecutionContext,
        error: str,
        output: Any = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            node_id=context.node_id,
            status=ExecutionStatus.ERROR,
            output=output,
            error=error,
        )

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get node definition for listing."""
        return {
            "type": cls.type,
            "description": cls.description,
            "config": cls.config_model.model_json_schema(),
        }


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
    ) -> None:
        self.message = message
        self.node_id = node_id
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from an external API call."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message, node_id)
        self.status_code = status_code
        self.response_body = response_body


# ==============================================================================
# Exports
# ==============================================================================

__all__ = [
    "BaseNode",
    "NodeConfig",
    "NodeExecutionContext",
    "NodeOperationError",
    "NodeApiError",
    "decode_config",
]
