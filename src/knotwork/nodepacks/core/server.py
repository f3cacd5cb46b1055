"""
Server Nodes - Request/response termination for an exposed endpoint.

The request itself never reaches the handlers directly. The server bridge
seeds three reserved variables before the run, and reads the
serverResponse result back after it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import Field

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import parse_number
from knotwork.workflow_runtime.models import ExecutionResult, ExecutionStatus


logger = logging.getLogger(__name__)

# Reserved Variable Store keys seeded from the inbound request
REQUEST_METHOD_VAR = "req_method"
REQUEST_BODY_VAR = "req_body"
REQUEST_QUERY_VAR = "req_query"

DEFAULT_RESPONSE_STATUS = 200


class ServerTriggerConfig(NodeConfig):
    """Listening details; unset fields fall back to the server settings."""
    method: Optional[str] = None
    path: Optional[str] = None
    port: Any = None


class ServerTriggerNode(BaseNode):
    """
    Server Trigger - Publish the inbound request to downstream nodes.

    Output: {method, body, query, data: body}; values absent from the
    Variable Store are null.
    """

    type = "serverTrigger"
    config_model = ServerTriggerConfig

    description = {
        "displayName": "Server Trigger",
        "group": ["trigger"],
        "description": "Starts the flow from an inbound HTTP request",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        variables = context.variables
        body = variables.get(REQUEST_BODY_VAR)

        return self.success(context, {
            "method": variables.get(REQUEST_METHOD_VAR),
            "body": body,
            "query": variables.get(REQUEST_QUERY_VAR),
            "data": body,
        })


class ServerResponseConfig(NodeConfig):
    status: Any = DEFAULT_RESPONSE_STATUS
    body: Any = Field(default_factory=dict)


class ServerResponseNode(BaseNode):
    """
    Server Response - Describe the reply to the inbound request.

    String bodies are substituted; other bodies are used as configured.
    """

    type = "serverResponse"
    config_model = ServerResponseConfig

    description = {
        "displayName": "Server Response",
        "group": ["output"],
        "description": "Sets the status and body returned to the caller",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: ServerResponseConfig = self.get_config(context)

        status = parse_number(config.status)
        if status is None:
            status = DEFAULT_RESPONSE_STATUS
        status = int(status)

        body = config.body
        if isinstance(body, str):
            body = context.variables.substitute(body)

        return self.success(
            context,
            {
                "server_response": {
                    "status": status,
                    "body": body,
                    "source_data": context.get_primary_input(),
                },
            },
            status=ExecutionStatus.COMPLETED,
        )


__all__ = [
    "ServerTriggerNode",
    "ServerResponseNode",
    "REQUEST_METHOD_VAR",
    "REQUEST_BODY_VAR",
    "REQUEST_QUERY_VAR",
    "DEFAULT_RESPONSE_STATUS",
]
