"""
Server Trigger/Response Bridge.

Maps one inbound request into the initial variables of a fresh run, and
the run's serverResponse result back into a reply. Every request gets its
own run; nothing is shared between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from knotwork.config import Settings, get_settings
from knotwork.observability import with_run_context
from knotwork.node_sdk.basenode import decode_config
from knotwork.node_sdk.values import parse_number, stringify
from knotwork.nodepacks.core.server import (
    DEFAULT_RESPONSE_STATUS,
    REQUEST_BODY_VAR,
    REQUEST_METHOD_VAR,
    REQUEST_QUERY_VAR,
    ServerTriggerConfig,
)
from knotwork.workflow_runtime import Flow, NodeType, RunResult, WorkflowExecutor


logger = logging.getLogger(__name__)

NO_RESPONSE_BODY = "Flow executed, but no ServerResponse node found."


class ServerConfigError(Exception):
    """Raised when a flow cannot be served."""


@dataclass
class TriggerConfig:
    """Where the mock server listens, read from the flow's serverTrigger node."""
    method: str
    path: str
    port: int


@dataclass
class ServerReply:
    """Reply for one inbound request."""
    status_code: int
    body: str
    media_type: str = "text/plain"


def trigger_config(flow: Flow, settings: Optional[Settings] = None) -> TriggerConfig:
    """
    Read method/path/port from the first serverTrigger node.

    Unset or invalid values fall back to the server defaults in settings.

    Raises:
        ServerConfigError: If the flow has no serverTrigger node
    """
    settings = settings or get_settings()

    triggers = flow.find_nodes(NodeType.SERVER_TRIGGER.value)
    if not triggers:
        raise ServerConfigError("Flow has no serverTrigger node")

    config = decode_config(ServerTriggerConfig, triggers[0].data)

    method = (config.method or "").strip().upper() or settings.server_method.upper()

    path = (config.path or "").strip() or settings.server_path
    if not path.startswith("/"):
        path = "/" + path

    port = settings.server_port
    number = parse_number(config.port)
    if number is not None and 0 < number < 65536:
        port = int(number)

    return TriggerConfig(method=method, path=path, port=port)


def request_variables(
    method: str,
    body: Union[bytes, str, None],
    query: Mapping[str, Any],
) -> Dict[str, Any]:
    """Initial variables for a run triggered by one inbound request."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    return {
        REQUEST_METHOD_VAR: method.upper(),
        REQUEST_BODY_VAR: body or "",
        REQUEST_QUERY_VAR: dict(query),
    }


def build_reply(flow: Flow, run: RunResult) -> ServerReply:
    """
    Translate a finished run into a reply.

    Uses the first serverResponse node (in flow order) whose result carries
    a server_response object; without one the reply is a fixed 200 text.
    """
    for node in flow.find_nodes(NodeType.SERVER_RESPONSE.value):
        result = run.results.get(node.id)
        if result is None or not isinstance(result.output, dict):
            continue
        response = result.output.get("server_response")
        if not isinstance(response, dict):
            continue

        status = parse_number(response.get("status"))
        status_code = DEFAULT_RESPONSE_STATUS
        if status is not None and 100 <= status <= 599:
            status_code = int(status)

        body = response.get("body")
        if isinstance(body, str):
            return ServerReply(status_code=status_code, body=body)
        return ServerReply(
            status_code=status_code,
            body=stringify(body),
            media_type="application/json",
        )

    return ServerReply(status_code=200, body=NO_RESPONSE_BODY)


def handle_request(
    flow: Flow,
    executor: WorkflowExecutor,
    method: str,
    body: Union[bytes, str, None],
    query: Mapping[str, Any],
) -> ServerReply:
    """Run the flow once for an inbound request and build the reply."""
    run = executor.execute(flow, initial_variables=request_variables(method, body, query))
    reply = build_reply(flow, run)
    logger.info(
        f"{method.upper()} handled with {reply.status_code}",
        extra=with_run_context(run_id=run.run_id),
    )
    return reply


__all__ = [
    "NO_RESPONSE_BODY",
    "ServerConfigError",
    "ServerReply",
    "TriggerConfig",
    "trigger_config",
    "request_variables",
    "build_reply",
    "handle_request",
]
