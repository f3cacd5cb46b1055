"""Mock server: inbound request -> run -> reply."""
from knotwork.server.bridge import (
    NO_RESPONSE_BODY,
    ServerConfigError,
    ServerReply,
    TriggerConfig,
    build_reply,
    handle_request,
    request_variables,
    trigger_config,
)
from knotwork.server.app import create_app

__all__ = [
    "NO_RESPONSE_BODY",
    "ServerConfigError",
    "ServerReply",
    "TriggerConfig",
    "build_reply",
    "create_app",
    "handle_request",
    "request_variables",
    "trigger_config",
]
