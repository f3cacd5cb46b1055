"""
HTTP Request Node - Send one request through the HTTP client adapter.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import Field

from knotwork.config import get_settings
from knotwork.node_sdk.basenode import (
    BaseNode,
    NodeApiError,
    NodeConfig,
    NodeExecutionContext,
    NodeOperationError,
)
from knotwork.node_sdk.http import HttpClient
from knotwork.node_sdk.values import parse_json, to_json_text
from knotwork.workflow_runtime.models import ExecutionResult


logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


class HttpRequestConfig(NodeConfig):
    method: str = "GET"
    endpoint: str = ""
    url: str = ""
    headers: Dict[str, Any] = Field(default_factory=dict)
    body: Any = None
    timeout: Optional[float] = None


class HttpRequestNode(BaseNode):
    """
    HTTP Request Node - Make HTTP requests.

    The URL, every string header value and the body undergo {{name}}
    substitution. Object/array bodies are substituted as JSON text and
    re-parsed; if the result is no longer JSON it is sent as text.

    Any received response, including non-2xx, is a success with
    `{status, headers, data}`. Transport failures are error results.
    """

    type = "httpRequest"
    config_model = HttpRequestConfig

    description = {
        "displayName": "HTTP Request",
        "group": ["input", "output"],
        "description": "Make HTTP requests",
        "methods": list(ALLOWED_METHODS),
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: HttpRequestConfig = self.get_config(context)
        variables = context.variables

        method = config.method.upper()
        if method not in ALLOWED_METHODS:
            method = "GET"

        url = variables.substitute(config.endpoint or config.url)
        if not url:
            raise NodeOperationError("URL is required", node_id=context.node_id)

        headers = {
            name: variables.substitute(value)
            for name, value in config.headers.items()
            if isinstance(value, str)
        }

        json_body: Any = None
        text_body: Optional[str] = None
        if isinstance(config.body, (dict, list)):
            body_text = variables.substitute(to_json_text(config.body))
            try:
                json_body = parse_json(body_text)
            except ValueError:
                self.logger.debug(f"Body of {context.node_id} is not JSON after substitution, sending as text")
                text_body = body_text
        elif isinstance(config.body, str):
            text_body = variables.substitute(config.body)
        elif config.body is not None:
            json_body = config.body

        client = context.http_client or HttpClient(timeout=get_settings().http_timeout_s)

        try:
            response = client.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=text_body,
                timeout=config.timeout,
            )
        except NodeApiError as e:
            return self.failure(context, str(e))

        return self.success(context, {
            "status": response.status_code,
            "headers": response.headers,
            "data": response.decode_body(),
        })


__all__ = [
    "HttpRequestNode",
    "ALLOWED_METHODS",
]
