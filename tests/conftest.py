"""Pytest configuration and fixtures."""
import json
import os
from typing import Any, Dict, List, Optional

import pytest
import requests

# Set test environment variables
os.environ["KNOTWORK_ENV"] = "test"
os.environ["KNOTWORK_LOG_LEVEL"] = "WARNING"
os.environ["KNOTWORK_LOG_FORMAT"] = "text"


def make_response(
    status_code: int = 200,
    body: Any = None,
    content_type: str = "application/json",
    headers: Optional[Dict[str, str]] = None,
):
    """Build an HttpResponse around a real requests.Response."""
    from knotwork.node_sdk.http import HttpResponse

    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if isinstance(body, (bytes, str)):
        content = body.encode("utf-8") if isinstance(body, str) else body
    else:
        content = json.dumps(body).encode("utf-8")
    response._content = content
    response.headers["Content-Type"] = content_type
    for name, value in (headers or {}).items():
        response.headers[name] = value
    return HttpResponse(response)


class FakeHttpClient:
    """Stands in for HttpClient: records requests and replays canned responses."""

    def __init__(self, response=None, error: Optional[Exception] = None):
        self.response = response if response is not None else make_response(200, {"ok": True})
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, headers=None, json=None, data=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "headers": headers,
            "json": json,
            "data": data,
            "timeout": timeout,
        })
        if self.error is not None:
            raise self.error
        return self.response


def build_flow(nodes, edges=()):
    """
    Build a Flow from compact tuples.

    nodes: (id, type) or (id, type, data)
    edges: (source, target) or (source, target, source_handle)
    """
    from knotwork.workflow_runtime import Flow

    node_dicts = []
    for node in nodes:
        node_id, node_type = node[0], node[1]
        data = node[2] if len(node) > 2 else {}
        node_dicts.append({"id": node_id, "type": node_type, "data": data})

    edge_dicts = []
    for index, edge in enumerate(edges):
        edge_dict = {"id": f"e{index}", "source": edge[0], "target": edge[1]}
        if len(edge) > 2:
            edge_dict["sourceHandle"] = edge[2]
        edge_dicts.append(edge_dict)

    return Flow.model_validate({"nodes": node_dicts, "edges": edge_dicts})


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings from the environment for every test."""
    from knotwork.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_http():
    """Fake HTTP client returning a JSON 200 by default."""
    return FakeHttpClient()


@pytest.fixture
def make_flow():
    """Flow builder taking compact node/edge tuples."""
    return build_flow


@pytest.fixture
def response_factory():
    """Factory for HttpResponse objects."""
    return make_response


@pytest.fixture
def executor(fake_http):
    """Executor wired to the fake HTTP client."""
    from knotwork.workflow_runtime import WorkflowExecutor

    return WorkflowExecutor(http_client=fake_http)


@pytest.fixture
def run_flow(executor):
    """Run compact nodes/edges once and return the RunResult."""

    def _run(nodes, edges=(), variables=None):
        return executor.execute(build_flow(nodes, edges), initial_variables=variables)

    return _run


@pytest.fixture
def sample_flow_dict():
    """Flow JSON as written by the editor: input -> condition -> terminals."""
    return {
        "nodes": [
            {"id": "in", "type": "input", "position": {"x": 0, "y": 0},
             "data": {"value": "42", "type": "number"}},
            {"id": "check", "type": "condition", "position": {"x": 200, "y": 0},
             "data": {"condition": "greaterThan", "targetValue": "10"}},
            {"id": "big", "type": "caseSuccess", "position": {"x": 400, "y": -50}, "data": {}},
            {"id": "small", "type": "caseFail", "position": {"x": 400, "y": 50}, "data": {}},
        ],
        "edges": [
            {"id": "e1", "source": "in", "target": "check"},
            {"id": "e2", "source": "check", "target": "big", "sourceHandle": "true"},
            {"id": "e3", "source": "check", "target": "small", "sourceHandle": "false",
             "animated": True},
        ],
    }
