"""Tests for the httpRequest node."""
from unittest.mock import patch

import requests

from knotwork.node_sdk import NodeExecutionContext
from knotwork.node_sdk.http import HttpApiError, NodeTimeoutError
from knotwork.nodepacks.core import HttpRequestNode
from knotwork.workflow_runtime import ExecutionStatus, FlowNode, VariableStore


class TestHttpRequestNode:
    """Test request building and response mapping."""

    def test_substitutes_url_headers_and_json_body(self, run_flow, fake_http):
        run = run_flow(
            [("call", "httpRequest", {
                "method": "post",
                "endpoint": "{{base}}/users/{{uid}}",
                "headers": {"Authorization": "Bearer {{token}}", "X-Count": 3},
                "body": {"name": "{{name}}", "tags": ["{{tag}}"]},
            })],
            variables={"base": "https://api.test", "uid": 7, "token": "t0k", "name": "Ada", "tag": "x"},
        )

        call = fake_http.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.test/users/7"
        assert call["headers"] == {"Authorization": "Bearer t0k"}
        assert call["json"] == {"name": "Ada", "tags": ["x"]}
        assert call["data"] is None
        assert run.results["call"].status == ExecutionStatus.SUCCESS

    def test_body_that_stops_being_json_is_sent_as_text(self, run_flow, fake_http):
        run_flow(
            [("call", "httpRequest", {
                "method": "PUT",
                "endpoint": "https://api.test/raw",
                "body": {"value": "{{quote}}"},
            })],
            variables={"quote": 'say "hi"'},
        )

        call = fake_http.calls[0]
        assert call["json"] is None
        assert call["data"] == '{"value":"say "hi""}'

    def test_string_body_sent_as_text(self, run_flow, fake_http):
        run_flow(
            [("call", "httpRequest", {"method": "POST", "endpoint": "https://api.test", "body": "id={{id}}"})],
            variables={"id": 5},
        )

        assert fake_http.calls[0]["data"] == "id=5"
        assert fake_http.calls[0]["json"] is None

    def test_no_body(self, run_flow, fake_http):
        run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})])

        call = fake_http.calls[0]
        assert call["method"] == "GET"
        assert call["json"] is None
        assert call["data"] is None

    def test_unknown_method_becomes_get(self, run_flow, fake_http):
        run_flow([("call", "httpRequest", {"method": "TRACE", "endpoint": "https://api.test"})])

        assert fake_http.calls[0]["method"] == "GET"

    def test_url_key_fallback(self, run_flow, fake_http):
        run_flow([("call", "httpRequest", {"url": "https://fallback.test"})])

        assert fake_http.calls[0]["url"] == "https://fallback.test"

    def test_json_response(self, run_flow, fake_http, response_factory):
        fake_http.response = response_factory(201, {"id": 1}, headers={"X-Req": "abc"})

        output = run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})]).results["call"].output

        assert output["status"] == 201
        assert output["data"] == {"id": 1}
        assert output["headers"]["X-Req"] == "abc"

    def test_text_response_decoded_when_json(self, run_flow, fake_http, response_factory):
        fake_http.response = response_factory(200, "[1, 2]", content_type="text/plain")

        output = run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})]).results["call"].output

        assert output["data"] == [1, 2]

    def test_raw_text_response(self, run_flow, fake_http, response_factory):
        fake_http.response = response_factory(200, "<p>hi</p>", content_type="text/html")

        output = run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})]).results["call"].output

        assert output["data"] == "<p>hi</p>"

    def test_non_2xx_is_success(self, run_flow, fake_http, response_factory):
        fake_http.response = response_factory(404, {"error": "missing"})

        result = run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})]).results["call"]

        assert result.status == ExecutionStatus.SUCCESS
        assert result.output["status"] == 404
        assert result.payload == {"error": "missing"}

    def test_transport_failure_is_error_result(self, run_flow, fake_http):
        fake_http.error = HttpApiError("Request failed: connection refused", url="https://api.test")

        run = run_flow(
            [("call", "httpRequest", {"endpoint": "https://api.test"}), ("next", "output")],
            [("call", "next")],
        )

        result = run.results["call"]
        assert result.status == ExecutionStatus.ERROR
        assert result.output is None
        assert "connection refused" in result.error
        assert "next" in run.results

    def test_timeout_is_error_result(self, run_flow, fake_http):
        fake_http.error = NodeTimeoutError("Request timed out after 1s", timeout=1, url="https://api.test")

        result = run_flow([("call", "httpRequest", {"endpoint": "https://api.test"})]).results["call"]

        assert result.is_error
        assert result.error == "Request timed out after 1s"

    def test_missing_url_is_error_result(self, run_flow, fake_http):
        result = run_flow([("call", "httpRequest", {})]).results["call"]

        assert result.is_error
        assert result.error == "URL is required"
        assert fake_http.calls == []

    def test_timeout_override_passed_through(self, run_flow, fake_http):
        run_flow([("call", "httpRequest", {"endpoint": "https://api.test", "timeout": 2.5})])

        assert fake_http.calls[0]["timeout"] == 2.5

    @patch("requests.request")
    def test_default_client_uses_configured_timeout(self, mock_request, monkeypatch):
        monkeypatch.setenv("KNOTWORK_HTTP_TIMEOUT_S", "4")
        response = requests.Response()
        response.status_code = 200
        response._content = b"ok"
        mock_request.return_value = response
        context = NodeExecutionContext(
            node=FlowNode(id="call", type="httpRequest", data={"endpoint": "https://api.test"}),
            results={},
            reverse_adjacency={},
            variables=VariableStore(),
        )

        result = HttpRequestNode().execute(context)

        assert result.status == ExecutionStatus.SUCCESS
        assert mock_request.call_args.kwargs["timeout"] == 4
