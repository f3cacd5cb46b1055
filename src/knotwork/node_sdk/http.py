"""
HTTP Client - Timeout-bounded HTTP requests for nodes.

The httpRequest node sends through this adapter. Every call carries a
timeout (the core has no cancellation of its own). The client holds no
mutable state, so one instance can serve concurrent runs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import Timeout, RequestException

from .basenode import NodeApiError
from .values import parse_json


logger = logging.getLogger(__name__)

# Default timeout in seconds
DEFAULT_TIMEOUT = 30


class NodeTimeoutError(NodeApiError):
    """Raised when an HTTP request times out."""

    def __init__(self, message: str, timeout: float, url: str):
        self.timeout = timeout
        self.url = url
        super().__init__(message)


class HttpApiError(NodeApiError):
    """Transport-level failure of an HTTP request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        self.url = url
        self.method = method
        super().__init__(
            message,
            status_code=status_code,
            response_body=response_body,
        )


class HttpResponse:
    """
    Wrapper for HTTP response with convenient accessors.
    """

    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    @property
    def content_type(self) -> str:
        return self._response.headers.get("Content-Type", "")

    @property
    def text(self) -> str:
        return self._response.text

    def decode_body(self) -> Any:
        """
        Decode the body for node output.

        The text is decoded as strict JSON when it parses, else kept as raw
        text. JSON content types that fail to decode fall back the same way.
        """
        text = self.text
        try:
            return parse_json(text)
        except ValueError:
            if "json" in self.content_type.lower():
                logger.debug("Response declared JSON but did not decode, reading as text")
            return text


class HttpClient:
    """
    HTTP client with timeout enforcement.

    Usage:
        client = HttpClient(timeout=10)
        response = client.request("GET", "https://api.example.com/users")
        data = response.decode_body()
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Default timeout in seconds
            default_headers: Headers to include in all requests
        """
        self.timeout = timeout
        self.headers: Dict[str, str] = dict(default_headers or {})

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Optional[Union[str, bytes]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make HTTP request with timeout enforcement.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH)
            url: Absolute URL
            headers: Additional headers (merged with defaults)
            json: JSON body (auto-serialized)
            data: Raw text body
            timeout: Override default timeout

        Returns:
            HttpResponse wrapper (for any status code)

        Raises:
            NodeTimeoutError: If request times out
            HttpApiError: If the request could not be sent or received
        """
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout or self.timeout

        logger.debug(f"HTTP {method} {url}")

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=request_headers,
                json=json,
                data=data.encode("utf-8") if isinstance(data, str) else data,
                timeout=request_timeout,
            )
            return HttpResponse(response)

        except Timeout as e:
            logger.warning(f"HTTP {method} {url} timed out after {request_timeout}s")
            raise NodeTimeoutError(
                message=f"Request timed out after {request_timeout}s",
                timeout=request_timeout,
                url=url,
            ) from e

        except RequestException as e:
            logger.warning(f"HTTP {method} {url} failed: {e}")
            raise HttpApiError(
                message=f"Request failed: {e}",
                url=url,
                method=method,
            ) from e


__all__ = [
    "HttpClient",
    "HttpResponse",
    "HttpApiError",
    "NodeTimeoutError",
    "DEFAULT_TIMEOUT",
]
