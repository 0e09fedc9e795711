"""
Spine - HTTP gateway.

The orchestrator talks to the network through :class:`HTTPClient` (sync) or
:class:`AsyncHTTPClient` (async). Each call returns exactly one
:class:`HTTPResponse` or raises :class:`~spine.exceptions.TransportError`;
timeouts are enforced here, and nothing is retried.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx

from .exceptions import TransportError

logger = logging.getLogger("spine.http")

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

DEFAULT_HEADERS = {
    "Content-Type": JSONAPI_MEDIA_TYPE,
    "Accept": JSONAPI_MEDIA_TYPE,
}


@dataclass
class HTTPResponse:
    """Status code and raw body of a completed request."""

    status_code: int
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def has_body(self) -> bool:
        return bool(self.content and self.content.strip())


def _encode_payload(payload: Optional[dict[str, Any]]) -> Optional[bytes]:
    if payload is None:
        return None
    return json.dumps(payload).encode("utf-8")


def _request_headers(
    client: Optional[Union[httpx.Client, httpx.AsyncClient]], merged: dict[str, str]
) -> Optional[dict[str, str]]:
    """Per-request headers; only needed when the httpx client was injected."""
    return merged if client is not None else None


def _to_response(response: httpx.Response) -> HTTPResponse:
    return HTTPResponse(
        status_code=response.status_code,
        content=response.content,
        headers=dict(response.headers),
    )


class HTTPClient(ABC):
    """Synchronous HTTP gateway."""

    @abstractmethod
    def request(
        self, method: str, url: str, payload: Optional[dict[str, Any]] = None
    ) -> HTTPResponse:
        """Perform a request; raise TransportError if no response arrives."""

    def get(self, url: str) -> HTTPResponse:
        return self.request("GET", url)

    def post(self, url: str, payload: dict[str, Any]) -> HTTPResponse:
        return self.request("POST", url, payload)

    def put(self, url: str, payload: dict[str, Any]) -> HTTPResponse:
        return self.request("PUT", url, payload)

    def delete(self, url: str) -> HTTPResponse:
        return self.request("DELETE", url)

    def close(self) -> None:
        pass


class AsyncHTTPClient(ABC):
    """Asynchronous HTTP gateway."""

    @abstractmethod
    async def request(
        self, method: str, url: str, payload: Optional[dict[str, Any]] = None
    ) -> HTTPResponse:
        """Perform a request; raise TransportError if no response arrives."""

    async def get(self, url: str) -> HTTPResponse:
        return await self.request("GET", url)

    async def post(self, url: str, payload: dict[str, Any]) -> HTTPResponse:
        return await self.request("POST", url, payload)

    async def put(self, url: str, payload: dict[str, Any]) -> HTTPResponse:
        return await self.request("PUT", url, payload)

    async def delete(self, url: str) -> HTTPResponse:
        return await self.request("DELETE", url)

    async def close(self) -> None:
        pass


class HttpxClient(HTTPClient):
    """
    :class:`HTTPClient` backed by ``httpx.Client``.

    ``headers`` override the JSON:API media-type defaults. With an injected
    ``client``, the merged headers are sent with every request instead.

    Example:
        ```python
        http = HttpxClient(headers={"Authorization": "Bearer ..."}, timeout=10.0)
        response = http.get("https://api.example.com/articles")
        ```
    """

    def __init__(
        self,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        merged = {**DEFAULT_HEADERS, **(headers or {})}
        self._request_headers = _request_headers(client, merged)
        self._client = client or httpx.Client(headers=merged, timeout=timeout)

    def request(
        self, method: str, url: str, payload: Optional[dict[str, Any]] = None
    ) -> HTTPResponse:
        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(
                method,
                url,
                content=_encode_payload(payload),
                headers=self._request_headers,
            )
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(
                f"{method} {url} failed: {exc}", cause=exc
            ) from exc
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return _to_response(response)

    def close(self) -> None:
        self._client.close()


class AsyncHttpxClient(AsyncHTTPClient):
    """:class:`AsyncHTTPClient` backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        merged = {**DEFAULT_HEADERS, **(headers or {})}
        self._request_headers = _request_headers(client, merged)
        self._client = client or httpx.AsyncClient(headers=merged, timeout=timeout)

    async def request(
        self, method: str, url: str, payload: Optional[dict[str, Any]] = None
    ) -> HTTPResponse:
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(
                method,
                url,
                content=_encode_payload(payload),
                headers=self._request_headers,
            )
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(
                f"{method} {url} failed: {exc}", cause=exc
            ) from exc
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return _to_response(response)

    async def close(self) -> None:
        await self._client.aclose()
