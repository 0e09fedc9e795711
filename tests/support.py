"""
Resource classes and fake HTTP gateways shared by the Spine tests.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional

from spine.http import AsyncHTTPClient, HTTPClient, HTTPResponse
from spine.resource import Resource, ToMany, ToOne, attribute, to_many, to_one

ENDPOINT = "https://api.example.com"


@dataclass(eq=False)
class Person(Resource):
    resource_type: ClassVar[str] = "people"

    name: Optional[str] = None


@dataclass(eq=False)
class Comment(Resource):
    resource_type: ClassVar[str] = "comments"

    body: Optional[str] = None
    author: ToOne = to_one("people")


@dataclass(eq=False)
class Article(Resource):
    resource_type: ClassVar[str] = "articles"

    title: Optional[str] = None
    body: Optional[str] = None
    published_at: Optional[str] = attribute(key="published-at")
    author: ToOne = to_one("people")
    comments: ToMany = to_many("comments")


def response(status_code: int = 200, document: Any = None, content: Optional[bytes] = None) -> HTTPResponse:
    """Build an HTTPResponse from a JSON document or raw bytes."""
    if content is None:
        content = json.dumps(document).encode("utf-8") if document is not None else b""
    return HTTPResponse(status_code=status_code, content=content)


@dataclass
class RecordedRequest:
    method: str
    url: str
    payload: Optional[dict[str, Any]] = None


class _Recorder:
    """Records requests and replays queued responses or a transport error."""

    def __init__(
        self,
        responses: Optional[list[HTTPResponse]] = None,
        error: Optional[Exception] = None,
        on_request: Optional[Callable[[RecordedRequest], None]] = None,
    ):
        self.responses = list(responses or [])
        self.error = error
        self.on_request = on_request
        self.requests: list[RecordedRequest] = []
        self.closed = False

    def _record(self, method: str, url: str, payload: Optional[dict[str, Any]]) -> HTTPResponse:
        recorded = RecordedRequest(method, url, payload)
        self.requests.append(recorded)
        if self.on_request:
            self.on_request(recorded)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


class RecordingHTTPClient(_Recorder, HTTPClient):
    def request(self, method, url, payload=None):
        return self._record(method, url, payload)

    def close(self):
        self.closed = True


class AsyncRecordingHTTPClient(_Recorder, AsyncHTTPClient):
    async def request(self, method, url, payload=None):
        return self._record(method, url, payload)

    async def close(self):
        self.closed = True


def article_document(
    article_id: str = "42",
    title: str = "Hello",
    included: Optional[list[dict[str, Any]]] = None,
    **extra: Any,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": "articles",
        "id": article_id,
        "attributes": {"title": title},
    }
    data.update(extra)
    document: dict[str, Any] = {"data": data}
    if included is not None:
        document["included"] = included
    return document
