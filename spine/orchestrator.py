"""
Spine - Request orchestration.

Coordinates the router, the HTTP gateway and the serializer for the fetch,
save and delete flows, and turns their results into a single return value or
a single exception.

Concurrency: every call works on its own Query and ResourceStore, but two
concurrent ``save`` calls on the same resource instance race on its ``id``
and attributes. Callers must serialize writes to one resource themselves.
Operations cannot be cancelled and are never retried.
"""

import json
import logging
from typing import Any, Union
from uuid import uuid4

from .exceptions import EmptyResponseError, ResourceNotFoundError, SerializerError
from .http import AsyncHTTPClient, HTTPClient, HTTPResponse
from .query import Query
from .resource import Resource
from .router import Router
from .serializer import Serializer
from .store import ResourceStore

logger = logging.getLogger("spine.orchestrator")

ResourceType = Union[str, type[Resource]]


class _BaseOrchestrator:
    """Flow logic shared by the sync and async orchestrators."""

    def __init__(self, router: Router, serializer: Serializer):
        self.router = router
        self.serializer = serializer

    def _parse(self, response: HTTPResponse) -> Any:
        try:
            return json.loads(response.content)
        except ValueError as exc:
            raise SerializerError(
                f"Response body is not valid JSON: {exc}",
                status_code=response.status_code,
            ) from exc

    def _parse_error_document(self, response: HTTPResponse) -> Any:
        """Error bodies are best effort; a non-JSON body still yields a DomainError."""
        if not response.has_body:
            return {}
        try:
            return json.loads(response.content)
        except ValueError:
            logger.debug("Ignoring non-JSON error body (status %d)", response.status_code)
            return {}

    def _raise_for_status(self, response: HTTPResponse) -> None:
        if not response.ok:
            document = self._parse_error_document(response)
            raise self.serializer.deserialize_error(document, response.status_code)

    def _fetch_result(self, query: Query, url: str, response: HTTPResponse) -> list[Resource]:
        self._raise_for_status(response)
        if not response.has_body:
            raise EmptyResponseError(
                f"GET {url} returned {response.status_code} without a body",
                status_code=response.status_code,
            )
        store = self.serializer.deserialize(self._parse(response))
        resources = [
            resource
            for resource in store.resources_of_type(query.resource_type)
            if resource.is_loaded
        ]
        logger.debug(
            "Fetched %d '%s' resource(s) from %s", len(resources), query.resource_type, url
        )
        return resources

    def _prepare_save(self, resource: Resource) -> tuple[str, str, dict[str, Any]]:
        payload = self.serializer.serialize([resource])
        if resource.id is None:
            resource.id = str(uuid4())
            logger.debug(
                "Assigned client ID %s to new '%s' resource", resource.id, resource.resource_type
            )
            return "POST", self.router.collection_url(resource), payload
        return "PUT", self.router.resource_url(resource), payload

    def _save_result(self, resource: Resource, response: HTTPResponse) -> Resource:
        self._raise_for_status(response)
        if response.has_body:
            # The saved resource goes first; linked resources keep their instances
            linked = [r for r in resource.linked_resources() if r.id is not None]
            store = ResourceStore([resource, *linked])
            self.serializer.deserialize(self._parse(response), store)
        resource.mark_clean()
        return resource

    @staticmethod
    def _singleton_query(resource_type: ResourceType, resource_id: str) -> Query:
        return Query.for_type(resource_type, [resource_id])

    @staticmethod
    def _first(query: Query, resources: list[Resource]) -> Resource:
        if not resources:
            raise ResourceNotFoundError(
                f"No '{query.resource_type}' resource with ID '{query.resource_ids[0]}'"
            )
        return resources[0]


class Orchestrator(_BaseOrchestrator):
    """Synchronous fetch, save and delete flows."""

    def __init__(self, router: Router, serializer: Serializer, http: HTTPClient):
        super().__init__(router, serializer)
        self.http = http

    def fetch_for_query(self, query: Query) -> list[Resource]:
        """
        Execute a query.

        Returns:
            The resources of ``query.resource_type`` in the response;
            sideloaded resources of other types are decoded but left out.

        Raises:
            TransportError: If no response arrived.
            DomainError: If the server answered with a non-2xx status.
            EmptyResponseError: If a 2xx response had no body.
        """
        url = self.router.query_url(query)
        response = self.http.get(url)
        return self._fetch_result(query, url, response)

    def fetch_by_type_and_id(self, resource_type: ResourceType, resource_id: str) -> Resource:
        """
        Fetch one resource.

        Raises:
            ResourceNotFoundError: If the response holds no such resource.
        """
        query = self._singleton_query(resource_type, resource_id)
        return self._first(query, self.fetch_for_query(query))

    def fetch_related(self, relationship: str, resource: Resource) -> list[Resource]:
        """Fetch the resources linked from ``resource`` through ``relationship``."""
        return self.fetch_for_query(Query.for_relationship(resource, relationship))

    def save(self, resource: Resource) -> Resource:
        """
        Create or update a resource, merging the response onto it.

        Related resources are not saved; they must already have IDs. A new
        resource keeps its client-assigned ID if the request fails.

        Returns:
            The same instance that was passed in.
        """
        method, url, payload = self._prepare_save(resource)
        response = self.http.request(method, url, payload)
        return self._save_result(resource, response)

    def delete(self, resource: Resource) -> None:
        """Delete a resource on the server; the instance is left untouched."""
        response = self.http.delete(self.router.resource_url(resource))
        self._raise_for_status(response)


class AsyncOrchestrator(_BaseOrchestrator):
    """Asynchronous fetch, save and delete flows."""

    def __init__(self, router: Router, serializer: Serializer, http: AsyncHTTPClient):
        super().__init__(router, serializer)
        self.http = http

    async def fetch_for_query(self, query: Query) -> list[Resource]:
        """Execute a query; see :meth:`Orchestrator.fetch_for_query`."""
        url = self.router.query_url(query)
        response = await self.http.get(url)
        return self._fetch_result(query, url, response)

    async def fetch_by_type_and_id(
        self, resource_type: ResourceType, resource_id: str
    ) -> Resource:
        query = self._singleton_query(resource_type, resource_id)
        return self._first(query, await self.fetch_for_query(query))

    async def fetch_related(self, relationship: str, resource: Resource) -> list[Resource]:
        return await self.fetch_for_query(Query.for_relationship(resource, relationship))

    async def save(self, resource: Resource) -> Resource:
        """Create or update a resource; see :meth:`Orchestrator.save`."""
        method, url, payload = self._prepare_save(resource)
        response = await self.http.request(method, url, payload)
        return self._save_result(resource, response)

    async def delete(self, resource: Resource) -> None:
        response = await self.http.delete(self.router.resource_url(resource))
        self._raise_for_status(response)
