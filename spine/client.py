"""
Spine - JSON:API client.

Provides both synchronous and asynchronous clients. Each client instance owns
its configuration, its type registry and its HTTP gateway; there is no
process-wide default client.
"""

from typing import Any, Optional, Union

from .config import ClientConfig, configure_logging
from .exceptions import PreconditionError
from .http import AsyncHTTPClient, AsyncHttpxClient, HTTPClient, HttpxClient
from .orchestrator import AsyncOrchestrator, Orchestrator, ResourceType
from .query import Query
from .resource import Resource
from .router import Router
from .serializer import JSONAPISerializer, Serializer


def _resolve_config(endpoint: Union[str, ClientConfig]) -> ClientConfig:
    config = endpoint if isinstance(endpoint, ClientConfig) else ClientConfig(endpoint=endpoint)
    if not config.endpoint:
        raise PreconditionError("An endpoint is required")
    return config


class SpineClient:
    """
    Synchronous client for JSON:API services.

    Example:
        ```python
        client = SpineClient("https://api.example.com")
        client.register_type(Article)

        # Create an article; the instance receives the server's ID
        article = Article(title="Hello")
        client.save(article)

        # Fetch it back, with its author sideloaded
        query = Query.for_type(Article, [article.id]).including("author")
        articles = client.fetch_for_query(query)
        ```

    Register every resource type before sharing the client between threads;
    the registry is not modified by any other operation.
    """

    def __init__(
        self,
        endpoint: Union[str, ClientConfig],
        http: Optional[HTTPClient] = None,
        serializer: Optional[Serializer] = None,
    ):
        self.config = _resolve_config(endpoint)
        self.serializer = serializer or JSONAPISerializer()
        self.router = Router(self.config.endpoint)
        self._owns_http = http is None
        self._http = http or HttpxClient(
            headers=self.config.headers,
            timeout=self.config.timeout,
        )
        self._orchestrator = Orchestrator(self.router, self.serializer, self._http)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "SpineClient":
        """Create a client from ``SPINE_*`` environment variables."""
        config = ClientConfig.from_env()
        configure_logging(config.log_level)
        return cls(config, **kwargs)

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    # ==================== Mapping ====================

    def register_type(
        self, resource_class: type[Resource], resource_type: Optional[str] = None
    ) -> None:
        """
        Register a resource class for decoding.

        Registering the same type again replaces the previous class.
        """
        self.serializer.register_type(resource_class, resource_type)

    # ==================== Fetching ====================

    def fetch_by_type_and_id(self, resource_type: ResourceType, resource_id: str) -> Resource:
        """
        Fetch a resource by type and ID.

        Args:
            resource_type: Plural type name, or a registered resource class.
            resource_id: The ID of the resource.

        Returns:
            The resource.

        Raises:
            ResourceNotFoundError: If the response contains no such resource.
            NotFoundError: If the server answers 404.
        """
        return self._orchestrator.fetch_by_type_and_id(resource_type, resource_id)

    def fetch_related(self, relationship: str, resource: Resource) -> list[Resource]:
        """
        Fetch the resources related to ``resource`` through ``relationship``.

        Args:
            relationship: Name of a relationship declared on the resource.
            resource: The resource holding the relationship.

        Returns:
            The related resources.
        """
        return self._orchestrator.fetch_related(relationship, resource)

    def fetch_for_query(self, query: Query) -> list[Resource]:
        """
        Fetch resources by executing a query.

        Returns:
            Resources of the query's type; sideloaded resources are reachable
            through relationships but not returned directly.
        """
        return self._orchestrator.fetch_for_query(query)

    # ==================== Saving ====================

    def save(self, resource: Resource) -> Resource:
        """
        Save a resource to the server.

        New resources are POSTed to their collection after receiving a
        client-generated ID; existing ones are PUT to their own URL. Pending
        relationship changes are sent along. Related resources are not saved
        automatically and must be saved first.

        Returns:
            The same instance, updated from the server's response.
        """
        return self._orchestrator.save(resource)

    # ==================== Deleting ====================

    def delete(self, resource: Resource) -> None:
        """Delete a resource on the server."""
        self._orchestrator.delete(resource)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "SpineClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncSpineClient:
    """
    Asynchronous client for JSON:API services.

    Example:
        ```python
        async with AsyncSpineClient("https://api.example.com") as client:
            client.register_type(Article)
            article = await client.fetch_by_type_and_id("articles", "42")
            comments = await client.fetch_related("comments", article)
        ```

    Each operation resolves exactly once. Do not run two ``save`` calls on
    the same instance concurrently.
    """

    def __init__(
        self,
        endpoint: Union[str, ClientConfig],
        http: Optional[AsyncHTTPClient] = None,
        serializer: Optional[Serializer] = None,
    ):
        self.config = _resolve_config(endpoint)
        self.serializer = serializer or JSONAPISerializer()
        self.router = Router(self.config.endpoint)
        self._owns_http = http is None
        self._http = http or AsyncHttpxClient(
            headers=self.config.headers,
            timeout=self.config.timeout,
        )
        self._orchestrator = AsyncOrchestrator(self.router, self.serializer, self._http)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AsyncSpineClient":
        """Create a client from ``SPINE_*`` environment variables."""
        config = ClientConfig.from_env()
        configure_logging(config.log_level)
        return cls(config, **kwargs)

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def register_type(
        self, resource_class: type[Resource], resource_type: Optional[str] = None
    ) -> None:
        """Register a resource class for decoding."""
        self.serializer.register_type(resource_class, resource_type)

    async def fetch_by_type_and_id(
        self, resource_type: ResourceType, resource_id: str
    ) -> Resource:
        """Fetch a resource by type and ID."""
        return await self._orchestrator.fetch_by_type_and_id(resource_type, resource_id)

    async def fetch_related(self, relationship: str, resource: Resource) -> list[Resource]:
        """Fetch the resources related to ``resource`` through ``relationship``."""
        return await self._orchestrator.fetch_related(relationship, resource)

    async def fetch_for_query(self, query: Query) -> list[Resource]:
        """Fetch resources by executing a query."""
        return await self._orchestrator.fetch_for_query(query)

    async def save(self, resource: Resource) -> Resource:
        """Save a resource to the server."""
        return await self._orchestrator.save(resource)

    async def delete(self, resource: Resource) -> None:
        """Delete a resource on the server."""
        await self._orchestrator.delete(resource)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._owns_http:
            await self._http.close()

    async def __aenter__(self) -> "AsyncSpineClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
