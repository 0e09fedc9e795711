"""
Spine - URL routing.

Pure functions from resources and queries to absolute request URLs.
"""

from typing import TYPE_CHECKING, Union
from urllib.parse import quote

from .exceptions import UnaddressableResourceError
from .resource import Addressed, Identified, Resource, Unaddressable

if TYPE_CHECKING:
    from .query import Query


def join_url(base: str, *segments: str) -> str:
    """Append percent-encoded path segments to ``base``."""
    parts = [base.rstrip("/")]
    parts.extend(quote(str(segment), safe="") for segment in segments)
    return "/".join(parts)


def resolve_resource_url(endpoint: str, resource: Resource) -> str:
    """
    URL of a single resource.

    Raises:
        UnaddressableResourceError: If the resource has neither a self link
            nor an ID.
    """
    address = resource.address
    if isinstance(address, Addressed):
        return address.location
    if isinstance(address, Identified):
        return join_url(endpoint, address.resource_type, address.id)
    if isinstance(address, Unaddressable):
        raise UnaddressableResourceError(
            f"'{address.resource_type}' resource has neither a self link nor an ID"
        )
    raise TypeError(f"Unknown address {address!r}")


class Router:
    """Maps resources, collections and queries to URLs under an endpoint."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint.rstrip("/")

    def collection_url(self, resource: Union[Resource, type[Resource], str]) -> str:
        """URL of all resources of a type; the target of a create."""
        resource_type = resource if isinstance(resource, str) else resource.resource_type
        return join_url(self.endpoint, resource_type)

    def resource_url(self, resource: Resource) -> str:
        return resolve_resource_url(self.endpoint, resource)

    def query_url(self, query: "Query") -> str:
        return query.resolve_url(self.endpoint)
