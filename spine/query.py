"""
Spine - Declarative fetch queries.

A Query describes what to fetch: resources of a type (optionally restricted
to a set of IDs) or the resources linked through a relationship of another
resource. Turning a Query into a URL is pure and deterministic.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union
from urllib.parse import quote

from .exceptions import PreconditionError
from .resource import Resource
from .router import join_url, resolve_resource_url

_SAFE = ",-_.~"


def _encode(value: Any) -> str:
    return quote(str(value), safe=_SAFE)


@dataclass
class Query:
    """
    Description of a fetch request.

    Example:
        ```python
        query = (
            Query.for_type("articles")
            .where("status", "published")
            .including("author", "comments.author")
            .order_by("created", descending=True)
        )
        url = query.resolve_url("https://api.example.com")
        ```
    """

    resource_type: str
    resource_ids: list[str] = field(default_factory=list)
    source: Optional[Resource] = field(default=None, repr=False)
    relationship: Optional[str] = None
    includes: list[str] = field(default_factory=list)
    sparse_fields: dict[str, list[str]] = field(default_factory=dict)
    filters: dict[str, str] = field(default_factory=dict)
    sort_order: list[str] = field(default_factory=list)

    @classmethod
    def for_type(
        cls,
        resource_type: Union[str, type[Resource]],
        resource_ids: Optional[list[str]] = None,
    ) -> "Query":
        """Query resources of a type, optionally restricted to some IDs."""
        if not isinstance(resource_type, str):
            resource_type = resource_type.resource_type
        return cls(resource_type=resource_type, resource_ids=list(resource_ids or []))

    @classmethod
    def for_relationship(cls, resource: Resource, relationship: str) -> "Query":
        """
        Query the resources linked from ``resource`` through ``relationship``.

        Raises:
            PreconditionError: If ``resource`` declares no such relationship.
        """
        container = resource.relationship(relationship)
        return cls(
            resource_type=container.resource_type,
            source=resource,
            relationship=relationship,
        )

    # ==================== Builders ====================

    def including(self, *paths: str) -> "Query":
        """Ask the server to sideload related resources."""
        for path in paths:
            if path not in self.includes:
                self.includes.append(path)
        return self

    def restrict_fields(self, resource_type: str, *names: str) -> "Query":
        """Only fetch the given fields of ``resource_type``."""
        self.sparse_fields.setdefault(resource_type, []).extend(names)
        return self

    def where(self, prop: str, value: Any) -> "Query":
        """Filter on a property being equal to ``value``."""
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.filters[prop] = str(value)
        return self

    def order_by(self, prop: str, descending: bool = False) -> "Query":
        self.sort_order.append(f"-{prop}" if descending else prop)
        return self

    # ==================== URL resolution ====================

    def _path(self, base: str) -> tuple[str, list[tuple[str, str]]]:
        if self.relationship is not None:
            container = self.source.relationship(self.relationship)
            if container.related_link:
                return container.related_link, []
            return join_url(resolve_resource_url(base, self.source), self.relationship), []

        if len(self.resource_ids) == 1:
            return join_url(base, self.resource_type, self.resource_ids[0]), []
        if self.resource_ids:
            return join_url(base, self.resource_type), [
                ("filter[id]", ",".join(self.resource_ids))
            ]
        return join_url(base, self.resource_type), []

    def parameters(self) -> list[tuple[str, str]]:
        """Query-string parameters other than the ID filter, in a stable order."""
        params: list[tuple[str, str]] = []
        if self.includes:
            params.append(("include", ",".join(self.includes)))
        for resource_type in sorted(self.sparse_fields):
            params.append(
                (f"fields[{resource_type}]", ",".join(self.sparse_fields[resource_type]))
            )
        for prop in sorted(self.filters):
            params.append((f"filter[{prop}]", self.filters[prop]))
        if self.sort_order:
            params.append(("sort", ",".join(self.sort_order)))
        return params

    def resolve_url(self, base: str) -> str:
        """
        Absolute URL of this query relative to ``base``.

        Raises:
            UnaddressableResourceError: If this is a relationship query on a
                resource without ID, self link or related link.
        """
        if self.relationship is not None and self.source is None:
            raise PreconditionError("A relationship query needs a source resource")
        url, params = self._path(base)
        params.extend(self.parameters())
        if not params:
            return url
        query_string = "&".join(f"{name}={_encode(value)}" for name, value in params)
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{query_string}"
