"""
Spine - Resource identity model.

Resources are dataclasses deriving from :class:`Resource`. Attributes are
plain dataclass fields (optionally declared with :func:`attribute` to map a
JSON key), relationships are declared with :func:`to_one` and :func:`to_many`.

Example:
    ```python
    @dataclass(eq=False)
    class Article(Resource):
        resource_type: ClassVar[str] = "articles"

        title: Optional[str] = None
        published_at: Optional[str] = attribute(key="published-at")
        author: ToOne = to_one("people")
        comments: ToMany = to_many("comments")
    ```

Subclasses should pass ``eq=False`` so that instances keep identity
semantics; the client merges server responses onto the instances callers
hold, and comparisons between them are by identity.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Callable, ClassVar, Iterator, Optional, Union

from .exceptions import PreconditionError

RELATIONSHIP_TO_ONE = "to_one"
RELATIONSHIP_TO_MANY = "to_many"

_BASE_FIELDS = frozenset({"id", "self_link", "meta", "is_loaded"})


def _contains(items: list["Resource"], resource: "Resource") -> bool:
    return any(item is resource for item in items)


def _without(items: list["Resource"], resource: "Resource") -> list["Resource"]:
    return [item for item in items if item is not resource]


# ==================== Addresses ====================


@dataclass(frozen=True)
class Addressed:
    """A resource reachable through an explicit URL."""

    location: str


@dataclass(frozen=True)
class Identified:
    """A resource reachable through ``{resource_type}/{id}``."""

    resource_type: str
    id: str


@dataclass(frozen=True)
class Unaddressable:
    """A resource that has not been persisted and has no location."""

    resource_type: str


Address = Union[Addressed, Identified, Unaddressable]


# ==================== Relationships ====================


@dataclass(eq=False)
class ToOne:
    """
    A to-one relationship.

    ``is_loaded`` tells whether the linkage is known (decoded from the server
    or set locally). ``is_dirty`` marks a local change that has not been
    saved yet.
    """

    resource_type: str
    resource: Optional["Resource"] = None
    is_loaded: bool = False
    is_dirty: bool = False
    self_link: Optional[str] = None
    related_link: Optional[str] = None

    def set(self, resource: Optional["Resource"]) -> None:
        """Link ``resource``, or unlink with ``None``."""
        self.resource = resource
        self.is_loaded = True
        self.is_dirty = True

    def clear(self) -> None:
        self.set(None)

    def load(self, resource: Optional["Resource"]) -> None:
        """Replace the linkage with server state, leaving no pending change."""
        self.resource = resource
        self.is_loaded = True
        self.is_dirty = False

    def mark_clean(self) -> None:
        self.is_dirty = False


@dataclass(eq=False)
class ToMany:
    """
    A to-many relationship with pending additions and removals.

    ``added`` and ``removed`` record local changes since the relationship was
    last loaded or saved.
    """

    resource_type: str
    resources: list["Resource"] = field(default_factory=list)
    added: list["Resource"] = field(default_factory=list)
    removed: list["Resource"] = field(default_factory=list)
    is_loaded: bool = False
    self_link: Optional[str] = None
    related_link: Optional[str] = None

    @property
    def is_dirty(self) -> bool:
        return bool(self.added or self.removed)

    def add(self, resource: "Resource") -> None:
        """Link ``resource``."""
        if _contains(self.removed, resource):
            self.removed = _without(self.removed, resource)
        elif not _contains(self.resources, resource):
            self.added.append(resource)
        if not _contains(self.resources, resource):
            self.resources.append(resource)

    def remove(self, resource: "Resource") -> None:
        """Unlink ``resource``."""
        if _contains(self.added, resource):
            self.added = _without(self.added, resource)
        elif _contains(self.resources, resource):
            self.removed.append(resource)
        self.resources = _without(self.resources, resource)

    def replace(self, resources: list["Resource"]) -> None:
        """Replace the linkage with server state, leaving no pending change."""
        self.resources = list(resources)
        self.is_loaded = True
        self.mark_clean()

    def mark_clean(self) -> None:
        self.added = []
        self.removed = []

    def __iter__(self) -> Iterator["Resource"]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    def __contains__(self, resource: object) -> bool:
        return any(item is resource for item in self.resources)


Relationship = Union[ToOne, ToMany]


# ==================== Field declarations ====================


def attribute(
    key: Optional[str] = None,
    default: Any = None,
    default_factory: Optional[Callable[[], Any]] = None,
) -> Any:
    """Declare an attribute, optionally stored under a different JSON key."""
    metadata = {"key": key} if key else {}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def to_one(resource_type: str, key: Optional[str] = None) -> Any:
    """Declare a to-one relationship to resources of ``resource_type``."""
    metadata: dict[str, Any] = {"relationship": RELATIONSHIP_TO_ONE}
    if key:
        metadata["key"] = key
    return field(
        default_factory=lambda: ToOne(resource_type),
        metadata=metadata,
        repr=False,
    )


def to_many(resource_type: str, key: Optional[str] = None) -> Any:
    """Declare a to-many relationship to resources of ``resource_type``."""
    metadata: dict[str, Any] = {"relationship": RELATIONSHIP_TO_MANY}
    if key:
        metadata["key"] = key
    return field(
        default_factory=lambda: ToMany(resource_type),
        metadata=metadata,
        repr=False,
    )


# ==================== Resource ====================


@dataclass(eq=False)
class Resource:
    """
    Base class for typed, identifiable, addressable entities.

    ``id`` is ``None`` until the resource is persisted (or assigned a
    client-generated ID on create). ``self_link`` overrides the default
    ``{resource_type}/{id}`` addressing when set.
    """

    resource_type: ClassVar[str] = ""

    id: Optional[str] = None
    self_link: Optional[str] = None
    meta: dict[str, Any] = field(default_factory=dict, repr=False)
    is_loaded: bool = field(default=True, init=False, repr=False)

    @property
    def is_new(self) -> bool:
        """True until the resource has an ID."""
        return self.id is None

    @property
    def address(self) -> Address:
        """How this resource can be reached; ``self_link`` wins over ``id``."""
        if self.self_link is not None:
            return Addressed(self.self_link)
        if self.id is not None:
            return Identified(self.resource_type, self.id)
        return Unaddressable(self.resource_type)

    @classmethod
    def attribute_fields(cls) -> list[tuple[str, str]]:
        """``(field_name, json_key)`` pairs for every declared attribute."""
        return [
            (f.name, f.metadata.get("key", f.name))
            for f in fields(cls)
            if f.name not in _BASE_FIELDS and "relationship" not in f.metadata
        ]

    @classmethod
    def relationship_fields(cls) -> list[tuple[str, str]]:
        """``(field_name, json_key)`` pairs for every declared relationship."""
        return [
            (f.name, f.metadata.get("key", f.name))
            for f in fields(cls)
            if "relationship" in f.metadata
        ]

    def relationships(self) -> dict[str, Relationship]:
        """Relationship containers keyed by field name."""
        return {name: getattr(self, name) for name, _ in self.relationship_fields()}

    def linked_resources(self) -> list["Resource"]:
        """Resources currently linked through any relationship."""
        linked: list[Resource] = []
        for relationship in self.relationships().values():
            if isinstance(relationship, ToOne):
                if relationship.resource is not None:
                    linked.append(relationship.resource)
            else:
                linked.extend(relationship.resources)
        return linked

    def relationship(self, name: str) -> Relationship:
        """
        Look up a relationship by field name or JSON key.

        Raises:
            PreconditionError: If no such relationship is declared.
        """
        for field_name, key in self.relationship_fields():
            if name in (field_name, key):
                return getattr(self, field_name)
        raise PreconditionError(
            f"'{self.resource_type}' has no relationship named '{name}'"
        )

    def mark_clean(self) -> None:
        """Forget pending relationship changes."""
        for relationship in self.relationships().values():
            relationship.mark_clean()

    def identifier(self) -> dict[str, str]:
        """The resource identifier object, ``{"type": ..., "id": ...}``."""
        if self.id is None:
            raise PreconditionError(
                f"Cannot link to an unsaved '{self.resource_type}' resource; save it first"
            )
        return {"type": self.resource_type, "id": self.id}
