"""
Spine - Serializer gateway.

Encodes resources into JSON:API documents and decodes documents back into
resource graphs. Decoding goes through a :class:`ResourceStore`, so a store
seeded with caller-owned instances receives the decoded data in place.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from .exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    DomainError,
    ErrorObject,
    ForbiddenError,
    NotFoundError,
    SerializerError,
    ServerError,
    ValidationError,
)
from .resource import Resource, ToOne
from .store import ResourceStore

logger = logging.getLogger("spine.serializer")

_ERROR_CLASSES: dict[int, type[DomainError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def _href(link: Union[str, dict[str, Any], None]) -> Optional[str]:
    """A JSON:API link is either a URL string or an object with ``href``."""
    if isinstance(link, dict):
        return link.get("href")
    return link


def error_class_for_status(status_code: int) -> type[DomainError]:
    if status_code in _ERROR_CLASSES:
        return _ERROR_CLASSES[status_code]
    if status_code >= 500:
        return ServerError
    return DomainError


class Serializer(ABC):
    """Interface the orchestrator uses to encode and decode documents."""

    @abstractmethod
    def serialize(self, resources: list[Resource]) -> dict[str, Any]:
        """Encode resources into a request document."""

    @abstractmethod
    def deserialize(
        self, document: Any, store: Optional[ResourceStore] = None
    ) -> ResourceStore:
        """Decode a response document, merging into ``store`` when given."""

    @abstractmethod
    def deserialize_error(self, document: Any, status_code: int) -> DomainError:
        """Build the error for a non-2xx response."""

    @abstractmethod
    def register_type(
        self, resource_class: type[Resource], resource_type: Optional[str] = None
    ) -> None:
        """Make ``resource_class`` the class instantiated for its type."""


class JSONAPISerializer(Serializer):
    """Default serializer for JSON:API documents."""

    def __init__(self) -> None:
        self._registry: dict[str, type[Resource]] = {}

    # ==================== Registry ====================

    def register_type(
        self, resource_class: type[Resource], resource_type: Optional[str] = None
    ) -> None:
        name = resource_type or resource_class.resource_type
        if not name:
            raise SerializerError(
                f"{resource_class.__name__} does not declare a resource_type"
            )
        if name in self._registry and self._registry[name] is not resource_class:
            logger.debug(
                "Replacing %s with %s for type '%s'",
                self._registry[name].__name__,
                resource_class.__name__,
                name,
            )
        self._registry[name] = resource_class

    @property
    def registered_types(self) -> dict[str, type[Resource]]:
        return dict(self._registry)

    def class_for_type(self, resource_type: str) -> type[Resource]:
        try:
            return self._registry[resource_type]
        except KeyError:
            raise SerializerError(
                f"No resource class registered for type '{resource_type}'"
            ) from None

    # ==================== Encoding ====================

    def serialize(self, resources: list[Resource]) -> dict[str, Any]:
        """
        Encode resources as primary data.

        Relationship linkage is included for every relationship whose linkage
        is known or changed locally; related resources themselves are not
        encoded and must already have IDs.

        Raises:
            PreconditionError: If a linked resource has no ID.
        """
        objects = [self.serialize_resource(resource) for resource in resources]
        if len(objects) == 1:
            return {"data": objects[0]}
        return {"data": objects}

    def serialize_resource(self, resource: Resource) -> dict[str, Any]:
        obj: dict[str, Any] = {"type": resource.resource_type}
        if resource.id is not None:
            obj["id"] = resource.id

        attributes = {
            key: getattr(resource, name) for name, key in resource.attribute_fields()
        }
        if attributes:
            obj["attributes"] = attributes

        relationships: dict[str, Any] = {}
        for name, key in resource.relationship_fields():
            relationship = getattr(resource, name)
            if not (relationship.is_loaded or relationship.is_dirty):
                continue
            if isinstance(relationship, ToOne):
                linked = relationship.resource
                relationships[key] = {"data": linked.identifier() if linked else None}
            else:
                relationships[key] = {
                    "data": [linked.identifier() for linked in relationship.resources]
                }
        if relationships:
            obj["relationships"] = relationships

        return obj

    # ==================== Decoding ====================

    def deserialize(
        self, document: Any, store: Optional[ResourceStore] = None
    ) -> ResourceStore:
        """
        Decode primary data and included resources into a store.

        When ``store`` is given and the primary data is a single resource
        object that is not in the store, it is merged onto the first resource
        of the same type the store was seeded with. This lets a create
        response with a server-assigned ID update the instance that was
        saved; seed the saved instance first. Linkage to resources already in
        the store resolves to those instances. Linkage to resources absent from the document produces
        placeholder instances with ``is_loaded`` set to False.

        Raises:
            SerializerError: On malformed documents or unregistered types.
        """
        if not isinstance(document, dict):
            raise SerializerError("A JSON:API document must be a JSON object")

        seeded = store is not None
        store = store if store is not None else ResourceStore()

        data = document.get("data")
        if data is None:
            primary = []
        elif isinstance(data, list):
            primary = data
        elif isinstance(data, dict):
            primary = [data]
        else:
            raise SerializerError("Primary data must be an object, an array or null")

        included = document.get("included") or []
        if not isinstance(included, list):
            raise SerializerError("'included' must be an array")

        decoded: list[tuple[Resource, dict[str, Any]]] = []
        for index, obj in enumerate(primary + included):
            merge_onto_seed = seeded and isinstance(data, dict) and index == 0
            resource = self._resolve(obj, store, merge_onto_seed)
            self._apply_fields(resource, obj)
            decoded.append((resource, obj))

        for resource, obj in decoded:
            self._apply_relationships(resource, obj, store)

        return store

    def _identity(self, obj: Any) -> tuple[str, str]:
        if not isinstance(obj, dict) or "type" not in obj or obj.get("id") is None:
            raise SerializerError(f"Invalid resource object: {obj!r}")
        return obj["type"], str(obj["id"])

    def _resolve(
        self, obj: Any, store: ResourceStore, merge_onto_seed: bool
    ) -> Resource:
        resource_type, resource_id = self._identity(obj)

        existing = store.get(resource_type, resource_id)
        if existing is not None:
            return existing

        if merge_onto_seed:
            candidates = store.resources_of_type(resource_type)
            if candidates:
                resource = candidates[0]
                old_id = resource.id
                resource.id = resource_id
                store.rekey(resource, old_id)
                logger.debug(
                    "Merged '%s' %s onto instance saved as %s",
                    resource_type,
                    resource_id,
                    old_id,
                )
                return resource

        resource = self.class_for_type(resource_type)()
        resource.id = resource_id
        store.add(resource)
        return resource

    def _linked(self, identifier: Any, store: ResourceStore) -> Resource:
        resource_type, resource_id = self._identity(identifier)
        existing = store.get(resource_type, resource_id)
        if existing is not None:
            return existing
        placeholder = self.class_for_type(resource_type)()
        placeholder.id = resource_id
        placeholder.is_loaded = False
        store.add(placeholder)
        return placeholder

    def _apply_fields(self, resource: Resource, obj: dict[str, Any]) -> None:
        attributes = obj.get("attributes") or {}
        for name, key in resource.attribute_fields():
            if key in attributes:
                setattr(resource, name, attributes[key])

        links = obj.get("links") or {}
        if links.get("self"):
            resource.self_link = _href(links["self"])

        if "meta" in obj:
            resource.meta = dict(obj["meta"] or {})

        resource.is_loaded = True

    def _apply_relationships(
        self, resource: Resource, obj: dict[str, Any], store: ResourceStore
    ) -> None:
        relationships = obj.get("relationships") or {}
        declared = {key: name for name, key in resource.relationship_fields()}

        for key, relationship_obj in relationships.items():
            if key not in declared:
                logger.debug(
                    "Ignoring undeclared relationship '%s' on '%s'",
                    key,
                    resource.resource_type,
                )
                continue
            relationship_obj = relationship_obj or {}
            container = getattr(resource, declared[key])

            links = relationship_obj.get("links") or {}
            if links.get("self"):
                container.self_link = _href(links["self"])
            if links.get("related"):
                container.related_link = _href(links["related"])

            if "data" not in relationship_obj:
                continue
            linkage = relationship_obj["data"]
            if isinstance(container, ToOne):
                container.load(self._linked(linkage, store) if linkage else None)
            else:
                container.replace([self._linked(item, store) for item in linkage or []])

    def deserialize_error(self, document: Any, status_code: int) -> DomainError:
        """Build a :class:`DomainError` subclass chosen by ``status_code``."""
        raw_errors = []
        if isinstance(document, dict):
            raw_errors = document.get("errors") or []

        errors = [ErrorObject.from_dict(e) for e in raw_errors if isinstance(e, dict)]

        message = f"Request failed with status {status_code}"
        if errors and (errors[0].detail or errors[0].title):
            message = errors[0].detail or errors[0].title

        error_class = error_class_for_status(status_code)
        return error_class(
            message,
            errors=errors,
            status_code=status_code,
            response=document if isinstance(document, dict) else None,
        )
