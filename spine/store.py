"""
Spine - Identity map used while decoding documents.
"""

from typing import Iterable, Iterator, Optional

from .resource import Resource


class ResourceStore:
    """
    Deduplicating mapping of ``(resource_type, id)`` to resource instances.

    A store seeded with caller-owned instances makes decoding merge onto
    those instances instead of constructing new ones. Stores are short-lived:
    one per fetch or save.
    """

    def __init__(self, resources: Optional[Iterable[Resource]] = None):
        self._resources: dict[tuple[str, Optional[str]], Resource] = {}
        for resource in resources or []:
            self.add(resource)

    @staticmethod
    def _key(resource: Resource) -> tuple[str, Optional[str]]:
        return (resource.resource_type, resource.id)

    def add(self, resource: Resource) -> None:
        self._resources[self._key(resource)] = resource

    def get(self, resource_type: str, resource_id: str) -> Optional[Resource]:
        return self._resources.get((resource_type, resource_id))

    def remove(self, resource: Resource) -> None:
        self._resources.pop(self._key(resource), None)

    def rekey(self, resource: Resource, old_id: Optional[str]) -> None:
        """Move ``resource`` from its previous ID to its current one."""
        self._resources.pop((resource.resource_type, old_id), None)
        self.add(resource)

    def resources_of_type(self, resource_type: str) -> list[Resource]:
        """Every stored resource of ``resource_type``, in insertion order."""
        return [r for r in self._resources.values() if r.resource_type == resource_type]

    def __contains__(self, resource: object) -> bool:
        if not isinstance(resource, Resource):
            return False
        return self._resources.get(self._key(resource)) is resource

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._resources.values()))

    def __len__(self) -> int:
        return len(self._resources)
