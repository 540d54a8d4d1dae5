"""
Inclusion of related resources (compound documents)

http://jsonapi.org/format/#fetching-includes

    In order to request resources related to other resources,
    a dot-separated path for each relationship name can be specified:
        include=comments.author

The relationship graph is walked depth first, for every root item in order and for
the relationships in declaration order. Every related object that is reached is
projected once: the included set is keyed by (type, id) and the first projection of
a key wins. When two include paths reach the same object, only the projection made
for the first path ends up in the document, although both paths are walked further.
"""
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Sequence, Tuple
import jsonapi_serializer
from .descriptors import ResourceDescriptor, RelationshipDescriptor
from .errors import DescriptorNotFound
from .jsonapi_types import JSONAPIResourceObject
from .projection import project_resource, related_objects
from .query_plan import QueryPlan
from .registry import ResourceRegistry, default_registry
from .util import shape_of


class IncludedSet:
    """
    Deduplicated set of included resource objects, keyed by (type, id).
    Keys passed in `exclude` (the primary data) are never added.
    """

    def __init__(self, exclude: Iterable[Tuple[str, str]] = ()) -> None:
        self._resources = {}
        self._excluded = set(exclude)

    def add(self, resource: JSONAPIResourceObject) -> bool:
        """
        :param resource: resource object
        :return: True if the resource has been added, False if its key was already present
        """
        key = (resource["type"], resource["id"])
        if key in self._excluded or key in self._resources:
            return False
        self._resources[key] = resource
        return True

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def encode(self) -> List[JSONAPIResourceObject]:
        """
        :return: the included[] part of the document, in discovery order
        """
        return list(self._resources.values())


def next_include_paths(relationship: RelationshipDescriptor, include_paths: Sequence[str]) -> Optional[List[str]]:
    """
    :param relationship: relationship of the current object
    :param include_paths: include paths relative to the current object
    :return: None if the relationship shouldn't be included, otherwise the include paths relative to the related objects

    next_include_paths(<comments>, ["comments.author", "tags"]) => ["author"]
    """
    prefix = relationship.name + "."
    if not any(path == relationship.name or path.startswith(prefix) for path in include_paths):
        return None
    return [path[len(prefix) :] for path in include_paths if path.startswith(prefix)]


def related_descriptor(relationship: RelationshipDescriptor, related: Any, registry: ResourceRegistry) -> ResourceDescriptor:
    """
    Find the descriptor used to serialize a related object:
    - the descriptor declared on the relationship
    - the descriptor registered for the shape of the related object
    - the descriptor registered for the type the polymorphic map assigns to that shape
    - the descriptor registered for the declared type
    """
    if relationship.descriptor is not None:
        return relationship.descriptor

    shape = shape_of(related)
    result = registry.find(shape)
    if result is None and isinstance(relationship.polymorphic, Mapping) and shape:
        result = registry.find(relationship.polymorphic.get(shape))
    if result is None:
        result = registry.find(relationship.type)
    if result is None:
        raise DescriptorNotFound(shape or relationship.type or relationship.name)
    return result


def _include(
    descriptor: ResourceDescriptor, obj: Any, include_paths: Sequence[str], plan: QueryPlan, registry: ResourceRegistry, included: IncludedSet
) -> None:
    """
    Add the objects related to `obj` along `include_paths` to `included`, recursively
    """
    if obj is None or not include_paths:
        return

    for relationship in descriptor.relationships:
        next_paths = next_include_paths(relationship, include_paths)
        if next_paths is None:
            continue
        if not relationship.is_visible(obj, plan.params):
            continue
        for related in related_objects(relationship, obj):
            target = related_descriptor(relationship, related, registry)
            resource = project_resource(target, related, plan.with_include(next_paths))
            if not included.add(resource):
                jsonapi_serializer.log.debug(f"{resource['type']}:{resource['id']} already included")
            if next_paths:
                _include(target, related, next_paths, plan, registry, included)


def resolve_included(
    descriptor: ResourceDescriptor,
    data: Any,
    plan: QueryPlan,
    registry: Optional[ResourceRegistry] = None,
    exclude: Iterable[Tuple[str, str]] = (),
) -> List[JSONAPIResourceObject]:
    """
    :param descriptor: descriptor of the primary data
    :param data: primary object or list of primary objects
    :param plan: query plan, `plan.include` contains the (allowed) include paths
    :param registry: registry used to look up the descriptors of related objects
    :param exclude: (type, id) keys of the primary data
    :return: included resource objects
    """
    registry = default_registry if registry is None else registry
    included = IncludedSet(exclude)
    items = data if isinstance(data, (list, tuple)) else [data]
    for item in items:
        _include(descriptor, item, plan.include, plan, registry, included)
    return included.encode()
