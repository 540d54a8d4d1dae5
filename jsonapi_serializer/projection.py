#
# Projection of raw objects onto json:api resource objects
#
# http://jsonapi.org/format/#document-resource-objects
# {
#     "id": "1",
#     "type": "articles",
#     "attributes": {"title": "..."},
#     "relationships": {"author": {"data": {"id": "9", "type": "people"}}}
# }
#
# Relationship linkage only contains (type, id) pairs, the related resources themselves
# are serialized by the include resolver (includes.py)
#
from collections.abc import Mapping
from typing import Any, Dict, Optional
import jsonapi_serializer
from .config import get_config
from .descriptors import ResourceDescriptor, RelationshipDescriptor
from .errors import IdentityResolutionError, RelationshipResolutionError
from .jsonapi_types import JSONAPIResourceIdentifier, JSONAPIResourceObject
from .query_plan import QueryPlan
from .util import MISSING, get_value, shape_of


def resource_identity(descriptor: ResourceDescriptor, obj: Any, plan: QueryPlan) -> str:
    """
    Apply the identity rule of `descriptor` to `obj`
    :return: the json:api id
    :raises IdentityResolutionError: if the id is missing or empty
    """
    try:
        if callable(descriptor.id):
            object_id = descriptor.id(obj, plan.params)
        else:
            object_id = get_value(obj, descriptor.id, None)
    except IdentityResolutionError:
        raise
    except Exception as exc:
        raise IdentityResolutionError(f"{descriptor.type}: id generation failed: {exc}") from exc

    if object_id is None or object_id is MISSING or str(object_id) == "":
        raise IdentityResolutionError(f"{descriptor.type}: failed to get the id of {obj!r}")
    return str(object_id)


def project_attributes(descriptor: ResourceDescriptor, obj: Any, plan: QueryPlan) -> Dict[str, Any]:
    """
    :return: dictionary of exposed attribute names and values

    The sparse fieldset for the descriptor type is applied,
    https://jsonapi.org/format/#fetching-sparse-fieldsets:
        If a client requests a restricted set of fields for a given resource type, an endpoint MUST NOT include additional fields in resource objects
        of that type in its response.
    Values are copied as they are, the json encoder takes care of dates, decimals etc.
    """
    fields = plan.fields_for(descriptor.type)
    result = {}
    for attr in descriptor.attributes:
        if fields is not None and attr.name not in fields:
            continue
        if not attr.is_visible(obj, plan.params):
            continue
        value = get_value(obj, attr.property, None)
        result[attr.name] = value
    return result


def _related_type(relationship: RelationshipDescriptor, related: Any) -> str:
    """
    :return: json:api type of a related object
    """
    resource_type = relationship.type
    polymorphic = relationship.polymorphic
    if polymorphic:
        shape = shape_of(related)
        if isinstance(polymorphic, Mapping):
            resource_type = polymorphic.get(shape, resource_type)
        elif shape:
            resource_type = shape.lower()
    if not resource_type:
        raise RelationshipResolutionError(
            f'Relationship "{relationship.name}": resource type could not be determined for {related!r}', relationship=relationship.name
        )
    return resource_type


def _related_id(relationship: RelationshipDescriptor, related: Any) -> str:
    """
    :return: json:api id of a related object
    """
    object_id = None
    if relationship.id_method:
        object_id = get_value(related, relationship.id_method, None)
        if callable(object_id):
            object_id = object_id()
    if object_id is None or object_id == "":
        object_id = get_value(related, get_config("ID_FIELD"), None)
    if object_id is None or object_id == "":
        raise RelationshipResolutionError(
            f'Relationship "{relationship.name}": id could not be determined for {related!r}', relationship=relationship.name
        )
    return str(object_id)


def resource_linkage(relationship: RelationshipDescriptor, related: Any) -> JSONAPIResourceIdentifier:
    """
    :return: {"id": ..., "type": ...}
    """
    return {"id": _related_id(relationship, related), "type": _related_type(relationship, related)}


def related_objects(relationship: RelationshipDescriptor, obj: Any) -> list:
    """
    :return: list of the objects related to `obj` through `relationship`
    """
    related = get_value(obj, relationship.property, None)
    if related is None:
        return []
    if isinstance(related, (list, tuple, set, frozenset)):
        return [item for item in related if item is not None]
    if relationship.to_many:
        jsonapi_serializer.log.debug(f'to-many relationship "{relationship.name}" holds a single object')
    return [related]


def relationship_data(relationship: RelationshipDescriptor, obj: Any) -> Any:
    """
    :return: resource linkage of the relationship: None or {id, type} for to-one, a list for to-many
    """
    related = related_objects(relationship, obj)
    if relationship.to_many:
        return [resource_linkage(relationship, item) for item in related]
    if not related:
        return None
    return resource_linkage(relationship, related[0])


def project_relationships(descriptor: ResourceDescriptor, obj: Any, plan: QueryPlan) -> Dict[str, Dict[str, Any]]:
    """
    :return: dict of exposed relationship names -> {"data": linkage}
    :raises RelationshipResolutionError: when the linkage of a related object can't be built
    """
    result = {}
    for relationship in descriptor.relationships:
        if not relationship.is_visible(obj, plan.params):
            continue
        result[relationship.name] = {"data": relationship_data(relationship, obj)}
    return result


def project_resource(descriptor: ResourceDescriptor, obj: Any, plan: QueryPlan) -> Optional[JSONAPIResourceObject]:
    """
    :return: json:api resource object for `obj`, None if obj is None
    """
    if obj is None:
        return None
    result: JSONAPIResourceObject = {
        "id": resource_identity(descriptor, obj, plan),
        "type": descriptor.type,
        "attributes": project_attributes(descriptor, obj, plan),
    }
    relationships = project_relationships(descriptor, obj, plan)
    if relationships:
        result["relationships"] = relationships
    return result
