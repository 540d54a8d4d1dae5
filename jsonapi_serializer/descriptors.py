"""Resource descriptors.

A resource descriptor maps raw objects of one logical resource type onto json:api
resource objects. Descriptors are plain configuration values: they are built once
with the builder functions below (or as dataclass literals), registered in a
:class:`~jsonapi_serializer.registry.ResourceRegistry` and never modified afterwards.

Example::

    article = resource(
        "ArticleSerializer",
        attributes=["title", attribute("created_at", "created-at")],
        relationships=[belongs_to("author", type="people"), has_many("comments", type="comments")],
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from .util import strip_suffix


Condition = Callable[[Any, Mapping[str, Any]], bool]
IdRule = Union[str, Callable[[Any, Mapping[str, Any]], Any]]

HAS_ONE = "hasOne"
BELONGS_TO = "belongsTo"
HAS_MANY = "hasMany"
RELATIONSHIP_KINDS = (HAS_ONE, BELONGS_TO, HAS_MANY)


@dataclass(frozen=True)
class AttributeDescriptor:
    """One exposed attribute.

    :param property: name of the property on the raw object
    :param name: exposed name, defaults to ``property``
    :param condition: optional visibility predicate ``condition(obj, params)``
    """

    property: str
    name: Optional[str] = None
    condition: Optional[Condition] = None

    def __post_init__(self):
        if self.name is None:
            object.__setattr__(self, "name", self.property)

    def is_visible(self, obj: Any, params: Mapping[str, Any]) -> bool:
        return self.condition is None or bool(self.condition(obj, params))


@dataclass(frozen=True)
class RelationshipDescriptor:
    """One exposed relationship.

    :param property: name of the property holding the related object(s)
    :param name: exposed name, defaults to ``property``
    :param kind: ``hasOne``, ``belongsTo`` (to-one) or ``hasMany`` (to-many)
    :param type: static json:api type of the related objects
    :param descriptor: static descriptor of the related objects, used for includes
    :param polymorphic: mapping of related object shape (discriminator) to json:api type,
        or ``True`` to use the lower-cased shape as type
    :param condition: optional visibility predicate ``condition(obj, params)``
    :param id_method: name of the property or method returning the id of a related object
    """

    property: str
    name: Optional[str] = None
    kind: str = HAS_ONE
    type: Optional[str] = None
    descriptor: Optional["ResourceDescriptor"] = None
    polymorphic: Union[None, bool, Mapping[str, str]] = None
    condition: Optional[Condition] = None
    id_method: Optional[str] = None

    def __post_init__(self):
        if self.kind not in RELATIONSHIP_KINDS:
            raise ValueError(f'Invalid relationship kind "{self.kind}" for "{self.property}"')
        if self.name is None:
            object.__setattr__(self, "name", self.property)
        if self.type is None and self.descriptor is not None:
            object.__setattr__(self, "type", self.descriptor.type)

    @property
    def to_many(self) -> bool:
        return self.kind == HAS_MANY

    def is_visible(self, obj: Any, params: Mapping[str, Any]) -> bool:
        return self.condition is None or bool(self.condition(obj, params))


@dataclass(frozen=True)
class ResourceDescriptor:
    """Declarative mapping for one json:api resource type.

    :param type: json:api type name
    :param id: identity rule, the name of the id property or a callable ``id(obj, params)``
    :param attributes: ordered attribute descriptors
    :param relationships: ordered relationship descriptors
    :param name: name of the definition (eg. ``ArticleSerializer``), used as secondary registry key
    """

    type: str
    id: IdRule = "id"
    attributes: Tuple[AttributeDescriptor, ...] = field(default_factory=tuple)
    relationships: Tuple[RelationshipDescriptor, ...] = field(default_factory=tuple)
    name: Optional[str] = None

    def __post_init__(self):
        if not self.type:
            raise ValueError("A resource descriptor requires a type")
        object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "relationships", tuple(self.relationships))
        for kind, items in (("attribute", self.attributes), ("relationship", self.relationships)):
            names = [item.name for item in items]
            duplicates = {name for name in names if names.count(name) > 1}
            if duplicates:
                raise ValueError(f"Duplicate {kind} names for {self.type}: {sorted(duplicates)}")

    def get_attribute(self, name: str) -> Optional[AttributeDescriptor]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    def source_property(self, name: str) -> str:
        """
        :param name: exposed attribute name (or "id")
        :return: the name of the raw object property that holds the value
        """
        if name == "id" and isinstance(self.id, str):
            return self.id
        attr = self.get_attribute(name)
        return attr.property if attr is not None else name


def attribute(property: str, name: Optional[str] = None, condition: Optional[Condition] = None) -> AttributeDescriptor:
    return AttributeDescriptor(property, name, condition)


def _relationship(kind: str, property: str, name: Optional[str] = None, **options: Any) -> RelationshipDescriptor:
    return RelationshipDescriptor(property, name, kind=kind, **options)


def has_one(property: str, name: Optional[str] = None, **options: Any) -> RelationshipDescriptor:
    return _relationship(HAS_ONE, property, name, **options)


def belongs_to(property: str, name: Optional[str] = None, **options: Any) -> RelationshipDescriptor:
    return _relationship(BELONGS_TO, property, name, **options)


def has_many(property: str, name: Optional[str] = None, **options: Any) -> RelationshipDescriptor:
    return _relationship(HAS_MANY, property, name, **options)


def resource(
    name: Optional[str] = None,
    type: Optional[str] = None,
    id: IdRule = "id",
    attributes: Sequence[Union[str, AttributeDescriptor]] = (),
    relationships: Sequence[RelationshipDescriptor] = (),
) -> ResourceDescriptor:
    """Build a resource descriptor

    When no `type` is given, it is derived from the definition name:
    ``ArticleSerializer`` => ``article``

    :param name: definition name
    :param type: json:api type
    :param id: identity rule
    :param attributes: attribute descriptors or property names
    :param relationships: relationship descriptors
    :return: ResourceDescriptor
    """
    if type is None:
        if not name:
            raise ValueError("resource() requires a name or a type")
        type = strip_suffix(name).lower()
    attrs = [attribute(attr) if isinstance(attr, str) else attr for attr in attributes]
    return ResourceDescriptor(type=type, id=id, attributes=tuple(attrs), relationships=tuple(relationships), name=name)
