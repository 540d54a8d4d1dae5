from typing import Any, Dict, List, TypedDict, Union


class JSONAPIResourceIdentifier(TypedDict):
    id: str
    type: str


Linkage = Union[JSONAPIResourceIdentifier, List[JSONAPIResourceIdentifier], None]


class JSONAPIRelationship(TypedDict):
    data: Linkage


class JSONAPIResourceObject(JSONAPIResourceIdentifier, total=False):
    attributes: Dict[str, Any]
    relationships: Dict[str, JSONAPIRelationship]


JSONAPIData = Union[JSONAPIResourceObject, List[JSONAPIResourceObject], None]


class JSONAPIDocument(TypedDict, total=False):
    data: JSONAPIData
    included: List[JSONAPIResourceObject]
    meta: Dict[str, Any]
    links: Dict[str, str]
    errors: List[Dict[str, Any]]
