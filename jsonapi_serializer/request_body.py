"""
JSON:API request documents => plain dictionaries

https://jsonapi.org/format/#crud

    {"data": {"type": "articles", "id": "1", "attributes": {"title": "x"},
              "relationships": {"author": {"data": {"type": "people", "id": "9"}}}}}
    =>
    {"_type": "articles", "id": "1", "title": "x", "author": "9"}
"""
from typing import Any, Dict, List, Optional, Union
import jsonapi_serializer
from .errors import ValidationError


def is_resource_object(item: Any) -> bool:
    """
    :return: whether `item` can be used as a resource object in a request document
    """
    return isinstance(item, dict) and isinstance(item.get("type"), str) and bool(item.get("type"))


def transform_resource(resource_object: Dict[str, Any], resource_type: Optional[str] = None) -> Dict[str, Any]:
    """
    :param resource_object: resource object from the request "data"
    :param resource_type: expected type, a mismatch is logged
    :return: plain dict with the id, the attributes and the related ids
    """
    if resource_type and resource_object["type"] != resource_type:
        jsonapi_serializer.log.warning(f'Request type mismatch: expected "{resource_type}", got "{resource_object["type"]}"')

    result: Dict[str, Any] = {"_type": resource_object["type"]}
    if resource_object.get("id"):
        result["id"] = resource_object["id"]

    attributes = resource_object.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise ValidationError("Invalid attributes", pointer="/data/attributes")
    result.update(attributes)

    relationships = resource_object.get("relationships") or {}
    if not isinstance(relationships, dict):
        raise ValidationError("Invalid relationships", pointer="/data/relationships")
    for rel_name, relationship in relationships.items():
        data = relationship.get("data") if isinstance(relationship, dict) else None
        if not data:
            result[rel_name] = [] if isinstance(data, list) else None
        elif isinstance(data, list):
            result[rel_name] = [item.get("id") for item in data if isinstance(item, dict)]
        elif isinstance(data, dict):
            result[rel_name] = data.get("id")
        else:
            raise ValidationError(f'Invalid relationship data for "{rel_name}"', pointer=f"/data/relationships/{rel_name}")

    return result


def transform_request(document: Any, resource_type: Optional[str] = None) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Transform a json:api request document
    :param document: decoded request body
    :param resource_type: expected type of the resource objects
    :return: dict, or list of dicts when "data" is a list
    :raises ValidationError: if `document` isn't a json:api request document
    """
    if not isinstance(document, dict) or "data" not in document:
        raise ValidationError("Request is not a JSON:API document")
    data = document["data"]
    if isinstance(data, list):
        for index, item in enumerate(data):
            if not is_resource_object(item):
                raise ValidationError("Invalid resource object", pointer=f"/data/{index}")
        return [transform_resource(item, resource_type) for item in data]
    if not is_resource_object(data):
        raise ValidationError("Invalid resource object", pointer="/data")
    return transform_resource(data, resource_type)
