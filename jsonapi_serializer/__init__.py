# flake8: noqa: F401
#
# JSON:API serialization of in-memory objects and query planning
#
from .jsonapi_init import log, JSONAPI, dict_merge
from .errors import (
    JsonapiError,
    ValidationError,
    ProjectionError,
    DescriptorNotFound,
    RelationshipResolutionError,
    IdentityResolutionError,
    SerializationError,
)
from .descriptors import (
    AttributeDescriptor,
    RelationshipDescriptor,
    ResourceDescriptor,
    attribute,
    belongs_to,
    has_many,
    has_one,
    resource,
)
from .registry import ResourceRegistry, default_registry
from .query_plan import QueryPlan, FilterNode, SortKey, OffsetPage, CursorPage, parse_query_plan
from .projection import project_attributes, project_relationships, project_resource
from .includes import IncludedSet, resolve_included
from .jsonapi_filters import filter_collection
from .jsonapi_formatting import sort_collection, paginate, jsonapi_format_response
from .serializer import JSONAPISerializer, serialize
from .request import JSONAPIRequest
from .request_body import transform_request
from .response import jsonapi_response
from .json_encoder import JSONAPIJSONProvider, JSONAPIJSONEncoder
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "JSONAPI",
    "log",
    # descriptors:
    "AttributeDescriptor",
    "RelationshipDescriptor",
    "ResourceDescriptor",
    "attribute",
    "belongs_to",
    "has_many",
    "has_one",
    "resource",
    "ResourceRegistry",
    "default_registry",
    # query plan:
    "QueryPlan",
    "FilterNode",
    "SortKey",
    "OffsetPage",
    "CursorPage",
    "parse_query_plan",
    # serialization:
    "project_attributes",
    "project_relationships",
    "project_resource",
    "IncludedSet",
    "resolve_included",
    "filter_collection",
    "sort_collection",
    "paginate",
    "jsonapi_format_response",
    "JSONAPISerializer",
    "serialize",
    # flask:
    "JSONAPIRequest",
    "JSONAPIJSONProvider",
    "JSONAPIJSONEncoder",
    "jsonapi_response",
    "transform_request",
    # Errors:
    "JsonapiError",
    "ValidationError",
    "ProjectionError",
    "DescriptorNotFound",
    "RelationshipResolutionError",
    "IdentityResolutionError",
    "SerializationError",
)
