"""
Document assembly

    resource descriptor + raw data + query parameters
        => query plan
        => filter -> sort -> paginate (collections only)
        => resource objects
        => included resources
        => {"data": ..., "included": [...], "meta": {...}, "links": {...}}

A serialize call either returns a complete document or raises a SerializationError,
documents with partially serialized items are never returned.
"""
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence, Union
import jsonapi_serializer
from .descriptors import ResourceDescriptor
from .errors import JsonapiError, SerializationError
from .includes import resolve_included
from .jsonapi_filters import filter_collection
from .jsonapi_formatting import jsonapi_format_response, paginate, sort_collection
from .jsonapi_types import JSONAPIDocument, JSONAPIResourceObject
from .projection import project_resource
from .query_plan import QueryPlan, filter_allowed_filters, filter_allowed_includes, parse_query_plan
from .registry import ResourceRegistry, default_registry


class JSONAPISerializer:
    """
    Serializes raw objects with the descriptors of a registry
    """

    def __init__(self, registry: Optional[ResourceRegistry] = None) -> None:
        self.registry = default_registry if registry is None else registry

    def get_descriptor(self, resource: Union[str, ResourceDescriptor]) -> ResourceDescriptor:
        """
        :param resource: descriptor or registered type/definition name
        :return: ResourceDescriptor, descriptors that are passed in are (re)registered
        """
        if isinstance(resource, ResourceDescriptor):
            if self.registry.find(resource.type) is not resource:
                self.registry.register(resource)
            return resource
        return self.registry.resolve(resource)

    def serialize_item(self, resource: Union[str, ResourceDescriptor], item: Any, plan: Optional[QueryPlan] = None) -> Optional[JSONAPIResourceObject]:
        """
        :return: resource object for `item`
        """
        plan = plan if plan is not None else QueryPlan()
        return project_resource(self.get_descriptor(resource), item, plan)

    def get_plan(
        self,
        plan: Optional[QueryPlan],
        query: Any,
        allowed_filters: Optional[Sequence[str]],
        allowed_includes: Optional[Sequence[str]],
        params: Optional[Mapping[str, Any]],
    ) -> QueryPlan:
        if plan is None:
            return parse_query_plan(query, allowed_filters, allowed_includes, params)
        changes = {}
        if allowed_filters is not None:
            changes["filters"] = filter_allowed_filters(plan.filters, allowed_filters)
        if allowed_includes is not None:
            changes["include"] = filter_allowed_includes(plan.include, allowed_includes)
        if params is not None:
            changes["params"] = params
        return replace(plan, **changes) if changes else plan

    def serialize(
        self,
        resource: Union[str, ResourceDescriptor],
        data: Any,
        plan: Optional[QueryPlan] = None,
        *,
        query: Any = None,
        base_url: str = "",
        allowed_filters: Optional[Sequence[str]] = None,
        allowed_includes: Optional[Sequence[str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> JSONAPIDocument:
        """
        Serialize `data` to a json:api document

        :param resource: descriptor (or registered type name) of the primary data
        :param data: object, list of objects or None
        :param plan: parsed query plan, parsed from `query` if not given
        :param query: raw query parameters
        :param base_url: url of the requested resource without query string, used for the pagination links
        :param allowed_filters: filter fields the client may use (None: all)
        :param allowed_includes: include paths the client may request (None: all)
        :param params: values passed to the visibility predicates and id callables
        :return: json:api document
        :raises SerializationError: when a descriptor, an id or a relationship linkage can't be resolved
        """
        try:
            descriptor = self.get_descriptor(resource)
            plan = self.get_plan(plan, query, allowed_filters, allowed_includes, params)

            if data is None:
                return jsonapi_format_response(None)

            meta, links = {}, {}
            if isinstance(data, (list, tuple)):
                items = filter_collection(data, plan.filters, descriptor)
                items = sort_collection(items, plan.sort, descriptor)
                links, items, meta = paginate(items, plan, descriptor, base_url)
                primary = [project_resource(descriptor, item, plan) for item in items]
                primary_keys = [(res["type"], res["id"]) for res in primary]
            else:
                items = data
                primary = project_resource(descriptor, data, plan)
                primary_keys = [(primary["type"], primary["id"])]

            included = None
            if plan.include:
                included = resolve_included(descriptor, items, plan, self.registry, exclude=primary_keys)

            return jsonapi_format_response(primary, included=included, meta=meta, links=links)
        except SerializationError:
            raise
        except Exception as exc:
            if not isinstance(exc, JsonapiError):
                # JsonapiErrors are logged when they are created
                jsonapi_serializer.log.exception(exc)
            raise SerializationError(exc) from exc


def serialize(
    resource: Union[str, ResourceDescriptor],
    data: Any,
    plan: Optional[QueryPlan] = None,
    *,
    registry: Optional[ResourceRegistry] = None,
    **kwargs: Any,
) -> JSONAPIDocument:
    """
    Serialize `data` using `registry` (default: the process wide registry), see JSONAPISerializer.serialize
    """
    return JSONAPISerializer(registry).serialize(resource, data, plan, **kwargs)
