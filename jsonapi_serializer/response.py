# Flask responses for serialized documents
from http import HTTPStatus
from typing import Any, Mapping, Optional, Sequence, Union
from flask import make_response, request
from .descriptors import ResourceDescriptor
from .serializer import JSONAPISerializer


def jsonapi_response(
    resource: Union[str, ResourceDescriptor],
    data: Any,
    allowed_filters: Optional[Sequence[str]] = None,
    allowed_includes: Optional[Sequence[str]] = None,
    params: Optional[Mapping[str, Any]] = None,
    status: int = HTTPStatus.OK.value,
    serializer: Optional[JSONAPISerializer] = None,
):
    """
    Serialize `data` for the current request: the query plan is parsed from the url query args
    and the pagination links are built from the request url

    :param resource: descriptor (or registered type name) of the primary data
    :param data: object or list of objects
    :param allowed_filters: filter fields allowed for this view (None: all)
    :param allowed_includes: include paths allowed for this view (None: all)
    :param params: values for the visibility predicates and id callables
    :param status: HTTP status code
    :param serializer: serializer instance, uses the default registry if not given
    :return: flask response
    """
    serializer = serializer if serializer is not None else JSONAPISerializer()
    plan = request.get_query_plan(allowed_filters, allowed_includes, params)
    document = serializer.serialize(resource, data, plan, base_url=request.base_url)
    return make_response(document, status)
