"""
http://jsonapi.org/format/#content-negotiation-servers

Servers MUST send all JSON API data in response documents with the header
"Content-Type: application/vnd.api+json" without any media type parameters.

Content negotiation is left to the app, this request class only parses the
jsonapi query arguments and request documents.
"""

from flask import Request
from typing import Any, Mapping, Optional, Sequence
import jsonapi_serializer
from .errors import ValidationError
from .query_plan import QueryPlan, parse_query_plan
from .request_body import transform_request


# pylint: disable=too-many-ancestors
class JSONAPIRequest(Request):
    """
    Parse the jsonapi-related request arguments:
    - query args: include, fields[], sort, filter[], page[]
    - body: json:api request document
    """

    jsonapi_content_types = ["application/json", "application/vnd.api+json"]

    @property
    def is_jsonapi(self) -> bool:
        """
        :return: whether the request content type is jsonapi
        """
        if not isinstance(self.content_type, str):
            return False
        return self.content_type.split(";")[0].strip() in self.jsonapi_content_types

    def get_query_plan(
        self,
        allowed_filters: Optional[Sequence[str]] = None,
        allowed_includes: Optional[Sequence[str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> QueryPlan:
        """
        :param allowed_filters: filter fields allowed for the current operation
        :param allowed_includes: include paths allowed for the current operation
        :param params: values for the visibility predicates
        :return: QueryPlan parsed from the url query args
        """
        return parse_query_plan(self.args, allowed_filters, allowed_includes, params)

    def get_jsonapi_payload(self, resource_type: Optional[str] = None):
        """
        :param resource_type: expected type of the resource objects
        :return: the request document transformed to a dict (or a list of dicts)
        """
        if not self.is_jsonapi:
            jsonapi_serializer.log.warning(f'Invalid Media Type! "{self.content_type}"')
        payload = self.get_json(silent=True)
        if payload is None:
            raise ValidationError("Invalid JSON Payload")
        return transform_request(payload, resource_type)
