"""
JSON:API query string parsing

https://jsonapi.org/format/#fetching

The flat (multi-valued) query parameters of a request are parsed into an immutable `QueryPlan`:
- include=author,comments.author                   => include paths
- fields[articles]=title,body                      => sparse fieldsets
- sort=-created_at,title                           => sort keys
- filter[status]=draft                             => equality filter
- filter[price][gte]=100                           => filter with explicit operator
- page[number]=2&page[size]=10                     => offset pagination
- page[after]=articles:123&page[size]=10           => cursor pagination
- page[count]=false                                => don't compute totals

Parsing never raises: malformed parameters are dropped.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from urllib.parse import parse_qsl
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import jsonapi_serializer
from .config import get_config

FILTER_OPERATORS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "nin", "like")
ASC = "asc"
DESC = "desc"

FIELDS_RE = re.compile(r"fields\[([^\[\]]+)\]")
FILTER_RE = re.compile(r"filter\[([^\[\]]+)\](?:\[([^\[\]]+)\])?")
PAGE_RE = re.compile(r"page\[([^\[\]]+)\]")


@dataclass(frozen=True)
class FilterNode:
    """
    One filter condition: `field` `operator` `operand`
    """

    field: str
    operator: str = "eq"
    operand: Any = None

    def __post_init__(self):
        if isinstance(self.operand, list):
            object.__setattr__(self, "operand", tuple(self.operand))

    @property
    def members(self) -> frozenset:
        """
        :return: the set an `in`/`nin` operand tests against
        """
        if isinstance(self.operand, (tuple, list, set, frozenset)):
            return frozenset(self.operand)
        return frozenset(member.strip() for member in str(self.operand).split(","))


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: str = ASC

    @property
    def descending(self) -> bool:
        return self.direction == DESC


@dataclass(frozen=True)
class OffsetPage:
    number: int = 1
    size: int = 10


@dataclass(frozen=True)
class CursorPage:
    after: Optional[str] = None
    before: Optional[str] = None
    size: int = 10


Page = Union[OffsetPage, CursorPage]


@dataclass(frozen=True)
class QueryPlan:
    """Normalized client query.

    :param fields: sparse fieldsets, resource type => exposed attribute names
    :param include: include paths, eg. ``("author", "comments.author")``
    :param filters: filter conditions, all of them must hold
    :param sort: sort keys, the first key that differs decides
    :param page: requested page or None
    :param count: whether totals should be computed
    :param params: caller supplied values, passed to the visibility predicates and id callables
    :param query: the raw query parameters (key, value) pairs, used to build the pagination links
    """

    fields: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    include: Tuple[str, ...] = ()
    filters: Tuple[FilterNode, ...] = ()
    sort: Tuple[SortKey, ...] = ()
    page: Optional[Page] = None
    count: bool = True
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    query: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        # plans may be built by hand: "title,body" is accepted where a sequence of names is expected
        fields = {k: tuple(split_csv(v)) for k, v in dict(self.fields or {}).items()}
        object.__setattr__(self, "fields", MappingProxyType(fields))
        object.__setattr__(self, "params", MappingProxyType(dict(self.params or {})))
        object.__setattr__(self, "include", tuple(split_csv(self.include)))
        sort = parse_sort(self.sort) if isinstance(self.sort, str) else self.sort
        object.__setattr__(self, "sort", tuple(sort or ()))
        object.__setattr__(self, "filters", tuple(self.filters or ()))
        query = parse_qsl(self.query, keep_blank_values=True) if isinstance(self.query, str) else query_pairs(self.query)
        object.__setattr__(self, "query", tuple(query))

    def fields_for(self, resource_type: str) -> Optional[Tuple[str, ...]]:
        """
        :return: the sparse fieldset requested for `resource_type`, None if all fields were requested
        """
        return self.fields.get(resource_type)

    def with_include(self, paths: Iterable[str]) -> "QueryPlan":
        return replace(self, include=tuple(paths))


def query_pairs(args: Any) -> List[Tuple[str, Any]]:
    """
    :param args: werkzeug MultiDict, mapping (with string or list values) or sequence of (key, value) pairs
    :return: list of (key, value) pairs
    """
    if args is None:
        return []
    if hasattr(args, "getlist"):
        # werkzeug MultiDict
        return list(args.items(multi=True))
    if isinstance(args, Mapping):
        result = []
        for key, val in args.items():
            if isinstance(val, (list, tuple)):
                result.extend((key, item) for item in val)
            else:
                result.append((key, val))
        return result
    return [tuple(pair) for pair in args]


def split_csv(val: Any) -> List[str]:
    """
    "a, b,,c" => ["a", "b", "c"]
    """
    if isinstance(val, (list, tuple)):
        return [item for v in val for item in split_csv(v)]
    if val is None:
        return []
    return [item.strip() for item in str(val).split(",") if item.strip()]


def parse_sort(val: Any) -> List[SortKey]:
    """
    http://jsonapi.org/format/#fetching-sorting
    The sort order for each sort field MUST be ascending unless it is prefixed
    with a minus, in which case it MUST be descending.
    """
    result = []
    for sort_attr in split_csv(val):
        if sort_attr.startswith("-"):
            sort_attr = sort_attr[1:].strip()
            direction = DESC
        else:
            direction = ASC
        if sort_attr:
            result.append(SortKey(sort_attr, direction))
    return result


def parse_cursor(token: Any) -> Optional[str]:
    """
    "articles:123" => "123"
    only the id is kept, a token without type prefix is used as id
    """
    if token is None:
        return None
    token = str(token).strip()
    if not token:
        return None
    _, sep, object_id = token.partition(":")
    result = object_id if sep else token
    return result or None


def _parse_int(name: str, val: Any) -> Optional[int]:
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        jsonapi_serializer.log.debug(f'Ignoring invalid page[{name}] value "{val}"')
        return None


def _parse_page(page_args: dict) -> Tuple[Optional[Page], bool]:
    """
    :param page_args: page[...] parameters
    :return: requested page, count flag
    """
    count = True
    if "count" in page_args:
        count = str(page_args["count"]).strip().lower() == "true"

    max_size = int(get_config("MAX_PAGE_SIZE"))
    size = _parse_int("size", page_args["size"]) if "size" in page_args else None
    if size is not None:
        size = min(max(size, 1), max_size)
    number = _parse_int("number", page_args["number"]) if "number" in page_args else None
    after = parse_cursor(page_args.get("after"))
    before = parse_cursor(page_args.get("before"))

    if size is None:
        size = int(get_config("DEFAULT_PAGE_SIZE"))

    if number is not None:
        return OffsetPage(max(number, 1), size), count
    if after or before:
        return CursorPage(after=after, before=None if after else before, size=size), count
    if "size" in page_args:
        return OffsetPage(1, size), count
    return None, count


def _filter_operand(operator: str, values: List[Any]) -> Any:
    if operator in ("in", "nin"):
        if len(values) == 1 and isinstance(values[0], (list, tuple)):
            return tuple(values[0])
        return tuple(split_csv(values))
    return values[0]


def filter_allowed_filters(filters: Sequence[FilterNode], allowed_filters: Optional[Sequence[str]]) -> Tuple[FilterNode, ...]:
    """
    Drop the filters on fields that aren't in `allowed_filters`
    - allowed_filters is None: everything passes
    - allowed_filters is empty: nothing passes
    """
    if allowed_filters is None:
        return tuple(filters)
    allowed = set(allowed_filters)
    result = []
    for filter_node in filters:
        if filter_node.field in allowed:
            result.append(filter_node)
        else:
            jsonapi_serializer.log.debug(f"Dropping filter on {filter_node.field} (not allowed)")
    return tuple(result)


def allowed_include_path(path: str, allowed_includes: Sequence[str]) -> Optional[str]:
    """
    :param path: requested include path
    :param allowed_includes: allowed include paths
    :return: the part of `path` that may be included, None if it may not be included at all

    - exact match, or `path` is a prefix of a deeper allowed path: the path is kept
    - `path` extends an allowed path (this includes the match of its first segment):
      the path is cut back to the longest allowed path it extends
    """
    if path in allowed_includes:
        return path
    if any(allowed.startswith(path + ".") for allowed in allowed_includes):
        return path
    covering = [allowed for allowed in allowed_includes if path.startswith(allowed + ".")]
    if covering:
        return max(covering, key=len)
    return None


def filter_allowed_includes(paths: Sequence[str], allowed_includes: Optional[Sequence[str]]) -> Tuple[str, ...]:
    """
    Apply the include allow-list to the requested include paths
    - allowed_includes is None: everything passes
    - allowed_includes is empty: nothing passes
    """
    if allowed_includes is None:
        return tuple(paths)
    result = []
    for path in paths:
        allowed_path = allowed_include_path(path, allowed_includes)
        if allowed_path is None:
            jsonapi_serializer.log.debug(f"Dropping include {path} (not allowed)")
        elif allowed_path not in result:
            result.append(allowed_path)
    return tuple(result)


def parse_query_plan(
    args: Any = None,
    allowed_filters: Optional[Sequence[str]] = None,
    allowed_includes: Optional[Sequence[str]] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> QueryPlan:
    """
    Parse the jsonapi query parameters into a QueryPlan

    :param args: query parameters (werkzeug MultiDict, mapping or (key, value) pairs)
    :param allowed_filters: filter field names the client may use, None allows all
    :param allowed_includes: include paths the client may request, None allows all
    :param params: values for the visibility predicates and id callables
    :return: QueryPlan
    """
    pairs = query_pairs(args)
    include: List[str] = []
    fields: dict = {}
    sort: List[SortKey] = []
    filter_args: dict = {}
    page_args: dict = {}

    for key, val in pairs:
        if not isinstance(key, str):
            continue
        key = key.strip()
        if key == "include":
            include.extend(path for path in split_csv(val) if path not in include)
            continue
        if key == "sort":
            sort.extend(parse_sort(val))
            continue

        # https://jsonapi.org/format/#fetching-sparse-fieldsets
        fields_attr = FIELDS_RE.fullmatch(key)
        if fields_attr:
            field_type = fields_attr.group(1).strip()
            fields.setdefault(field_type, [])
            fields[field_type].extend(name for name in split_csv(val) if name not in fields[field_type])
            continue

        filter_attr = FILTER_RE.fullmatch(key)
        if filter_attr:
            attr_name = filter_attr.group(1).strip()
            operator = (filter_attr.group(2) or "eq").strip().lower()
            if operator not in FILTER_OPERATORS:
                jsonapi_serializer.log.debug(f'Ignoring filter "{key}": unknown operator "{operator}"')
                continue
            filter_args.setdefault((attr_name, operator), []).append(val)
            continue

        page_attr = PAGE_RE.fullmatch(key)
        if page_attr:
            # first value wins, like MultiDict.get
            page_args.setdefault(page_attr.group(1).strip(), val)
            continue

        jsonapi_serializer.log.debug(f'Ignoring query parameter "{key}"')

    filters = [FilterNode(attr_name, operator, _filter_operand(operator, values)) for (attr_name, operator), values in filter_args.items()]
    page, count = _parse_page(page_args)

    return QueryPlan(
        fields=fields,
        include=filter_allowed_includes(include, allowed_includes),
        filters=filter_allowed_filters(filters, allowed_filters),
        sort=tuple(sort),
        page=page,
        count=count,
        params=params or {},
        query=tuple((key, val) for key, val in pairs if isinstance(key, str)),
    )
