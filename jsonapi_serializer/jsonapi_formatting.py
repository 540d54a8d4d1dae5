# JSON:API response formatting functions:
# - filtering (https://jsonapi.org/format/#fetching-filtering)
# - sorting (https://jsonapi.org/format/#fetching-sorting)
# - pagination (https://jsonapi.org/format/#fetching-pagination)
#
# Response formatting follows filter -> sort -> paginate
#
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode
import jsonapi_serializer
from .descriptors import ResourceDescriptor
from .jsonapi_init import dict_merge
from .jsonapi_types import JSONAPIDocument
from .projection import resource_identity
from .query_plan import CursorPage, OffsetPage, QueryPlan, SortKey
from .util import get_value


def sort_collection(items: Iterable[Any], sort: Sequence[SortKey], descriptor: Optional[ResourceDescriptor] = None) -> List[Any]:
    """
    http://jsonapi.org/format/#fetching-sorting
    Stable multi-key sort: the first key that differs decides.
    Missing values are sorted last (first when the order is descending)
    :param items: collection
    :param sort: sort keys
    :param descriptor: used to map the exposed attribute names onto the object properties
    :return: sorted list
    """
    result = list(items)
    # python's sort is stable: sorting by the least significant key first gives the multi-key order
    for sort_key in reversed(sort):
        sort_attr = descriptor.source_property(sort_key.field) if descriptor is not None else sort_key.field

        def key(obj, sort_attr=sort_attr):
            value = get_value(obj, sort_attr, None)
            return (value is None, value)

        try:
            result = sorted(result, key=key, reverse=sort_key.descending)
        except TypeError as exc:
            jsonapi_serializer.log.warning(f"Sort failed for {sort_key.field}: {exc}")
    return result


def get_link(base_url: str, query: Sequence[Tuple[str, Any]], replace: Mapping[str, Any]) -> str:
    """
    Reconstruct the request url, with the query parameters in `replace` replaced.
    Parameters that are replaced with None are removed.
    """
    args = []
    replaced = set()
    for key, val in query:
        if key in replace:
            if key in replaced:
                continue
            replaced.add(key)
            val = replace[key]
            if val is None:
                continue
        args.append((key, val))
    args += [(key, val) for key, val in replace.items() if key not in replaced and val is not None]

    query_string = urlencode([(key, str(val)) for key, val in args], safe="[]:,")
    return f"{base_url}?{query_string}" if query_string else base_url


def paginate_offset(items: List[Any], page: OffsetPage, count: bool, base_url: str = "", query: Sequence[Tuple[str, Any]] = ()):
    """
    Offset pagination with page[number] and page[size]

    :return: links, instances, meta
    """
    number, size = page.number, page.size
    total = len(items)
    start, end = (number - 1) * size, number * size
    instances = items[start:end]
    last_page = math.ceil(total / size)

    meta: Dict[str, Any] = {}
    if count:
        meta = {
            "current_page": number,
            "from": start + 1,
            "last_page": last_page,
            "per_page": size,
            "to": min(end, total),
            "total": total,
        }

    def page_link(page_number):
        return get_link(base_url, query, {"page[number]": page_number})

    links = {
        "self": get_link(base_url, query, {}),
        "first": page_link(1),
        "last": page_link(max(last_page, 1)),
    }
    if number > 1:
        links["prev"] = page_link(number - 1)
    if number < last_page:
        links["next"] = page_link(number + 1)

    return links, instances, meta


def paginate_cursor(
    items: List[Any],
    page: CursorPage,
    count: bool,
    descriptor: Optional[ResourceDescriptor] = None,
    plan: Optional[QueryPlan] = None,
    base_url: str = "",
    query: Sequence[Tuple[str, Any]] = (),
):
    """
    Cursor pagination with page[after] or page[before] and page[size]

    - after: the items following the cursor item
    - before: the items immediately preceding the cursor item, in collection order
    When the cursor item isn't found, the page starts at the first item.

    :return: links, instances, meta
    """
    plan = plan if plan is not None else QueryPlan()
    size = page.size
    total = len(items)
    cursor = page.after or page.before

    def item_id(item):
        if descriptor is not None:
            return resource_identity(descriptor, item, plan)
        return str(get_value(item, "id", ""))

    cursor_index = next((index for index, item in enumerate(items) if item_id(item) == cursor), None)
    start = 0
    if cursor_index is not None:
        start = cursor_index + 1 if page.after else max(0, cursor_index - size)
    end = start + size
    if cursor_index is not None and not page.after:
        end = cursor_index
    instances = items[start:end]

    meta: Dict[str, Any] = {}
    if count:
        meta = {"per_page": size, "count": len(instances), "total": total}

    resource_type = descriptor.type if descriptor is not None else "resource"
    links = {"self": get_link(base_url, query, {})}
    if instances:
        if start + len(instances) < total:
            token = f"{resource_type}:{item_id(instances[-1])}"
            links["next"] = get_link(base_url, query, {"page[after]": token, "page[before]": None, "page[size]": size})
        if start > 0:
            token = f"{resource_type}:{item_id(instances[0])}"
            links["prev"] = get_link(base_url, query, {"page[before]": token, "page[after]": None, "page[size]": size})

    return links, instances, meta


def paginate(items: Iterable[Any], plan: QueryPlan, descriptor: Optional[ResourceDescriptor] = None, base_url: str = ""):
    """
    http://jsonapi.org/format/#fetching-pagination

    The strategy is selected by the page of the query plan:
    - OffsetPage: page[number] & page[size]
    - CursorPage: page[after] or page[before] & page[size]

    :param items: filtered and sorted collection
    :param plan: query plan
    :param descriptor: descriptor of the items, used to get the cursor ids
    :param base_url: url of the collection (without query string), used for the links
    :return: links, instances, meta
    """
    items = list(items)
    if isinstance(plan.page, OffsetPage):
        return paginate_offset(items, plan.page, plan.count, base_url, plan.query)
    if isinstance(plan.page, CursorPage):
        return paginate_cursor(items, plan.page, plan.count, descriptor, plan, base_url, plan.query)
    return {}, items, {}


def jsonapi_format_response(data: Any = None, included: Optional[list] = None, meta: Optional[dict] = None, links: Optional[dict] = None) -> JSONAPIDocument:
    """
    Create a response dict according to the json:api schema spec
    :param data: the serialized primary data
    :param included: the serialized included resources, None if no includes were requested
    :param meta: meta information, eg. pagination totals
    :param links: navigation links
    :return: jsonapi formatted dictionary
    """
    result: JSONAPIDocument = {"data": data}
    if included is not None:
        result["included"] = included
    if meta:
        result["meta"] = {}
        dict_merge(result["meta"], meta)
    if links:
        result["links"] = dict(links)
    return result
