"""
JSON:API filtering of in-memory collections

https://jsonapi.org/recommendations/#filtering

filter[<field>][<operator>]=<operand>, the operators:
- eq: equality, strings match case-insensitively on substring containment
- ne: inequality
- gt, gte, lt, lte: ordering comparison
- in, nin: (negated) set membership, the operand is a list or a comma-separated string,
  a list valued field is a member when one of its elements is
- like: case-insensitive substring containment

Operands parsed from the query string are strings, they are converted to the type of the
filtered value (numbers, booleans, dates) before comparing.
"""
import datetime
import decimal
import operator
from typing import Any, Iterable, List, Optional, Sequence
import jsonapi_serializer
from .descriptors import ResourceDescriptor
from .query_plan import FilterNode
from .util import MISSING, get_value

TRUE_VALUES = ("true", "1", "yes")
FALSE_VALUES = ("false", "0", "no")


def coerce_operand(value: Any, operand: Any) -> Any:
    """
    Convert a string operand to the type of `value`
    :param value: value of the filtered object
    :param operand: filter operand
    :return: converted operand
    :raises ValueError: if the operand can't be converted
    """
    if not isinstance(operand, str) or value is None or isinstance(value, str):
        return operand
    operand = operand.strip()
    if isinstance(value, bool):
        if operand.lower() in TRUE_VALUES:
            return True
        if operand.lower() in FALSE_VALUES:
            return False
        raise ValueError(f"Invalid boolean {operand}")
    if isinstance(value, int):
        try:
            return int(operand)
        except ValueError:
            return float(operand)
    if isinstance(value, float):
        return float(operand)
    if isinstance(value, decimal.Decimal):
        return decimal.Decimal(operand)
    if isinstance(value, datetime.datetime):
        return datetime.datetime.fromisoformat(operand)
    if isinstance(value, datetime.date):
        return datetime.date.fromisoformat(operand)
    return operand


def _contains(value: Any, operand: Any) -> bool:
    return isinstance(value, str) and str(operand).lower() in value.lower()


def _eq(value, operand):
    if isinstance(value, str) and isinstance(operand, str):
        return _contains(value, operand)
    return value == coerce_operand(value, operand)


def _is_member(value, members) -> bool:
    if isinstance(value, (list, tuple, set, frozenset)):
        # multi-valued field: any element
        return any(_is_member(element, members) for element in value)
    if value in members:
        return True
    return str(value) in {str(member) for member in members}


def _compare(op):
    def compare(value, operand):
        return op(value, coerce_operand(value, operand))

    return compare


OPERATORS = {
    "eq": _eq,
    "ne": _compare(operator.ne),
    "gt": _compare(operator.gt),
    "gte": _compare(operator.ge),
    "lt": _compare(operator.lt),
    "lte": _compare(operator.le),
    "like": _contains,
}


def matches(item: Any, filter_node: FilterNode, descriptor: Optional[ResourceDescriptor] = None) -> bool:
    """
    :param item: object to be tested
    :param filter_node: filter condition
    :param descriptor: used to map the exposed attribute name onto the object property
    :return: whether the condition holds, a condition on a field the item doesn't have is ignored
    """
    attr_name = descriptor.source_property(filter_node.field) if descriptor is not None else filter_node.field
    value = get_value(item, attr_name)
    if value is MISSING:
        return True

    compare = OPERATORS.get(filter_node.operator)
    if compare is None and filter_node.operator not in ("in", "nin"):  # pragma: no cover
        # the parser only creates nodes with known operators
        jsonapi_serializer.log.warning(f"Unknown filter operator {filter_node.operator}")
        return True
    try:
        if filter_node.operator in ("in", "nin"):
            is_member = _is_member(value, filter_node.members)
            return is_member if filter_node.operator == "in" else not is_member
        return bool(compare(value, filter_node.operand))
    except (TypeError, ValueError, ArithmeticError) as exc:
        jsonapi_serializer.log.debug(f"Filter {filter_node} failed for {attr_name}={value!r}: {exc}")
        return False


def filter_collection(items: Iterable[Any], filters: Sequence[FilterNode], descriptor: Optional[ResourceDescriptor] = None) -> List[Any]:
    """
    :param items: collection to be filtered
    :param filters: filter conditions
    :param descriptor: descriptor of the items
    :return: the items for which all conditions hold
    """
    items = list(items)
    if not filters:
        return items
    return [item for item in items if all(matches(item, filter_node, descriptor) for filter_node in filters)]
