#
# Raw object access: the serialized objects may be mappings or plain python objects
#
from collections.abc import Mapping
from typing import Any, Optional
from .config import get_config


class _Missing:
    """
    Sentinel for absent properties (None is a valid property value)
    """

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()


def get_value(obj: Any, name: str, default: Any = MISSING) -> Any:
    """
    :param obj: mapping or object
    :param name: key or attribute name
    :param default: value returned when `obj` has no such property
    :return: property value
    """
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def shape_of(obj: Any) -> Optional[str]:
    """
    The shape of an object is the name of its concrete variant.
    Objects carrying a discriminator field (`kind` by default) are identified by it,
    other objects by their class name. Mappings without discriminator have no shape.
    """
    discriminator = get_value(obj, get_config("DISCRIMINATOR_FIELD"), None)
    if discriminator:
        return str(discriminator)
    if isinstance(obj, Mapping):
        return None
    return type(obj).__name__


def strip_suffix(name: str, suffixes=("Serializer", "Resource")) -> str:
    """
    ArticleSerializer => Article
    """
    for suffix in suffixes:
        if name.endswith(suffix) and name != suffix:
            return name[: -len(suffix)]
    return name
