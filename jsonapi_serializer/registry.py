"""
Resource registry: resource descriptors keyed by json:api type and by definition name

The registry is the only state shared between serialize calls.
Lookups don't lock, registration is serialized with a lock.
"""
import threading
from typing import Dict, Optional, Tuple
import jsonapi_serializer
from .descriptors import ResourceDescriptor
from .errors import DescriptorNotFound
from .util import strip_suffix


class ResourceRegistry:
    """
    Holds the resource descriptors by type name and by the naming convention
    derived from the definition name, eg. "ArticleSerializer" => "article"
    """

    def __init__(self) -> None:
        self._descriptors: Dict[str, ResourceDescriptor] = {}
        self._lock = threading.RLock()

    def register(self, descriptor: ResourceDescriptor) -> ResourceDescriptor:
        """
        Register `descriptor`, a descriptor registered earlier with the same key is replaced
        :param descriptor: ResourceDescriptor
        :return: descriptor
        """
        keys = [descriptor.type]
        if descriptor.name:
            keys.append(strip_suffix(descriptor.name).lower())
        with self._lock:
            # copy on write: concurrent readers always see a complete dict
            descriptors = dict(self._descriptors)
            for key in keys:
                descriptors[key] = descriptor
            self._descriptors = descriptors
        jsonapi_serializer.log.debug(f"Registered resource descriptor {descriptor.type} ({descriptor.name})")
        return descriptor

    def _candidates(self, key: str) -> Tuple[str, ...]:
        lowered = key.lower()
        return key, lowered, strip_suffix(key).lower(), f"{key}Serializer".lower()

    def find(self, key: Optional[str]) -> Optional[ResourceDescriptor]:
        """
        :param key: type name or shape name
        :return: the registered descriptor or None
        """
        if not key:
            return None
        descriptors = self._descriptors
        for candidate in self._candidates(key):
            result = descriptors.get(candidate)
            if result is not None:
                return result
        return None

    def resolve(self, key: str) -> ResourceDescriptor:
        """
        :param key: type name or shape name
        :return: the registered descriptor
        :raises DescriptorNotFound: if nothing has been registered for `key`
        """
        result = self.find(key)
        if result is None:
            raise DescriptorNotFound(key)
        return result

    def types(self):
        return sorted({descriptor.type for descriptor in self._descriptors.values()})

    def clear(self) -> None:
        with self._lock:
            self._descriptors = {}

    def __contains__(self, key: str) -> bool:
        return self.find(key) is not None

    def __len__(self) -> int:
        return len(self.types())


# process wide default registry
default_registry = ResourceRegistry()
