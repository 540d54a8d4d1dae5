# json:api document to json encoding
#
# The projectors copy attribute values as they are, the types json doesn't know are encoded here

import datetime
import decimal
import json
from flask.json.provider import DefaultJSONProvider
from uuid import UUID
import jsonapi_serializer
from .config import get_config, is_debug


class _JSONAPIJSONEncoder:
    """
    JSON encoding for the attribute values of the serialized objects
    """

    # pylint: disable=too-many-return-statements
    def default(self, obj, **kwargs):
        """
        override the default json encoding
        :param obj: object to be encoded
        :return: encoded/serialized object
        """
        if obj is None:
            return None
        if isinstance(obj, datetime.timedelta):
            return str(obj)
        if isinstance(obj, datetime.datetime):
            return obj.isoformat(" ")
        if isinstance(obj, (datetime.date, datetime.time)):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, decimal.Decimal):
            return float(obj)
        if isinstance(obj, bytes):
            if obj == b"":
                return ""
            jsonapi_serializer.log.debug("JSONAPIJSONEncoder: serializing bytes obj")
            return obj.hex()

        # We shouldn't get here: the descriptors expose an attribute that can't be encoded
        if not is_debug():
            jsonapi_serializer.log.warning(f'JSON Encoding Error: Unknown object type "{type(obj)}" for {obj}')
            return {"error": "JSONAPIJSONEncoder invalid object"}

        return self.ghetto_encode(obj)

    @staticmethod
    def ghetto_encode(obj):
        """
        if everything else failed, try to encode the public obj attributes
        i.e. those attributes without a _ prefix
        :param obj: object to be encoded
        :return: encoded/serialized object
        """
        try:
            result = {}
            for k, v in vars(obj).items():
                if not k.startswith("_"):
                    if isinstance(v, (int, float)) or v is None:
                        result[k] = v
                    else:
                        result[k] = str(v)
        except TypeError:
            result = str(obj)
        return result


class JSONAPIJSONProvider(_JSONAPIJSONEncoder, DefaultJSONProvider):
    """
    Flask JSON encoding
    """

    @property
    def mimetype(self):
        return get_config("JSONAPI_MIMETYPE")


class JSONAPIJSONEncoder(_JSONAPIJSONEncoder, json.JSONEncoder):
    """
    Common JSON encoding, json.dumps(document, cls=JSONAPIJSONEncoder)
    """

    pass
