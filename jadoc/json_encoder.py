# jadoc to json encoding

import datetime
import decimal
import json
from uuid import UUID
from typing import Any

from flask.json.provider import DefaultJSONProvider

import jadoc
from .config import is_debug
from .errors import JsonapiError
from .resource import ResourceView

JSONAPI_MIMETYPE = "application/vnd.api+json"


class _JadocJSONEncoder:
    """
    JSON encoding for jadoc documents and common types
    """

    # pylint: disable=too-many-return-statements
    def default(self, obj: Any, **kwargs: Any) -> Any:
        """
        override the default json encoding
        :param obj: object to be encoded
        :return: encoded/serialized object
        """
        if obj is None:
            return None
        if isinstance(obj, ResourceView):
            return dict(obj.identifier(), attributes=obj.attribute_values())
        if isinstance(obj, JsonapiError):
            return obj.to_dict()
        if isinstance(obj, datetime.timedelta):
            return str(obj)
        if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
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
            jadoc.log.debug("JadocJSONEncoder: serializing bytes obj")
            return obj.hex()

        # We shouldn't get here: attribute values should be json serializable
        if not is_debug():
            jadoc.log.warning(f'JSON Encoding Error: Unknown object type "{type(obj)}" for {obj}')
            return {"error": "JadocJSONEncoder invalid object"}

        return self.describe_object(obj)

    @staticmethod
    def describe_object(obj: Any) -> Any:
        """
        Debug representation of an object that can't be encoded:
        its type and public attributes, values that aren't json scalars are replaced by their repr
        :param obj: object to be encoded
        :return: dict, or the repr of objects without a __dict__
        """
        attrs = getattr(obj, "__dict__", None)
        if attrs is None:
            return repr(obj)
        public = {}
        for name, value in attrs.items():
            if name.startswith("_"):
                continue
            public[name] = value if value is None or isinstance(value, (bool, int, float, str)) else repr(value)
        return {"type": type(obj).__name__, "attributes": public}


class JadocJSONProvider(_JadocJSONEncoder, DefaultJSONProvider):
    """
    Flask JSON encoding, install with `app.json = JadocJSONProvider(app)`
    """

    mimetype = JSONAPI_MIMETYPE


class JadocJSONEncoder(_JadocJSONEncoder, json.JSONEncoder):
    """
    Common JSON encoding: json.dumps(document, cls=JadocJSONEncoder)
    """

    pass


def dumps(document: Any, **kwargs: Any) -> str:
    """
    :return: json representation of a jadoc document
    """
    return json.dumps(document, cls=JadocJSONEncoder, **kwargs)
