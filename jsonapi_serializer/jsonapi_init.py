import logging
import os
import sys
from flask import Flask, make_response
from .request import JSONAPIRequest
from .json_encoder import JSONAPIJSONProvider
from .errors import JsonapiError
import jsonapi_serializer
import flask.app
from typing import Any, Dict, Union


class JSONAPI:
    """This class configures a Flask application to serve JSON:API documents
    :param app: a Flask application.
    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)

    The serialization core doesn't depend on flask, the app is only used to
    parse the query string of the incoming requests and to encode the responses
    """

    # Configuration settings are stored as class variables
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 1000
    DISCRIMINATOR_FIELD = "kind"  # field carried by raw objects that names their concrete shape
    ID_FIELD = "id"  # conventional identifier field of related objects
    LOGLEVEL = logging.WARNING
    JSONAPI_MIMETYPE = "application/vnd.api+json"

    def __init__(self, app: flask.app.Flask = None, *args, **kwargs) -> None:
        """
        Constructor
        """
        self.app = app
        if app is not None:
            self.init_app(app, *args, **kwargs)

    def init_app(self, app: flask.app.Flask, **kwargs) -> None:
        """
        Application initialization
        """
        if not isinstance(app, Flask):  # pragma: no cover
            raise TypeError("'app' should be Flask.")

        app.request_class = JSONAPIRequest
        app.json = JSONAPIJSONProvider(app)

        if app.config.get("DEBUG", False):
            log.setLevel(logging.DEBUG)

        for conf_name, conf_val in kwargs.items():
            setattr(JSONAPI, conf_name, conf_val)
        if "LOGLEVEL" in kwargs:
            log.setLevel(JSONAPI.LOGLEVEL)

        @app.errorhandler(JsonapiError)
        def handle_jsonapi_error(exc):
            """
            Render the exception as a json:api error document
            """
            return make_response({"errors": [exc.to_dict()]}, exc.status_code)

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        The webserver will catch stderr so we redirect eveything to sys.stderr
        """
        log = logging.getLogger(jsonapi_serializer.__name__)
        if log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            log.setLevel(loglevel)
            log.addHandler(handler)
        return log


def dict_merge(dct: Dict[str, Any], merge_dct: Union[Dict[str, Any], Dict[int, Any]]) -> None:
    """Recursive dict merge, used to merge the pagination meta into the document meta.
    Inspired by :meth:``dict.update()``, instead of updating only
    top-level keys, dict_merge recurses down into dicts nested
    to an arbitrary depth, updating keys. The ``merge_dct`` is merged into ``dct``.
    :param dct: dict onto which the merge is executed
    :param merge_dct: dct merged into dct
    :return: None
    """
    for k in merge_dct:
        if k in dct and isinstance(dct[k], dict) and isinstance(merge_dct[k], dict):
            dict_merge(dct[k], merge_dct[k])
        else:
            dct[str(k)] = merge_dct[k]


#
# Logging initialization
#
try:
    DEBUG = os.getenv("DEBUG", logging.WARNING)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

JSONAPI.LOGLEVEL = LOGLEVEL
log = JSONAPI.init_logging(JSONAPI.LOGLEVEL)
