# Configuration settings should be set in app.config
# When no flask app context is active, the JSONAPI class variables are used,
# these can be overridden with environment variables
import os
import logging
from flask import current_app
import jsonapi_serializer
from typing import Any, Optional


def get_config(option: str) -> Optional[Any]:
    """Retrieve a configuration parameter from the app
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        return current_app.config[option]
    except (KeyError, RuntimeError):
        # RuntimeError: working outside of application context
        pass

    default = getattr(jsonapi_serializer.JSONAPI, option, None)
    result = os.environ.get(option, None)
    if result is None:
        return default
    if isinstance(default, bool):
        return result.lower() in ("1", "true", "yes")
    if isinstance(default, int):
        try:
            return int(result)
        except ValueError:
            jsonapi_serializer.log.warning(f'Invalid value for {option} in the environment: "{result}"')
            return default
    return result


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return jsonapi_serializer.log.getEffectiveLevel() < logging.INFO
