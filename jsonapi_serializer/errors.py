# Exceptions
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The flask error handler installed by JSONAPI.init_app renders the exceptions as
# json:api error objects, for example:
# {
#      "errors": [{"status": "500", "title": "Serialization Error", "detail": "Serialization Error: (debug logging disabled)"}]
# }
#
# Query string parsing never raises, the projection errors below are raised while a
# document is built and are reported to the caller as one SerializationError
#
from http import HTTPStatus
import jsonapi_serializer
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class JsonapiError(Exception):
    """
    Base class of the exceptions raised by this package
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title = HTTPStatus.INTERNAL_SERVER_ERROR.phrase
    message = ""

    def to_dict(self):
        """
        :return: json:api error object
        """
        result = {"status": str(self.status_code), "title": self.title}
        if self.message:
            result["detail"] = self.message
        return result


class ValidationError(JsonapiError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    title = HTTPStatus.BAD_REQUEST.phrase
    message = "Validation Error: "

    def __init__(self, message="", status_code=HTTPStatus.BAD_REQUEST.value, pointer=None):
        Exception.__init__(self, message)
        self.status_code = status_code
        self.pointer = pointer
        jsonapi_serializer.log.warning("ValidationError: %s", message)
        self.message += message

    def to_dict(self):
        result = super().to_dict()
        if self.pointer:
            result["source"] = {"pointer": self.pointer}
        return result


class ProjectionError(JsonapiError):
    """
    Raised while an object is projected into a resource object.
    A projection error is fatal to the whole document
    """

    message = "Projection Error: "

    def __init__(self, message=""):
        Exception.__init__(self, message)
        jsonapi_serializer.log.error("%s: %s", self.__class__.__name__, message)
        if is_debug():
            self.message += message
        else:
            self.message += HIDDEN_LOG


class DescriptorNotFound(ProjectionError):
    """
    No resource descriptor has been registered for the requested type or shape
    """

    message = "Descriptor Not Found: "

    def __init__(self, key=""):
        self.key = key
        super().__init__(f'No resource descriptor registered for "{key}"')


class RelationshipResolutionError(ProjectionError):
    """
    The type or the id of a related object can't be determined
    """

    message = "Relationship Resolution Error: "

    def __init__(self, message="", relationship=None):
        self.relationship = relationship
        super().__init__(message)


class IdentityResolutionError(ProjectionError):
    """
    The object that is serialized has no derivable id
    """

    message = "Identity Resolution Error: "


class SerializationError(JsonapiError):
    """
    Operation level failure of a serialize call, no (partial) document is returned.
    The error that caused the failure is kept in `error`
    """

    title = "Serialization Error"
    message = "Serialization Error: "

    def __init__(self, error):
        Exception.__init__(self, str(error))
        self.error = error
        self.status_code = getattr(error, "status_code", HTTPStatus.INTERNAL_SERVER_ERROR.value)
        if isinstance(error, JsonapiError):
            self.message = error.message
        elif is_debug():
            self.message += str(error)
        else:
            self.message += HIDDEN_LOG
