# Exceptions
#
# jadoc is purely computational: errors are raised synchronously to the caller.
# The status codes are informational, mapping them to an HTTP response is up to the
# request handling layer, for example:
# {
#      "status": "400",
#      "title": "Bad Request",
#      "detail": "Unsupported sort field 'created_at'. Supported fields: name"
# }
#
from http import HTTPStatus
from typing import Any, Dict, Iterable, Optional
import jadoc


class JsonapiError(Exception):
    """
    Base class for the jadoc exceptions
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title = "Error"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.detail = detail or self.title
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.detail)

    @property
    def message(self) -> str:
        return f"{self.title}: {self.detail}"

    def to_dict(self) -> Dict[str, Any]:
        """
        :return: jsonapi error object
        """
        return {"status": str(self.status_code), "title": self.title, "detail": self.detail}


class SchemaError(JsonapiError):
    """
    This exception is raised when a resource schema is invalid or has been used incorrectly,
    for example when a custom meta computation doesn't return a mapping
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title = "Schema Error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        jadoc.log.error("SchemaError: %s", detail)


class BadRequestError(JsonapiError):
    """
    This exception is raised when invalid input has been detected (client side input)
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    title = "Bad Request"

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(detail)
        jadoc.log.warning("%s: %s", self.__class__.__name__, detail)


class UnsupportedSortFieldError(BadRequestError):
    """
    A sort directive references a field that isn't sortable
    """

    def __init__(self, sort_field: str, supported_fields: Iterable[str] = ()) -> None:
        self.sort_field = sort_field
        self.supported_fields = list(supported_fields)
        if self.supported_fields:
            detail = f"Unsupported sort field '{sort_field}'. Supported fields: {', '.join(self.supported_fields)}"
        else:
            detail = f"Unsupported sort field '{sort_field}'. No sorting is supported for this resource"
        super().__init__(detail)


class UnsupportedIncludeError(BadRequestError):
    """
    An include path references a relationship that doesn't exist
    """

    def __init__(self, include_path: str, supported_includes: Iterable[str] = ()) -> None:
        self.include_path = include_path
        self.supported_includes = list(supported_includes)
        if self.supported_includes:
            detail = f"Unsupported include '{include_path}'. Supported includes: {', '.join(self.supported_includes)}"
        else:
            detail = f"Unsupported include '{include_path}'. No includes are supported for this resource"
        super().__init__(detail)


class InvalidSortParameterError(BadRequestError):
    def __init__(self, detail: str = "Invalid sort parameter format") -> None:
        super().__init__(detail)


class InvalidIncludeParameterError(BadRequestError):
    def __init__(self, detail: str = "Invalid include parameter format") -> None:
        super().__init__(detail)
