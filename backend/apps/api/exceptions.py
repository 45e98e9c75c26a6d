from typing import Any, Dict, Optional, Tuple

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    MethodNotAllowed,
    NotFound,
    ParseError,
    UnsupportedMediaType,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="exception")

SERVER_ERROR_MESSAGE = "Something went wrong"

# (exception types, code, fallback message, hint); ValidationError is handled
# separately because its payload becomes the details
KNOWN_API_EXCEPTIONS = (
    (ParseError, "VALIDATION_ERROR", "Malformed request", None),
    (
        UnsupportedMediaType,
        "UNSUPPORTED_MEDIA_TYPE",
        "Unsupported media type",
        "Send the request body as application/json.",
    ),
    ((NotFound, Http404), "NOT_FOUND", "Resource not found", None),
    (MethodNotAllowed, "METHOD_NOT_ALLOWED", "Method not allowed", None),
)


class ApplicationError(Exception):
    """
    Raised by views to answer with a failure envelope.

    ``status_code`` is optional; without it the status comes from the code
    mapping in ``apps.api.utils``.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.hint = hint

    def to_response(self) -> Response:
        return error_response(
            self.code,
            self.message,
            self.details,
            http_status=self.status_code,
            hint=self.hint,
        )


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """DRF ``EXCEPTION_HANDLER`` answering every error in the failure envelope."""
    log = _bind_logger(context)

    if isinstance(exc, ApplicationError):
        log.info("Application error returned", code=exc.code, message=exc.message)
        return exc.to_response()

    response = drf_exception_handler(exc, context)
    if response is None:
        log.exception("Unhandled exception reached the API boundary")
        return error_response(
            "SERVER_ERROR",
            SERVER_ERROR_MESSAGE,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code, message, details, hint = _describe(exc, response)
    log.info("API exception converted", code=code, status=response.status_code)
    return error_response(
        code,
        message,
        details,
        http_status=response.status_code,
        hint=hint,
    )


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    if view is not None:
        log = log.bind(view=type(view).__name__)
    request = context.get("request")
    if request is not None:
        log = log.bind(method=getattr(request, "method", None), path=getattr(request, "path", None))
    return log


def _describe(exc: Exception, response: Response) -> Tuple[str, str, Optional[Any], Optional[str]]:
    payload = response.data
    if isinstance(exc, ValidationError):
        return "VALIDATION_ERROR", "Validation failed", payload, None
    for types, code, fallback, hint in KNOWN_API_EXCEPTIONS:
        if isinstance(exc, types):
            return code, _detail_message(payload) or fallback, None, hint
    if response.status_code >= 500:
        return "SERVER_ERROR", SERVER_ERROR_MESSAGE, None, None
    return "REQUEST_FAILED", _detail_message(payload) or "Request failed", None, None


def _detail_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        payload = payload.get("detail")
    if isinstance(payload, list) and payload:
        payload = payload[0]
    return str(payload) if isinstance(payload, str) and payload.strip() else None


__all__ = ["ApplicationError", "global_exception_handler"]
