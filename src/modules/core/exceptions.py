"""Application error taxonomy and the DRF exception handler.

Every domain exception raised by a Service Layer subclasses ``AppError``
and carries its HTTP status plus an ``is_operational`` flag.  Operational
errors are expected business outcomes and are returned verbatim.  Anything
else is an unexpected fault: it is logged with its stack trace and its
message is masked unless ``DEBUG`` is on.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base class for errors with an explicit HTTP mapping."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    is_operational: bool = True
    default_message: str = "Application error."

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed."


class StateConflict(AppError):
    """A business rule on the aggregate's current state was violated."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state."


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource conflict."


def error_body(message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """DRF ``EXCEPTION_HANDLER`` producing the ``{success: false, ...}`` envelope."""
    view = context.get("view")
    request = context.get("request")
    log = logger.bind(
        view=view.__class__.__name__ if view else None,
        method=getattr(request, "method", None),
        path=getattr(request, "path", None),
    )

    if isinstance(exc, AppError):
        log.info("api.app_error", error=exc.message, status_code=exc.status_code)
        if not exc.is_operational and not settings.DEBUG:
            return Response(error_body(INTERNAL_ERROR_MESSAGE), status=exc.status_code)
        return Response(error_body(exc.message, exc.details), status=exc.status_code)

    if isinstance(exc, PydanticValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return Response(
            error_body("Validation failed.", details),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    if isinstance(exc, drf_exceptions.APIException):
        headers = {}
        auth_header = getattr(exc, "auth_header", None)
        if auth_header:
            headers["WWW-Authenticate"] = auth_header
        wait = getattr(exc, "wait", None)
        if wait:
            headers["Retry-After"] = str(int(wait))

        if isinstance(exc, drf_exceptions.ValidationError):
            return Response(
                error_body("Validation failed.", exc.detail),
                status=exc.status_code,
                headers=headers,
            )
        detail = exc.detail
        message = str(detail) if not isinstance(detail, (dict, list)) else str(exc)
        return Response(error_body(message), status=exc.status_code, headers=headers)

    log.exception("api.unhandled_error", error=str(exc))
    message = str(exc) if settings.DEBUG else INTERNAL_ERROR_MESSAGE
    return Response(
        error_body(message),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
