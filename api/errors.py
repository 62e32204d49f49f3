"""Error taxonomy and the DRF exception handler.

Every failure leaving the API has one JSON shape:

    {"error": ..., "message": str, "code": str, "path": str}

For 4xx responses `error` repeats the human message (`{"error": "Course
not found"}`); for unexpected failures it is the literal `true` with code
INTERNAL_ERROR. Validation failures also carry DRF's field map under
`details`.
"""
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class ApiError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "INTERNAL_ERROR"


class MissingParameter(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Missing required parameter"
    default_code = "MISSING_PARAMETER"

    @classmethod
    def for_query(cls, name: str, query_params) -> "MissingParameter":
        received = ", ".join(query_params.keys())
        return cls(f"Missing required parameter '{name}'. Received parameters: {received}")


class InvalidRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"
    default_code = "VALIDATION_ERROR"


class ResourceNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "NOT_FOUND"


def get_or_404(queryset, pk, label: str, message: str | None = None):
    """Fetch `pk` from `queryset` or raise ResourceNotFound("<label> not found").

    Identifiers that cannot be coerced to the key type count as not found.
    """
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise ResourceNotFound(message or f"{label} not found")


def _code_for(exc: APIException) -> str:
    if isinstance(exc, ApiError):
        return exc.default_code
    if isinstance(exc, ValidationError):
        return InvalidRequest.default_code
    return str(exc.default_code).upper()


def _message_for(exc: APIException) -> str:
    detail = exc.detail
    if isinstance(detail, str):
        return str(detail)
    if isinstance(exc, ValidationError):
        return InvalidRequest.default_detail
    return str(exc.default_detail)


def api_exception_handler(exc, context):
    """Map every exception raised by an API view to the uniform error body."""
    request = context.get("request")
    path = request.path if request is not None else ""
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.error(
            "Error for %s %s in %s: %s",
            getattr(request, "method", "?"),
            path,
            type(view).__name__ if view is not None else "?",
            exc,
            exc_info=exc,
        )
        set_rollback()
        return Response(
            {
                "error": True,
                "message": str(exc) or "Internal server error",
                "code": "INTERNAL_ERROR",
                "path": path,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # exception_handler turns Http404/PermissionDenied into their API forms
    if not isinstance(exc, APIException):
        message = "Not found" if response.status_code == 404 else "Permission denied"
        code = "NOT_FOUND" if response.status_code == 404 else "PERMISSION_DENIED"
    else:
        message = _message_for(exc)
        code = _code_for(exc)

    body = {"error": message, "message": message, "code": code, "path": path}
    if isinstance(exc, ValidationError):
        body["details"] = exc.detail
    if response.status_code < 500:
        logger.warning("%s %s -> %s %s", getattr(request, "method", "?"), path, response.status_code, message)
    response.data = body
    return response
