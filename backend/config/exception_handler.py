from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from config import domain_exceptions as domain

logger = logging.getLogger(__name__)

# Most specific first: (exception type, error status, HTTP status)
_DOMAIN_ERROR_MAP: tuple[tuple[type[domain.DomainError], str, int], ...] = (
    (domain.ValidationError, "validation_error", status.HTTP_400_BAD_REQUEST),
    (domain.NotFoundError, "not_found", status.HTTP_404_NOT_FOUND),
    (domain.ConfigurationError, "configuration_error", status.HTTP_503_SERVICE_UNAVAILABLE),
    (domain.ServiceUnavailableError, "service_unavailable", status.HTTP_503_SERVICE_UNAVAILABLE),
    (domain.DomainError, "bad_request", status.HTTP_400_BAD_REQUEST),
)

_DRF_ERROR_STATUS: tuple[tuple[tuple[type[Exception], ...], str], ...] = (
    ((drf_exceptions.ValidationError,), "validation_error"),
    ((drf_exceptions.ParseError, drf_exceptions.UnsupportedMediaType), "bad_request"),
    ((drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed), "unauthorized"),
    ((drf_exceptions.PermissionDenied,), "forbidden"),
    ((drf_exceptions.NotFound,), "not_found"),
    ((drf_exceptions.MethodNotAllowed,), "method_not_allowed"),
    ((drf_exceptions.Throttled,), "rate_limited"),
)


def _error_response(
    *,
    error_status: str,
    message: str,
    http_status: int,
    details: dict[str, list[str]] | None = None,
) -> Response:
    error: dict[str, object] = {"status": error_status, "message": message}
    if details:
        error["details"] = details
    return Response({"error": error}, status=http_status)


def _is_message_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _first_message(data: Any) -> str | None:
    if isinstance(data, str):
        return data or None
    if _is_message_list(data):
        return next((item for item in data if isinstance(item, str) and item), None)
    if not isinstance(data, Mapping):
        return None

    for key in ("detail", "message"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _flatten_error_details(details: Any, path: str = "") -> dict[str, list[str]]:
    """Flatten nested DRF error details into `{"a.b": ["msg", ...]}`."""
    out: dict[str, list[str]] = {}
    if isinstance(details, Mapping):
        for key, value in details.items():
            for k, v in _flatten_error_details(value, f"{path}.{key}" if path else str(key)).items():
                out.setdefault(k, []).extend(v)
        return out
    if _is_message_list(details):
        for idx, item in enumerate(details):
            if isinstance(item, (Mapping, list, tuple)):
                nested = _flatten_error_details(item, f"{path}.{idx}" if path else str(idx))
                for k, v in nested.items():
                    out.setdefault(k, []).extend(v)
            else:
                out.setdefault(path or "non_field_errors", []).append(str(item))
        return out
    out.setdefault(path or "non_field_errors", []).append(str(details))
    return out


def _wrap_drf_error(exc: Exception, response: Response) -> Response:
    error_status = next(
        (name for types, name in _DRF_ERROR_STATUS if isinstance(exc, types)),
        "server_error" if response.status_code >= 500 else "bad_request",
    )
    message = _first_message(response.data) or "Request failed."
    details = None

    if isinstance(exc, drf_exceptions.ValidationError):
        details = _flatten_error_details(response.data)
        if len(details) == 1:
            (messages,) = details.values()
            message = messages[0] if messages else "One or more fields failed validation."
        else:
            message = "One or more fields failed validation."

    return _error_response(
        error_status=error_status,
        message=message,
        http_status=response.status_code,
        details=details,
    )


def custom_exception_handler(exc: Exception, context):
    """
    Central exception->HTTP mapping for domain/use-case exceptions.

    Keep views thin: raise meaningful exceptions and let this layer translate
    them into consistent API responses.
    """
    response = drf_exception_handler(exc, context)
    if response is not None:
        return _wrap_drf_error(exc, response)

    for exc_type, error_status, http_status in _DOMAIN_ERROR_MAP:
        if isinstance(exc, exc_type):
            if http_status >= 500:
                logger.warning("%s: %s", exc.__class__.__name__, exc)
            return _error_response(
                error_status=error_status,
                message=str(exc),
                http_status=http_status,
            )

    logger.exception(
        "Unhandled exception in API view: %s",
        context.get("view").__class__.__name__ if context.get("view") else "unknown",
        exc_info=exc,
    )
    return None
