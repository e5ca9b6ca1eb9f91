"""API error taxonomy and the DRF exception handler.

Every error leaving the API is rendered as::

    {"message": "...", "status": 409, "timestamp": "2025-03-04T10:00:00+09:00"}

Known errors keep their status code; anything unexpected is logged with its
traceback and answered with a generic 500 body.
"""

from __future__ import annotations

from typing import Any

import structlog
from django.core.exceptions import PermissionDenied  # type: ignore
from django.http import Http404  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import exceptions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "서버 내부 오류가 발생했습니다."


class InvalidInput(exceptions.APIException):
    """Malformed date, non-operating day or an empty time window."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "잘못된 입력값입니다."
    default_code = "invalid_input"


class Forbidden(exceptions.APIException):
    """Role or region mismatch for the requested action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "권한이 없습니다."
    default_code = "forbidden"


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "대상을 찾을 수 없습니다."
    default_code = "not_found"


class ReservationConflict(exceptions.APIException):
    """An active reservation or previsit already occupies the window."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "해당 시간에는 확정된 예약 또는 사전 답사가 존재하여 예약할 수 없습니다."
    default_code = "reservation_conflict"


class PreconditionFailed(exceptions.APIException):
    """The target is not in the state the action requires (already processed)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "이미 처리된 대상입니다."
    default_code = "precondition_failed"


def _flatten_detail(detail: Any) -> str:
    """Reduce DRF's nested error detail to a single readable message."""

    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            message = _flatten_detail(value)
            if field in ("non_field_errors", "detail"):
                parts.append(message)
            else:
                parts.append(f"{field}: {message}")
        return " ".join(parts)
    if isinstance(detail, (list, tuple)):
        return " ".join(_flatten_detail(item) for item in detail)
    return str(detail)


def error_body(message: str, status_code: int) -> dict[str, Any]:
    return {
        "message": message,
        "status": status_code,
        "timestamp": timezone.localtime().isoformat(),
    }


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """Render every API failure as ``{message, status, timestamp}``."""

    if isinstance(exc, Http404):
        exc = NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = Forbidden()

    response = drf_exception_handler(exc, context)
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if response is None:
        logger.error("unhandled_api_error", view=view_name, error=exc.__class__.__name__, exc_info=exc)
        return Response(
            error_body(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = getattr(exc, "detail", response.data)
    message = _flatten_detail(detail)
    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("api_server_error", view=view_name, status=response.status_code, message=message)
    else:
        logger.info("api_client_error", view=view_name, status=response.status_code, message=message)

    response.data = error_body(message, response.status_code)
    return response
