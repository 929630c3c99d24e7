"""
DRF exception handler that wraps every failure in the storefront envelope.

All API responses carry a ``success`` flag. Failures additionally carry a
human readable ``message`` and, for field validation errors, the per-field
``errors`` mapping produced by the serializer.
"""

import logging

from django.conf import settings
from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import InternalError

logger = logging.getLogger(__name__)


def _first_message(data):
    """Pull one readable message out of DRF error data."""
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        for field, value in data.items():
            message = _first_message(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
        return ""
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def envelope_exception_handler(exc, context):
    if isinstance(exc, Ratelimited):
        return Response(
            {"success": False, "message": "Too many requests. Please try again later."},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    response = exception_handler(exc, context)

    if response is None:
        # Storage failures and anything unexpected end up here.
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else "unknown view"
        )
        body = {"success": False, "message": str(InternalError.default_detail)}
        if settings.DEBUG:
            body["error"] = f"{type(exc).__name__}: {exc}"
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    data = response.data
    body = {"success": False, "message": _first_message(data)}
    if isinstance(data, dict) and "detail" not in data:
        body["errors"] = data
    response.data = body
    return response
