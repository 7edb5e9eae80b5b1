import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Dig the first human readable string out of a DRF error structure."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return "Invalid input."
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid input."
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every API failure as ``{"message": ..., "status": ...}``.

    The web client surfaces ``message`` directly, so validation errors keep
    their field breakdown under ``errors`` and data-store failures become a
    logged 500 instead of Django's HTML error page.
    """
    response = exception_handler(exc, context)

    if response is None:
        if isinstance(exc, DatabaseError):
            view = context.get("view")
            logger.exception(f"Database error in {view.__class__.__name__ if view else 'unknown view'}")
            return Response(
                {"message": "Internal server error.", "status": status.HTTP_500_INTERNAL_SERVER_ERROR},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return None

    body = {"message": _first_message(response.data), "status": response.status_code}
    if isinstance(exc, ValidationError):
        body["errors"] = response.data
    response.data = body
    return response
