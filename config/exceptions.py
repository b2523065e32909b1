# config/exceptions.py

import logging

from django.db import DatabaseError
from rest_framework.views import exception_handler
from rest_framework.response import Response

from restaurant.exceptions import ServiceError, StoreUnavailable

logger = logging.getLogger(__name__)


def _first_message(detail):
    """
    Flatten DRF error detail into a single human-readable message.
    Field errors are prefixed with the field name.
    """
    if isinstance(detail, dict):
        if not detail:
            return "Invalid request"
        field, errors = next(iter(detail.items()))
        message = _first_message(errors)
        if field in ("detail", "non_field_errors"):
            return message
        return f"{field}: {message}"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid request"
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every API failure as {"message": ...}.
    Database errors that escape the services (lazy querysets evaluated
    while serializing) are reported as a store outage.
    """
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.error(f"Database error in {view.__class__.__name__ if view else 'view'}: {exc}")
        exc = StoreUnavailable()

    if isinstance(exc, ServiceError):
        return Response({"message": exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    response.data = {"message": _first_message(response.data)}
    return response
