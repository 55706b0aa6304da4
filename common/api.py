"""Helpers shared by API views."""

from rest_framework.response import Response

from .errors import DomainError


def error_response(exc: DomainError) -> Response:
    """Translate a domain error into the ``{"detail": ...}`` error shape."""
    return Response({"detail": str(exc)}, status=getattr(exc, "status_code", 400))
