"""
Error kinds raised by the service layer and their mapping to HTTP responses.

Services raise these exceptions and never catch them locally; the calling
layer presents the message verbatim. The DRF exception handler below turns
them into ``{"error": ..., "kind": ...}`` responses.
"""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for every error kind surfaced by the service layer."""

    kind = 'error'
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed input: non-positive value, zero duration, invalid email."""

    kind = 'validation'
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""

    kind = 'invalid_transition'
    status_code = status.HTTP_409_CONFLICT


class DuplicateOperationError(ValidationError):
    """An idempotency key was replayed for an operation already accepted."""

    kind = 'duplicate_operation'
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(ServiceError):
    kind = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND


class ExternalServiceError(ServiceError):
    """An adapter call failed or the provider returned a non-success status."""

    kind = 'external_service'
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message, provider=None):
        super().__init__(message)
        self.provider = provider


class UnavailableError(ServiceError):
    """The persistence layer could not be reached."""

    kind = 'unavailable'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def service_exception_handler(exc, context):
    """
    DRF exception handler that understands the service error kinds.

    Falls back to DRF's default handler for everything else, so serializer
    validation errors and authentication failures keep their usual shape.
    """
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling request")
        exc = UnavailableError('Database is unavailable. Please try again later.')

    if isinstance(exc, ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{exc.kind} error: {exc.message}")
        else:
            logger.info(f"{exc.kind} error: {exc.message}")
        return Response(
            {'error': exc.message, 'kind': exc.kind},
            status=exc.status_code
        )

    return exception_handler(exc, context)
