"""
Service-level errors.

Services raise these instead of ``HTTPException`` so they can be used
outside a request; ``main.py`` renders them into the response envelope.
"""
from fastapi import status


class ServiceError(Exception):
    """Base class for errors surfaced to the caller with a message."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or malformed input."""


class NotFoundError(ServiceError):
    """A referenced entity does not exist.

    Defaults to 400 since the reference came from caller input; pass 404
    for missing singleton preconditions such as the administrator account.
    """


class PersistenceError(ServiceError):
    """The storage layer failed to write."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DeliveryPartialFailure(ServiceError):
    """A notification could not be delivered after the primary write succeeded.

    Never rendered as an error response: callers turn it into a warning on
    an otherwise successful result.
    """
