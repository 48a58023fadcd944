"""Error taxonomy for signed S3 requests.

Transport failures are not wrapped: connection errors and timeouts raised
by httpx reach the caller unchanged.
"""

from typing import Optional


class S3RestError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(S3RestError):
    """Raised when the service configuration is missing or invalid."""

    pass


class ProgrammingError(S3RestError):
    """Raised when the API is used incorrectly by the caller."""

    pass


class AlreadyAuthorizedError(ProgrammingError):
    """Raised when signing a request that already carries a signature."""

    def __init__(self, message: str = "This request has already been authorized."):
        super().__init__(message)


class AuthorizationRejectedError(S3RestError):
    """Raised when the server bounces a request it considers unauthenticated.

    S3 answers an unsigned (or badly routed) bucket listing with a
    ``307 Temporary Redirect`` pointing at the marketing site instead of an
    XML error document.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        location: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.location = location
