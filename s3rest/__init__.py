"""
s3rest: signed REST requests for S3-compatible object storage.

Builds correctly addressed requests, signs them with the S3 "AWS"
HMAC-SHA1 authorization scheme, and guards the XML responses.
"""

__version__ = "1.0.0"

from s3rest.client import S3Connection
from s3rest.errors import (
    AlreadyAuthorizedError,
    AuthorizationRejectedError,
    ConfigurationError,
    ProgrammingError,
    S3RestError,
)
from s3rest.models import Credentials, PendingRequest, ServiceConfig, SignedCredential
from s3rest.request import build_request
from s3rest.response import GuardedResponse, XmlCursor
from s3rest.signer import RequestSigner, string_to_sign

__all__ = [
    "AlreadyAuthorizedError",
    "AuthorizationRejectedError",
    "ConfigurationError",
    "Credentials",
    "GuardedResponse",
    "PendingRequest",
    "ProgrammingError",
    "RequestSigner",
    "S3Connection",
    "S3RestError",
    "ServiceConfig",
    "SignedCredential",
    "XmlCursor",
    "build_request",
    "string_to_sign",
    "__version__",
]
