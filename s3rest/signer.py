"""Request signing with the S3 REST "AWS" authorization scheme.

The string-to-sign is assembled from the request as follows::

    HTTP-Verb \\n
    Content-MD5 \\n
    Content-Type \\n
    \\n                          (Date, superseded by x-amz-date)
    CanonicalizedAmzHeaders
    CanonicalizedResource

and signed with HMAC-SHA1 keyed by the secret access key. The server
recomputes the same string independently, so every byte matters.

Sub-resources (``?acl``, ``?location``, ``?logging``, ``?torrent``) are not
appended to the canonical resource. Requests addressing them will be
rejected with SignatureDoesNotMatch.

See https://docs.aws.amazon.com/AmazonS3/latest/userguide/RESTAuthentication.html
"""

import hashlib
import hmac
import logging
from base64 import b64encode
from contextlib import contextmanager
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Callable, Iterator, Optional, Union

import httpx

from s3rest.errors import AlreadyAuthorizedError
from s3rest.models import Credentials, PendingRequest, SignedCredential

logger = logging.getLogger(__name__)

AMZ_HEADER_PREFIX = "x-amz-"
AMZ_DATE_HEADER = "x-amz-date"
AUTHORIZATION_HEADER = "Authorization"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


def format_http_date(moment: datetime) -> str:
    """Render a datetime as an RFC 1123 HTTP date.

    Naive datetimes are assumed to be in UTC.

    >>> format_http_date(datetime(2019, 1, 1))
    'Tue, 01 Jan 2019 00:00:00 GMT'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return format_datetime(moment, usegmt=True)


def fold_whitespace(value: str) -> str:
    """Collapse runs of whitespace to one space and trim both ends."""
    return " ".join(value.split())


def canonical_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    """Collect the x-amz-* headers, keyed by lowercased name in sorted order.

    Args:
        headers: Request headers. Repeated headers keep every value in the
                order they were added.

    Returns:
        Mapping of lowercased header name to its list of values.
    """
    collected: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        name = name.lower()
        if name.startswith(AMZ_HEADER_PREFIX):
            collected.setdefault(name, []).append(value)
    return {name: collected[name] for name in sorted(collected)}


def canonicalize_headers(headers: httpx.Headers) -> str:
    """Render the CanonicalizedAmzHeaders block, one ``name:value\\n`` per header."""
    lines = []
    for name, values in canonical_headers(headers).items():
        lines.append(f"{name}:{fold_whitespace(','.join(values))}\n")
    return "".join(lines)


def canonical_resource(
    path: str,
    bucket_name: Optional[str] = None,
    virtual_hosted: bool = False,
) -> str:
    """Render the CanonicalizedResource element.

    Under virtual-hosted addressing the bucket lives in the host name, so it
    is put back in front of the path. Path-style URLs already contain it.
    """
    if virtual_hosted and bucket_name is not None:
        return f"/{bucket_name}{path}"
    return path


def string_to_sign(
    method: str,
    headers: httpx.Headers,
    path: str,
    bucket_name: Optional[str] = None,
    virtual_hosted: bool = False,
) -> str:
    """Assemble the string-to-sign for a request.

    This is a pure function of its arguments, so a verifier holding the
    same method, headers and URL can reproduce it exactly.
    """
    standard = "\n".join([
        method.upper(),
        headers.get("Content-MD5", ""),
        headers.get("Content-Type", ""),
        "",
    ])
    return (
        standard
        + "\n"
        + canonicalize_headers(headers)
        + canonical_resource(path, bucket_name, virtual_hosted)
    )


@contextmanager
def signing_key(credentials: Credentials) -> Iterator[bytearray]:
    """Yield the secret key bytes, wiping the buffer when the block exits."""
    key = bytearray(credentials.secret_access_key.encode("utf-8"))
    try:
        yield key
    finally:
        key[:] = bytes(len(key))


def compute_signature(key: Union[str, bytes, bytearray], message: str) -> str:
    """Return the base64 HMAC-SHA1 of ``message`` under ``key``."""
    if isinstance(key, str):
        key = key.encode("utf-8")
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha1).digest()
    return b64encode(digest).decode("ascii")


def request_string_to_sign(request: PendingRequest) -> str:
    """Assemble the string-to-sign from a request's current state."""
    return string_to_sign(
        request.method,
        request.headers,
        request.path,
        bucket_name=request.resolved_bucket_name,
        virtual_hosted=request.virtual_hosted,
    )


class RequestSigner:
    """Signs PendingRequests in place.

    Args:
        clock: Callable returning the current time. Injected so that
              signatures can be reproduced in tests.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    def authorize(
        self,
        request: PendingRequest,
        credentials: Credentials,
    ) -> SignedCredential:
        """Timestamp and sign a request, setting its Authorization header.

        Args:
            request: The request to sign. It is modified in place.
            credentials: Access key pair to sign with.

        Returns:
            The key id and signature written to the request.

        Raises:
            AlreadyAuthorizedError: If the request was already signed.
        """
        if request.is_signed:
            raise AlreadyAuthorizedError()

        request.headers[AMZ_DATE_HEADER] = format_http_date(self._clock())

        to_sign = request_string_to_sign(request)
        logger.debug("String to sign for %s %s:\n%s", request.method, request.url, to_sign)

        with signing_key(credentials) as key:
            signature = compute_signature(key, to_sign)

        credential = SignedCredential(credentials.access_key_id, signature)
        request.headers[AUTHORIZATION_HEADER] = credential.header_value()
        request.mark_signed()
        return credential

    def authorize_if_necessary(
        self,
        request: PendingRequest,
        credentials: Credentials,
    ) -> Optional[SignedCredential]:
        """Sign the request unless it already is. Returns None if skipped."""
        if request.is_signed:
            return None
        return self.authorize(request, credentials)
