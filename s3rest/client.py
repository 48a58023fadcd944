"""HTTP transport for signed S3 requests.

Wraps an httpx client configured so that the request goes out exactly as
it was signed: redirects are never followed (a redirect changes the
resource the signature covers) and response bodies are streamed rather
than buffered.
"""

import logging
from typing import Optional

import httpx

from s3rest.errors import AuthorizationRejectedError
from s3rest.models import PendingRequest, ServiceConfig
from s3rest.request import build_request
from s3rest.response import GuardedResponse
from s3rest.signer import RequestSigner

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def build_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    """Build an httpx client suitable for sending signed requests."""
    return httpx.Client(follow_redirects=False, timeout=timeout)


class S3Connection:
    """Builds, signs and sends requests against one S3-compatible service.

    Can be used as a context manager to close the HTTP client it created.

    Args:
        config: Service configuration, including the key pair.
        http_client: httpx client to send with. If omitted, one is created
                    and owned by this connection.
        signer: Signer to use; mainly for injecting a fixed clock in tests.
    """

    def __init__(
        self,
        config: ServiceConfig,
        http_client: Optional[httpx.Client] = None,
        signer: Optional[RequestSigner] = None,
    ):
        self.config = config
        self.signer = signer or RequestSigner()
        self._owns_client = http_client is None
        self.http_client = http_client or build_http_client()

    def request(
        self,
        method: str,
        bucket_name: Optional[str] = None,
        object_key: Optional[str] = None,
    ) -> PendingRequest:
        """Create an unsigned request against this connection's service."""
        return build_request(self.config, method, bucket_name, object_key)

    def to_httpx_request(self, request: PendingRequest) -> httpx.Request:
        return self.http_client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.content,
        )

    def send(self, request: PendingRequest) -> GuardedResponse:
        """Sign the request if needed, send it and validate the response.

        Returns:
            A GuardedResponse whose body has not been read yet. The caller
            must close it.

        Raises:
            AuthorizationRejectedError: If S3 bounced the request.
            httpx.HTTPError: On transport failures, unchanged.
        """
        self.signer.authorize_if_necessary(request, self.config.credentials)

        logger.debug("Sending %s %s", request.method, request.url)
        response = self.http_client.send(
            self.to_httpx_request(request),
            stream=True,
            follow_redirects=False,
        )
        logger.debug("Received %d for %s %s", response.status_code, request.method, request.url)

        try:
            return GuardedResponse(response)
        except AuthorizationRejectedError:
            response.close()
            raise

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "S3Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
