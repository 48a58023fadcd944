"""Request construction for an S3-compatible service.

Builds the request URL for either addressing style:

- virtual-hosted: ``http://bucket.host/key``
- path-style:     ``http://host/bucket/key``

The resulting PendingRequest is unsigned; callers add Content-Type,
Content-MD5 and metadata headers before handing it to the signer.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from s3rest.errors import ConfigurationError
from s3rest.models import PendingRequest, ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def build_url(
    config: ServiceConfig,
    bucket_name: Optional[str] = None,
    object_key: Optional[str] = None,
) -> str:
    """Assemble the request URL string for a bucket and object key.

    Args:
        config: Service configuration supplying host, port, TLS flag and
               addressing style.
        bucket_name: Bucket to address, if any.
        object_key: Object key within the bucket, if any.

    Returns:
        The absolute URL as a string.
    """
    parts = [config.scheme, "://"]

    if bucket_name is not None and config.virtual_hosted:
        parts.append(bucket_name + ".")

    parts.append(config.host)

    if config.port and config.port != DEFAULT_PORTS[config.scheme]:
        parts.append(f":{config.port}")

    parts.append("/")

    if bucket_name is not None and not config.virtual_hosted:
        parts.append(bucket_name + "/")

    if object_key:
        parts.append(quote(object_key, safe="/~"))

    return "".join(parts)


def build_request(
    config: ServiceConfig,
    method: str,
    bucket_name: Optional[str] = None,
    object_key: Optional[str] = None,
) -> PendingRequest:
    """Create an unsigned request addressed at a bucket and/or object.

    Args:
        config: Service configuration.
        method: HTTP method, e.g. "GET" or "PUT".
        bucket_name: Bucket to address, if any.
        object_key: Object key within the bucket, if any.

    Returns:
        A PendingRequest ready to be populated and signed.

    Raises:
        ConfigurationError: If the configured host is empty.
    """
    if not config.host:
        raise ConfigurationError("Service host must not be empty")

    url = httpx.URL(build_url(config, bucket_name, object_key))
    logger.debug("Built %s request for %s", method.upper(), url)

    return PendingRequest(
        method=method.upper(),
        url=url,
        bucket_name=bucket_name,
        object_key=object_key,
        virtual_hosted=config.virtual_hosted,
        resolved_bucket_name=bucket_name,
    )
