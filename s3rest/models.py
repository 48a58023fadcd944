"""Data models for signed S3 requests."""

from dataclasses import dataclass, field
from typing import Optional

import httpx

from s3rest.errors import ConfigurationError

# Prefix for user-defined object metadata headers
METADATA_PREFIX = "x-amz-meta-"


@dataclass(frozen=True)
class Credentials:
    """Access key pair used to sign requests."""

    access_key_id: str
    secret_access_key: str = field(repr=False)


@dataclass
class ServiceConfig:
    """Connection settings for an S3-compatible service."""

    host: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    port: Optional[int] = None
    use_tls: bool = False
    virtual_hosted: bool = True

    def __post_init__(self):
        if not self.host or not self.host.strip():
            raise ConfigurationError("Service host must not be empty")
        if not self.access_key_id:
            raise ConfigurationError("Access key id must not be empty")
        if not self.secret_access_key:
            raise ConfigurationError("Secret access key must not be empty")
        if self.port is not None and not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}")

    @property
    def scheme(self) -> str:
        return "https" if self.use_tls else "http"

    @property
    def credentials(self) -> Credentials:
        return Credentials(self.access_key_id, self.secret_access_key)


@dataclass
class SignedCredential:
    """The key id and signature carried by an Authorization header."""

    key_id: str
    signature: str

    def header_value(self) -> str:
        return f"AWS {self.key_id}:{self.signature}"


@dataclass
class PendingRequest:
    """A request that has been addressed but not necessarily signed yet.

    Callers populate ``headers`` and ``content`` between building and
    signing. ``resolved_bucket_name`` remembers the bucket even when it only
    appears in the host name, since the signature covers ``/bucket/key``
    regardless of the addressing style.
    """

    method: str
    url: httpx.URL
    bucket_name: Optional[str] = None
    object_key: Optional[str] = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: Optional[bytes] = None
    virtual_hosted: bool = False
    resolved_bucket_name: Optional[str] = None
    _signed: bool = field(default=False, init=False, repr=False)

    @property
    def is_signed(self) -> bool:
        return self._signed

    def mark_signed(self) -> None:
        """Record that the request carries a signature. There is no way back."""
        self._signed = True

    @property
    def path(self) -> str:
        """The percent-encoded absolute path of the URL, without a query."""
        return self.url.raw_path.decode("ascii").partition("?")[0]

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @content_type.setter
    def content_type(self, value: str) -> None:
        self.headers["Content-Type"] = value

    @property
    def content_md5(self) -> Optional[str]:
        return self.headers.get("Content-MD5")

    @content_md5.setter
    def content_md5(self, value: str) -> None:
        self.headers["Content-MD5"] = value

    def set_metadata(self, name: str, value: str) -> None:
        """Attach a user metadata value as an ``x-amz-meta-*`` header."""
        self.headers[METADATA_PREFIX + name] = value

    def add_header(self, name: str, value: str) -> None:
        """Append a header value without replacing existing ones."""
        self.headers = httpx.Headers([*self.headers.raw, (name, value)], encoding="utf-8")
