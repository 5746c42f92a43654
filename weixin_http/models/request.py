"""
Outbound request models.
"""

from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlsplit


class HttpMethod(StrEnum):
    """Methods the transport speaks."""

    GET = "GET"
    POST = "POST"


@dataclass(frozen=True, kw_only=True)
class TlsIdentity:
    """
    Client certificate used for mutual TLS.

    The PKCS12 bundle is opened with ``partner_id`` as the store password and
    ``certificate_secret`` as the key password. Whether the file exists and the
    passwords are right is only known once the TLS context is built.
    """

    partner_id: str
    certificate_path: str
    certificate_secret: str

    def __post_init__(self) -> None:
        if not self.partner_id:
            msg = "partner_id must not be empty"
            raise ValueError(msg)
        if not self.certificate_path:
            msg = "certificate_path must not be empty"
            raise ValueError(msg)
        if not self.certificate_secret:
            msg = "certificate_secret must not be empty"
            raise ValueError(msg)

    def __repr__(self) -> str:
        return f"TlsIdentity(partner_id={self.partner_id!r}, certificate_path={self.certificate_path!r})"


@dataclass(frozen=True, kw_only=True)
class Request:
    """A single outbound call, built once by the caller and consumed once."""

    url: str
    method: HttpMethod = HttpMethod.GET
    body: bytes | None = None
    requires_client_cert: bool = False
    client_identity: TlsIdentity | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod(str(self.method).upper()))
        if urlsplit(self.url).scheme not in ("http", "https"):
            msg = f"url must be http or https: {self.url!r}"
            raise ValueError(msg)
        if self.requires_client_cert and self.client_identity is None:
            msg = "client_identity is required when requires_client_cert is set"
            raise ValueError(msg)
        if self.requires_client_cert and not self.is_https:
            msg = f"client certificate calls must use https: {self.url!r}"
            raise ValueError(msg)

    @property
    def is_https(self) -> bool:
        return urlsplit(self.url).scheme == "https"

    @classmethod
    def post(
        cls,
        url: str,
        body: str | bytes | None,
        *,
        charset: str = "UTF-8",
        identity: TlsIdentity | None = None,
    ) -> "Request":
        """Build a POST, encoding a text body with ``charset``."""
        if isinstance(body, str):
            body = body.encode(charset)
        return cls(
            url=url,
            method=HttpMethod.POST,
            body=body,
            requires_client_cert=identity is not None,
            client_identity=identity,
        )
