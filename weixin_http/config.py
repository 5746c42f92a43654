"""
weixin_http transport configuration.
"""

import codecs
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 6.3; WOW64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/33.0.1750.146 Safari/537.36"
)
DEFAULT_BOUNDARY = "----WebKitFormBoundaryiDGnV9zdZA1eM1yL"


class TrustPolicy(StrEnum):
    """How server certificates are checked when no client certificate is used."""

    LENIENT = "lenient"
    SYSTEM = "system"


@dataclass(frozen=True, kw_only=True)
class TransportConfig:
    """
    Attributes:
        connect_timeout: Connect timeout in seconds. None or non-positive
            falls back to DEFAULT_TIMEOUT.
        read_timeout: Read timeout in seconds, same fallback.
        user_agent: User-Agent header value sent on every request.
        charset: Encoding for request bodies and text responses.
        trust_policy: Server certificate policy for plain https calls.
            Defaults to LENIENT, which accepts any certificate.
        multipart_boundary: Boundary literal shared by every upload.
        upload_chunk_size: Bytes read from disk per upload chunk.
    """

    connect_timeout: float | None = None
    read_timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    charset: str = "UTF-8"
    trust_policy: TrustPolicy = TrustPolicy.LENIENT
    multipart_boundary: str = DEFAULT_BOUNDARY
    upload_chunk_size: int = 1024

    def __post_init__(self) -> None:
        if not self.user_agent:
            msg = "user_agent must not be empty"
            raise ValueError(msg)
        if not self.multipart_boundary or any(c in self.multipart_boundary for c in "\r\n"):
            msg = "multipart_boundary must be a non-empty single-line string"
            raise ValueError(msg)
        if self.upload_chunk_size <= 0:
            msg = "upload_chunk_size must be positive"
            raise ValueError(msg)
        try:
            codecs.lookup(self.charset)
        except LookupError as e:
            msg = f"unknown charset: {self.charset}"
            raise ValueError(msg) from e

    @property
    def effective_connect_timeout(self) -> float:
        return _or_default(self.connect_timeout)

    @property
    def effective_read_timeout(self) -> float:
        return _or_default(self.read_timeout)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TransportConfig":
        """
        Build a config from WEIXIN_* environment variables.

        Timeouts are read in milliseconds from ``WEIXIN_CONNECT_TIMEOUT_MS`` and
        ``WEIXIN_READ_TIMEOUT_MS``; ``WEIXIN_TRUST_POLICY`` selects the trust policy.
        Unset variables keep the defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {
            "connect_timeout": _millis(env.get("WEIXIN_CONNECT_TIMEOUT_MS")),
            "read_timeout": _millis(env.get("WEIXIN_READ_TIMEOUT_MS")),
        }
        if policy := env.get("WEIXIN_TRUST_POLICY"):
            kwargs["trust_policy"] = TrustPolicy(policy.lower())
        return cls(**kwargs)


def _or_default(timeout: float | None) -> float:
    if timeout is None or timeout <= 0:
        return DEFAULT_TIMEOUT
    return timeout


def _millis(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw) / 1000
    except ValueError as e:
        msg = f"timeout must be an integer number of milliseconds, got {raw!r}"
        raise ValueError(msg) from e
