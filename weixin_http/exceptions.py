"""
weixin_http exception hierarchy.

All exceptions inherit from WeixinError for easy catching. Lower-level
httpx, ssl and OS errors never escape the transport boundary unwrapped.
"""

from typing import Any


class WeixinError(Exception):
    """Base exception for all weixin_http errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class TlsSetupError(WeixinError):
    """TLS context could not be built (keystore, key unlock, OpenSSL)."""


class TransportError(WeixinError):
    """Network-level failure while sending a request or reading its response."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.url = url


class APIError(WeixinError):
    """The platform answered with a non-zero errcode."""

    def __init__(self, message: str, *, code: int, url: str | None = None) -> None:
        super().__init__(message, code=code, url=url)
        self.code = code
        self.url = url


class ClassificationError(WeixinError):
    """Response payload matched none of the known shapes."""

    def __init__(self, message: str, *, raw: str) -> None:
        super().__init__(message)
        self.raw = raw
