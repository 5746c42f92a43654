"""
Transport dispatcher.

Opens one connection per call: picks plain or TLS transport from the URL
scheme, attaches the trust strategy's TLS context, and applies the uniform
headers and timeouts. Nothing is pooled or shared between calls.
"""

import ssl
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Self
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
import structlog

from weixin_http.config import TransportConfig
from weixin_http.exceptions import TransportError
from weixin_http.models.request import HttpMethod
from weixin_http.tls import TrustStrategy, resolve_trust

logger = structlog.get_logger(__name__)

SENSITIVE_PARAMS = frozenset(
    {
        "access_token",
        "refresh_token",
        "secret",
        "appsecret",
        "code",
        "ticket",
    }
)


def sanitize_url(url: str) -> str:
    """
    Mask sensitive query parameters before a URL is logged.

    Args:
        url: URL that may carry tokens or secrets in its query string.

    Returns:
        The URL with sensitive values replaced by "***".
    """
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, "***" if key.lower() in SENSITIVE_PARAMS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))


@contextmanager
def transport_errors(url: str) -> Iterator[None]:
    """Re-raise httpx, ssl and OS failures as TransportError."""
    try:
        yield
    except (httpx.HTTPError, ssl.SSLError, OSError) as e:
        logger.warning(
            "Transport failure",
            url=sanitize_url(url),
            error_type=type(e).__name__,
        )
        raise TransportError(str(e) or type(e).__name__, url=sanitize_url(url)) from e


class Connection:
    """
    One open client plus the request about to be sent on it.

    Headers may be adjusted until ``send`` is called. Closing the connection
    closes the response stream and the client.
    """

    def __init__(
        self,
        client: httpx.Client,
        method: HttpMethod,
        url: str,
        headers: dict[str, str],
    ) -> None:
        self._client = client
        self.method = method
        self.url = url
        self.headers = headers
        self._response: httpx.Response | None = None

    def send(self, content: bytes | Iterable[bytes] | None = None) -> httpx.Response:
        """
        Send the request and return the response with its body unread.

        Raises:
            httpx.HTTPError: On connect, TLS or write failure.
            RuntimeError: If the connection was already used.
        """
        if self._response is not None:
            msg = "Connection already sent its request"
            raise RuntimeError(msg)
        request = self._client.build_request(
            self.method.value, self.url, headers=self.headers, content=content
        )
        self._response = self._client.send(request, stream=True)
        return self._response

    @property
    def response(self) -> httpx.Response | None:
        return self._response

    def close(self) -> None:
        try:
            if self._response is not None:
                self._response.close()
        finally:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class TransportDispatcher:
    """Opens plain or TLS connections with uniform headers and timeouts."""

    def __init__(
        self,
        config: TransportConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Transport configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport

    @property
    def config(self) -> TransportConfig:
        return self._config

    def default_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": self._config.user_agent,
            "Charset": self._config.charset,
            "Accept-Encoding": "identity",
        }

    def open(
        self,
        url: str,
        method: HttpMethod | str,
        *,
        trust: TrustStrategy | None = None,
    ) -> Connection:
        """
        Prepare a connection for one request.

        The TLS context is built here, before any socket is opened, so trust
        setup failures never reach the network.

        Args:
            url: Absolute http or https URL.
            method: GET or POST.
            trust: Trust strategy for https. Defaults to the configured policy.

        Returns:
            A connection the caller must close.

        Raises:
            TlsSetupError: If the trust strategy cannot build its context.
            ValueError: If the URL scheme is not http or https.
        """
        method = HttpMethod(str(method).upper())
        scheme = urlsplit(url).scheme
        verify: ssl.SSLContext | bool = True
        if scheme == "https":
            strategy = trust or resolve_trust(self._config.trust_policy)
            verify = strategy.create_ssl_context()
            logger.debug("TLS context ready", trust=strategy.name)
        elif scheme == "http":
            if trust is not None:
                logger.warning("Trust strategy ignored for plain http", trust=trust.name)
        else:
            msg = f"Unsupported URL scheme: {scheme!r}"
            raise ValueError(msg)

        client = httpx.Client(
            verify=verify,
            timeout=httpx.Timeout(
                connect=self._config.effective_connect_timeout,
                read=self._config.effective_read_timeout,
                write=self._config.effective_read_timeout,
                pool=self._config.effective_connect_timeout,
            ),
            follow_redirects=False,
            transport=self._transport,
        )
        return Connection(client, method, url, self.default_headers())
