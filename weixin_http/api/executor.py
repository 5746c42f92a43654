"""
Single request/response cycle for GET and POST-with-body calls.
"""

import structlog

from weixin_http.api.dispatcher import TransportDispatcher, sanitize_url, transport_errors
from weixin_http.api.response import Response
from weixin_http.models.request import HttpMethod, Request
from weixin_http.tls import TrustStrategy, resolve_trust

logger = structlog.get_logger(__name__)


class RequestExecutor:
    """Sends one request and hands back its unread response."""

    def __init__(self, dispatcher: TransportDispatcher) -> None:
        self._dispatcher = dispatcher

    def execute(self, request: Request) -> Response:
        """
        Send ``request`` and return its response.

        A non-200 status is returned as-is; deciding success is left to the
        caller or the classifier. The caller must close the response.

        Args:
            request: The request to send.

        Returns:
            Response wrapping the open connection.

        Raises:
            TlsSetupError: If the TLS context cannot be built.
            TransportError: If connecting, the TLS handshake or writing fails.
        """
        config = self._dispatcher.config
        trust: TrustStrategy | None = None
        if request.is_https:
            trust = resolve_trust(
                config.trust_policy,
                request.requires_client_cert,
                request.client_identity,
            )
        connection = self._dispatcher.open(request.url, request.method, trust=trust)
        try:
            with transport_errors(request.url):
                if request.method == HttpMethod.POST and request.body is not None:
                    connection.headers["Content-Length"] = str(len(request.body))
                    connection.send(request.body)
                else:
                    connection.send()
        except BaseException:
            connection.close()
            raise

        response = Response(connection, charset=config.charset)
        logger.debug(
            "Request sent",
            method=request.method.value,
            url=sanitize_url(request.url),
            body_length=len(request.body) if request.body is not None else 0,
            status=response.status_code,
        )
        if not response.is_ok:
            logger.info(
                "Non-200 response",
                url=sanitize_url(request.url),
                status=response.status_code,
            )
        return response
