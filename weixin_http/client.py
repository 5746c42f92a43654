"""
weixin_http client facade.

This is the main entry point for users of the library. Every call opens its
own connection and TLS context; nothing is shared between calls, so one
client may be used from several threads.
"""

import json as jsonlib
from pathlib import Path
from typing import Any

import httpx
import structlog

from weixin_http.api.dispatcher import TransportDispatcher, sanitize_url
from weixin_http.api.executor import RequestExecutor
from weixin_http.api.multipart import MultipartUploader
from weixin_http.api.response import Response
from weixin_http.config import TransportConfig
from weixin_http.exceptions import ClassificationError
from weixin_http.models.outcome import ApiError, Attachment, ClassificationAmbiguity
from weixin_http.models.request import HttpMethod, Request, TlsIdentity
from weixin_http.services.attachment_service import AttachmentDownloader
from weixin_http.services.classifier import ResponseClassifier
from weixin_http.services.error_messages import ErrorMessageLookup

logger = structlog.get_logger(__name__)


class WeixinHttpClient:
    """
    Synchronous client for the WeChat platform API.

    Example:
        ```python
        client = WeixinHttpClient()

        token = client.request_json("GET", token_url)

        media = client.upload(upload_url, Path("cover.jpg"))

        with client.download(media_url) as attachment:
            if attachment.is_error:
                print(attachment.error_message)
            else:
                attachment.save(Path("downloads"))
        ```

    Args:
        config: Transport configuration. Uses defaults if not provided.
        transport: Optional httpx transport for testing (mock transport).
        error_messages: Lookup for error codes sent without ``errmsg``.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        error_messages: ErrorMessageLookup | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        dispatcher = TransportDispatcher(self._config, transport=transport)
        self._executor = RequestExecutor(dispatcher)
        self._uploader = MultipartUploader(dispatcher)
        self._classifier = ResponseClassifier(error_messages)
        self._downloader = AttachmentDownloader(self._executor, self._classifier)

    @property
    def config(self) -> TransportConfig:
        return self._config

    def get(self, url: str) -> Response:
        """GET ``url``. The caller must close the response."""
        return self._executor.execute(Request(url=url, method=HttpMethod.GET))

    def post(self, url: str, json: dict[str, Any] | None = None) -> Response:
        """POST ``json`` serialised as JSON text. The caller must close the response."""
        body = None if json is None else jsonlib.dumps(json, ensure_ascii=False)
        if body is not None:
            logger.debug("POST JSON", url=sanitize_url(url), length=len(body))
        return self._executor.execute(Request.post(url, body, charset=self._config.charset))

    def post_xml(self, url: str, xml: str, identity: TlsIdentity | None = None) -> Response:
        """
        POST an XML document.

        Args:
            url: Target URL.
            xml: XML payload.
            identity: Client certificate for calls that need mutual TLS.
        """
        request = Request.post(url, xml, charset=self._config.charset, identity=identity)
        return self._executor.execute(request)

    def request_json(
        self,
        method: HttpMethod | str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Call a JSON endpoint and return its decoded body.

        Raises:
            APIError: If the body carries a non-zero ``errcode``.
            ClassificationError: If the body is not a JSON object.
            TlsSetupError: If the TLS context cannot be built.
            TransportError: If the request fails on the wire.
        """
        if HttpMethod(str(method).upper()) == HttpMethod.GET:
            response = self.get(url)
        else:
            response = self.post(url, json)

        with response:
            outcome = self._classifier.decode_envelope(response)

        if isinstance(outcome, ApiError):
            raise outcome.to_exception(sanitize_url(url))
        if isinstance(outcome, ClassificationAmbiguity):
            msg = "Response is not a JSON envelope"
            raise ClassificationError(msg, raw=outcome.raw)
        return outcome.data

    def upload(self, url: str, file_path: str | Path) -> str:
        """Upload a file as the ``media`` form field and return the raw reply."""
        return self._uploader.upload(url, file_path)

    def download(self, url: str) -> Attachment:
        """
        Download an attachment.

        Returns:
            Attachment with either ``file_stream`` or ``error_message`` set.
            The caller must close an attachment that carries a stream.
        """
        return self._downloader.download(url)
