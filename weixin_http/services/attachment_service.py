"""
Attachment download.

Downloads a resource and resolves its classification into a terminal
Attachment, following at most one ``video_url`` indirection.
"""

import structlog

from weixin_http.api.dispatcher import sanitize_url
from weixin_http.api.executor import RequestExecutor
from weixin_http.models.outcome import (
    ApiError,
    Attachment,
    ClassificationAmbiguity,
    Outcome,
    RawSuccess,
    Redirect,
)
from weixin_http.models.request import HttpMethod, Request
from weixin_http.services.classifier import ResponseClassifier

logger = structlog.get_logger(__name__)

_MAX_INDIRECTIONS = 1


class AttachmentDownloader:
    """Fetches attachments and turns every outcome into an Attachment."""

    def __init__(self, executor: RequestExecutor, classifier: ResponseClassifier) -> None:
        self._executor = executor
        self._classifier = classifier

    def download(self, url: str, *, method: HttpMethod = HttpMethod.POST) -> Attachment:
        """
        Download the resource at ``url``.

        A ``video_url`` payload triggers one plain GET to that URL and its
        result is returned instead. A second indirection is reported as an
        error attachment.

        Args:
            url: Resource URL.
            method: Method of the first request.

        Returns:
            An attachment carrying either a stream or an error message.

        Raises:
            TlsSetupError: If the TLS context cannot be built.
            TransportError: If a request fails on the wire.
        """
        outcome = self._fetch(Request(url=url, method=method))
        hops = 0
        while isinstance(outcome, Redirect):
            if hops >= _MAX_INDIRECTIONS:
                logger.warning("Indirection limit reached", url=sanitize_url(outcome.url))
                return Attachment.failed(f"Too many indirections, last video_url: {outcome.url}")
            hops += 1
            logger.debug("Following video_url", url=sanitize_url(outcome.url))
            outcome = self._fetch(Request(url=outcome.url, method=HttpMethod.GET))
        return _to_attachment(outcome)

    def _fetch(self, request: Request) -> Outcome:
        response = self._executor.execute(request)
        return self._classifier.classify(response)


def _to_attachment(outcome: Outcome) -> Attachment:
    match outcome:
        case Attachment():
            return outcome
        case ApiError(message=message):
            return Attachment.failed(message)
        case RawSuccess(text=text) | ClassificationAmbiguity(raw=text):
            return Attachment.failed(text)
        case _:
            msg = f"Unexpected outcome: {outcome!r}"
            raise TypeError(msg)
