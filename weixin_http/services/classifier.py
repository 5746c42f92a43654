"""
Response classification.

Turns a raw response into one outcome: ApiError, Redirect, Attachment,
RawSuccess or ClassificationAmbiguity. Rules are keyed on Content-Type and
evaluated in order; the first match wins and anything unmatched is treated
as a binary attachment.
"""

import re
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

import structlog

from weixin_http.api.response import Response
from weixin_http.models.outcome import (
    ApiError,
    Attachment,
    ClassificationAmbiguity,
    Outcome,
    RawSuccess,
    Redirect,
)
from weixin_http.services.error_messages import DefaultErrorMessages, ErrorMessageLookup

logger = structlog.get_logger(__name__)

VIDEO_URL = "video_url"

_FILENAME_QUOTED = re.compile(r'filename="([^"]*)"', re.IGNORECASE)
_FILENAME_BARE = re.compile(r"filename=([^;\s]+)", re.IGNORECASE)


def errcode_of(data: dict[str, Any]) -> int | None:
    """
    Read ``errcode`` from an envelope.

    Returns:
        The code, 0 when absent, or None when it is not an integer.
    """
    raw = data.get("errcode")
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def parse_filename(disposition: str) -> str:
    """Extract the ``filename`` from a Content-Disposition header, or ""."""
    match = _FILENAME_QUOTED.search(disposition) or _FILENAME_BARE.search(disposition)
    return match.group(1) if match else ""


def split_filename(full_name: str) -> tuple[str, str]:
    """Split on the last dot into (name, suffix); no dot means no suffix."""
    name, dot, suffix = full_name.rpartition(".")
    if not dot:
        return full_name, ""
    return name, suffix


class ResponseClassifier:
    """Classifies responses by Content-Type and payload shape."""

    def __init__(self, error_messages: ErrorMessageLookup | None = None) -> None:
        self._error_messages = error_messages or DefaultErrorMessages()
        self._rules: tuple[tuple[str, Callable[[Response], Outcome]], ...] = (
            ("text/plain", self._classify_text),
            ("application/json", self._classify_json),
        )

    def classify(self, response: Response) -> Outcome:
        """
        Classify ``response``.

        Text and JSON bodies are read in full and the response is closed.
        A binary body becomes an Attachment that owns the response.

        Args:
            response: Unread response.

        Returns:
            The outcome of the first matching rule.
        """
        content_type = response.content_type.lower()
        for marker, rule in self._rules:
            if marker in content_type:
                try:
                    outcome = rule(response)
                finally:
                    response.close()
                logger.debug(
                    "Response classified",
                    content_type=content_type,
                    outcome=type(outcome).__name__,
                )
                return outcome
        return self._classify_binary(response)

    def decode_envelope(self, response: Response) -> ApiError | RawSuccess | ClassificationAmbiguity:
        """
        Decode the ``{"errcode", "errmsg"}`` envelope of a JSON body.

        Content-Type is not checked. The response is left open.
        """
        text = response.text
        data = response.json()
        if not isinstance(data, dict):
            return ClassificationAmbiguity(raw=text)
        code = errcode_of(data)
        if code is None:
            return ClassificationAmbiguity(raw=text)
        if code != 0:
            return self.api_error(code, data)
        return RawSuccess(data=data, text=text)

    def api_error(self, code: int, data: dict[str, Any]) -> ApiError:
        message = data.get("errmsg")
        if not message:
            message = self._error_messages.describe(code)
        return ApiError(code=code, message=str(message))

    def _classify_text(self, response: Response) -> Outcome:
        text = response.text
        if VIDEO_URL not in text:
            return ClassificationAmbiguity(raw=text)
        outcome = self.decode_envelope(response)
        if isinstance(outcome, RawSuccess):
            return _redirect_of(outcome) or ClassificationAmbiguity(raw=text)
        return outcome

    def _classify_json(self, response: Response) -> Outcome:
        outcome = self.decode_envelope(response)
        if isinstance(outcome, RawSuccess):
            return _redirect_of(outcome) or outcome
        return outcome

    def _classify_binary(self, response: Response) -> Attachment:
        try:
            headers = response.headers
            full_name = parse_filename(headers.get("Content-Disposition", ""))
            file_name, suffix = split_filename(full_name)
            attachment = Attachment(
                full_name=full_name,
                file_name=file_name,
                suffix=suffix,
                content_type=headers.get("Content-Type"),
                content_length=_content_length(headers.get("Content-Length")),
                file_stream=response.stream(),
            )
        except BaseException:
            response.close()
            raise
        logger.debug(
            "Attachment received",
            full_name=full_name,
            content_length=attachment.content_length,
        )
        return attachment


def _redirect_of(outcome: RawSuccess) -> Redirect | ClassificationAmbiguity | None:
    """Redirect for an absolute http(s) ``video_url``; ambiguity for any other value."""
    if VIDEO_URL not in outcome.data:
        return None
    url = outcome.data[VIDEO_URL]
    if isinstance(url, str):
        parts = urlsplit(url)
        if parts.scheme in ("http", "https") and parts.netloc:
            return Redirect(url=url)
    return ClassificationAmbiguity(raw=outcome.text)


def _content_length(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
