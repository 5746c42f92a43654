"""
Thin accessor over a streamed HTTP response.
"""

import io
import json
from collections.abc import Iterator
from typing import Any, BinaryIO, Self

import httpx

from weixin_http.api.dispatcher import Connection, transport_errors

_UNSET: Any = object()


class Response:
    """
    Status, headers and lazily read body of one response.

    The body is read on first access to ``text`` and parsed at most once by
    ``json()``. Closing the response releases its connection.
    """

    def __init__(self, connection: Connection, *, charset: str = "UTF-8") -> None:
        if connection.response is None:
            msg = "Connection has no response yet"
            raise ValueError(msg)
        self._connection = connection
        self._raw: httpx.Response = connection.response
        self._charset = charset
        self._text: str | None = None
        self._json: Any = _UNSET

    @property
    def url(self) -> str:
        return self._connection.url

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._raw.headers

    @property
    def content_type(self) -> str:
        return self._raw.headers.get("Content-Type", "")

    @property
    def is_ok(self) -> bool:
        return self._raw.status_code == httpx.codes.OK

    @property
    def text(self) -> str:
        """Full body decoded with the configured charset; read once."""
        if self._text is None:
            with transport_errors(self.url):
                content = self._raw.read()
            self._text = content.decode(self._charset, errors="replace")
        return self._text

    def json(self) -> Any:
        """Parsed JSON body, or None when the body is not valid JSON."""
        if self._json is _UNSET:
            try:
                self._json = json.loads(self.text)
            except (ValueError, RecursionError):
                self._json = None
        return self._json

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        with transport_errors(self.url):
            yield from self._raw.iter_bytes(chunk_size)

    def stream(self) -> BinaryIO:
        """
        Buffered file-like view of the unread body.

        Closing the returned stream closes this response and its connection.
        """
        return io.BufferedReader(_BodyStream(self))

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.content_type!r}>"


class _BodyStream(io.RawIOBase):
    """Raw file interface over ``Response.iter_bytes``."""

    def __init__(self, response: Response) -> None:
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._chunks.close()
            self._response.close()
        finally:
            super().close()
