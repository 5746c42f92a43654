"""
Classification outcomes.

A classified response is exactly one of ApiError, Redirect, Attachment,
RawSuccess or ClassificationAmbiguity.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Self

from weixin_http.exceptions import APIError


@dataclass(frozen=True, kw_only=True)
class ApiError:
    """Decoded ``{"errcode": ..., "errmsg": ...}`` envelope with a non-zero code."""

    code: int
    message: str

    def to_exception(self, url: str | None = None) -> APIError:
        return APIError(f"{self.message} (errcode={self.code})", code=self.code, url=url)


@dataclass(frozen=True, kw_only=True)
class Redirect:
    """Payload pointing at a second resource (``video_url``) to fetch with GET."""

    url: str


@dataclass(frozen=True, kw_only=True)
class RawSuccess:
    """JSON object with ``errcode`` absent or zero."""

    data: dict[str, Any]
    text: str


@dataclass(frozen=True, kw_only=True)
class ClassificationAmbiguity:
    """Body that matched no known shape; surfaced as an opaque error message."""

    raw: str


@dataclass(frozen=True, kw_only=True)
class Attachment:
    """
    Downloaded resource, or the reason it could not be downloaded.

    Exactly one of ``file_stream`` and ``error_message`` is set. When the
    stream is present the caller owns it and must close it, either through
    ``close()`` or by using the attachment as a context manager. Closing the
    stream also releases the underlying connection.
    """

    full_name: str = ""
    file_name: str = ""
    suffix: str = ""
    content_type: str | None = None
    content_length: int | None = None
    file_stream: BinaryIO | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if (self.file_stream is None) == (self.error_message is None):
            msg = "Attachment needs exactly one of file_stream or error_message"
            raise ValueError(msg)

    @classmethod
    def failed(cls, message: str) -> Self:
        return cls(error_message=message)

    @property
    def is_error(self) -> bool:
        return self.error_message is not None

    def save(self, destination: Path) -> Path:
        """
        Drain the stream into ``destination`` and close it.

        A directory destination receives the file under ``full_name``.

        Returns:
            Path of the written file.

        Raises:
            ValueError: If this attachment carries an error instead of a stream.
        """
        if self.file_stream is None:
            msg = f"Attachment has no content: {self.error_message}"
            raise ValueError(msg)
        if destination.is_dir():
            destination = destination / (self.full_name or "attachment")
        destination.parent.mkdir(parents=True, exist_ok=True)
        with self.file_stream as src, destination.open("wb") as dst:
            shutil.copyfileobj(src, dst)
        return destination

    def close(self) -> None:
        if self.file_stream is not None:
            self.file_stream.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


Outcome = ApiError | Redirect | Attachment | RawSuccess | ClassificationAmbiguity
