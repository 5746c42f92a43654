r"""
Multipart file upload.

The body carries a single ``media`` part framed with the configured boundary:

    --<boundary>\r\n
    Content-Disposition: form-data; name="media"; filename="<name>"\r\n
    \r\n
    <file bytes>\r\n
    --<boundary>--\r\n

File bytes are streamed from disk in fixed-size chunks. Only regular files are
accepted, and exactly the size measured before sending is streamed so the
body always matches its Content-Length.
"""

import os
import stat
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlsplit

import structlog

from weixin_http.api.dispatcher import TransportDispatcher, sanitize_url, transport_errors
from weixin_http.exceptions import TransportError
from weixin_http.models.request import HttpMethod
from weixin_http.tls import TrustStrategy, resolve_trust

logger = structlog.get_logger(__name__)

FIELD_NAME = "media"


def multipart_preamble(boundary: str, filename: str) -> bytes:
    quoted = filename.replace('"', "%22")
    return (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{FIELD_NAME}"; filename="{quoted}"\r\n'
        "\r\n"
    ).encode()


def multipart_epilogue(boundary: str) -> bytes:
    return f"\r\n--{boundary}--\r\n".encode()


def iter_multipart_body(
    stream: BinaryIO,
    filename: str,
    boundary: str,
    chunk_size: int,
    length: int | None = None,
) -> Iterator[bytes]:
    """
    Yield the framed body, reading ``stream`` ``chunk_size`` bytes at a time.

    With ``length`` set, exactly that many bytes are taken from ``stream``;
    bytes past it are ignored.

    Raises:
        OSError: If ``stream`` ends before ``length`` bytes were read.
    """
    yield multipart_preamble(boundary, filename)
    remaining = length
    while remaining is None or remaining > 0:
        size = chunk_size if remaining is None else min(chunk_size, remaining)
        chunk = stream.read(size)
        if not chunk:
            break
        if remaining is not None:
            remaining -= len(chunk)
        yield chunk
    if remaining:
        msg = f"File shrank during upload, {remaining} bytes missing"
        raise OSError(msg)
    yield multipart_epilogue(boundary)


class MultipartUploader:
    """Uploads one file as ``multipart/form-data`` and returns the raw reply."""

    def __init__(self, dispatcher: TransportDispatcher) -> None:
        self._dispatcher = dispatcher

    def upload(self, url: str, file_path: str | Path) -> str:
        """
        Upload ``file_path`` to ``url``.

        Args:
            url: Upload endpoint.
            file_path: Local file to send.

        Returns:
            The response body as text, unparsed.

        Raises:
            TlsSetupError: If the TLS context cannot be built.
            TransportError: If the file cannot be read or the transfer fails.
        """
        path = Path(file_path)
        config = self._dispatcher.config
        boundary = config.multipart_boundary
        trust: TrustStrategy | None = None
        if urlsplit(url).scheme == "https":
            trust = resolve_trust(config.trust_policy)

        with self._dispatcher.open(url, HttpMethod.POST, trust=trust) as connection:
            connection.headers.update(
                {
                    "Content-Type": f"multipart/form-data; boundary={boundary}",
                    "Cache-Control": "no-cache",
                    "Connection": "Keep-Alive",
                }
            )
            with transport_errors(url):
                # Checked before opening: opening a FIFO blocks until a writer appears.
                if not stat.S_ISREG(path.stat().st_mode):
                    msg = f"Not a regular file: {path.name}"
                    raise TransportError(msg, url=sanitize_url(url))
                with path.open("rb") as f:
                    size = os.fstat(f.fileno()).st_size
                    framing = len(multipart_preamble(boundary, path.name)) + len(
                        multipart_epilogue(boundary)
                    )
                    connection.headers["Content-Length"] = str(framing + size)
                    response = connection.send(
                        iter_multipart_body(
                            f, path.name, boundary, config.upload_chunk_size, length=size
                        )
                    )
                    content = response.read()

            logger.debug(
                "File uploaded",
                url=sanitize_url(url),
                file=path.name,
                size=size,
                status=response.status_code,
            )
            return content.decode(config.charset, errors="replace")
