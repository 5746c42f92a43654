"""Tests for AttachmentDownloader."""

import httpx
import pytest

from weixin_http.api.executor import RequestExecutor
from weixin_http.exceptions import TransportError
from weixin_http.services.attachment_service import AttachmentDownloader
from weixin_http.services.classifier import ResponseClassifier
from weixin_http.tests.utils.mock_transport import MockTransport

MEDIA_URL = "https://api.weixin.qq.com/cgi-bin/media/get?access_token=T&media_id=M"


@pytest.fixture
def downloader(executor: RequestExecutor) -> AttachmentDownloader:
    return AttachmentDownloader(executor, ResponseClassifier())


def add_binary(mock_transport: MockTransport, name: str, data: bytes) -> None:
    mock_transport.add_response(
        content=data,
        headers={
            "Content-Type": "video/mp4",
            "Content-Disposition": f'attachment; filename="{name}"',
        },
    )


def test_binary_download(downloader: AttachmentDownloader, mock_transport: MockTransport) -> None:
    add_binary(mock_transport, "clip.mp4", b"frames")

    with downloader.download(MEDIA_URL) as attachment:
        assert attachment.full_name == "clip.mp4"
        assert attachment.file_stream.read() == b"frames"

    assert mock_transport.requests[0].method == "POST"


def test_video_url_triggers_one_get(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json('{"video_url":"http://host/video.mp4"}', content_type="text/plain")
    add_binary(mock_transport, "video.mp4", b"mp4-bytes")

    with downloader.download(MEDIA_URL) as attachment:
        assert attachment.is_error is False
        assert attachment.full_name == "video.mp4"
        assert attachment.file_name == "video"
        assert attachment.suffix == "mp4"
        assert attachment.file_stream.read() == b"mp4-bytes"

    assert len(mock_transport.requests) == 2
    follow_up = mock_transport.requests[1]
    assert follow_up.method == "GET"
    assert str(follow_up.url) == "http://host/video.mp4"


def test_second_indirection_is_not_followed(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json('{"video_url":"http://host/a"}')
    mock_transport.add_json('{"video_url":"http://host/b"}')
    add_binary(mock_transport, "never.mp4", b"x")

    attachment = downloader.download(MEDIA_URL)

    assert attachment.is_error is True
    assert "http://host/b" in attachment.error_message
    assert len(mock_transport.requests) == 2


def test_error_envelope_becomes_error_attachment(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json('{"errcode":40007,"errmsg":"invalid media_id"}')

    attachment = downloader.download(MEDIA_URL)

    assert attachment.error_message == "invalid media_id"
    assert attachment.file_stream is None


def test_plain_text_becomes_error_attachment(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json("service unavailable", content_type="text/plain")

    attachment = downloader.download(MEDIA_URL)

    assert attachment.error_message == "service unavailable"


def test_json_success_without_file_is_error(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json('{"errcode":0,"news_item":[]}')

    attachment = downloader.download(MEDIA_URL)

    assert attachment.error_message == '{"errcode":0,"news_item":[]}'


def test_follow_up_failure_propagates(
    downloader: AttachmentDownloader, mock_transport: MockTransport
) -> None:
    mock_transport.add_json('{"video_url":"http://host/video.mp4"}')
    mock_transport.add_error(httpx.ReadTimeout("timed out"))

    with pytest.raises(TransportError):
        downloader.download(MEDIA_URL)


@pytest.mark.parametrize("video_url", ["/relative/video.mp4", "ftp://host/video.mp4"])
def test_unusable_video_url_becomes_error_attachment(
    downloader: AttachmentDownloader, mock_transport: MockTransport, video_url: str
) -> None:
    body = f'{{"video_url":"{video_url}"}}'
    mock_transport.add_json(body)

    attachment = downloader.download(MEDIA_URL)

    assert attachment.error_message == body
    assert len(mock_transport.requests) == 1
