"""
Transport layer.

Opens connections, sends requests and uploads files against the platform API.
"""

from weixin_http.api.dispatcher import Connection, TransportDispatcher, sanitize_url
from weixin_http.api.executor import RequestExecutor
from weixin_http.api.multipart import MultipartUploader
from weixin_http.api.response import Response

__all__ = [
    "Connection",
    "MultipartUploader",
    "RequestExecutor",
    "Response",
    "TransportDispatcher",
    "sanitize_url",
]
