"""
Data models for weixin_http.

Requests are immutable (frozen) dataclasses; classification outcomes form a
tagged union consumed by the attachment downloader and the client facade.
"""

from weixin_http.models.outcome import (
    ApiError,
    Attachment,
    ClassificationAmbiguity,
    Outcome,
    RawSuccess,
    Redirect,
)
from weixin_http.models.request import HttpMethod, Request, TlsIdentity

__all__ = [
    # Request
    "HttpMethod",
    "Request",
    "TlsIdentity",
    # Outcomes
    "ApiError",
    "Attachment",
    "ClassificationAmbiguity",
    "Outcome",
    "RawSuccess",
    "Redirect",
]
