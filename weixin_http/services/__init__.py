"""
Service layer.

Classifies responses and resolves attachment downloads on top of the
transport layer.
"""

from weixin_http.services.attachment_service import AttachmentDownloader
from weixin_http.services.classifier import ResponseClassifier
from weixin_http.services.error_messages import DefaultErrorMessages, ErrorMessageLookup

__all__ = [
    "AttachmentDownloader",
    "DefaultErrorMessages",
    "ErrorMessageLookup",
    "ResponseClassifier",
]
