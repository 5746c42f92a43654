"""
weixin_http: synchronous transport for the WeChat platform API.

Sends GET/POST calls under a lenient or mutual-TLS trust policy, uploads
files as multipart/form-data, and classifies responses into API errors,
JSON payloads or downloadable attachments.

Example:
    ```python
    from weixin_http import TlsIdentity, WeixinHttpClient

    client = WeixinHttpClient()

    with client.get(url) as response:
        print(response.status_code, response.json())

    identity = TlsIdentity(
        partner_id="1900000109",
        certificate_path="apiclient_cert.p12",
        certificate_secret="1900000109",
    )
    with client.post_xml(refund_url, xml, identity=identity) as response:
        print(response.text)
    ```
"""

from weixin_http.client import WeixinHttpClient
from weixin_http.config import TransportConfig, TrustPolicy
from weixin_http.exceptions import (
    APIError,
    ClassificationError,
    TlsSetupError,
    TransportError,
    WeixinError,
)
from weixin_http.models import (
    ApiError,
    Attachment,
    ClassificationAmbiguity,
    HttpMethod,
    RawSuccess,
    Redirect,
    Request,
    TlsIdentity,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "WeixinHttpClient",
    "TransportConfig",
    "TrustPolicy",
    # Models
    "HttpMethod",
    "Request",
    "TlsIdentity",
    "ApiError",
    "Attachment",
    "ClassificationAmbiguity",
    "RawSuccess",
    "Redirect",
    # Exceptions
    "WeixinError",
    "TlsSetupError",
    "TransportError",
    "APIError",
    "ClassificationError",
]
