"""
TLS trust layer.

Builds the ``ssl.SSLContext`` for https calls under a lenient, system or
client-certificate policy.
"""

from weixin_http.tls.protocol import TrustStrategy
from weixin_http.tls.strategies import (
    ClientCertificateTrust,
    LenientTrust,
    SystemTrust,
    resolve_trust,
)

__all__ = [
    "ClientCertificateTrust",
    "LenientTrust",
    "SystemTrust",
    "TrustStrategy",
    "resolve_trust",
]
