"""
TLS trust strategy protocol.

A strategy turns a trust decision into an ``ssl.SSLContext``. The transport
only asks for a context when it is about to open an https connection, so a
strategy that cannot build one fails before any network I/O.
"""

import ssl
from typing import Protocol, runtime_checkable


@runtime_checkable
class TrustStrategy(Protocol):
    """Produces the TLS context used for one https connection."""

    @property
    def name(self) -> str:
        """Short label used in logs."""
        ...

    def create_ssl_context(self) -> ssl.SSLContext:
        """
        Build a fresh client-side TLS context.

        Raises:
            TlsSetupError: If the context cannot be built.
        """
        ...
