"""
Trust strategies for outbound https calls.

LenientTrust accepts any server certificate and is the default policy, since
the platform's certificates are not in every stock trust store. SystemTrust
verifies against the platform trust store. ClientCertificateTrust performs
mutual TLS with a PKCS12 identity.
"""

import os
import ssl
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from weixin_http.config import TrustPolicy
from weixin_http.exceptions import TlsSetupError
from weixin_http.models.request import TlsIdentity
from weixin_http.tls.protocol import TrustStrategy

logger = structlog.get_logger(__name__)


class LenientTrust:
    """Accept every server certificate chain without validation."""

    name = "lenient"

    def create_ssl_context(self) -> ssl.SSLContext:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context


class SystemTrust:
    """Verify server certificates and hostnames against the system store."""

    name = "system"

    def create_ssl_context(self) -> ssl.SSLContext:
        try:
            return ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        except ssl.SSLError as e:
            raise TlsSetupError("Cannot load system trust store") from e


class ClientCertificateTrust:
    """
    Mutual TLS with a PKCS12 client identity.

    The bundle is opened with the partner id as store password. Bundles whose
    store password is the certificate secret are accepted as well. The key is
    then handed to OpenSSL protected by the certificate secret. Server
    certificates are verified against the system store.
    """

    name = "client-certificate"

    def __init__(self, identity: TlsIdentity) -> None:
        self._identity = identity

    def create_ssl_context(self) -> ssl.SSLContext:
        path = Path(self._identity.certificate_path)
        try:
            data = path.read_bytes()
        except OSError as e:
            msg = f"Cannot read client certificate: {e.strerror or e}"
            raise TlsSetupError(msg, path=str(path)) from e

        key, certificate, chain = self._load_bundle(data, path)
        secret = self._identity.certificate_secret.encode()

        try:
            context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
            context.minimum_version = ssl.TLSVersion.TLSv1_2
            with _pem_bundle(key, certificate, chain, secret) as pem_path:
                context.load_cert_chain(pem_path, password=secret)
        except (ssl.SSLError, OSError) as e:
            msg = f"Cannot load client certificate into TLS context: {e}"
            raise TlsSetupError(msg, path=str(path)) from e

        logger.debug("Client certificate loaded", partner_id=self._identity.partner_id)
        return context

    def _load_bundle(
        self, data: bytes, path: Path
    ) -> tuple[pkcs12.PKCS12PrivateKeyTypes, x509.Certificate, list[x509.Certificate]]:
        passwords = (self._identity.partner_id, self._identity.certificate_secret)
        last_error: Exception | None = None
        for password in dict.fromkeys(passwords):
            try:
                key, certificate, chain = pkcs12.load_key_and_certificates(
                    data, password.encode()
                )
            except (ValueError, UnsupportedAlgorithm) as e:
                last_error = e
                continue
            if key is None or certificate is None:
                msg = "PKCS12 bundle has no private key or certificate"
                raise TlsSetupError(msg, path=str(path))
            return key, certificate, chain

        msg = "Cannot unlock PKCS12 bundle, wrong password or corrupt file"
        raise TlsSetupError(msg, path=str(path)) from last_error


@contextmanager
def _pem_bundle(
    key: pkcs12.PKCS12PrivateKeyTypes,
    certificate: x509.Certificate,
    chain: Sequence[x509.Certificate],
    secret: bytes,
) -> Iterator[str]:
    # ssl only loads key material from files; the key stays encrypted on disk.
    pem = certificate.public_bytes(serialization.Encoding.PEM)
    pem += b"".join(c.public_bytes(serialization.Encoding.PEM) for c in chain)
    pem += key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.BestAvailableEncryption(secret),
    )
    fd, name = tempfile.mkstemp(prefix="weixin-identity-", suffix=".pem")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(pem)
        yield name
    finally:
        os.unlink(name)


def resolve_trust(
    policy: TrustPolicy,
    requires_client_cert: bool = False,
    identity: TlsIdentity | None = None,
) -> TrustStrategy:
    """
    Pick the trust strategy for one call.

    Args:
        policy: Server certificate policy for calls without a client certificate.
        requires_client_cert: Whether the call needs mutual TLS.
        identity: Client identity, required when ``requires_client_cert`` is set.

    Raises:
        ValueError: If a client certificate is required but no identity given.
    """
    if requires_client_cert:
        if identity is None:
            msg = "identity is required when requires_client_cert is set"
            raise ValueError(msg)
        return ClientCertificateTrust(identity)
    if policy == TrustPolicy.SYSTEM:
        return SystemTrust()
    return LenientTrust()
