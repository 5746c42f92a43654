"""
TLS handshakes against a local https server.

The server presents a self-signed certificate issued for another host name,
so only the lenient policy may connect to it.
"""

import datetime
import ssl
import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from weixin_http.api.dispatcher import TransportDispatcher
from weixin_http.api.executor import RequestExecutor
from weixin_http.config import TransportConfig, TrustPolicy
from weixin_http.exceptions import TransportError
from weixin_http.models.request import Request


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        body = b'{"errcode":0}'
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:
        pass


def _self_signed(directory: Path) -> tuple[Path, Path]:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "wrong.example")])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName("wrong.example")]), critical=False)
        .sign(key, hashes.SHA256())
    )
    cert_path = directory / "server.pem"
    key_path = directory / "server.key"
    cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return cert_path, key_path


@pytest.fixture(scope="module")
def https_url(tmp_path_factory: pytest.TempPathFactory) -> Iterator[str]:
    cert_path, key_path = _self_signed(tmp_path_factory.mktemp("server-cert"))
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(cert_path, key_path)

    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.socket = context.wrap_socket(server.socket, server_side=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"https://127.0.0.1:{server.server_address[1]}/cgi-bin/token"

    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


def make_executor(policy: TrustPolicy) -> RequestExecutor:
    config = TransportConfig(connect_timeout=5, read_timeout=5, trust_policy=policy)
    return RequestExecutor(TransportDispatcher(config))


def test_lenient_trust_accepts_untrusted_certificate(https_url: str) -> None:
    executor = make_executor(TrustPolicy.LENIENT)

    with executor.execute(Request(url=https_url)) as response:
        assert response.status_code == 200
        assert response.json() == {"errcode": 0}


def test_system_trust_rejects_untrusted_certificate(https_url: str) -> None:
    executor = make_executor(TrustPolicy.SYSTEM)

    with pytest.raises(TransportError) as exc_info:
        executor.execute(Request(url=https_url))

    assert "CERTIFICATE_VERIFY_FAILED" in str(exc_info.value)
