import datetime
from collections.abc import Callable
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from weixin_http.api.dispatcher import TransportDispatcher
from weixin_http.api.executor import RequestExecutor
from weixin_http.api.response import Response
from weixin_http.config import TransportConfig
from weixin_http.models.request import HttpMethod, Request, TlsIdentity
from weixin_http.tests.constants import CERT_SECRET, PARTNER_ID
from weixin_http.tests.utils.mock_transport import MockTransport


@pytest.fixture
def config() -> TransportConfig:
    return TransportConfig()


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def dispatcher(config: TransportConfig, mock_transport: MockTransport) -> TransportDispatcher:
    return TransportDispatcher(config, transport=mock_transport)


@pytest.fixture
def executor(dispatcher: TransportDispatcher) -> RequestExecutor:
    return RequestExecutor(dispatcher)


@pytest.fixture
def make_response(
    mock_transport: MockTransport, executor: RequestExecutor
) -> Callable[..., Response]:
    """Queue a response and return it as seen through the executor."""

    def _make(
        content: bytes | str = b"",
        *,
        content_type: str | None = None,
        headers: dict[str, str] | None = None,
        status_code: int = 200,
    ) -> Response:
        all_headers = dict(headers or {})
        if content_type is not None:
            all_headers["Content-Type"] = content_type
        mock_transport.add_response(status_code, content=content, headers=all_headers)
        return executor.execute(Request(url="https://api.weixin.qq.com/test", method=HttpMethod.GET))

    return _make


def _write_bundle(directory: Path, password: str) -> Path:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, PARTNER_ID)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    data = pkcs12.serialize_key_and_certificates(
        b"apiclient",
        key,
        certificate,
        None,
        serialization.BestAvailableEncryption(password.encode()),
    )
    path = directory / "apiclient_cert.p12"
    path.write_bytes(data)
    return path


@pytest.fixture(scope="session")
def pkcs12_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """PKCS12 bundle whose store password is the partner id."""
    return _write_bundle(tmp_path_factory.mktemp("certs"), PARTNER_ID)


@pytest.fixture(scope="session")
def pkcs12_secret_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """PKCS12 bundle whose store password is the certificate secret."""
    return _write_bundle(tmp_path_factory.mktemp("certs-secret"), CERT_SECRET)


@pytest.fixture
def identity(pkcs12_path: Path) -> TlsIdentity:
    return TlsIdentity(
        partner_id=PARTNER_ID,
        certificate_path=str(pkcs12_path),
        certificate_secret=CERT_SECRET,
    )
