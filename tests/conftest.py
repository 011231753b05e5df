"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - rootdir without package tests
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app.models.credentials import ServiceCredential

TOKEN_URI = "https://oauth2.googleapis.com/token"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture
def service_account_info(private_key_pem) -> dict:
    return {
        "type": "service_account",
        "project_id": "media-push-test",
        "private_key_id": "key-123",
        "private_key": private_key_pem,
        "client_email": "pusher@media-push-test.iam.gserviceaccount.com",
    }


@pytest.fixture
def service_credential(service_account_info) -> ServiceCredential:
    return ServiceCredential.from_service_account_info(
        service_account_info, audience=TOKEN_URI, scope=FCM_SCOPE
    )
