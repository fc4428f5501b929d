"""
Integration test fixtures — real `openssl` and real PKCS#12 containers.

The keystore is generated with `cryptography` and protected the modern way
(PBES2/AES-256), the kind of container the repair step exists for. Tests
that need the real toolchain are skipped when `openssl` is missing or has
no legacy provider.
"""

from __future__ import annotations

import datetime
import shutil
import subprocess
from dataclasses import dataclass

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

KEYSTORE_PASSWORD = "integration-pass"


@dataclass(frozen=True)
class GeneratedKeystore:
    container: bytes
    password: str
    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey


@pytest.fixture(scope="session")
def openssl_path() -> str:
    """Path to a real openssl with the legacy provider, or skip."""
    path = shutil.which("openssl")
    if path is None:
        pytest.skip("openssl is not installed")
    probe = subprocess.run(
        [path, "list", "-providers", "-provider", "legacy"],
        capture_output=True,
        check=False,
    )
    if probe.returncode != 0:
        pytest.skip("openssl has no legacy provider")
    return path


@pytest.fixture(scope="session")
def modern_keystore() -> GeneratedKeystore:
    """A self-signed signing certificate in an AES-protected PKCS#12."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "EC"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Comercial Ejemplo S.A."),
            x509.NameAttribute(NameOID.COMMON_NAME, "FIRMA ELECTRONICA PRUEBA"),
        ]
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    container = pkcs12.serialize_key_and_certificates(
        name=b"firma",
        key=key,
        cert=certificate,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(KEYSTORE_PASSWORD.encode("utf-8")),
    )
    return GeneratedKeystore(container, KEYSTORE_PASSWORD, certificate, key)
