"""Loading client side TLS certificates."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import serialization

_BOTH_REQUIRED = (
    "both client-key and client-cert options must be set for the authentication"
)


@dataclass(frozen=True)
class ClientCertificate:
    """A certificate chain together with the private key of its leaf."""

    certificates: tuple[x509.Certificate, ...]
    private_key: Any

    @property
    def leaf(self) -> x509.Certificate:
        return self.certificates[0]

    def cert_pem(self) -> bytes:
        """The certificate chain in PEM format."""
        return b"".join(
            cert.public_bytes(serialization.Encoding.PEM) for cert in self.certificates
        )

    def key_pem(self) -> bytes:
        """The private key as unencrypted PKCS#8 PEM."""
        return self.private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )


def _public_der(key: Any) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


def load_certificate(
    cert_file: str | os.PathLike[str] | None,
    key_file: str | os.PathLike[str] | None,
    passphrase: str | None = None,
) -> list[ClientCertificate] | None:
    """Load a client certificate and its key, decrypting the key with ``passphrase``.

    Returns None if neither file is given; raises ValueError if only one is.
    """
    if (cert_file is None) != (key_file is None):
        raise ValueError(_BOTH_REQUIRED)
    if cert_file is None or key_file is None:
        return None

    key_data = Path(key_file).read_bytes()
    password = None if passphrase is None else passphrase.encode()
    try:
        private_key = serialization.load_pem_private_key(key_data, password=password)
    except (TypeError, ValueError) as err:
        raise ValueError(str(err)) from err

    cert_data = Path(cert_file).read_bytes()
    try:
        certificates = tuple(x509.load_pem_x509_certificates(cert_data))
    except ValueError as err:
        raise ValueError(f"failed to find any PEM certificate: {err}") from err
    if not certificates:
        raise ValueError("failed to find any PEM certificate")

    if _public_der(certificates[0].public_key()) != _public_der(private_key.public_key()):
        raise ValueError("private key does not match public key")

    return [ClientCertificate(certificates, private_key)]