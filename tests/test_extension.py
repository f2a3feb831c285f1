"""
Unit tests for certificate extension embedding (extension.py).
"""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import ExtensionOID, NameOID

from keyattest.attestation.encoder import encode_application_id
from keyattest.attestation.extension import (
    build_extension,
    extract_application_id,
    find_extension_value,
)
from keyattest.attestation.types import (
    AttestationApplicationId,
    ExtensionError,
    NonCanonicalEncodingError,
    PackageEntry,
)


# =============================================================================
# Test Fixtures
# =============================================================================

TEST_OID = "1.3.6.1.4.1.99999.1"


def make_cert(*extensions) -> x509.Certificate:
    """Build a self-signed certificate carrying ``extensions``."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Android Keystore Key")])
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(1)
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
    )
    for ext in extensions:
        builder = builder.add_extension(ext, critical=False)
    return builder.sign(key, hashes.SHA256())


@pytest.fixture
def app_id():
    return AttestationApplicationId.create(
        [PackageEntry(b"com.example.app", 3), PackageEntry(b"com.example.helper", 1)],
        [b"\x01" * 32],
    )


# =============================================================================
# Tests
# =============================================================================

class TestBuildExtension:
    """Test wrapping encoded bytes as an extension."""

    def test_value_is_verbatim(self, app_id):
        """Test the extension value is exactly the encoded bytes."""
        encoded = encode_application_id(app_id)
        ext = build_extension(encoded, TEST_OID)
        assert ext.oid.dotted_string == TEST_OID
        assert ext.value == encoded

    def test_accepts_object_identifier(self, app_id):
        """Test an ObjectIdentifier is used as given."""
        oid = x509.ObjectIdentifier(TEST_OID)
        assert build_extension(encode_application_id(app_id), oid).oid == oid


class TestExtractApplicationId:
    """Test reading the structure back out of a certificate."""

    def test_round_trip(self, app_id):
        """Test an embedded value decodes to the original aggregate."""
        cert = make_cert(build_extension(encode_application_id(app_id), TEST_OID))
        assert extract_application_id(cert, TEST_OID) == app_id

    def test_survives_pem_round_trip(self, app_id):
        """Test the value is unchanged after certificate serialization."""
        cert = make_cert(build_extension(encode_application_id(app_id), TEST_OID))
        reloaded = x509.load_pem_x509_certificate(cert.public_bytes(Encoding.PEM))
        assert find_extension_value(reloaded, TEST_OID) == encode_application_id(app_id)

    def test_missing_extension(self):
        """Test a certificate without the extension raises ExtensionError."""
        cert = make_cert(x509.BasicConstraints(ca=False, path_length=None))
        with pytest.raises(ExtensionError, match=TEST_OID):
            extract_application_id(cert, TEST_OID)

    def test_wrong_extension_type(self):
        """Test an OID cryptography parses natively is rejected."""
        cert = make_cert(x509.BasicConstraints(ca=False, path_length=None))
        with pytest.raises(ExtensionError, match="unexpected type"):
            find_extension_value(cert, ExtensionOID.BASIC_CONSTRAINTS)

    def test_non_canonical_value(self):
        """Test a non-canonical embedded value is rejected by the decoder."""
        bad = bytes([0x30, 0x80, 0x00, 0x00])
        cert = make_cert(x509.UnrecognizedExtension(x509.ObjectIdentifier(TEST_OID), bad))
        with pytest.raises(NonCanonicalEncodingError):
            extract_application_id(cert, TEST_OID)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
