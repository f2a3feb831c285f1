"""
Certificate extension embedding for the attestation application ID.

The encoded value is carried verbatim as the value of an X.509 extension;
no further framing is added. The OID is supplied by the attestation
pipeline that issues the certificate.
"""

from typing import Optional, Union

from cryptography import x509

from .decoder import DecoderOptions, decode_application_id
from .types import AttestationApplicationId, ExtensionError


def _as_oid(oid: Union[str, x509.ObjectIdentifier]) -> x509.ObjectIdentifier:
    if isinstance(oid, x509.ObjectIdentifier):
        return oid
    return x509.ObjectIdentifier(oid)


def build_extension(
    encoded: bytes,
    oid: Union[str, x509.ObjectIdentifier],
) -> x509.UnrecognizedExtension:
    """Wrap an encoded attestation application ID as an X.509 extension value."""
    return x509.UnrecognizedExtension(_as_oid(oid), bytes(encoded))


def find_extension_value(
    cert: x509.Certificate,
    oid: Union[str, x509.ObjectIdentifier],
) -> bytes:
    """
    Return the raw value of the single extension with ``oid``.

    Raises:
        ExtensionError: If the extension is absent or present more than once
    """
    oid = _as_oid(oid)
    try:
        ext = cert.extensions.get_extension_for_oid(oid)
    except x509.ExtensionNotFound as e:
        raise ExtensionError(
            f"Certificate does not contain attestation application ID extension "
            f"(OID {oid.dotted_string})"
        ) from e
    except x509.DuplicateExtension as e:
        raise ExtensionError(f"Certificate has duplicate extension: {e}") from e

    value = ext.value
    if not isinstance(value, x509.UnrecognizedExtension):
        raise ExtensionError(
            f"Extension {oid.dotted_string} has unexpected type {type(value).__name__}"
        )
    return value.value


def extract_application_id(
    cert: x509.Certificate,
    oid: Union[str, x509.ObjectIdentifier],
    options: Optional[DecoderOptions] = None,
) -> AttestationApplicationId:
    """
    Strictly decode the attestation application ID embedded in ``cert``.

    Raises:
        ExtensionError: If the extension cannot be located
        DecodeError: If its value is not canonical DER of the schema
    """
    return decode_application_id(find_extension_value(cert, oid), options)
