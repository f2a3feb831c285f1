"""
Canonical DER encoder for the attestation application ID.

The encoded value is embedded verbatim in attestation certificates, so the
output must be a pure function of the logical content: package and digest
collections are unordered, and SET OF elements are sorted by their own
encoded bytes before being concatenated.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .der import (
    encode_integer,
    encode_octet_string,
    encode_sequence,
    encode_set_of,
)
from .types import (
    AttestationApplicationId,
    DigestAlgorithm,
    EncodingOverflowError,
    InvalidInputError,
    PackageEntry,
)

logger = logging.getLogger(__name__)


@dataclass
class EncoderOptions:
    """
    Encoder configuration.

    Attributes:
        digest_algorithm: Algorithm that produced the signature digests;
            fixes the required digest length
        max_encoded_length: Upper bound on the output size, or None for
            no limit beyond what DER lengths can represent
    """
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
    max_encoded_length: Optional[int] = None


def encode_package_info(entry: PackageEntry) -> bytes:
    """Encode one AttestationPackageInfo SEQUENCE."""
    return encode_sequence([
        encode_octet_string(entry.package_name),
        encode_integer(entry.version_code),
    ])


def _encode_package_infos(packages) -> List[bytes]:
    return [encode_package_info(entry) for entry in packages]


def _encode_digests(digests) -> List[bytes]:
    return [encode_octet_string(digest) for digest in digests]


def encode_application_id(
    app_id: AttestationApplicationId,
    options: Optional[EncoderOptions] = None,
) -> bytes:
    """
    Encode an attestation application ID as canonical DER.

    Args:
        app_id: The aggregate to encode
        options: Encoder configuration; defaults to SHA-256 digests

    Returns:
        DER encoding of AttestationApplicationId

    Raises:
        InvalidInputError: If the aggregate violates a model invariant
        EncodingOverflowError: If a length is not representable or the
            output exceeds ``options.max_encoded_length``
    """
    if options is None:
        options = EncoderOptions()
    if not isinstance(app_id, AttestationApplicationId):
        raise InvalidInputError(
            f"Expected AttestationApplicationId, got {type(app_id).__name__}"
        )

    # Every invariant is checked before the first byte is produced
    app_id.validate(options.digest_algorithm.digest_size)

    encoded = encode_sequence([
        encode_set_of(_encode_package_infos(app_id.packages)),
        encode_set_of(_encode_digests(app_id.signature_digests)),
    ])

    if options.max_encoded_length is not None and len(encoded) > options.max_encoded_length:
        raise EncodingOverflowError(
            f"Encoded attestation application ID is {len(encoded)} bytes, "
            f"maximum is {options.max_encoded_length}"
        )

    logger.debug(
        "Encoded attestation application ID: %d packages, %d digests, %d bytes",
        len(app_id.packages), len(app_id.signature_digests), len(encoded),
    )
    return encoded
