"""
Strict decoder for the attestation application ID.

Decoding happens in two passes. The first walks the raw bytes and enforces
DER rules pyasn1 does not check: minimal lengths and integers, primitive
OCTET STRINGs, and strictly ascending SET OF order. Only input that passes
is handed to the pyasn1 schema for typed reconstruction.

Nothing is repaired. Any deviation means the same logical identity could
have more than one encoding, so the input is rejected.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .der import (
    TAG_OCTET_STRING,
    TAG_SEQUENCE,
    TAG_SET,
    Tlv,
    check_set_of_order,
    decode_integer,
    expect_tag,
    read_elements,
    read_single,
)
from .schema import der_decode, from_asn1
from .types import (
    DEFAULT_DIGEST_LENGTH,
    AttestationApplicationId,
    InvalidInputError,
    MalformedDerError,
    VERSION_CODE_MAX,
    VERSION_CODE_MIN,
)

logger = logging.getLogger(__name__)

MAX_INPUT_LENGTH = 64 * 1024  # 64 KiB
APPLICATION_ID_FIELD_COUNT = 2
PACKAGE_INFO_FIELD_COUNT = 2


@dataclass
class DecoderOptions:
    """
    Decoder configuration.

    Attributes:
        digest_length: Required length of each signature digest, or None
            to only require a common length
        max_input_length: Inputs longer than this are rejected unparsed
    """
    digest_length: Optional[int] = DEFAULT_DIGEST_LENGTH
    max_input_length: int = MAX_INPUT_LENGTH


def _check_package_info(element: Tlv, index: int) -> None:
    label = f"packageInfoRecords[{index}]"
    expect_tag(element, TAG_SEQUENCE, label)
    fields = read_elements(element.content)
    if len(fields) != PACKAGE_INFO_FIELD_COUNT:
        raise MalformedDerError(
            f"{label} has {len(fields)} fields, expected {PACKAGE_INFO_FIELD_COUNT}"
        )
    expect_tag(fields[0], TAG_OCTET_STRING, f"{label}.packageName")
    version = decode_integer(fields[1], f"{label}.version")
    if not VERSION_CODE_MIN <= version <= VERSION_CODE_MAX:
        raise MalformedDerError(f"{label}.version {version} out of signed 64-bit range")


def _check_structure(data: bytes) -> None:
    outer = read_single(data, TAG_SEQUENCE, "AttestationApplicationId")
    fields = read_elements(outer.content)
    if len(fields) != APPLICATION_ID_FIELD_COUNT:
        raise MalformedDerError(
            f"AttestationApplicationId has {len(fields)} fields, "
            f"expected {APPLICATION_ID_FIELD_COUNT}"
        )

    records, digests = fields
    expect_tag(records, TAG_SET, "packageInfoRecords")
    expect_tag(digests, TAG_SET, "signatureDigests")

    package_infos = read_elements(records.content)
    for i, element in enumerate(package_infos):
        _check_package_info(element, i)
    check_set_of_order(package_infos, "packageInfoRecords")

    digest_elements = read_elements(digests.content)
    for i, element in enumerate(digest_elements):
        expect_tag(element, TAG_OCTET_STRING, f"signatureDigests[{i}]")
    check_set_of_order(digest_elements, "signatureDigests")


def decode_application_id(
    data: bytes,
    options: Optional[DecoderOptions] = None,
) -> AttestationApplicationId:
    """
    Strictly decode a DER attestation application ID.

    Args:
        data: DER bytes, e.g. a certificate extension value
        options: Decoder configuration; defaults to 32-byte digests

    Returns:
        The reconstructed logical aggregate

    Raises:
        MalformedDerError: If the bytes are not a well-formed encoding of
            the schema, or the content violates a model invariant
        NonCanonicalEncodingError: If the encoding is BER but not canonical DER
    """
    if options is None:
        options = DecoderOptions()
    data = bytes(data)
    if len(data) > options.max_input_length:
        raise MalformedDerError(
            f"Input is {len(data)} bytes, maximum is {options.max_input_length}"
        )

    _check_structure(data)
    packages, digests = from_asn1(der_decode(data))

    try:
        app_id = AttestationApplicationId.create(packages, digests, options.digest_length)
    except InvalidInputError as e:
        raise MalformedDerError(f"Decoded attestation application ID is invalid: {e}") from e

    logger.debug(
        "Decoded attestation application ID: %d packages, %d digests",
        len(app_id.packages), len(app_id.signature_digests),
    )
    return app_id
