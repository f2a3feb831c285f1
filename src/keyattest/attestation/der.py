"""
Distinguished Encoding Rules primitives.

Only the subset needed by the attestation application ID is covered:
INTEGER, OCTET STRING, SEQUENCE and SET OF, all with low tag numbers and
definite lengths. The reader is strict: any construct BER allows but DER
forbids is rejected rather than normalized.

Canonical SET OF ordering is defined by ``compare_der`` over the complete
encoded element (tag, length and contents), compared as unsigned bytes
with a proper prefix sorting first.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, List, Tuple

from .types import (
    EncodingOverflowError,
    MalformedDerError,
    NonCanonicalEncodingError,
)

# =============================================================================
# Constants
# =============================================================================

TAG_INTEGER = 0x02
TAG_OCTET_STRING = 0x04
TAG_SEQUENCE = 0x30  # constructed
TAG_SET = 0x31  # constructed

TAG_CONSTRUCTED_BIT = 0x20
TAG_NUMBER_MASK = 0x1F

LENGTH_LONG_FORM_BIT = 0x80
LENGTH_INDEFINITE = 0x80
LENGTH_RESERVED = 0xFF
# 0x80 | n with n in 1..126; 127 (0xFF) is reserved by X.690
MAX_LENGTH_OCTETS = 126


# =============================================================================
# Encoding
# =============================================================================

def encode_length(length: int) -> bytes:
    """
    Encode a definite length in minimal DER form.

    Raises:
        EncodingOverflowError: If the length is negative or needs more
            than 126 length octets
    """
    if length < 0:
        raise EncodingOverflowError(f"Negative length {length}")
    if length < LENGTH_LONG_FORM_BIT:
        return bytes([length])

    num_octets = (length.bit_length() + 7) // 8
    if num_octets > MAX_LENGTH_OCTETS:
        raise EncodingOverflowError(
            f"Length needs {num_octets} length octets, maximum is {MAX_LENGTH_OCTETS}"
        )
    return bytes([LENGTH_LONG_FORM_BIT | num_octets]) + length.to_bytes(num_octets, "big")


def encode_tlv(tag: int, content: bytes) -> bytes:
    return bytes([tag]) + encode_length(len(content)) + content


def encode_integer(value: int) -> bytes:
    """Encode an INTEGER using the fewest two's-complement octets."""
    magnitude = value if value >= 0 else ~value
    num_octets = (magnitude.bit_length() + 8) // 8
    return encode_tlv(TAG_INTEGER, value.to_bytes(num_octets, "big", signed=True))


def encode_octet_string(value: bytes) -> bytes:
    return encode_tlv(TAG_OCTET_STRING, bytes(value))


def encode_sequence(elements: Iterable[bytes]) -> bytes:
    return encode_tlv(TAG_SEQUENCE, b"".join(elements))


def compare_der(a: bytes, b: bytes) -> int:
    """
    Order two encoded SET OF elements.

    Octets are compared as unsigned values left to right; when one element
    is a proper prefix of the other, the shorter sorts first.

    Returns:
        Negative if ``a`` sorts before ``b``, zero if equal, positive otherwise
    """
    for x, y in zip(a, b):
        if x != y:
            return x - y
    return len(a) - len(b)


der_set_of_key = cmp_to_key(compare_der)


def sort_set_of(elements: Iterable[bytes]) -> List[bytes]:
    """Return encoded SET OF elements in canonical order."""
    return sorted(elements, key=der_set_of_key)


def encode_set_of(elements: Iterable[bytes]) -> bytes:
    """Wrap already-encoded elements in a SET OF, sorting them first."""
    return encode_tlv(TAG_SET, b"".join(sort_set_of(elements)))


# =============================================================================
# Strict decoding
# =============================================================================

@dataclass(frozen=True)
class Tlv:
    """
    One decoded element.

    Attributes:
        tag: Identifier octet
        encoded: Complete element bytes (tag, length, contents)
        content: Contents octets
    """
    tag: int
    encoded: bytes
    content: bytes


def parse_length(data: bytes, pos: int) -> Tuple[int, int]:
    """
    Parse a DER length field starting at ``pos``.

    Returns:
        (length, position of the first contents octet)

    Raises:
        MalformedDerError: If the field is truncated or uses the reserved form
        NonCanonicalEncodingError: If the length is indefinite or not minimal
    """
    if pos >= len(data):
        raise MalformedDerError("Truncated length field")

    first = data[pos]
    pos += 1
    if first < LENGTH_LONG_FORM_BIT:
        return first, pos
    if first == LENGTH_INDEFINITE:
        raise NonCanonicalEncodingError("Indefinite length is not allowed in DER")
    if first == LENGTH_RESERVED:
        raise MalformedDerError("Reserved length octet 0xFF")

    num_octets = first & ~LENGTH_LONG_FORM_BIT
    if pos + num_octets > len(data):
        raise MalformedDerError("Truncated long-form length")

    length_bytes = data[pos:pos + num_octets]
    if length_bytes[0] == 0:
        raise NonCanonicalEncodingError("Long-form length has leading zero octet")
    length = int.from_bytes(length_bytes, "big")
    if length < LENGTH_LONG_FORM_BIT:
        raise NonCanonicalEncodingError(
            f"Length {length} must use the short form"
        )
    return length, pos + num_octets


def read_tlv(data: bytes, pos: int = 0) -> Tuple[Tlv, int]:
    """
    Read one element starting at ``pos``.

    Returns:
        (element, position just past it)
    """
    if pos >= len(data):
        raise MalformedDerError("Unexpected end of data, expected a tag")

    tag = data[pos]
    if tag & TAG_NUMBER_MASK == TAG_NUMBER_MASK:
        raise MalformedDerError(f"High tag number form is not supported (tag 0x{tag:02x})")

    length, content_start = parse_length(data, pos + 1)
    content_end = content_start + length
    if content_end > len(data):
        raise MalformedDerError(
            f"Element of length {length} overruns input by {content_end - len(data)} bytes"
        )
    return Tlv(tag, bytes(data[pos:content_end]), bytes(data[content_start:content_end])), content_end


def read_single(data: bytes, expected_tag: int, label: str = "value") -> Tlv:
    """Read exactly one element of ``expected_tag`` spanning all of ``data``."""
    element, end = read_tlv(data, 0)
    expect_tag(element, expected_tag, label)
    if end != len(data):
        raise MalformedDerError(
            f"Unexpected leftover bytes after decoding {label}: {len(data) - end} bytes"
        )
    return element


def read_elements(content: bytes) -> List[Tlv]:
    """Split constructed contents into its consecutive elements."""
    elements = []
    pos = 0
    while pos < len(content):
        element, pos = read_tlv(content, pos)
        elements.append(element)
    return elements


def expect_tag(element: Tlv, expected_tag: int, label: str) -> None:
    if element.tag != expected_tag:
        raise MalformedDerError(
            f"{label}: expected tag 0x{expected_tag:02x}, got 0x{element.tag:02x}"
        )


def decode_integer(element: Tlv, label: str = "INTEGER") -> int:
    """Decode an INTEGER, rejecting empty or padded contents."""
    expect_tag(element, TAG_INTEGER, label)
    content = element.content
    if not content:
        raise MalformedDerError(f"{label} has no contents octets")
    if len(content) > 1:
        if (content[0] == 0x00 and content[1] < 0x80) or (content[0] == 0xFF and content[1] >= 0x80):
            raise NonCanonicalEncodingError(f"{label} has a redundant leading octet")
    return int.from_bytes(content, "big", signed=True)


def check_set_of_order(elements: List[Tlv], label: str = "SET OF") -> None:
    """
    Require SET OF elements to be in strictly ascending canonical order.

    Raises:
        NonCanonicalEncodingError: If any element does not sort strictly
            after its predecessor
    """
    for i in range(1, len(elements)):
        if compare_der(elements[i - 1].encoded, elements[i].encoded) >= 0:
            raise NonCanonicalEncodingError(
                f"{label} element {i} is not in canonical order"
            )
