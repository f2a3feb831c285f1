"""
ASN.1 schema of the attestation application ID.

    AttestationApplicationId ::= SEQUENCE {
        packageInfoRecords   SET OF AttestationPackageInfo,
        signatureDigests     SET OF OCTET STRING
    }
    AttestationPackageInfo ::= SEQUENCE {
        packageName  OCTET STRING,
        version      INTEGER
    }

The pyasn1 classes give typed access to an already validated encoding
and an independent DER encoder to check our output against.
"""

from contextlib import contextmanager
from typing import List, Tuple

from pyasn1.codec.der import decoder as der_decoder
from pyasn1.codec.der import encoder as der_encoder
from pyasn1.type import namedtype, univ

from .types import AttestationApplicationId, MalformedDerError, PackageEntry


class AttestationPackageInfo(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('packageName', univ.OctetString()),
        namedtype.NamedType('version', univ.Integer()),
    )


class AttestationApplicationIdAsn1(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType(
            'packageInfoRecords',
            univ.SetOf(componentType=AttestationPackageInfo()),
        ),
        namedtype.NamedType(
            'signatureDigests',
            univ.SetOf(componentType=univ.OctetString()),
        ),
    )


@contextmanager
def _asn1_errors(label: str):
    """Wrap unexpected ASN.1 exceptions as MalformedDerError."""
    try:
        yield
    except MalformedDerError:
        raise
    except Exception as e:
        raise MalformedDerError(f"Unexpected ASN.1 structure in {label}: {e}") from e


def der_decode(data: bytes) -> AttestationApplicationIdAsn1:
    """Decode DER data against the schema, rejecting leftover bytes."""
    try:
        result, remainder = der_decoder.decode(data, asn1Spec=AttestationApplicationIdAsn1())
    except Exception as e:
        raise MalformedDerError(f"Failed to decode ASN.1 AttestationApplicationId: {e}") from e
    if remainder:
        raise MalformedDerError(
            f"Unexpected leftover bytes after decoding AttestationApplicationId: {len(remainder)} bytes"
        )
    return result


def from_asn1(value: AttestationApplicationIdAsn1) -> Tuple[List[PackageEntry], List[bytes]]:
    """Extract package entries and digests, preserving encoded order."""
    with _asn1_errors("AttestationApplicationId"):
        packages = [
            PackageEntry(
                package_name=bytes(info['packageName']),
                version_code=int(info['version']),
            )
            for info in value['packageInfoRecords']
        ]
        digests = [bytes(d) for d in value['signatureDigests']]
    return packages, digests


def to_asn1(app_id: AttestationApplicationId) -> AttestationApplicationIdAsn1:
    value = AttestationApplicationIdAsn1()

    # clear() turns the schema components into (possibly empty) values
    records = value['packageInfoRecords']
    records.clear()
    for i, entry in enumerate(app_id.packages):
        info = AttestationPackageInfo()
        info['packageName'] = entry.package_name
        info['version'] = entry.version_code
        records.setComponentByPosition(i, info)

    digests = value['signatureDigests']
    digests.clear()
    for i, digest in enumerate(app_id.signature_digests):
        digests.setComponentByPosition(i, univ.OctetString(digest))

    return value


def der_encode(app_id: AttestationApplicationId) -> bytes:
    """Encode with pyasn1's DER encoder, which also sorts SET OF components."""
    return der_encoder.encode(to_asn1(app_id))
