from .attestation import (
    AttestationApplicationId,
    PackageEntry,
    DigestAlgorithm,
    collect,
    encode_application_id,
    decode_application_id,
)

__all__ = [
    "AttestationApplicationId",
    "PackageEntry",
    "DigestAlgorithm",
    "collect",
    "encode_application_id",
    "decode_application_id",
]
