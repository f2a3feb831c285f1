from .types import (
    KM_TAG_ATTESTATION_APPLICATION_ID,
    AttestationApplicationId,
    AttestationIdError,
    DecodeError,
    DigestAlgorithm,
    EncodingOverflowError,
    ExtensionError,
    InvalidInputError,
    MalformedDerError,
    NonCanonicalEncodingError,
    NotFoundError,
    PackageEntry,
    SourceUnavailableError,
)
from .collector import PackageInfoSource, PackageRecord, collect
from .encoder import EncoderOptions, encode_application_id
from .decoder import DecoderOptions, decode_application_id
from .extension import build_extension, extract_application_id
from .sources import HttpPackageInfoSource, StaticPackageInfoSource

__all__ = [
    'KM_TAG_ATTESTATION_APPLICATION_ID',
    'AttestationApplicationId',
    'PackageEntry',
    'DigestAlgorithm',
    'AttestationIdError',
    'NotFoundError',
    'SourceUnavailableError',
    'InvalidInputError',
    'EncodingOverflowError',
    'DecodeError',
    'MalformedDerError',
    'NonCanonicalEncodingError',
    'ExtensionError',
    'PackageInfoSource',
    'PackageRecord',
    'collect',
    'EncoderOptions',
    'encode_application_id',
    'DecoderOptions',
    'decode_application_id',
    'build_extension',
    'extract_application_id',
    'HttpPackageInfoSource',
    'StaticPackageInfoSource',
]
