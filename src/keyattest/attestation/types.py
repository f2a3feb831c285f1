"""
Shared types, errors, and constants for the attestation application ID.

This module is the canonical source for types used across the collector,
encoder and decoder. It has no intra-package dependencies, so any module
can import from it without risk of circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from cryptography.hazmat.primitives import hashes


# =============================================================================
# Protocol-level constants
# =============================================================================

# KeyMint authorization tag carrying the encoded structure (KM_BYTES | 709)
KM_TAG_ATTESTATION_APPLICATION_ID = 709

VERSION_CODE_MIN = -(2 ** 63)
VERSION_CODE_MAX = 2 ** 63 - 1

DEFAULT_DIGEST_LENGTH = 32  # SHA-256


# =============================================================================
# Digest algorithm
# =============================================================================

class DigestAlgorithm(str, Enum):
    """Digest applied to each signing certificate"""
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @property
    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return _HASH_CLASSES[self]()

    @property
    def digest_size(self) -> int:
        return self.hash_algorithm.digest_size

    def digest(self, data: bytes) -> bytes:
        """Digest ``data`` with this algorithm."""
        h = hashes.Hash(self.hash_algorithm)
        h.update(data)
        return h.finalize()


_HASH_CLASSES = {
    DigestAlgorithm.SHA256: hashes.SHA256,
    DigestAlgorithm.SHA384: hashes.SHA384,
    DigestAlgorithm.SHA512: hashes.SHA512,
}


# =============================================================================
# Errors
# =============================================================================

class AttestationIdError(Exception):
    """Base class for attestation application ID errors"""
    pass

class NotFoundError(AttestationIdError):
    """Raised when no packages are associated with a UID"""
    pass

class SourceUnavailableError(AttestationIdError):
    """Raised when the package-info source fails"""
    pass

class InvalidInputError(AttestationIdError, ValueError):
    """Raised when the aggregate violates a model invariant"""
    pass

class EncodingOverflowError(AttestationIdError):
    """Raised when a length cannot be represented in DER"""
    pass

class DecodeError(AttestationIdError):
    """Base class for strict decoding failures"""
    pass

class MalformedDerError(DecodeError):
    """Raised when input is not a well-formed encoding of the schema"""
    pass

class NonCanonicalEncodingError(DecodeError):
    """Raised when input is valid BER but not canonical DER"""
    pass

class ExtensionError(AttestationIdError):
    """Raised when a certificate extension cannot be located"""
    pass


# =============================================================================
# Data types
# =============================================================================

@dataclass(frozen=True)
class PackageEntry:
    """One installed package sharing the UID."""
    package_name: bytes
    version_code: int

    def __post_init__(self):
        if not isinstance(self.package_name, bytes):
            raise InvalidInputError(
                f"package_name must be bytes, got {type(self.package_name).__name__}"
            )
        # bool is an int subclass but never a meaningful version code
        if isinstance(self.version_code, bool) or not isinstance(self.version_code, int):
            raise InvalidInputError(
                f"version_code must be int, got {type(self.version_code).__name__}"
            )
        if not VERSION_CODE_MIN <= self.version_code <= VERSION_CODE_MAX:
            raise InvalidInputError(
                f"version_code {self.version_code} out of signed 64-bit range"
            )

    def __str__(self) -> str:
        return (
            f"PackageEntry(name={self.package_name.decode('utf-8', 'replace')}, "
            f"version={self.version_code})"
        )


@dataclass(frozen=True)
class AttestationApplicationId:
    """
    The packages and signer digests behind a UID.

    Equality is set equality; the aggregate carries no ordering. Use
    ``create`` to build one from arbitrary iterables with validation.

    Attributes:
        packages: Installed packages sharing the UID
        signature_digests: One digest per distinct signing certificate
    """
    packages: frozenset
    signature_digests: frozenset

    def __post_init__(self):
        if not isinstance(self.packages, frozenset):
            object.__setattr__(self, "packages", frozenset(self.packages))
        if not isinstance(self.signature_digests, frozenset):
            object.__setattr__(self, "signature_digests", frozenset(self.signature_digests))

    @classmethod
    def create(
        cls,
        packages: Iterable[PackageEntry],
        signature_digests: Iterable[bytes],
        digest_length: Optional[int] = None,
    ) -> "AttestationApplicationId":
        """
        Build and validate an aggregate.

        Args:
            packages: Package entries, in any order
            signature_digests: Digests, in any order; exact duplicates collapse
            digest_length: Expected length of every digest, or None to
                only require that all digests share one length

        Raises:
            InvalidInputError: If an invariant is violated
        """
        package_list = list(packages)
        # Checked before the frozenset collapses identical entries
        names = set()
        for entry in package_list:
            name = getattr(entry, "package_name", None)
            if name in names:
                raise InvalidInputError(f"Duplicate package name: {name!r}")
            names.add(name)

        app_id = cls(packages=frozenset(package_list), signature_digests=frozenset(signature_digests))
        app_id.validate(digest_length)
        return app_id

    def validate(self, digest_length: Optional[int] = None) -> None:
        """
        Check the model invariants.

        Raises:
            InvalidInputError: On an empty package set, duplicate package
                names or digests of mismatched length
        """
        if not self.packages:
            raise InvalidInputError("Attestation application ID has no packages")
        for entry in self.packages:
            if not isinstance(entry, PackageEntry):
                raise InvalidInputError(f"Expected PackageEntry, got {type(entry).__name__}")
        for digest in self.signature_digests:
            if not isinstance(digest, bytes):
                raise InvalidInputError(f"Digest must be bytes, got {type(digest).__name__}")

        names = [p.package_name for p in self.packages]
        if len(set(names)) != len(names):
            raise InvalidInputError("Attestation application ID has duplicate package names")

        lengths = {len(d) for d in self.signature_digests}
        if digest_length is not None:
            bad = lengths - {digest_length}
            if bad:
                raise InvalidInputError(
                    f"Signature digest has wrong size: expected {digest_length}, "
                    f"got {sorted(bad)}"
                )
        elif len(lengths) > 1:
            raise InvalidInputError(
                f"Signature digests have mismatched sizes: {sorted(lengths)}"
            )

    def package_names(self) -> frozenset:
        return frozenset(p.package_name for p in self.packages)

    def __str__(self) -> str:
        return (
            f"AttestationApplicationId(packages={len(self.packages)}, "
            f"digests={len(self.signature_digests)})"
        )
