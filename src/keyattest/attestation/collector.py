"""
Identity collector.

Assembles the attestation application ID for a UID from whatever package
source the platform provides. The collector only builds the logical
aggregate; it neither sorts nor encodes.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Protocol, Tuple, Union

from .types import (
    AttestationApplicationId,
    DigestAlgorithm,
    InvalidInputError,
    NotFoundError,
    PackageEntry,
    SourceUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageRecord:
    """
    Raw package data as reported by a package source.

    Attributes:
        package_name: Package name; str is UTF-8 encoded
        version_code: Declared version code
        signing_certificates: DER certificates the package is signed with
        signature_digests: Certificate digests the source already computed
    """
    package_name: Union[str, bytes]
    version_code: int
    signing_certificates: Tuple[bytes, ...] = ()
    signature_digests: Tuple[bytes, ...] = ()


class PackageInfoSource(Protocol):
    """Anything that can list the packages installed under a UID."""

    def query(self, uid: int) -> Iterable[PackageRecord]:
        """
        Return the packages sharing ``uid``; empty if there are none.

        Raises:
            SourceUnavailableError: If the lookup fails
        """
        ...


def _query_source(source: PackageInfoSource, uid: int) -> List[PackageRecord]:
    try:
        return list(source.query(uid))
    except SourceUnavailableError:
        raise
    except Exception as e:
        raise SourceUnavailableError(f"Package source failed for uid {uid}: {e}") from e


def _package_name(record: PackageRecord) -> bytes:
    name = record.package_name
    if isinstance(name, str):
        return name.encode("utf-8")
    return name


def collect(
    uid: int,
    source: PackageInfoSource,
    algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> AttestationApplicationId:
    """
    Collect the packages and signer digests behind a UID.

    Args:
        uid: Process identity of the caller
        source: Package-info source to query
        algorithm: Digest applied to each signing certificate

    Returns:
        The unordered attestation application ID

    Raises:
        NotFoundError: If no packages are installed under ``uid``
        SourceUnavailableError: If the source errored
        InvalidInputError: If the records violate a model invariant
    """
    records = _query_source(source, uid)
    if not records:
        raise NotFoundError(f"No packages found for uid {uid}")

    packages = []
    digests = set()
    for record in records:
        packages.append(PackageEntry(
            package_name=_package_name(record),
            version_code=record.version_code,
        ))
        for cert in record.signing_certificates:
            digests.add(algorithm.digest(cert))
        for digest in record.signature_digests:
            if len(digest) != algorithm.digest_size:
                raise InvalidInputError(
                    f"Precomputed digest has wrong size: expected "
                    f"{algorithm.digest_size}, got {len(digest)}"
                )
            digests.add(bytes(digest))

    app_id = AttestationApplicationId.create(packages, digests, algorithm.digest_size)
    logger.debug(
        "Collected %d packages and %d signer digests for uid %d",
        len(app_id.packages), len(app_id.signature_digests), uid,
    )
    return app_id
