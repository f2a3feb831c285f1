"""
Concrete package-info sources.

StaticPackageInfoSource serves records held in memory or loaded from a
JSON document. HttpPackageInfoSource asks a device-management endpoint.
Both report records in the JSON shape:

    {
        "package_name": "com.example.app",
        "version_code": 3,
        "signing_certificates": ["<base64 DER>", ...],
        "signature_digests": ["<hex>", ...]
    }
"""

import base64
import binascii
import json
from typing import Any, Dict, Iterable, List, Mapping

import requests

from .collector import PackageRecord
from .types import SourceUnavailableError

DEFAULT_TIMEOUT = 15  # seconds


def record_from_json(obj: Dict[str, Any]) -> PackageRecord:
    """
    Build a PackageRecord from its JSON form.

    Raises:
        SourceUnavailableError: If a field is missing or malformed
    """
    try:
        return PackageRecord(
            package_name=obj["package_name"],
            version_code=obj["version_code"],
            signing_certificates=tuple(
                base64.b64decode(c, validate=True) for c in obj.get("signing_certificates", [])
            ),
            signature_digests=tuple(
                bytes.fromhex(d) for d in obj.get("signature_digests", [])
            ),
        )
    except (KeyError, TypeError, AttributeError, ValueError, binascii.Error) as e:
        raise SourceUnavailableError(f"Invalid package record {obj!r}: {e}") from e


class StaticPackageInfoSource:
    """Package source backed by a fixed uid -> records mapping."""

    def __init__(self, packages: Mapping[int, Iterable[PackageRecord]]):
        self._packages = {int(uid): list(records) for uid, records in packages.items()}

    def query(self, uid: int) -> List[PackageRecord]:
        return list(self._packages.get(uid, []))

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "StaticPackageInfoSource":
        """Load ``{"<uid>": [record, ...]}``."""
        try:
            packages = {
                int(uid): [record_from_json(r) for r in records]
                for uid, records in obj.items()
            }
        except (AttributeError, TypeError, ValueError) as e:
            raise SourceUnavailableError(f"Invalid package source document: {e}") from e
        return cls(packages)

    @classmethod
    def from_file(cls, path: str) -> "StaticPackageInfoSource":
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SourceUnavailableError(f"Error reading package source {path}: {e}") from e
        return cls.from_json(obj)


class HttpPackageInfoSource:
    """
    Package source served over HTTP.

    Queries ``GET {base_url}/uids/{uid}/packages`` and expects
    ``{"packages": [record, ...]}``. A 404 means the UID has no packages.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def query(self, uid: int) -> List[PackageRecord]:
        url = f"{self.base_url}/uids/{uid}/packages"
        try:
            response = requests.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return []
            response.raise_for_status()
            response_data = json.loads(response.content)
        except requests.RequestException as e:
            raise SourceUnavailableError(f"Error fetching packages from {url}: {e}") from e
        except json.JSONDecodeError as e:
            raise SourceUnavailableError(f"Error decoding JSON response from {url}: {e}") from e

        try:
            records = response_data["packages"]
        except (KeyError, TypeError) as e:
            raise SourceUnavailableError(
                f"Invalid package response format from {url}: {e}"
            ) from e
        if not isinstance(records, list):
            raise SourceUnavailableError(f"Invalid package response format from {url}: packages is not a list")
        return [record_from_json(r) for r in records]
