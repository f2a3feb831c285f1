"""
Tests for the keyattest command line.
"""

import base64
import hashlib
import json

import pytest

from keyattest.cli import main


UID = 10123
CERT = b"signing certificate"


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "packages.json"
    path.write_text(json.dumps({
        str(UID): [
            {
                "package_name": "a.c",
                "version_code": 1,
                "signing_certificates": [base64.b64encode(CERT).decode("ascii")],
            },
            {
                "package_name": "a.b",
                "version_code": 1,
                "signing_certificates": [base64.b64encode(CERT).decode("ascii")],
            },
        ],
    }))
    return str(path)


class TestEncode:
    """Test the encode subcommand."""

    def test_encode_hex(self, source_file, capsys):
        """Test hex output of a collected UID."""
        assert main(["encode", source_file, "--uid", str(UID), "--hex"]) == 0
        out = capsys.readouterr().out.strip()
        encoded = bytes.fromhex(out)
        assert encoded[0] == 0x30
        assert b"a.b" in encoded and b"a.c" in encoded
        assert encoded.index(b"a.b") < encoded.index(b"a.c")
        assert encoded.endswith(hashlib.sha256(CERT).digest())

    def test_encode_raw(self, source_file, capsysbinary):
        """Test raw DER output."""
        assert main(["encode", source_file, "--uid", str(UID)]) == 0
        assert capsysbinary.readouterr().out.startswith(b"\x30")

    def test_unknown_uid(self, source_file):
        """Test a UID without packages fails with exit status 1."""
        assert main(["encode", source_file, "--uid", "1"]) == 1

    def test_missing_source(self, tmp_path):
        """Test a missing source file fails with exit status 1."""
        assert main(["encode", str(tmp_path / "none.json"), "--uid", str(UID)]) == 1


class TestDecode:
    """Test the decode subcommand."""

    def _encode(self, source_file, capsys, *extra) -> str:
        main(["encode", source_file, "--uid", str(UID), "--hex", *extra])
        return capsys.readouterr().out

    def test_decode_hex(self, source_file, tmp_path, capsys):
        """Test decoding hex input prints canonical JSON."""
        hex_path = tmp_path / "appid.hex"
        hex_path.write_text(self._encode(source_file, capsys))

        assert main(["decode", str(hex_path), "--hex"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result == {
            "packages": [
                {"package_name": "a.b", "version_code": 1},
                {"package_name": "a.c", "version_code": 1},
            ],
            "signature_digests": [hashlib.sha256(CERT).hexdigest()],
        }

    def test_decode_raw(self, source_file, tmp_path, capsys):
        """Test decoding a raw DER file."""
        der_path = tmp_path / "appid.der"
        der_path.write_bytes(bytes.fromhex(self._encode(source_file, capsys).strip()))

        assert main(["decode", str(der_path)]) == 0
        assert len(json.loads(capsys.readouterr().out)["packages"]) == 2

    def test_decode_sha384(self, source_file, tmp_path, capsys):
        """Test the digest length option matches the encoding algorithm."""
        hex_path = tmp_path / "appid.hex"
        hex_path.write_text(self._encode(source_file, capsys, "--digest", "sha384"))

        assert main(["decode", str(hex_path), "--hex"]) == 1
        assert main(["decode", str(hex_path), "--hex", "--digest-length", "48"]) == 0

    def test_decode_non_canonical(self, tmp_path):
        """Test non-canonical input fails with exit status 1."""
        der_path = tmp_path / "bad.der"
        der_path.write_bytes(bytes([0x30, 0x80, 0x00, 0x00]))
        assert main(["decode", str(der_path)]) == 1

    def test_decode_bad_hex(self, tmp_path):
        """Test non-hex text fails with exit status 1."""
        hex_path = tmp_path / "bad.hex"
        hex_path.write_text("not hex")
        assert main(["decode", str(hex_path), "--hex"]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
