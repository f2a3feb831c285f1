import argparse
import json
import logging
import sys

from .attestation import (
    AttestationIdError,
    DecoderOptions,
    DigestAlgorithm,
    EncoderOptions,
    StaticPackageInfoSource,
    collect,
    decode_application_id,
    encode_application_id,
)
from .attestation.der import der_set_of_key, encode_octet_string
from .attestation.encoder import encode_package_info


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def _to_json(app_id) -> dict:
    """Render an aggregate with both collections in canonical encoded order."""
    packages = sorted(app_id.packages, key=lambda p: der_set_of_key(encode_package_info(p)))
    digests = sorted(app_id.signature_digests, key=lambda d: der_set_of_key(encode_octet_string(d)))
    return {
        "packages": [
            {
                "package_name": p.package_name.decode("utf-8", "replace"),
                "version_code": p.version_code,
            }
            for p in packages
        ],
        "signature_digests": [d.hex() for d in digests],
    }


def cmd_decode(args) -> None:
    data = _read_input(args.input)
    if args.hex:
        try:
            data = bytes.fromhex(data.decode("ascii").strip())
        except ValueError as e:
            raise ValueError(f"Input is not valid hex: {e}") from e

    logging.debug(f"Decoding {len(data)} bytes")
    app_id = decode_application_id(data, DecoderOptions(digest_length=args.digest_length))
    print(json.dumps(_to_json(app_id), indent=2))


def cmd_encode(args) -> None:
    algorithm = DigestAlgorithm(args.digest)
    source = StaticPackageInfoSource.from_file(args.source)

    logging.debug(f"Collecting packages for uid {args.uid} from {args.source}")
    app_id = collect(args.uid, source, algorithm)
    encoded = encode_application_id(app_id, EncoderOptions(digest_algorithm=algorithm))

    if args.hex:
        print(encoded.hex())
    else:
        sys.stdout.buffer.write(encoded)
        sys.stdout.buffer.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyattest",
        description="Inspect and produce attestation application ID encodings",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    decode = subparsers.add_parser("decode", help="Strictly decode a DER attestation application ID")
    decode.add_argument("input", help="File with the DER bytes, or '-' for stdin")
    decode.add_argument("--hex", action="store_true", help="Input is hex text")
    decode.add_argument("--digest-length", type=int, default=DigestAlgorithm.SHA256.digest_size,
                        help="Expected signature digest length in bytes")
    decode.set_defaults(func=cmd_decode)

    encode = subparsers.add_parser("encode", help="Encode the packages of a UID from a JSON source")
    encode.add_argument("source", help="JSON package source file")
    encode.add_argument("--uid", type=int, required=True, help="UID to collect")
    encode.add_argument("--digest", choices=[a.value for a in DigestAlgorithm],
                        default=DigestAlgorithm.SHA256.value,
                        help="Digest applied to signing certificates")
    encode.add_argument("--hex", action="store_true", help="Write hex text instead of raw DER")
    encode.set_defaults(func=cmd_encode)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        format='%(message)s',
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        args.func(args)
    except (AttestationIdError, OSError, ValueError) as e:
        logging.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
