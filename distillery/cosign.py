"""Cosign bundle parsing and ECDSA signature verification."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
from dataclasses import dataclass, field

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed


@dataclass
class Payload:
    body: str = ""
    integrated_time: int = 0
    log_index: int = 0
    log_id: str = ""


@dataclass
class Rekor:
    signed_entry_timestamp: str = ""
    payload: Payload = field(default_factory=Payload)


@dataclass
class Bundle:
    signature: str = ""
    certificate: str = ""
    rekor_bundle: Rekor = field(default_factory=Rekor)


def parse_bundle(data: str | bytes) -> Bundle:
    """Parse a cosign bundle JSON document."""
    doc = json.loads(data)
    if not isinstance(doc, dict):
        raise ValueError("bundle must be a JSON object")
    rekor = doc.get("rekorBundle") or {}
    payload = rekor.get("Payload") or {}
    return Bundle(
        signature=doc.get("base64Signature", ""),
        certificate=doc.get("cert", ""),
        rekor_bundle=Rekor(
            signed_entry_timestamp=rekor.get("SignedEntryTimestamp", ""),
            payload=Payload(
                body=payload.get("body", ""),
                integrated_time=int(payload.get("integratedTime", 0)),
                log_index=int(payload.get("logIndex", 0)),
                log_id=payload.get("logID", ""),
            ),
        ),
    )


_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([^\r\n-]+)-----\r?\n(.*?)-----END \1-----", re.DOTALL
)


def _decode_pem(data: bytes) -> tuple[str, bytes] | None:
    match = _PEM_BLOCK.search(data)
    if match is None:
        return None
    body_lines = [
        line for line in match.group(2).splitlines() if b":" not in line and line.strip()
    ]
    try:
        der = base64.b64decode(b"".join(line.strip() for line in body_lines), validate=True)
    except (binascii.Error, ValueError):
        return None
    return match.group(1).decode("ascii", "replace"), der


def parse_public_key(pem_data: str | bytes) -> ec.EllipticCurvePublicKey:
    """Extract an ECDSA public key from a PEM public key or certificate."""
    if isinstance(pem_data, str):
        pem_data = pem_data.encode()
    block = _decode_pem(pem_data)
    if block is None or block[0] not in ("PUBLIC KEY", "CERTIFICATE"):
        raise ValueError("failed to decode PEM block containing public key or certificate")

    kind, der = block
    if kind == "PUBLIC KEY":
        key = serialization.load_der_public_key(der)
    else:
        key = x509.load_der_x509_certificate(der).public_key()

    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError("not ECDSA public key")
    return key


def hash_data(data: bytes) -> bytes:
    """Return the SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


_DIGEST_ALGORITHMS = {
    20: hashes.SHA1,
    28: hashes.SHA224,
    32: hashes.SHA256,
    48: hashes.SHA384,
    64: hashes.SHA512,
}


def verify_signature(
    public_key: ec.EllipticCurvePublicKey, digest: bytes, signature: str | bytes
) -> bool:
    """Check a base64-encoded ASN.1 ECDSA signature over a precomputed digest."""
    if isinstance(signature, str):
        signature = signature.encode()
    signature = signature.replace(b"\r", b"").replace(b"\n", b"")
    sig = base64.b64decode(signature, validate=True)

    algorithm = _DIGEST_ALGORITHMS.get(len(digest))
    if algorithm is None:
        return False
    try:
        public_key.verify(sig, digest, ec.ECDSA(Prehashed(algorithm())))
    except (InvalidSignature, ValueError):
        return False
    return True