import base64
import binascii
import datetime
import json

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.x509.oid import NameOID

from distillery.cosign import (
    Bundle,
    Payload,
    Rekor,
    hash_data,
    parse_bundle,
    parse_public_key,
    verify_signature,
)


@pytest.fixture
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


def _pem(public_key):
    return public_key.public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )


def test_parse_public_key(ec_key):
    parsed = parse_public_key(_pem(ec_key.public_key()))
    assert parsed.public_numbers() == ec_key.public_key().public_numbers()


def test_parse_public_key_from_certificate(ec_key):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "example.com")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(ec_key.public_key())
        .serial_number(1000)
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(ec_key, hashes.SHA256())
    )
    pem = cert.public_bytes(serialization.Encoding.PEM)
    parsed = parse_public_key(pem)
    assert parsed.public_numbers() == ec_key.public_key().public_numbers()


def test_parse_public_key_rejects_non_ecdsa():
    key = ed25519.Ed25519PrivateKey.generate()
    with pytest.raises(ValueError, match="not ECDSA public key"):
        parse_public_key(_pem(key.public_key()))


def test_parse_public_key_rejects_wrong_block():
    pem = b"-----BEGIN SOMETHING-----\nAAAA\n-----END SOMETHING-----\n"
    with pytest.raises(ValueError, match="failed to decode PEM block"):
        parse_public_key(pem)


def test_parse_public_key_rejects_garbage():
    with pytest.raises(ValueError, match="failed to decode PEM block"):
        parse_public_key(b"not a pem at all")


def test_hash_data_known_value():
    assert (
        hash_data(b"abc").hex()
        == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_verify_signature(ec_key):
    data = b"test data"
    sig = ec_key.sign(data, ec.ECDSA(hashes.SHA256()))
    encoded = base64.b64encode(sig)
    assert verify_signature(ec_key.public_key(), hash_data(data), encoded) is True
    assert verify_signature(ec_key.public_key(), hash_data(data), encoded + b"\n") is True


def test_verify_signature_wrong_data(ec_key):
    sig = ec_key.sign(b"test data", ec.ECDSA(hashes.SHA256()))
    encoded = base64.b64encode(sig).decode()
    assert verify_signature(ec_key.public_key(), hash_data(b"other"), encoded) is False


def test_verify_signature_wrong_key(ec_key):
    other = ec.generate_private_key(ec.SECP256R1())
    sig = ec_key.sign(b"test data", ec.ECDSA(hashes.SHA256()))
    encoded = base64.b64encode(sig)
    assert verify_signature(other.public_key(), hash_data(b"test data"), encoded) is False


def test_verify_signature_bad_base64(ec_key):
    with pytest.raises(binascii.Error):
        verify_signature(ec_key.public_key(), hash_data(b"x"), b"!!not base64!!")


def test_parse_bundle():
    doc = {
        "base64Signature": "c2ln",
        "cert": "Y2VydA==",
        "rekorBundle": {
            "SignedEntryTimestamp": "stamp",
            "Payload": {
                "body": "Ym9keQ==",
                "integratedTime": 1700000000,
                "logIndex": 42,
                "logID": "abc123",
            },
        },
    }
    bundle = parse_bundle(json.dumps(doc))
    assert bundle == Bundle(
        signature="c2ln",
        certificate="Y2VydA==",
        rekor_bundle=Rekor(
            signed_entry_timestamp="stamp",
            payload=Payload(
                body="Ym9keQ==", integrated_time=1700000000, log_index=42, log_id="abc123"
            ),
        ),
    )


def test_parse_bundle_invalid():
    with pytest.raises(ValueError):
        parse_bundle("[1, 2]")