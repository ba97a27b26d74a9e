#!/usr/bin/env python3
"""
Verifies the certifier's secp256k1 ECDSA signature over a certificate.

Signed bytes are the compact JSON {"principal": ..., "timestamp": ...} in that
key order, hashed with SHA-256. The signature is 64-byte r||s (DER is also
accepted); high-S signatures are rejected. Any failure yields False.
"""
from __future__ import annotations
import json
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed, decode_dss_signature, encode_dss_signature,
)
from .cert_decode import DecryptedCertificate, from_dict
from .common import hex_to_bytes, run_main
from .seed_keypair import SECP256K1_ORDER
from .sha256_hex import sha256

def canonical_payload(cert: DecryptedCertificate) -> bytes:
    body = {
        "principal": cert.certificate.principal,
        "timestamp": cert.certificate.timestamp,
    }
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

def certificate_digest(cert: DecryptedCertificate) -> bytes:
    return sha256(canonical_payload(cert))

def split_signature(sig: bytes) -> tuple[int, int]:
    if len(sig) == 64:
        return int.from_bytes(sig[:32], "big"), int.from_bytes(sig[32:], "big")
    return decode_dss_signature(sig)

def verify_digest(digest: bytes, sig: bytes, public_key: bytes) -> bool:
    r, s = split_signature(sig)
    if not (0 < r < SECP256K1_ORDER and 0 < s <= SECP256K1_ORDER // 2):
        return False
    pk = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), public_key)
    try:
        pk.verify(encode_dss_signature(r, s), digest, ec.ECDSA(Prehashed(hashes.SHA256())))
    except InvalidSignature:
        return False
    return True

def verify(cert: DecryptedCertificate, issuer_public_key_hex: str) -> bool:
    try:
        sig = hex_to_bytes(cert.issuer_signature, "issuer_signature")
        pub = hex_to_bytes(issuer_public_key_hex, "issuer public key")
        return verify_digest(certificate_digest(cert), sig, pub)
    except Exception:
        return False

def verify_json(d: dict) -> dict:
    return {"valid": verify(from_dict(d["certificate"]), d["public_key_hex"])}

if __name__ == "__main__":
    run_main(verify_json)
