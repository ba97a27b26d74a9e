#!/usr/bin/env python3
"""
Opens an AES-256-GCM certificate blob returned by get_certified_identity.

Layout: nonce (12 bytes) || ciphertext || tag (16 bytes). No length prefix.
The AEAD primitive only returns plaintext once the tag has verified.
"""
from __future__ import annotations
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from .cert_decode import DecryptedCertificate, from_bytes
from .common import hex_to_bytes, run_main
from .errors import AuthenticationError, CodecError

NONCE_LEN = 12
TAG_LEN = 16
KEY_LEN = 32

def split_blob(blob: bytes) -> tuple[bytes, bytes, bytes]:
    if len(blob) < NONCE_LEN:
        raise CodecError(f"Encrypted buffer too short: {len(blob)} bytes")
    nonce, rest = blob[:NONCE_LEN], blob[NONCE_LEN:]
    if len(rest) < TAG_LEN:
        raise AuthenticationError("ciphertext carries no authentication tag")
    return nonce, rest[:-TAG_LEN], rest[-TAG_LEN:]

def open_blob(blob: bytes, key: bytes) -> bytes:
    if len(key) != KEY_LEN:
        raise CodecError(f"AES key must be {KEY_LEN} bytes, got {len(key)}")
    nonce, ciphertext, tag = split_blob(blob)
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as e:
        raise AuthenticationError("certificate authentication failed") from e

def decrypt(blob: bytes, key: bytes) -> DecryptedCertificate:
    return from_bytes(open_blob(blob, key))

def decrypt_hex(encrypted_hex: str, key_hex: str) -> DecryptedCertificate:
    blob = hex_to_bytes(encrypted_hex, "encrypted certificate")
    key = hex_to_bytes(key_hex, "AES key")
    return decrypt(blob, key)

def open_sealed(d: dict) -> dict:
    return decrypt_hex(d["encrypted_hex"], d["key_hex"]).to_dict()

if __name__ == "__main__":
    run_main(open_sealed)
