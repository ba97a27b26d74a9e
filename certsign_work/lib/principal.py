#!/usr/bin/env python3
"""
principal.py - Internet Computer principal identifiers.

Textual form: base32(crc32_be(raw) || raw), lowercase, unpadded, split into
dash-separated groups of five characters. A self-authenticating principal is
SHA-224 over the DER SubjectPublicKeyInfo of the key, followed by 0x02.
"""
from __future__ import annotations
import base64
import hashlib
import zlib
from .common import run_main
from .errors import CodecError

MAX_PRINCIPAL_LEN = 29
SELF_AUTHENTICATING_SUFFIX = b"\x02"
ANONYMOUS = b"\x04"

def principal_to_text(raw: bytes) -> str:
    if len(raw) > MAX_PRINCIPAL_LEN:
        raise CodecError(f"principal too long: {len(raw)} bytes")
    checksum = zlib.crc32(raw).to_bytes(4, "big")
    s = base64.b32encode(checksum + raw).decode("ascii").lower().rstrip("=")
    return "-".join(s[i:i + 5] for i in range(0, len(s), 5))

def principal_from_text(text: str) -> bytes:
    if not isinstance(text, str) or not text:
        raise CodecError("principal text is empty")
    s = text.replace("-", "").upper()
    try:
        decoded = base64.b32decode(s + "=" * (-len(s) % 8))
    except ValueError as e:
        raise CodecError(f"principal is not valid base32: {e}") from e
    if len(decoded) < 4:
        raise CodecError("principal text too short")
    checksum, raw = decoded[:4], decoded[4:]
    if zlib.crc32(raw).to_bytes(4, "big") != checksum:
        raise CodecError("principal checksum mismatch")
    if principal_to_text(raw) != text:
        raise CodecError("principal text is not in canonical form")
    return raw

def self_authenticating(der_public_key: bytes) -> bytes:
    return hashlib.sha224(der_public_key).digest() + SELF_AUTHENTICATING_SUFFIX

def check(d: dict) -> dict:
    raw = principal_from_text(d["principal"])
    return {"principal_hex": raw.hex(), "anonymous": raw == ANONYMOUS}

if __name__ == "__main__":
    run_main(check)
