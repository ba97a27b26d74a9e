#!/usr/bin/env python3
"""Computes the SHA256 digest of UTF-8 text or raw bytes."""
import hashlib
from .common import run_main

def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()

def sha256_text(text: str) -> bytes:
    return sha256(text.encode("utf-8"))

def hash_text(d: dict) -> dict:
    return {"digest_hex": sha256_text(d["text"]).hex()}

if __name__ == "__main__":
    run_main(hash_text)
