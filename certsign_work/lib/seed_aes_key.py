#!/usr/bin/env python3
"""Derives the AES-256 symmetric encryption key the certifier is initialized with."""
from .common import run_main
from .seed_keypair import require_seed
from .sha256_hex import sha256_text

def derive_aes_key(seed: str) -> bytes:
    return sha256_text(require_seed(seed))

def derive(d: dict) -> dict:
    return {"aes_symmetric_encryption_key_hex": derive_aes_key(d["seed"]).hex()}

if __name__ == "__main__":
    run_main(derive)
