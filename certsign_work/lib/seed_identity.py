#!/usr/bin/env python3
"""Derives the controller's Ed25519 identity and principal from a seed phrase."""
from __future__ import annotations
from dataclasses import dataclass
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from .common import run_main
from .principal import principal_to_text, self_authenticating
from .seed_keypair import require_seed
from .sha256_hex import sha256_text

@dataclass(frozen=True)
class DerivedIdentity:
    seed: bytes
    public_key: bytes
    principal: bytes

    @property
    def principal_text(self) -> str:
        return principal_to_text(self.principal)

def derive_identity(seed: str) -> DerivedIdentity:
    # SHA-256(seed) is the raw Ed25519 secret; unrelated to the secp256k1 derivation
    secret = sha256_text(require_seed(seed))
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(secret)
    pk = sk.public_key()
    der = pk.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    return DerivedIdentity(
        seed=secret,
        public_key=pk.public_bytes_raw(),
        principal=self_authenticating(der),
    )

def derive(d: dict) -> dict:
    ident = derive_identity(d["seed"])
    return {
        "public_key_hex": ident.public_key.hex(),
        "principal": ident.principal_text,
    }

if __name__ == "__main__":
    run_main(derive)
