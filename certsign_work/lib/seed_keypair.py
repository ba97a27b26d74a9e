#!/usr/bin/env python3
"""
Derives a deterministic secp256k1 keypair from a seed phrase.

private = SHA-256(utf8(seed)), used directly as the scalar. There is no
rejection sampling: a digest of zero or >= the group order cannot be a key
and raises InputError. Reducing it instead would change every key already
derived from an existing seed.
"""
from __future__ import annotations
from dataclasses import dataclass
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from .common import run_main
from .errors import InputError
from .sha256_hex import sha256_text

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

@dataclass(frozen=True)
class DerivedKeyPair:
    private_key: bytes
    public_key: bytes
    compressed: bool

    @property
    def private_key_hex(self) -> str:
        return self.private_key.hex()

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

def require_seed(seed: str) -> str:
    if not isinstance(seed, str) or not seed:
        raise InputError("seed must be a non-empty string")
    return seed

def private_key_from_scalar(raw: bytes) -> ec.EllipticCurvePrivateKey:
    k = int.from_bytes(raw, "big")
    if not 0 < k < SECP256K1_ORDER:
        raise InputError("seed digest is not a valid secp256k1 scalar")
    return ec.derive_private_key(k, ec.SECP256K1())

def encode_public_key(pk: ec.EllipticCurvePublicKey, compressed: bool = False) -> bytes:
    fmt = PublicFormat.CompressedPoint if compressed else PublicFormat.UncompressedPoint
    return pk.public_bytes(Encoding.X962, fmt)

def derive_key_pair(seed: str, compressed: bool = False) -> DerivedKeyPair:
    """Uncompressed (65 byte, 0x04-prefixed) public key unless asked otherwise."""
    raw = sha256_text(require_seed(seed))
    sk = private_key_from_scalar(raw)
    return DerivedKeyPair(
        private_key=raw,
        public_key=encode_public_key(sk.public_key(), compressed),
        compressed=compressed,
    )

def derive(d: dict) -> dict:
    kp = derive_key_pair(d["seed"], bool(d.get("compressed", False)))
    return {"private_key_hex": kp.private_key_hex, "public_key_hex": kp.public_key_hex}

if __name__ == "__main__":
    run_main(derive)
