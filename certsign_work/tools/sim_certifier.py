#!/usr/bin/env python3
"""
sim_certifier.py - offline stand-in for the certifier canister.

Issues certificates the way the canister does: sign SHA-256 of the canonical
{"principal","timestamp"} JSON with secp256k1 (low-S, 64-byte r||s), wrap it in
the certified-identity JSON, and seal it with AES-256-GCM using
nonce = timestamp_ns (8 bytes, big-endian) || caller principal[0:4].

Reads {"aes_key_hex", "signing_seed", "caller"} on STDIN, writes
{"encrypted_hex", "public_key_hex"}.
"""
from __future__ import annotations
import json
import sys
import time
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed, decode_dss_signature
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from certsign_work.lib.cert_decode import Certificate, DecryptedCertificate
from certsign_work.lib.common import hex_to_bytes, read_json_stdin, write_json
from certsign_work.lib.ecdsa_verify import certificate_digest
from certsign_work.lib.errors import CertsignError, ExternalCallError
from certsign_work.lib.principal import ANONYMOUS, principal_from_text
from certsign_work.lib.seed_keypair import (
    SECP256K1_ORDER, encode_public_key, private_key_from_scalar,
)
from certsign_work.lib.sha256_hex import sha256_text

def sign_digest(sk: ec.EllipticCurvePrivateKey, digest: bytes) -> bytes:
    r, s = decode_dss_signature(sk.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256()))))
    if s > SECP256K1_ORDER // 2:
        s = SECP256K1_ORDER - s
    return r.to_bytes(32, "big") + s.to_bytes(32, "big")

def seal(aes_key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    return nonce + AESGCM(aes_key).encrypt(nonce, plaintext, None)

class SimulatedCertifier:
    """Mirrors the canister's public interface."""

    def __init__(self, aes_key_hex: str, signing_seed: str, controller: str, clock=time.time_ns):
        self._aes_key = hex_to_bytes(aes_key_hex, "AES key")
        self._signing_key = private_key_from_scalar(sha256_text(signing_seed))
        self._controller = controller
        self._clock = clock
        self._public_key_hex = ""

    def _require_controller(self, caller: str) -> None:
        if caller != self._controller:
            raise ExternalCallError("Unauthorized")

    def init_ecdsa_key(self, caller: str) -> str:
        self._require_controller(caller)
        if self._public_key_hex:
            raise ExternalCallError("ECDSA key already set")
        self._public_key_hex = encode_public_key(self._signing_key.public_key(), compressed=True).hex()
        return self.get_ecdsa_public_key_hex(caller)

    def get_ecdsa_public_key_hex(self, caller: str) -> str:
        self._require_controller(caller)
        return self._public_key_hex

    def get_certified_identity(self, caller: str) -> str:
        raw_caller = principal_from_text(caller)
        if raw_caller == ANONYMOUS:
            raise ExternalCallError("Anonymous principal not allowed to make calls")
        if len(raw_caller) < 4:
            raise ExternalCallError("caller principal too short to derive a nonce")
        now = self._clock()
        cert = DecryptedCertificate(
            principal_id=caller,
            certificate=Certificate(principal=caller, timestamp=now),
            issuer_signature="",
        )
        sig = sign_digest(self._signing_key, certificate_digest(cert))
        document = cert.to_dict()
        document["issuer_signature"] = sig.hex()
        plaintext = json.dumps(document, separators=(",", ":")).encode("utf-8")
        nonce = now.to_bytes(8, "big") + raw_caller[:4]
        return seal(self._aes_key, nonce, plaintext).hex()

    def documentation(self) -> str:
        return "# Asymmetric Identity Certifier (simulated)"

def main():
    d = read_json_stdin()
    try:
        sim = SimulatedCertifier(d["aes_key_hex"], d["signing_seed"], controller=d["caller"])
        public_key_hex = sim.init_ecdsa_key(d["caller"])
        write_json({
            "encrypted_hex": sim.get_certified_identity(d["caller"]),
            "public_key_hex": public_key_hex,
        })
    except (CertsignError, KeyError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
