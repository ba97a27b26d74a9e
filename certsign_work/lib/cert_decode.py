#!/usr/bin/env python3
"""Parses a decrypted certified-identity document."""
from __future__ import annotations
import json
from dataclasses import dataclass
from .common import require_fields, run_main
from .errors import MalformedPayloadError

@dataclass(frozen=True)
class Certificate:
    principal: str
    timestamp: int

@dataclass(frozen=True)
class DecryptedCertificate:
    principal_id: str
    certificate: Certificate
    issuer_signature: str

    def to_dict(self) -> dict:
        return {
            "principal_id": self.principal_id,
            "certificate": {
                "principal": self.certificate.principal,
                "timestamp": self.certificate.timestamp,
            },
            "issuer_signature": self.issuer_signature,
        }

def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)

def from_dict(obj) -> DecryptedCertificate:
    """Unknown extra keys are ignored."""
    if not isinstance(obj, dict):
        raise MalformedPayloadError("certificate document is not an object")
    missing = require_fields(obj, ["principal_id", "certificate", "issuer_signature"])
    if missing:
        raise MalformedPayloadError(f"missing fields: {', '.join(missing)}")
    cert = obj["certificate"]
    if not isinstance(cert, dict):
        raise MalformedPayloadError("certificate is not an object")
    missing = require_fields(cert, ["principal", "timestamp"])
    if missing:
        raise MalformedPayloadError(f"missing certificate fields: {', '.join(missing)}")
    if not isinstance(obj["principal_id"], str):
        raise MalformedPayloadError("principal_id is not a string")
    if not isinstance(obj["issuer_signature"], str):
        raise MalformedPayloadError("issuer_signature is not a string")
    if not isinstance(cert["principal"], str):
        raise MalformedPayloadError("certificate.principal is not a string")
    if not _is_int(cert["timestamp"]):
        raise MalformedPayloadError("certificate.timestamp is not an integer")
    return DecryptedCertificate(
        principal_id=obj["principal_id"],
        certificate=Certificate(principal=cert["principal"], timestamp=cert["timestamp"]),
        issuer_signature=obj["issuer_signature"],
    )

def from_bytes(plaintext: bytes) -> DecryptedCertificate:
    try:
        obj = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedPayloadError(f"certificate is not valid JSON: {e}") from e
    return from_dict(obj)

def decode(d: dict) -> dict:
    return from_dict(d["document"]).to_dict()

if __name__ == "__main__":
    run_main(decode)
