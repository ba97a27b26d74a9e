#!/usr/bin/env python3
"""
common.py - Shared helpers for the certsign library CLIs.

All CLIs follow the same contract:
- Read a single JSON object from STDIN.
- Write a single JSON object to STDOUT.
- Fail with a non-zero exit on any error, printing a short message to STDERR.

Binary values travel as lowercase hex, which is what the certifier canister
accepts and returns.
"""
from __future__ import annotations
import sys, json, hmac, re

from .errors import CodecError, CertsignError

# ---------- Hex ----------
_HEX = re.compile(r"^(?:[0-9a-fA-F]{2})*$")

def clean_hex(s: str) -> str:
    # dfx and shells hand back values wrapped in quotes and whitespace
    return s.strip().replace('"', "").replace("'", "")

def hex_to_bytes(s: str, what: str = "value") -> bytes:
    if not isinstance(s, str):
        raise CodecError(f"{what} must be a hex string")
    cleaned = clean_hex(s)
    if not _HEX.fullmatch(cleaned):
        raise CodecError(f"{what} is not valid hex")
    return bytes.fromhex(cleaned)

def is_hex(s: str) -> bool:
    return isinstance(s, str) and bool(_HEX.fullmatch(s))

_LOWER_HEX = re.compile(r"^(?:[0-9a-f]{2})+$")

def is_lower_hex(s: str) -> bool:
    """Non-empty lowercase hex, the form the canister stores."""
    return isinstance(s, str) and bool(_LOWER_HEX.fullmatch(s))

# ---------- JSON IO ----------
def read_json_stdin() -> dict:
    try:
        return json.load(sys.stdin)
    except Exception as e:
        print(f"error: invalid JSON on stdin: {e}", file=sys.stderr)
        sys.exit(2)

def write_json(obj: dict) -> None:
    json.dump(obj, sys.stdout, separators=(",",":"))
    sys.stdout.write("\n")

def run_main(fn) -> None:
    """Run a dict->dict primitive against STDIN/STDOUT."""
    try:
        write_json(fn(read_json_stdin()))
    except (CertsignError, KeyError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

# ---------- Validation helpers ----------
def ct_eq(a: str, b: str) -> bool:
    # constant-time compare for ASCII hex strings
    return hmac.compare_digest(a, b)

def require_fields(obj: dict, keys: list[str]) -> list[str]:
    missing = [k for k in keys if k not in obj]
    return missing
