#!/usr/bin/env python3
"""
init_args.py - Candid init records for the certifier canister.

Two schemas coexist and are modelled as separate record types:

  aes-controller: (record {aes_symmetric_encryption_key_hex="..."; local_mode=true; controller_principal_id="..."})
  public-key:     (record {public_key_hex="..."; local_mode=false})

Strings are double-quoted, booleans are bare tokens, field order is fixed.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, fields
from typing import Union
from .common import is_lower_hex, run_main
from .errors import CodecError

class Schema(str, enum.Enum):
    AES_CONTROLLER = "aes-controller"
    PUBLIC_KEY = "public-key"

@dataclass(frozen=True)
class AesControllerInitArgs:
    aes_symmetric_encryption_key_hex: str
    local_mode: bool
    controller_principal_id: str

    schema = Schema.AES_CONTROLLER

    def validate(self) -> None:
        if not is_lower_hex(self.aes_symmetric_encryption_key_hex):
            raise CodecError("aes_symmetric_encryption_key_hex is not lowercase hex")

@dataclass(frozen=True)
class PublicKeyInitArgs:
    public_key_hex: str
    local_mode: bool

    schema = Schema.PUBLIC_KEY

    def validate(self) -> None:
        if not is_lower_hex(self.public_key_hex):
            raise CodecError("public_key_hex is not lowercase hex")

InitArgs = Union[AesControllerInitArgs, PublicKeyInitArgs]

RECORD_TYPES = {
    Schema.AES_CONTROLLER: AesControllerInitArgs,
    Schema.PUBLIC_KEY: PublicKeyInitArgs,
}

def check_quoted(name: str, value: str) -> None:
    """Reject a value that would terminate its surrounding double quotes."""
    i = 0
    while i < len(value):
        c = value[i]
        if c == "\\":
            if i + 1 == len(value):
                raise CodecError(f"{name}: trailing backslash")
            i += 2
            continue
        if c == '"':
            raise CodecError(f"{name}: unescaped double quote")
        i += 1

def encode_value(name: str, value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        check_quoted(name, value)
        return f'"{value}"'
    raise CodecError(f"{name}: unsupported value type {type(value).__name__}")

def encode(args: InitArgs) -> str:
    for f in fields(args):
        # quoting is checked before anything else looks at the value
        encode_value(f.name, getattr(args, f.name))
    args.validate()
    body = "; ".join(f"{f.name}={encode_value(f.name, getattr(args, f.name))}" for f in fields(args))
    return f"(record {{{body}}})"

def parse_schema(schema) -> Schema:
    try:
        return Schema(schema)
    except ValueError as e:
        raise CodecError(f"unknown schema: {schema}") from e

def build(schema, values: dict) -> InitArgs:
    record_type = RECORD_TYPES[parse_schema(schema)]
    expected = [f.name for f in fields(record_type)]
    if sorted(values) != sorted(expected):
        raise CodecError(f"{Schema(schema).value} expects fields {expected}, got {sorted(values)}")
    for f in fields(record_type):
        v = values[f.name]
        if (f.type == "bool") != isinstance(v, bool):
            raise CodecError(f"{f.name}: wrong type {type(v).__name__}")
    return record_type(**values)

def encode_fields(schema, values: dict) -> str:
    return encode(build(schema, values))

def encode_json(d: dict) -> dict:
    return {"argument": encode_fields(d["schema"], d["fields"])}

if __name__ == "__main__":
    run_main(encode_json)
