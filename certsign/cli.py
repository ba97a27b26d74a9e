#!/usr/bin/env python3
"""
cli.py - certsign - tooling for the Asymmetric Identity Certifier canister
============================================================================
Copyright 2025 The certsign authors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

     http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

============================================================================

Provisions the certifier canister and checks the certificates it issues.

Flow:
  1. Derive key material from seed phrases (AES key, controller identity,
     optional secp256k1 key pair).
  2. Encode the init record and hand it to `dfx deploy`.
  3. Controller calls init_ecdsa_key; the returned key must match
     get_ecdsa_public_key_hex.
  4. Any non-anonymous caller asks for get_certified_identity, receives
     nonce || AES-256-GCM(ciphertext) || tag as hex.
  5. The blob is opened with the AES key and the issuer signature checked
     against the canister's secp256k1 public key.
"""

import argparse
import json
import shlex
import sys
import time

import click

from certsign.dfx import Dfx
from certsign.manifest import load_manifest, seed_from_env
from certsign_work.lib import (
    aesgcm_open,       # AES-256-GCM certificate opening
    cert_decode,       # certified identity document shape
    ecdsa_verify,      # issuer signature check
    init_args,         # Candid init records
    seed_aes_key,      # SHA-256(seed) -> AES key
    seed_identity,     # SHA-256(seed) -> Ed25519 controller identity
    seed_keypair,      # SHA-256(seed) -> secp256k1 key pair
)
from certsign_work.lib.common import ct_eq, hex_to_bytes
from certsign_work.lib.errors import CertsignError, ExternalCallError, InputError
from certsign_work.tools.sim_certifier import SimulatedCertifier

# Global timer for performance metrics
SCRIPT_START_TIME = time.time()

def log(role, msg):
    """Structured logging with timing information."""
    elapsed = time.time() - SCRIPT_START_TIME
    print(f"[{role}] {elapsed:.2f}s - {msg}", flush=True)

def log_err(role, msg):
    """Error logging to stderr."""
    elapsed = time.time() - SCRIPT_START_TIME
    print(f"[{role}] {elapsed:.2f}s - {msg}", file=sys.stderr, flush=True)

# === Input helpers ===
PROMPTS = {
    "aes": "Please provide an input string. This will be hashed and used as the AES symmetric encryption key",
    "key": "Please provide an input string. This will be hashed and used as the private key",
    "identity": "Please provide the identity seed (plain text). This will be hashed and used as the identity for the controller",
}

def get_seed(which):
    """Seed from the environment, otherwise from an interactive prompt."""
    seed = seed_from_env(which)
    if seed is None:
        seed = click.prompt(PROMPTS[which], default="", show_default=False)
    if not seed:
        raise InputError(f"an input string is required for the {which} seed")
    return seed

def ask_local_mode(args):
    if args.local is not None:
        return args.local
    return click.confirm("Do you want to target the local replica (local mode)?", default=False)

def dfx_for(m, local_mode):
    return Dfx(
        binary=m["dfx"],
        canister=m["canister"],
        network=None if local_mode else m["network"],
    )

def build_init_record(schema, local_mode, compressed=False):
    if init_args.parse_schema(schema) is init_args.Schema.AES_CONTROLLER:
        aes_key_hex = seed_aes_key.derive_aes_key(get_seed("aes")).hex()
        controller = seed_identity.derive_identity(get_seed("identity")).principal_text
        record = init_args.AesControllerInitArgs(
            aes_symmetric_encryption_key_hex=aes_key_hex,
            local_mode=local_mode,
            controller_principal_id=controller,
        )
    else:
        kp = seed_keypair.derive_key_pair(get_seed("key"), compressed=compressed)
        record = init_args.PublicKeyInitArgs(public_key_hex=kp.public_key_hex, local_mode=local_mode)
    return init_args.encode(record)

def read_text_arg(value):
    """`-` reads the value from STDIN."""
    if value == "-":
        return sys.stdin.read()
    return value

def aes_key_hex_from(args):
    if args.key_hex:
        return args.key_hex
    return seed_aes_key.derive_aes_key(get_seed("aes")).hex()

def report_certificate(role, cert, public_key_hex):
    print(json.dumps(cert.to_dict(), indent=2))
    valid = ecdsa_verify.verify(cert, public_key_hex)
    if valid:
        log(role, "Issuer signature VERIFIED.")
        return 0
    log_err(role, "Issuer signature INVALID.")
    return 1

# ============================================================================
# KEY MATERIAL
# ============================================================================

def cmd_key_pair(args):
    kp = seed_keypair.derive_key_pair(get_seed("key"), compressed=args.compressed)
    print(f"Private key: {kp.private_key_hex}")
    print(f"Public key:  {kp.public_key_hex}")
    return 0

def cmd_aes_key(args):
    print(seed_aes_key.derive_aes_key(get_seed("aes")).hex())
    return 0

def cmd_identity(args):
    ident = seed_identity.derive_identity(get_seed("identity"))
    print(ident.principal_text)
    return 0

def cmd_init_args(args):
    m = load_manifest(args.manifest)
    schema = args.schema or m["schema"]
    argument = build_init_record(schema, ask_local_mode(args), compressed=args.compressed)
    print(shlex.quote(argument) if args.shell else argument)
    return 0

# ============================================================================
# CANISTER LIFECYCLE
# ============================================================================

def cmd_deploy(args):
    role = "DEPLOY"
    m = load_manifest(args.manifest)
    local_mode = ask_local_mode(args)
    argument = build_init_record(args.schema or m["schema"], local_mode, compressed=args.compressed)

    reinstall = args.reinstall
    if reinstall is None:
        reinstall = click.confirm(
            "Do you want to reinstall the canister? All existing data will be lost.",
            default=False,
        )

    dfx = dfx_for(m, local_mode)
    command = dfx.deploy_command(argument, reinstall)
    log(role, f"Deploying canister with command: {shlex.join([dfx.binary, *command])}")
    dfx.deploy(argument, reinstall)
    log(role, "Canister deployed successfully")
    return 0

def cmd_init_ecdsa_key(args):
    role = "ECDSA"
    m = load_manifest(args.manifest)
    dfx = dfx_for(m, ask_local_mode(args))

    initialized = dfx.call("init_ecdsa_key")
    log(role, f"init_ecdsa_key returned {initialized}")
    current = dfx.call("get_ecdsa_public_key_hex")
    if not ct_eq(initialized.lower(), current.lower()):
        raise ExternalCallError(
            f"public key mismatch: init returned {initialized}, canister reports {current}"
        )
    print(current)
    return 0

# ============================================================================
# CERTIFICATES
# ============================================================================

def cmd_certify(args):
    """Fetch a certificate as a throwaway identity, then open and verify it."""
    role = "CERT"
    m = load_manifest(args.manifest)
    dfx = dfx_for(m, ask_local_mode(args))
    key_hex = aes_key_hex_from(args)

    public_key_hex = args.public_key_hex or dfx.call("get_ecdsa_public_key_hex")
    log(role, f"Issuer public key: {public_key_hex}")

    with dfx.temporary_identity(m["identity"]["temporary_prefix"]) as name:
        log(role, f"Using temporary identity {name}")
        caller = dfx.principal()
        encrypted_hex = dfx.call("get_certified_identity")
    log(role, "Temporary identity removed")

    cert = aesgcm_open.decrypt_hex(encrypted_hex, key_hex)
    if cert.certificate.principal != caller:
        raise ExternalCallError(f"certificate issued to {cert.certificate.principal}, expected {caller}")
    return report_certificate(role, cert, public_key_hex)

def cmd_decrypt(args):
    role = "DECRYPT"
    cert = aesgcm_open.decrypt_hex(read_text_arg(args.encrypted_hex), aes_key_hex_from(args))
    if args.public_key_hex:
        return report_certificate(role, cert, args.public_key_hex)
    print(json.dumps(cert.to_dict(), indent=2))
    return 0

def cmd_verify(args):
    role = "VERIFY"
    try:
        document = json.loads(read_text_arg(args.certificate))
    except ValueError as e:
        raise InputError(f"certificate is not valid JSON: {e}") from e
    cert = cert_decode.from_dict(document)
    if ecdsa_verify.verify(cert, args.public_key_hex):
        log(role, "Issuer signature VERIFIED.")
        return 0
    log_err(role, "Issuer signature INVALID.")
    return 1

def cmd_simulate(args):
    """Run the whole exchange against the in-process certifier."""
    role = "SIM"
    key_seed = get_seed("key")
    aes_key_hex = seed_aes_key.derive_aes_key(get_seed("aes")).hex()
    controller = seed_identity.derive_identity(get_seed("identity")).principal_text
    caller = seed_identity.derive_identity(args.caller_seed).principal_text

    sim = SimulatedCertifier(aes_key_hex, key_seed, controller)
    published = sim.init_ecdsa_key(controller)
    expected = seed_keypair.derive_key_pair(key_seed, compressed=True).public_key_hex
    if not ct_eq(published, expected):
        raise ExternalCallError("simulated certifier published an unexpected public key")
    log(role, f"ECDSA public key: {published}")

    encrypted_hex = sim.get_certified_identity(caller)
    log(role, f"Certificate issued to {caller} ({len(hex_to_bytes(encrypted_hex))} bytes)")
    cert = aesgcm_open.decrypt_hex(encrypted_hex, aes_key_hex)
    return report_certificate(role, cert, published)

# ============================================================================

def run(func, args):
    try:
        return func(args)
    except InputError as e:
        log_err("SYS", f"FATAL: {e}")
        return 2
    except ExternalCallError as e:
        log_err("SYS", f"FATAL: external call failed: {e}")
        return e.returncode or 1
    except CertsignError as e:
        log_err("SYS", f"FATAL: {e.kind}: {e}")
        return 1

def add_local_flags(p):
    g = p.add_mutually_exclusive_group()
    g.add_argument("--local", dest="local", action="store_true", default=None,
                   help="Target the local replica")
    g.add_argument("--mainnet", dest="local", action="store_false",
                   help="Target the network named in the manifest")

def add_key_flags(p):
    p.add_argument("--key-hex", help="AES key hex (otherwise derived from the AES seed)")

def build_parser():
    ap = argparse.ArgumentParser(
        prog="certsign",
        description="Provision and exercise the Asymmetric Identity Certifier canister."
    )
    ap.add_argument("--manifest", help="Path to manifest YAML file")

    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("key-pair", help="Derive a secp256k1 key pair from a seed.")
    p.add_argument("--compressed", action="store_true",
                   help="Print the 33-byte compressed public key")
    p.set_defaults(func=cmd_key_pair)

    p = sub.add_parser("aes-key", help="Derive the AES symmetric key from a seed.")
    p.set_defaults(func=cmd_aes_key)

    p = sub.add_parser("identity", help="Derive the controller principal from a seed.")
    p.set_defaults(func=cmd_identity)

    p = sub.add_parser("init-args", help="Print the canister init record.")
    p.add_argument("--schema", choices=[s.value for s in init_args.Schema])
    p.add_argument("--compressed", action="store_true")
    p.add_argument("--shell", action="store_true", help="Quote for a POSIX shell")
    add_local_flags(p)
    p.set_defaults(func=cmd_init_args)

    p = sub.add_parser("deploy", help="Deploy the canister with dfx.")
    p.add_argument("--schema", choices=[s.value for s in init_args.Schema])
    p.add_argument("--compressed", action="store_true",
                   help="Embed the 33-byte compressed public key (public-key schema)")
    rg = p.add_mutually_exclusive_group()
    rg.add_argument("--reinstall", dest="reinstall", action="store_true", default=None)
    rg.add_argument("--upgrade", dest="reinstall", action="store_false")
    add_local_flags(p)
    p.set_defaults(func=cmd_deploy)

    p = sub.add_parser("init-ecdsa-key", help="Initialize the canister ECDSA key.")
    add_local_flags(p)
    p.set_defaults(func=cmd_init_ecdsa_key)

    p = sub.add_parser("certify", help="Request, decrypt and verify a certificate.")
    p.add_argument("--public-key-hex", help="Issuer public key (otherwise queried)")
    add_key_flags(p)
    add_local_flags(p)
    p.set_defaults(func=cmd_certify)

    p = sub.add_parser("decrypt", help="Decrypt a certificate blob.")
    p.add_argument("encrypted_hex", help="Hex blob, or - for STDIN")
    p.add_argument("--public-key-hex", help="Also verify against this issuer key")
    add_key_flags(p)
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser("verify", help="Verify a decrypted certificate.")
    p.add_argument("certificate", help="Certificate JSON, or - for STDIN")
    p.add_argument("--public-key-hex", required=True)
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("simulate", help="End-to-end run against a local simulated certifier.")
    p.add_argument("--caller-seed", default="certsign-simulated-caller")
    p.set_defaults(func=cmd_simulate)
    return ap

def main(argv=None):
    """Main entry point for the certsign CLI."""
    args = build_parser().parse_args(argv)
    sys.exit(run(args.func, args) or 0)

if __name__ == "__main__":
    main()
