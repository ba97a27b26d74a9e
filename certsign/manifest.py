"""Run manifest (YAML) and seed sources for the certsign CLI."""
from __future__ import annotations
import os
import pathlib
import yaml

from certsign_work.lib.errors import InputError

DEFAULTS = {
    "canister": "asymmetric_identity_certifier",
    "dfx": "dfx",
    "network": "ic",
    "schema": "aes-controller",
    "identity": {
        "temporary_prefix": "certsign-tmp",
    },
}

SEED_ENV = {
    "aes": "CERTSIGN_AES_SEED",
    "key": "CERTSIGN_KEY_SEED",
    "identity": "CERTSIGN_IDENTITY_SEED",
}

def read_yaml(path):
    """Read manifest file (YAML format)."""
    with open(path, "r") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InputError(f"manifest {path} is not valid YAML: {e}") from e

def load_manifest(path=None) -> dict:
    m = {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULTS.items()}
    if path is None:
        return m
    if not pathlib.Path(path).exists():
        raise InputError(f"manifest not found: {path}")
    data = read_yaml(path)
    if not isinstance(data, dict):
        raise InputError(f"manifest {path} must be a mapping")
    for k, v in data.items():
        if isinstance(m.get(k), dict):
            if not isinstance(v, dict):
                raise InputError(f"manifest key {k!r} must be a mapping")
            m[k].update(v)
        else:
            m[k] = v
    return m

def seed_from_env(which: str):
    return os.environ.get(SEED_ENV[which]) or None
