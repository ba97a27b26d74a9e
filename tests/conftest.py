import json
import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from certsign_work.lib.seed_aes_key import derive_aes_key
from certsign_work.lib.seed_identity import derive_identity
from certsign_work.tools.sim_certifier import SimulatedCertifier

AES_SEED = "correct horse battery staple"
KEY_SEED = "issuer signing seed"
CONTROLLER_SEED = "controller seed"
CALLER_SEED = "some caller"


@pytest.fixture
def aes_key():
    return derive_aes_key(AES_SEED)


@pytest.fixture
def key_seed():
    return KEY_SEED


@pytest.fixture
def controller():
    return derive_identity(CONTROLLER_SEED).principal_text


@pytest.fixture
def caller():
    return derive_identity(CALLER_SEED).principal_text


@pytest.fixture
def certifier(aes_key, controller):
    return SimulatedCertifier(aes_key.hex(), KEY_SEED, controller, clock=lambda: 1_700_000_000_123_456_789)


@pytest.fixture
def seal():
    """Reference AES-256-GCM encryption producing nonce || ciphertext || tag."""
    def _seal(plaintext, key, nonce=None):
        nonce = nonce or os.urandom(12)
        if isinstance(plaintext, dict):
            plaintext = json.dumps(plaintext).encode()
        return nonce + AESGCM(key).encrypt(nonce, plaintext, None)
    return _seal


@pytest.fixture
def seeded_env(monkeypatch):
    monkeypatch.setenv("CERTSIGN_AES_SEED", AES_SEED)
    monkeypatch.setenv("CERTSIGN_KEY_SEED", KEY_SEED)
    monkeypatch.setenv("CERTSIGN_IDENTITY_SEED", CONTROLLER_SEED)
