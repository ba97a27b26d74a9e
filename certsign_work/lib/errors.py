#!/usr/bin/env python3
"""Error taxonomy shared by the certsign library and CLI."""
from __future__ import annotations


class CertsignError(Exception):
    """Base class for every failure raised by certsign."""
    kind = "error"


class InputError(CertsignError):
    """Missing or empty user input (e.g. an empty seed)."""
    kind = "input"


class CodecError(CertsignError):
    """Malformed hex, forbidden characters, short buffers."""
    kind = "codec"


class CryptoError(CertsignError):
    kind = "crypto"


class AuthenticationError(CryptoError):
    """AES-GCM tag did not verify; no plaintext is released."""
    kind = "authentication"


class MalformedPayloadError(CryptoError):
    """Plaintext authenticated but is not a certified identity document."""
    kind = "malformed_payload"


class ExternalCallError(CertsignError):
    """A dfx invocation exited non-zero or printed something unexpected."""
    kind = "external_call"

    def __init__(self, message: str, command=None, returncode=None, output: str = ""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output
