"""
dfx.py - thin wrapper around the dfx command line.

Everything here is a blocking subprocess call. Non-zero exits and output that
is not the expected Candid text surface as ExternalCallError.
"""
from __future__ import annotations
import contextlib
import re
import subprocess
import uuid

from certsign_work.lib.errors import ExternalCallError

_CANDID_TEXT = re.compile(r'^\(\s*"((?:[^"\\]|\\.)*)"\s*,?\s*\)$', re.DOTALL)

def unwrap_candid_text(output: str) -> str:
    """Turn dfx's `("value")` reply into `value`."""
    m = _CANDID_TEXT.match(output.strip())
    if not m:
        raise ExternalCallError(f"unexpected dfx output: {output.strip()[:120]!r}", output=output)
    return m.group(1)

class Dfx:
    def __init__(self, binary="dfx", canister="asymmetric_identity_certifier",
                 network=None, runner=subprocess.run):
        self.binary = binary
        self.canister = canister
        self.network = network
        self._run = runner

    def _network_args(self):
        return ["--network", self.network] if self.network else []

    def run(self, args, capture=True) -> str:
        cmd = [self.binary, *args]
        try:
            proc = self._run(cmd, capture_output=capture, text=True)
        except FileNotFoundError as e:
            raise ExternalCallError(f"{self.binary} not found", command=cmd) from e
        out = (proc.stdout or "") if capture else ""
        if proc.returncode != 0:
            err = (proc.stderr or "").strip() if capture else ""
            raise ExternalCallError(
                f"{' '.join(cmd[:3])} exited with {proc.returncode}: {err}",
                command=cmd, returncode=proc.returncode, output=out,
            )
        return out

    def deploy_command(self, argument: str, reinstall: bool) -> list[str]:
        cmd = ["deploy", self.canister]
        if reinstall:
            cmd += ["--mode", "reinstall", "--yes"]
        return cmd + ["--argument", argument, *self._network_args()]

    def deploy(self, argument: str, reinstall: bool) -> None:
        # output goes straight to the terminal
        self.run(self.deploy_command(argument, reinstall), capture=False)

    def call(self, method: str) -> str:
        out = self.run(["canister", "call", self.canister, method, *self._network_args()])
        return unwrap_candid_text(out)

    def whoami(self) -> str:
        return self.run(["identity", "whoami"]).strip()

    def principal(self) -> str:
        return self.run(["identity", "get-principal"]).strip()

    @contextlib.contextmanager
    def temporary_identity(self, prefix="certsign-tmp"):
        """Switch to a fresh identity for the duration of the block."""
        previous = self.whoami()
        name = f"{prefix}-{uuid.uuid4().hex[:8]}"
        self.run(["identity", "new", name, "--storage-mode", "plaintext"])
        try:
            self.run(["identity", "use", name])
            yield name
        finally:
            try:
                self.run(["identity", "use", previous])
            finally:
                self.run(["identity", "remove", name])
