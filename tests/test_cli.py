import json

import pytest

from certsign import cli
from certsign_work.lib.aesgcm_open import decrypt_hex
from certsign_work.lib.seed_aes_key import derive_aes_key
from certsign_work.lib.seed_identity import derive_identity
from certsign_work.lib.seed_keypair import derive_key_pair


def run_cli(*argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(list(argv))
    return exc.value.code


def test_key_pair_from_env(seeded_env, key_seed, capsys):
    assert run_cli("key-pair") == 0
    out = capsys.readouterr().out
    kp = derive_key_pair(key_seed)
    assert f"Private key: {kp.private_key_hex}" in out
    assert f"Public key:  {kp.public_key_hex}" in out


def test_prompted_seed(monkeypatch, capsys):
    monkeypatch.delenv("CERTSIGN_AES_SEED", raising=False)
    monkeypatch.setattr(cli.click, "prompt", lambda *a, **kw: "typed")
    assert run_cli("aes-key") == 0
    assert capsys.readouterr().out.strip() == derive_aes_key("typed").hex()


def test_empty_seed_exits_with_input_error(monkeypatch, capsys):
    monkeypatch.delenv("CERTSIGN_IDENTITY_SEED", raising=False)
    monkeypatch.setattr(cli.click, "prompt", lambda *a, **kw: "")
    assert run_cli("identity") == 2
    assert "FATAL" in capsys.readouterr().err


def test_identity(seeded_env, capsys):
    assert run_cli("identity") == 0
    assert capsys.readouterr().out.strip() == derive_identity("controller seed").principal_text


def test_init_args_aes_controller(seeded_env, capsys):
    assert run_cli("init-args", "--schema", "aes-controller", "--local") == 0
    out = capsys.readouterr().out.strip()
    aes = derive_aes_key("correct horse battery staple").hex()
    principal = derive_identity("controller seed").principal_text
    assert out == (
        f'(record {{aes_symmetric_encryption_key_hex="{aes}"; local_mode=true; '
        f'controller_principal_id="{principal}"}})'
    )


def test_init_args_public_key_shell_quoted(seeded_env, key_seed, capsys):
    assert run_cli("init-args", "--schema", "public-key", "--mainnet", "--shell") == 0
    out = capsys.readouterr().out.strip()
    pub = derive_key_pair(key_seed).public_key_hex
    assert out == f"""'(record {{public_key_hex="{pub}"; local_mode=false}})'"""


def test_deploy_invokes_dfx(seeded_env, monkeypatch, capsys):
    seen = {}

    def fake_deploy(self, argument, reinstall):
        seen.update(argument=argument, reinstall=reinstall, network=self.network)

    monkeypatch.setattr(cli.Dfx, "deploy", fake_deploy)
    assert run_cli("deploy", "--mainnet", "--reinstall") == 0
    assert seen["reinstall"] is True
    assert seen["network"] == "ic"
    assert seen["argument"].startswith("(record {aes_symmetric_encryption_key_hex=")
    assert "--mode reinstall --yes" in capsys.readouterr().out


def test_init_ecdsa_key_mismatch(monkeypatch, capsys):
    replies = {"init_ecdsa_key": "02aa", "get_ecdsa_public_key_hex": "02bb"}
    monkeypatch.setattr(cli.Dfx, "call", lambda self, method: replies[method])
    assert run_cli("init-ecdsa-key", "--local") == 1
    assert "mismatch" in capsys.readouterr().err


def test_init_ecdsa_key_match(monkeypatch, capsys):
    monkeypatch.setattr(cli.Dfx, "call", lambda self, method: "02aa")
    assert run_cli("init-ecdsa-key", "--local") == 0
    assert capsys.readouterr().out.strip().endswith("02aa")


def test_certify_with_temporary_identity(seeded_env, certifier, controller, caller, monkeypatch, capsys):
    public_key_hex = certifier.init_ecdsa_key(controller)
    calls = []

    def fake_run(self, args, capture=True):
        calls.append(args)
        if args[:2] == ["identity", "whoami"]:
            return "default\n"
        if args[:2] == ["identity", "get-principal"]:
            return caller + "\n"
        if args[:2] == ["canister", "call"]:
            return f'("{certifier.get_certified_identity(caller)}")\n'
        return ""

    monkeypatch.setattr(cli.Dfx, "run", fake_run)
    assert run_cli("certify", "--local", "--public-key-hex", public_key_hex) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out[captured.out.index("{"):captured.out.rindex("}") + 1])["principal_id"] == caller
    assert "VERIFIED" in captured.out
    assert ["identity", "use", "default"] in calls
    assert any(c[:2] == ["identity", "remove"] for c in calls)


def test_decrypt_and_verify_offline(seeded_env, certifier, controller, caller, aes_key, capsys):
    public_key_hex = certifier.init_ecdsa_key(controller)
    blob = certifier.get_certified_identity(caller)
    assert run_cli("decrypt", blob, "--key-hex", aes_key.hex(), "--public-key-hex", public_key_hex) == 0

    cert = decrypt_hex(blob, aes_key.hex())
    document = json.dumps(cert.to_dict())
    assert run_cli("verify", document, "--public-key-hex", public_key_hex) == 0
    assert run_cli("verify", document, "--public-key-hex", derive_key_pair("x").public_key_hex) == 1


def test_decrypt_tampered_blob(certifier, controller, caller, aes_key, capsys):
    certifier.init_ecdsa_key(controller)
    blob = certifier.get_certified_identity(caller)
    tampered = blob[:-2] + ("00" if blob[-2:] != "00" else "01")
    assert run_cli("decrypt", tampered, "--key-hex", aes_key.hex()) == 1
    assert "authentication" in capsys.readouterr().err


def test_decrypt_short_blob(aes_key, capsys):
    assert run_cli("decrypt", "abcd", "--key-hex", aes_key.hex()) == 1
    assert "codec" in capsys.readouterr().err


def test_simulate(seeded_env, capsys):
    assert run_cli("simulate") == 0
    assert "VERIFIED" in capsys.readouterr().out


def test_deploy_public_key_schema_compressed(seeded_env, key_seed, monkeypatch):
    seen = {}
    monkeypatch.setattr(cli.Dfx, "deploy",
                        lambda self, argument, reinstall: seen.update(argument=argument))
    assert run_cli("deploy", "--schema", "public-key", "--compressed", "--local", "--upgrade") == 0
    expected = derive_key_pair(key_seed, compressed=True).public_key_hex
    assert seen["argument"] == f'(record {{public_key_hex="{expected}"; local_mode=true}})'


@pytest.mark.parametrize("body", ["identity:\n", "canister: [unclosed\n"])
def test_bad_manifest_exits_with_input_error(tmp_path, body, capsys):
    p = tmp_path / "manifest.yaml"
    p.write_text(body)
    assert run_cli("--manifest", str(p), "certify", "--local", "--key-hex", "00" * 32) == 2
    assert "FATAL" in capsys.readouterr().err
