import pytest

from certsign_work.lib.errors import CodecError
from certsign_work.lib.principal import (
    ANONYMOUS, check, principal_from_text, principal_to_text, self_authenticating,
)


@pytest.mark.parametrize("raw,text", [
    (b"", "aaaaa-aa"),
    (ANONYMOUS, "2vxsx-fae"),
])
def test_well_known_principals(raw, text):
    assert principal_to_text(raw) == text
    assert principal_from_text(text) == raw


def test_self_authenticating_layout():
    raw = self_authenticating(b"\x30" * 44)
    assert len(raw) == 29
    assert raw[-1:] == b"\x02"


def test_round_trip_of_derived_text():
    raw = bytes(range(29))
    assert principal_from_text(principal_to_text(raw)) == raw


def test_checksum_mismatch_is_rejected():
    text = principal_to_text(bytes(range(10)))
    tampered = principal_to_text(bytes(range(1, 11)))
    # checksum of one principal, body of another
    mixed = tampered[:7] + text[7:]
    with pytest.raises(CodecError):
        principal_from_text(mixed)


@pytest.mark.parametrize("text", ["", "2VXSX-FAE", "2vxsxfae", "not a principal!"])
def test_non_canonical_text_is_rejected(text):
    with pytest.raises(CodecError):
        principal_from_text(text)


def test_too_long_principal():
    with pytest.raises(CodecError):
        principal_to_text(bytes(30))


def test_check_wrapper():
    assert check({"principal": "2vxsx-fae"}) == {"principal_hex": "04", "anonymous": True}
