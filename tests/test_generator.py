import hashlib

import pytest
from pydantic import ValidationError

from letmein.core.crypto import SCRYPT_N, SCRYPT_P, SCRYPT_R
from letmein.core.errors import (
    DeletedProfileError, MasterSecretError, ProfileValidationError, VerificationError,
)
from letmein.core.generator import (
    VERIFY_PROFILE, check_master, generate_password, map_digits, validate_master, verify_code,
)


def test_map_digits_vectors():
    assert map_digits(bytes([0x80]), "AB") == "B"
    assert map_digits(bytes([0x00]), "ABCD") == "A"
    assert map_digits(bytes([0xFF]), "ABCD") == "D"


def test_map_digits_carries_remainder():
    # 65535 * 2 = 131070 -> digit 1, rem 65534; 131068 -> digit 1
    assert map_digits(b"\xff\xff", "AB") == "BB"
    # 1 * 4 = 4 -> digit 0, rem 4; 16 -> digit 0
    assert map_digits(b"\x00\x01", "ABCD") == "AA"
    # 0x8000 * 3 = 98304 -> digit 1, rem 32768; -> digit 1 again
    assert map_digits(b"\x80\x00", "XYZ") == "YY"


def test_map_digits_wide_input():
    alphabet = "".join(chr(c) for c in range(32, 127))
    out = map_digits(b"\xff" * 32, alphabet)
    assert len(out) == 32
    assert out[0] == "~"
    assert all(ch in alphabet for ch in out)


def test_map_digits_rejects_degenerate_alphabet():
    with pytest.raises(ValueError):
        map_digits(b"\x01", "A")


def test_generate_is_deterministic(make_profile, master):
    p = make_profile()
    first = generate_password(master, p)
    assert first == generate_password(master, make_profile())
    assert len(first) == p.length


def test_generate_matches_reference_scrypt(make_profile, master):
    p = make_profile(length=20, punctuation=False)
    raw = hashlib.scrypt(
        f"{master}\t{p.url}\t{p.username}".encode("utf-8"),
        salt=str(p.generation).encode("utf-8"),
        n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P,
        maxmem=64 * 1024 * 1024,
        dklen=p.length,
    )
    assert generate_password(master, p) == map_digits(raw, p.character_set())


def test_output_stays_in_alphabet(make_profile, master):
    p = make_profile(upper=False, punctuation=False, include="#", exclude="0123")
    p.normalize()
    alphabet = p.character_set()
    password = generate_password(master, p)
    assert all(ch in alphabet for ch in password)


def test_each_input_changes_output(make_profile, master):
    base = generate_password(master, make_profile())
    assert generate_password(master + "x", make_profile()) != base
    assert generate_password(master, make_profile(generation=1)) != base
    assert generate_password(master, make_profile(url="example.org")) != base
    assert generate_password(master, make_profile(username="bob")) != base


def test_deleted_profile_never_generates(make_profile, master):
    with pytest.raises(DeletedProfileError):
        generate_password(master, make_profile(length=0))


def test_single_character_alphabet_is_a_profile_error(make_profile, master):
    p = make_profile(lower=False, upper=False, digits=False, punctuation=False, include="a")
    with pytest.raises(ProfileValidationError) as exc:
        generate_password(master, p)
    assert exc.value.field == "charset"


def test_verify_code():
    code = verify_code("hunter2")
    assert len(code) == 4
    assert code.islower() and code.isalpha()
    assert code == verify_code("hunter2")
    assert VERIFY_PROFILE.username == "verify"


def test_verify_profile_is_read_only():
    with pytest.raises(ValidationError):
        VERIFY_PROFILE.length = 8
    assert VERIFY_PROFILE.length == 4


def test_check_master():
    check_master("hunter2", verify_code("hunter2"))
    with pytest.raises(VerificationError):
        # verify codes are lower-case letters only
        check_master("hunter2", "????")


@pytest.mark.parametrize("bad", ["", "x" * 129, "tab\there", "café"])
def test_validate_master_rejects(bad):
    with pytest.raises(MasterSecretError):
        validate_master(bad)


def test_validate_master_accepts_printable():
    assert validate_master(" ~ok~ ") == " ~ok~ "
