from pydantic import ConfigDict

from .charset import is_printable
from .crypto import constant_compare, scrypt_key
from .errors import DeletedProfileError, MasterSecretError, ProfileValidationError, VerificationError
from .models import Profile

MIN_MASTER_LENGTH = 1
MAX_MASTER_LENGTH = 128


class FrozenProfile(Profile):
    model_config = ConfigDict(frozen=True)


# Frozen recipe for the master-secret fingerprint. Stored verify codes were
# produced with exactly these values.
VERIFY_PROFILE = FrozenProfile(
    username="verify",
    url="",
    generation=0,
    length=4,
    lower=True,
    upper=False,
    digits=False,
    punctuation=False,
    spaces=False,
    include="",
    exclude="",
)


def map_digits(raw: bytes, alphabet: str) -> str:
    """
    Base-convert `raw` (big-endian, base 256) into len(raw) digits of base
    len(alphabet), most significant digit first.
    """
    k = len(alphabet)
    if k < 2:
        raise ValueError("alphabet must contain at least 2 characters")

    pool = int.from_bytes(raw, "big")
    pool_size = 1 << (len(raw) * 8)

    out = []
    for _ in range(len(raw)):
        digit, pool = divmod(pool * k, pool_size)
        out.append(alphabet[digit])
    return "".join(out)


def generate_password(master: str, profile: Profile) -> str:
    if profile.is_deleted:
        raise DeletedProfileError(f"cannot generate a password for a deleted profile ({profile.uuid})")

    alphabet = profile.character_set()
    if len(alphabet) < 2:
        raise ProfileValidationError(
            f"profile [{profile.name}] does not allow more than 1 possible character in password",
            field="charset")

    message = "\t".join([master, profile.url, profile.username]).encode("utf-8")
    salt = str(profile.generation).encode("utf-8")
    raw = scrypt_key(message, salt, profile.length)

    return map_digits(raw, alphabet)


def validate_master(master: str) -> str:
    if not MIN_MASTER_LENGTH <= len(master) <= MAX_MASTER_LENGTH:
        raise MasterSecretError(
            f"master password must be between {MIN_MASTER_LENGTH} and {MAX_MASTER_LENGTH} characters")
    if not all(is_printable(ch) for ch in master):
        raise MasterSecretError("master password contains an illegal character")
    return master


def verify_code(master: str) -> str:
    return generate_password(master, VERIFY_PROFILE)


def check_master(master: str, verify: str):
    found = verify_code(master)
    if not constant_compare(found, verify):
        raise VerificationError(
            f"master password verification mismatch: found {found} but expected {verify}")
