import hmac
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .errors import KeyDerivationError

# Part of the derivation contract. Changing any of these changes every password.
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1


def scrypt_key(message: bytes, salt: bytes, length: int) -> bytes:
    try:
        kdf = Scrypt(
            salt=salt,
            length=length,
            n=SCRYPT_N,
            r=SCRYPT_R,
            p=SCRYPT_P,
        )
        return kdf.derive(message)
    except (ValueError, TypeError) as e:
        raise KeyDerivationError(f"scrypt error: {e}") from e


def constant_compare(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
