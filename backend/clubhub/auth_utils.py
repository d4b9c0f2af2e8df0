import secrets
import string
import time

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

PASSWORD_HASHER = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

_ID_ALPHABET = string.ascii_uppercase + string.digits


def hash_password(password: str) -> str:
    return PASSWORD_HASHER.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return PASSWORD_HASHER.verify(hashed_password, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def generate_student_id() -> str:
    """STU + last six digits of the millisecond clock + three random characters."""
    timestamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(3))
    return f"STU{timestamp}{suffix}"
