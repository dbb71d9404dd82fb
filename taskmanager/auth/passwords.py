"""
Password hashing, verification, and strength policy (Argon2id).

Passwords are never stored in plaintext. Argon2 is the winner of the
Password Hashing Competition (2015): it is memory-hard and time-hard, which
makes GPU/ASIC brute force expensive. Argon2id combines Argon2i's
resistance to side-channel attacks with Argon2d's resistance to GPU
cracking.

Encoded hash format (a single string column in the users table):

    $argon2id$v=19$m=<memory KiB>,t=<iterations>,p=<lanes>$<salt>$<digest>

Salt and digest are standard base64 without padding. The cost parameters
and the salt travel inside the string, so a hash created with yesterday's
settings still verifies after the settings change; needs_rehash() tells
the login flow when to supersede it with a hash at the current cost.

Hashing goes through passlib's CryptContext, configured per cost profile.
Verification parses the string itself so that malformed input and foreign
Argon2 versions surface as distinct errors, recomputes the raw digest with
argon2-cffi, and compares in constant time.
"""

import base64
import binascii
import re
import secrets
import string
from dataclasses import dataclass
from functools import lru_cache

from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, Type, hash_secret_raw
from passlib.context import CryptContext

from taskmanager.config import settings
from taskmanager.exceptions import (
    CryptoFailure,
    IncompatibleVersion,
    InvalidHashFormat,
    WeakPasswordError,
)

ALGORITHM = "argon2id"
SALT_LENGTH = 16
MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

_VERSION_FIELD = re.compile(r"v=([0-9]+)")
_PARAMS_FIELD = re.compile(r"m=([0-9]+),t=([0-9]+),p=([0-9]+)")
# argon2 takes every cost parameter as a uint32_t
_MAX_COST = 2**32 - 1

# Checked in this order; the labels end up in the user-facing message.
_CHARACTER_CLASSES = (
    ("uppercase letter", string.ascii_uppercase),
    ("lowercase letter", string.ascii_lowercase),
    ("digit", string.digits),
    ("special character", SPECIAL_CHARACTERS),
)


@dataclass(frozen=True)
class PasswordConfig:
    """
    Argon2id cost parameters.

    Attributes:
        time_cost: Number of passes over memory.
        memory_cost: Memory in KiB (65536 = 64 MiB).
        parallelism: Number of lanes.
        key_length: Digest length in bytes.
    """

    time_cost: int = 1
    memory_cost: int = 64 * 1024
    parallelism: int = 4
    key_length: int = 32

    @classmethod
    def from_settings(cls) -> "PasswordConfig":
        return cls(
            time_cost=settings.PASSWORD_TIME_COST,
            memory_cost=settings.PASSWORD_MEMORY_COST,
            parallelism=settings.PASSWORD_PARALLELISM,
            key_length=settings.PASSWORD_KEY_LENGTH,
        )


DEFAULT_PASSWORD_CONFIG = PasswordConfig()


@dataclass(frozen=True)
class ParsedHash:
    """The decoded fields of an encoded Argon2id hash."""

    config: PasswordConfig
    salt: bytes
    digest: bytes


@lru_cache(maxsize=8)
def _context_for(config: PasswordConfig) -> CryptContext:
    # One CryptContext per cost profile; contexts are immutable once built.
    return CryptContext(
        schemes=["argon2"],
        deprecated="auto",
        argon2__type="ID",
        argon2__salt_size=SALT_LENGTH,
        argon2__rounds=config.time_cost,
        argon2__memory_cost=config.memory_cost,
        argon2__parallelism=config.parallelism,
        argon2__digest_size=config.key_length,
    )


def hash_password(plain_password: str, config: PasswordConfig | None = None) -> str:
    """
    Hash a plaintext password using Argon2id.

    Args:
        plain_password: The user's raw password input. Must not be empty.
        config: Cost parameters. Defaults to DEFAULT_PASSWORD_CONFIG.

    Returns:
        An encoded hash, e.g. "$argon2id$v=19$m=65536,t=1,p=4$<salt>$<digest>".
        A fresh random salt makes every call return a different string.

    Raises:
        ValueError: If the password is empty.
        CryptoFailure: If the OS cannot provide secure random bytes.
    """
    if not plain_password:
        raise ValueError("password must not be empty")

    context = _context_for(config or DEFAULT_PASSWORD_CONFIG)
    try:
        return context.hash(plain_password)
    except (OSError, NotImplementedError) as exc:
        # Salt generation reads os.urandom(); without it no hash is safe
        raise CryptoFailure() from exc


def _b64decode(field: str, name: str) -> bytes:
    padded = field + "=" * (-len(field) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidHashFormat(f"{name} is not valid base64") from exc
    if not decoded:
        raise InvalidHashFormat(f"{name} is empty")
    return decoded


def parse_password_hash(encoded_hash: str) -> ParsedHash:
    """
    Decode an encoded hash back into its parameters, salt, and digest.

    Raises:
        InvalidHashFormat: Wrong field count, algorithm tag, or field syntax.
        IncompatibleVersion: The hash declares an Argon2 version other than 19.
    """
    parts = encoded_hash.split("$")
    if len(parts) != 6 or parts[0] != "":
        raise InvalidHashFormat(f"expected 6 '$'-delimited fields, got {len(parts)}")

    _, algorithm, version_field, params_field, salt_field, digest_field = parts
    if algorithm != ALGORITHM:
        raise InvalidHashFormat(f"unsupported algorithm {algorithm!r}")

    version_match = _VERSION_FIELD.fullmatch(version_field)
    if version_match is None:
        raise InvalidHashFormat("malformed version field")
    version = int(version_match.group(1))
    if version != ARGON2_VERSION:
        raise IncompatibleVersion(version)

    params_match = _PARAMS_FIELD.fullmatch(params_field)
    if params_match is None:
        raise InvalidHashFormat("malformed parameter field")
    memory_cost, time_cost, parallelism = (int(value) for value in params_match.groups())
    if not all(1 <= value <= _MAX_COST for value in (memory_cost, time_cost, parallelism)):
        raise InvalidHashFormat("cost parameter out of range")

    salt = _b64decode(salt_field, "salt")
    digest = _b64decode(digest_field, "digest")

    return ParsedHash(
        config=PasswordConfig(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            key_length=len(digest),
        ),
        salt=salt,
        digest=digest,
    )


def verify_password(plain_password: str, encoded_hash: str) -> bool:
    """
    Verify a plaintext password against a stored Argon2id hash.

    The digest is recomputed with the salt and cost parameters embedded in
    the hash and compared in constant time, so the comparison does not stop
    at the first differing byte.

    Returns:
        True if the password matches, False otherwise.

    Raises:
        InvalidHashFormat: The stored hash is malformed.
        IncompatibleVersion: The stored hash uses another Argon2 version.
    """
    parsed = parse_password_hash(encoded_hash)
    try:
        candidate = hash_secret_raw(
            secret=plain_password.encode("utf-8"),
            salt=parsed.salt,
            time_cost=parsed.config.time_cost,
            memory_cost=parsed.config.memory_cost,
            parallelism=parsed.config.parallelism,
            hash_len=parsed.config.key_length,
            type=Type.ID,
            version=ARGON2_VERSION,
        )
    except (HashingError, OverflowError) as exc:
        raise InvalidHashFormat(f"parameters rejected by argon2: {exc}") from exc

    return secrets.compare_digest(candidate, parsed.digest)


def needs_rehash(encoded_hash: str, config: PasswordConfig | None = None) -> bool:
    """Return True if the hash was produced with cost parameters other than `config`."""
    parsed = parse_password_hash(encoded_hash)
    return parsed.config != (config or DEFAULT_PASSWORD_CONFIG)


def validate_password_strength(password: str) -> None:
    """
    Enforce the password policy.

    A password must be at least 8 characters long and contain an uppercase
    letter, a lowercase letter, a digit, and one of SPECIAL_CHARACTERS.

    Raises:
        WeakPasswordError: Naming every rule the password breaks, e.g.
            "password must contain at least one: uppercase letter, special character".
    """
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    missing = [
        label
        for label, characters in _CHARACTER_CLASSES
        if not any(char in characters for char in password)
    ]
    if missing:
        problems.append("password must contain at least one: " + ", ".join(missing))

    if problems:
        raise WeakPasswordError("; ".join(problems))
