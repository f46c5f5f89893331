"""PBKDF2 password hashing for account credentials."""

from __future__ import annotations

import binascii
import hashlib
import hmac
import secrets
from dataclasses import dataclass

DEFAULT_ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 390_000
SALT_BYTES = 16


@dataclass(slots=True)
class PasswordHash:
    """Structured representation of a PBKDF2 hash entry."""

    algorithm: str
    iterations: int
    salt: bytes
    digest: bytes

    @classmethod
    def parse(cls, encoded: str) -> "PasswordHash":
        try:
            algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
            return cls(
                algorithm=algorithm,
                iterations=int(iterations),
                salt=binascii.unhexlify(salt_hex),
                digest=binascii.unhexlify(digest_hex),
            )
        except (ValueError, binascii.Error) as exc:
            raise ValueError("invalid password hash format") from exc

    def encode(self) -> str:
        return "$".join(
            [self.algorithm, str(self.iterations), self.salt.hex(), self.digest.hex()]
        )

    def verify(self, password: str) -> bool:
        """Check ``password`` against the stored digest using constant time."""

        if self.algorithm != DEFAULT_ALGORITHM:
            raise ValueError(f"unsupported algorithm: {self.algorithm}")
        return hmac.compare_digest(_derive(password, self.salt, self.iterations), self.digest)


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


@dataclass(slots=True)
class PasswordHasher:
    iterations: int = DEFAULT_ITERATIONS

    def hash(self, password: str) -> str:
        salt = secrets.token_bytes(SALT_BYTES)
        return PasswordHash(
            algorithm=DEFAULT_ALGORITHM,
            iterations=self.iterations,
            salt=salt,
            digest=_derive(password, salt, self.iterations),
        ).encode()

    def verify(self, password: str, encoded: str) -> bool:
        """Return ``True`` when ``password`` matches ``encoded``; malformed hashes never match."""

        if not encoded:
            return False
        try:
            return PasswordHash.parse(encoded).verify(password)
        except ValueError:
            return False


__all__ = ["PasswordHash", "PasswordHasher"]
