"""Credential hashing."""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Protocol

_SCHEME = "pbkdf2_sha256"


class CredentialHasher(Protocol):
    """Hash-and-verify interface for account credentials."""

    def hash(self, credential: str) -> str:
        """Return a storable hash for a raw credential."""

    def verify(self, credential: str, stored: str) -> bool:
        """Return True when the raw credential matches the stored hash."""


@dataclass(frozen=True)
class Pbkdf2CredentialHasher(CredentialHasher):
    """Salted PBKDF2-SHA256 hasher."""

    iterations: int = 240_000
    salt_bytes: int = 16

    def hash(self, credential: str) -> str:
        salt = secrets.token_hex(self.salt_bytes)
        digest = self._digest(credential, salt, self.iterations)
        return f"{_SCHEME}${self.iterations}${salt}${digest}"

    def verify(self, credential: str, stored: str) -> bool:
        try:
            scheme, iterations, salt, expected = stored.split("$", 3)
            rounds = int(iterations)
        except ValueError:
            return False
        if scheme != _SCHEME:
            return False
        digest = self._digest(credential, salt, rounds)
        return secrets.compare_digest(digest, expected)

    @staticmethod
    def _digest(credential: str, salt: str, iterations: int) -> str:
        return hashlib.pbkdf2_hmac(
            "sha256", credential.encode("utf-8"), salt.encode("utf-8"), iterations
        ).hex()
