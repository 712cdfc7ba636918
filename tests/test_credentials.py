"""Tests for credential hashing."""

import pytest

from currency_converter.services.credentials import Pbkdf2CredentialHasher


def test_hash_is_salted_and_verifiable() -> None:
    hasher = Pbkdf2CredentialHasher(iterations=10)

    first = hasher.hash("secret-pass")
    second = hasher.hash("secret-pass")

    assert first != second
    assert first.startswith("pbkdf2_sha256$10$")
    assert hasher.verify("secret-pass", first)
    assert hasher.verify("secret-pass", second)
    assert not hasher.verify("Secret-pass", first)


def test_verify_uses_stored_iteration_count() -> None:
    stored = Pbkdf2CredentialHasher(iterations=3).hash("secret-pass")

    assert Pbkdf2CredentialHasher(iterations=50).verify("secret-pass", stored)


@pytest.mark.parametrize(
    "stored",
    ["", "secret-pass", "md5$1$salt$digest", "pbkdf2_sha256$many$salt$digest"],
)
def test_verify_rejects_unrecognized_hashes(stored: str) -> None:
    assert not Pbkdf2CredentialHasher(iterations=1).verify("secret-pass", stored)
