"""Account registration, login and lifecycle."""

import logging
from dataclasses import dataclass
from typing import Protocol

from currency_converter.domain.errors import (
    DuplicateEmailError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from currency_converter.domain.models import Account
from currency_converter.services.credentials import CredentialHasher
from currency_converter.services.sessions import SessionCache
from currency_converter.services.validation import (
    DEFAULT_CREDENTIAL_POLICY,
    CredentialPolicy,
    normalize_email,
    validate_account,
    validate_login,
)

_logger = logging.getLogger(__name__)


class AccountRepository(Protocol):
    """Persistence interface for accounts."""

    def get(self, account_id: int) -> Account | None:
        """Return the account with the given id, if present."""

    def find_by_email(self, email: str) -> Account | None:
        """Return the account with a case-insensitively equal email."""

    def find_by_credentials(self, email: str, credential: str) -> Account | None:
        """Return the account only if both email and credential match."""

    def insert(self, account: Account) -> int:
        """Insert an account and return its id; rejects duplicate emails."""

    def update(self, account: Account) -> None:
        """Update an existing account; rejects unknown ids and duplicate emails."""

    def delete(self, account_id: int) -> None:
        """Delete an account and its history; rejects unknown ids."""


@dataclass
class IdentityService:
    """Application service for identity actions.

    The only writer of the session cache: every successful mutation is
    mirrored into the session after the account store confirms it.
    """

    repository: AccountRepository
    sessions: SessionCache
    hasher: CredentialHasher
    policy: CredentialPolicy = DEFAULT_CREDENTIAL_POLICY

    def register(self, name: str, email: str, credential: str) -> Account:
        """Create an account and sign it in."""
        errors = validate_account(name, email, credential, self.policy)
        if errors:
            raise ValidationError(errors)
        normalized = normalize_email(email)
        with self.sessions.loading():
            if self.repository.find_by_email(normalized) is not None:
                raise DuplicateEmailError(normalized)
            candidate = Account(
                name=name.strip(),
                email=normalized,
                credential=self.hasher.hash(credential),
            )
            account = candidate.with_id(self.repository.insert(candidate))
            self.sessions.activate(account)
        _logger.info("Registered account id=%s", account.id)
        return account

    def login(self, email: str, credential: str) -> Account | None:
        """Authenticate and sign in, returning None on any mismatch."""
        errors = validate_login(email, credential)
        if errors:
            raise ValidationError(errors)
        with self.sessions.loading():
            account = self.repository.find_by_credentials(
                normalize_email(email), credential
            )
            if account is None:
                _logger.info("Login rejected")
                return None
            self.sessions.activate(account)
        _logger.info("Logged in account id=%s", account.id)
        return account

    def get(self, account_id: int) -> Account:
        """Return the stored account, bypassing the session snapshot."""
        _require_positive_id(account_id)
        account = self.repository.get(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return account

    def logout(self) -> None:
        """Sign out the active account, if any."""
        self.sessions.clear()

    def update(self, account_id: int, name: str, email: str, credential: str) -> Account:
        """Replace an account's fields after full revalidation."""
        _require_positive_id(account_id)
        errors = validate_account(name, email, credential, self.policy)
        if errors:
            raise ValidationError(errors)
        normalized = normalize_email(email)
        existing = self.repository.find_by_email(normalized)
        if existing is not None and existing.id != account_id:
            raise DuplicateEmailError(normalized)
        account = Account(
            id=account_id,
            name=name.strip(),
            email=normalized,
            credential=self.hasher.hash(credential),
        )
        self.repository.update(account)
        if self.sessions.session.account_id == account_id:
            self.sessions.activate(account)
        _logger.info("Updated account id=%s", account_id)
        return account

    def delete(self, account_id: int) -> None:
        """Delete an account, signing out if it is the active one."""
        _require_positive_id(account_id)
        self.repository.delete(account_id)
        if self.sessions.session.account_id == account_id:
            self.sessions.clear()
        _logger.info("Deleted account id=%s", account_id)


def _require_positive_id(account_id: object) -> None:
    if isinstance(account_id, bool) or not isinstance(account_id, int) or account_id <= 0:
        raise InvalidArgumentError(f"Account id must be a positive integer, got {account_id!r}")
