"""Field validation rules shared by every layer that accepts user input.

Each ``validate_*`` function is pure: it returns an error message for the
first rule the value breaks, or ``None`` when the value is acceptable.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from currency_converter.domain.errors import InvalidArgumentError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

_EMAIL_PATTERN = re.compile(r"^[\w.+-]+@([\w-]+\.)+[\w-]{2,}$")
_SYMBOL_PATTERN = re.compile(r"[^\w\s]|_")


@dataclass(frozen=True)
class CredentialPolicy:
    """Configurable credential rules."""

    min_length: int = 8
    max_length: int = 50
    require_upper: bool = False
    require_lower: bool = False
    require_digit: bool = False
    require_symbol: bool = False

    def __post_init__(self) -> None:
        if self.min_length < 1 or self.max_length < self.min_length:
            raise ValueError(
                f"Invalid credential length bounds: {self.min_length}..{self.max_length}"
            )


DEFAULT_CREDENTIAL_POLICY = CredentialPolicy()


def normalize_email(email: str) -> str:
    """Return the canonical form used for storage and lookups."""
    return email.strip().lower()


def validate_name(name: str) -> str | None:
    trimmed = name.strip()
    if not trimmed:
        return "Name cannot be blank"
    if len(trimmed) < NAME_MIN_LENGTH:
        return f"Name must have at least {NAME_MIN_LENGTH} characters"
    if len(trimmed) > NAME_MAX_LENGTH:
        return f"Name must not exceed {NAME_MAX_LENGTH} characters"
    return None


def validate_email(email: str) -> str | None:
    normalized = normalize_email(email)
    if not normalized:
        return "Email cannot be blank"
    if not _EMAIL_PATTERN.match(normalized):
        return "Email format is invalid"
    return None


def validate_credential(
    credential: str, policy: CredentialPolicy = DEFAULT_CREDENTIAL_POLICY
) -> str | None:
    """Check a raw credential against the configured policy."""
    if not credential.strip():
        return "Password cannot be blank"
    if len(credential) < policy.min_length:
        return f"Password must have at least {policy.min_length} characters"
    if len(credential) > policy.max_length:
        return f"Password must not exceed {policy.max_length} characters"
    if policy.require_upper and not any(char.isupper() for char in credential):
        return "Password must contain an uppercase letter"
    if policy.require_lower and not any(char.islower() for char in credential):
        return "Password must contain a lowercase letter"
    if policy.require_digit and not any(char.isdigit() for char in credential):
        return "Password must contain a digit"
    if policy.require_symbol and not _SYMBOL_PATTERN.search(credential):
        return "Password must contain a symbol"
    return None


def validate_account(
    name: str,
    email: str,
    credential: str,
    policy: CredentialPolicy = DEFAULT_CREDENTIAL_POLICY,
) -> dict[str, str]:
    """Validate every account field and collect all failures."""
    checks = {
        "name": validate_name(name),
        "email": validate_email(email),
        "credential": validate_credential(credential, policy),
    }
    return {field: message for field, message in checks.items() if message}


def validate_login(email: str, credential: str) -> dict[str, str]:
    """Validate login input without touching storage.

    Only the credential's presence is checked so that a stricter policy
    never locks out accounts registered under an earlier one.
    """
    checks = {
        "email": validate_email(email),
        "credential": None if credential.strip() else "Password cannot be blank",
    }
    return {field: message for field, message in checks.items() if message}


def parse_amount(value: Decimal | int | float | str) -> Decimal:
    """Coerce a conversion amount, rejecting negatives and non-numbers.

    Raises:
        InvalidArgumentError: With the same message ``validate_amount``
            reports for the value.

    """
    if isinstance(value, bool):
        raise InvalidArgumentError("Invalid amount")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidArgumentError("Invalid amount") from exc
    if not amount.is_finite():
        raise InvalidArgumentError("Invalid amount")
    if amount < 0:
        raise InvalidArgumentError("Amount cannot be negative")
    return amount


def validate_amount(text: str) -> str | None:
    """Validate a free-text amount entered for conversion."""
    try:
        parse_amount(text)
    except InvalidArgumentError as exc:
        return str(exc)
    return None
