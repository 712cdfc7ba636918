"""Error taxonomy shared by stores, services and the API."""


class CurrencyConverterError(Exception):
    """Base class for expected application errors."""


class ValidationError(CurrencyConverterError):
    """One or more fields failed validation.

    ``errors`` maps each failing field name to its message so callers can
    re-prompt field by field.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


class DuplicateEmailError(CurrencyConverterError):
    """An account with the same email already exists."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email already registered: {email}")


class NotFoundError(CurrencyConverterError):
    """A referenced account or record does not exist."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class RatesUnavailableError(CurrencyConverterError):
    """The remote rate source is unreachable or returned unusable data."""


class UnknownCurrencyError(CurrencyConverterError):
    """A currency code is missing from the rate table."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Unknown currency: {code}")


class InvalidArgumentError(CurrencyConverterError):
    """A caller passed an argument outside the accepted domain."""


class StorageFaultError(CurrencyConverterError):
    """Unexpected storage failure, wrapped with operation context."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"Storage failure during {operation}")


class SchemaVersionError(StorageFaultError):
    """The database schema cannot be brought to the running version."""
