"""Domain models for the currency converter."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal


@dataclass(frozen=True)
class Account:
    """Represents a registered user account.

    ``id`` is ``None`` until the account store assigns one on insert.
    """

    name: str
    email: str
    credential: str
    id: int | None = None

    @property
    def persisted(self) -> bool:
        """Return True once the account store has assigned an id."""
        return self.id is not None

    def with_id(self, account_id: int) -> "Account":
        """Return a copy of the account carrying the assigned id."""
        return replace(self, id=account_id)


@dataclass(frozen=True)
class ConversionRecord:
    """Immutable log entry of one completed conversion."""

    account_id: int | None
    from_code: str
    to_code: str
    amount: Decimal
    result: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class RateTable:
    """Exchange rates anchored to one base currency."""

    base_code: str
    rates: dict[str, Decimal]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        for code, rate in self.rates.items():
            if rate <= 0:
                raise ValueError(f"Rate for {code} must be positive, got {rate}")

    def rate_for(self, code: str) -> Decimal | None:
        """Return the factor for a currency code, if the table has it."""
        if code == self.base_code and code not in self.rates:
            return Decimal(1)
        return self.rates.get(code)

    def age(self, now: datetime | None = None) -> timedelta:
        """Return how long ago the table was fetched."""
        return (now or datetime.now(tz=UTC)) - self.fetched_at

    def is_stale(self, max_age: timedelta, now: datetime | None = None) -> bool:
        """Return True when the table is older than ``max_age``."""
        return self.age(now) > max_age


@dataclass(frozen=True)
class Session:
    """The currently authenticated identity, if any."""

    account: Account | None = None
    initialized: bool = False
    loading: bool = False

    @property
    def authenticated(self) -> bool:
        """Return True when an account is active."""
        return self.account is not None

    @property
    def account_id(self) -> int | None:
        """Return the active account id, if any."""
        return self.account.id if self.account else None


@dataclass(frozen=True)
class SessionEvent:
    """A committed session transition delivered to observers."""

    kind: str
    session: Session
