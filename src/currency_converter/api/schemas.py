"""Pydantic models for API payloads."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from currency_converter.domain.models import Account, ConversionRecord, RateTable, Session


class RegisterRequest(BaseModel):
    """Registration payload."""

    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """Login payload."""

    email: str
    password: str


class AccountUpdateRequest(BaseModel):
    """Full replacement of an account's fields."""

    name: str
    email: str
    password: str


class ConvertRequest(BaseModel):
    """Conversion payload."""

    amount: Decimal
    from_code: str = Field(alias="from")
    to_code: str = Field(alias="to")

    model_config = {"populate_by_name": True}


class AccountResponse(BaseModel):
    """Public view of an account; the credential never leaves the service."""

    id: int | None
    name: str
    email: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(id=account.id, name=account.name, email=account.email)


class SessionResponse(BaseModel):
    """Current session state."""

    authenticated: bool
    initialized: bool
    loading: bool
    account: AccountResponse | None = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            authenticated=session.authenticated,
            initialized=session.initialized,
            loading=session.loading,
            account=AccountResponse.from_account(session.account)
            if session.account
            else None,
        )


class ConversionResponse(BaseModel):
    """A completed conversion."""

    account_id: int | None
    from_code: str
    to_code: str
    amount: Decimal
    result: Decimal
    timestamp: datetime

    @classmethod
    def from_record(cls, record: ConversionRecord) -> "ConversionResponse":
        return cls(
            account_id=record.account_id,
            from_code=record.from_code,
            to_code=record.to_code,
            amount=record.amount,
            result=record.result,
            timestamp=record.timestamp,
        )


class RateTableResponse(BaseModel):
    """A cached rate table."""

    base: str
    rates: dict[str, Decimal]
    fetched_at: datetime

    @classmethod
    def from_table(cls, table: RateTable) -> "RateTableResponse":
        return cls(base=table.base_code, rates=table.rates, fetched_at=table.fetched_at)
