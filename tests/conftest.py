"""Shared test fixtures."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import httpx
import pytest

from currency_converter.adapters.rates_client import RatesClient
from currency_converter.adapters.sqlite_account_repository import (
    SqliteAccountRepository,
)
from currency_converter.adapters.sqlite_conversion_repository import (
    SqliteConversionRepository,
)
from currency_converter.adapters.sqlite_database import SqliteDatabase
from currency_converter.config import Settings
from currency_converter.containers import AppContainer
from currency_converter.domain.models import ConversionRecord
from currency_converter.services.conversions import ConversionService
from currency_converter.services.credentials import Pbkdf2CredentialHasher
from currency_converter.services.identity import IdentityService
from currency_converter.services.rates import RateCache
from currency_converter.services.sessions import SessionCache, SessionStore


def make_record(account_id: int, minutes: int = 0, amount: str = "10") -> ConversionRecord:
    """Build a USD to EUR record at a fixed base time plus ``minutes``."""
    return ConversionRecord(
        account_id=account_id,
        from_code="USD",
        to_code="EUR",
        amount=Decimal(amount),
        result=Decimal(amount) * Decimal("0.92"),
        timestamp=datetime(2026, 10, 19, 12, 0, tzinfo=UTC) + timedelta(minutes=minutes),
    )


@dataclass
class InMemorySessionStore(SessionStore):
    """In-memory key-value slot for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass
class FakeRatesClient(RatesClient):
    """Fake rate source returning canned payloads per base currency."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "USD": {
                "base": "USD",
                "date": "2026-10-19",
                "rates": {
                    "USD": Decimal("1"),
                    "EUR": Decimal("0.92"),
                    "BRL": Decimal("5.43"),
                },
            }
        }
    )
    fail: bool = False
    calls: list[str] = field(default_factory=list)

    async def get_latest(self, base_code: str) -> dict[str, object]:
        self.calls.append(base_code)
        if self.fail:
            raise httpx.ConnectError("network down")
        payload = self.payloads.get(base_code)
        if payload is None:
            request = httpx.Request("GET", f"https://rates.test/{base_code}")
            response = httpx.Response(404, request=request)
            raise httpx.HTTPStatusError("not found", request=request, response=response)
        return payload


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_path=tmp_path / "currency_converter.db",
        session_path=tmp_path / "session.json",
        rates_base_url="https://rates.test/v4/latest",
        rates_retry_attempts=0,
        credential_iterations=1,
    )


@pytest.fixture
def database(settings: Settings) -> Iterator[SqliteDatabase]:
    db = SqliteDatabase(settings.database_path)
    yield db
    db.close()


@pytest.fixture
def hasher() -> Pbkdf2CredentialHasher:
    return Pbkdf2CredentialHasher(iterations=1)


@pytest.fixture
def account_repository(
    database: SqliteDatabase, hasher: Pbkdf2CredentialHasher
) -> SqliteAccountRepository:
    return SqliteAccountRepository(database, hasher)


@pytest.fixture
def conversion_repository(database: SqliteDatabase) -> SqliteConversionRepository:
    return SqliteConversionRepository(database)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session_cache(session_store: InMemorySessionStore) -> SessionCache:
    return SessionCache(session_store)


@pytest.fixture
def identity_service(
    account_repository: SqliteAccountRepository,
    session_cache: SessionCache,
    hasher: Pbkdf2CredentialHasher,
    settings: Settings,
) -> IdentityService:
    return IdentityService(
        repository=account_repository,
        sessions=session_cache,
        hasher=hasher,
        policy=settings.credential_policy(),
    )


@pytest.fixture
def rates_client() -> FakeRatesClient:
    return FakeRatesClient()


@pytest.fixture
def rate_cache(rates_client: FakeRatesClient) -> RateCache:
    return RateCache(client=rates_client, retry_attempts=0, retry_delay_seconds=0)


@pytest.fixture
def conversion_service(
    rate_cache: RateCache,
    conversion_repository: SqliteConversionRepository,
    session_cache: SessionCache,
) -> ConversionService:
    return ConversionService(
        rate_cache=rate_cache,
        history_repository=conversion_repository,
        sessions=session_cache,
    )


@pytest.fixture
def container(
    settings: Settings,
    database: SqliteDatabase,
    session_cache: SessionCache,
    identity_service: IdentityService,
    rate_cache: RateCache,
    conversion_service: ConversionService,
) -> AppContainer:
    async def close_resources() -> None:
        database.close()

    return AppContainer(
        settings=settings,
        database=database,
        session_cache=session_cache,
        identity_service=identity_service,
        rate_cache=rate_cache,
        conversion_service=conversion_service,
        close_resources=close_resources,
    )
