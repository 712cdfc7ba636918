"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from currency_converter.adapters.json_session_store import JsonFileSessionStore
from currency_converter.adapters.rates_client import HttpxRatesClient
from currency_converter.adapters.sqlite_account_repository import (
    SqliteAccountRepository,
)
from currency_converter.adapters.sqlite_conversion_repository import (
    SqliteConversionRepository,
)
from currency_converter.adapters.sqlite_database import SqliteDatabase
from currency_converter.config import Settings
from currency_converter.services.conversions import ConversionService
from currency_converter.services.credentials import Pbkdf2CredentialHasher
from currency_converter.services.identity import IdentityService
from currency_converter.services.rates import RateCache
from currency_converter.services.sessions import SessionCache


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    database: SqliteDatabase
    session_cache: SessionCache
    identity_service: IdentityService
    rate_cache: RateCache
    conversion_service: ConversionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    database = SqliteDatabase(resolved_settings.database_path)
    hasher = Pbkdf2CredentialHasher(iterations=resolved_settings.credential_iterations)
    account_repository = SqliteAccountRepository(database, hasher)
    conversion_repository = SqliteConversionRepository(database)
    session_cache = SessionCache(JsonFileSessionStore(resolved_settings.session_path))
    identity_service = IdentityService(
        repository=account_repository,
        sessions=session_cache,
        hasher=hasher,
        policy=resolved_settings.credential_policy(),
    )
    rates_client = HttpxRatesClient.create(
        base_url=resolved_settings.rates_base_url,
        timeout_seconds=resolved_settings.rates_timeout_seconds,
    )
    rate_cache = RateCache(
        client=rates_client,
        retry_attempts=resolved_settings.rates_retry_attempts,
    )
    conversion_service = ConversionService(
        rate_cache=rate_cache,
        history_repository=conversion_repository,
        sessions=session_cache,
        max_rate_age=timedelta(seconds=resolved_settings.rates_max_age_seconds),
    )

    async def close_resources() -> None:
        await rates_client.close()
        database.close()

    return AppContainer(
        settings=resolved_settings,
        database=database,
        session_cache=session_cache,
        identity_service=identity_service,
        rate_cache=rate_cache,
        conversion_service=conversion_service,
        close_resources=close_resources,
    )
