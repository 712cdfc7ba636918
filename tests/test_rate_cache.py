"""Tests for the exchange-rate cache."""

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from currency_converter.domain.errors import (
    InvalidArgumentError,
    RatesUnavailableError,
    UnknownCurrencyError,
)
from currency_converter.domain.models import RateTable
from currency_converter.services.rates import RateCache
from tests.conftest import FakeRatesClient


def _usd_table() -> RateTable:
    return RateTable(base_code="USD", rates={"EUR": Decimal("0.92")})


def test_fetch_caches_table(rate_cache: RateCache, rates_client: FakeRatesClient) -> None:
    before = datetime.now(tz=UTC)

    table = asyncio.run(rate_cache.fetch("usd"))

    assert table.base_code == "USD"
    assert table.rates["EUR"] == Decimal("0.92")
    assert table.fetched_at >= before
    assert rate_cache.get("USD") == table
    assert rates_client.calls == ["USD"]


def test_get_never_fetches(rate_cache: RateCache, rates_client: FakeRatesClient) -> None:
    assert rate_cache.get("USD") is None
    assert rates_client.calls == []


def test_fetch_failure_keeps_previous_table(
    rate_cache: RateCache, rates_client: FakeRatesClient
) -> None:
    cached = asyncio.run(rate_cache.fetch("USD"))
    rates_client.fail = True

    with pytest.raises(RatesUnavailableError):
        asyncio.run(rate_cache.fetch("USD"))

    assert rate_cache.get("USD") is cached


def test_fetch_non_success_status_is_unavailable(rate_cache: RateCache) -> None:
    with pytest.raises(RatesUnavailableError):
        asyncio.run(rate_cache.fetch("JPY"))

    assert rate_cache.get("JPY") is None


@pytest.mark.parametrize(
    "payload",
    [
        {"base": "USD"},
        {"base": "USD", "rates": {"EUR": "0"}},
        {"base": "USD", "rates": {"EUR": "-1.2"}},
        {"base": "USD", "rates": {"EURO": "1.2"}},
        {"base": "USD", "rates": {"EUR": "0.9", "eur": "0.91"}},
        {"base": "EUR", "rates": {"USD": "1.08"}},
        ["not", "an", "object"],
    ],
)
def test_fetch_malformed_payload_is_unavailable(payload: object) -> None:
    cache = RateCache(
        client=FakeRatesClient(payloads={"USD": payload}),  # type: ignore[dict-item]
        retry_attempts=0,
    )

    with pytest.raises(RatesUnavailableError):
        asyncio.run(cache.fetch("USD"))

    assert cache.get("USD") is None


def test_fetch_retries_before_failing() -> None:
    client = FakeRatesClient(fail=True)
    cache = RateCache(client=client, retry_attempts=2, retry_delay_seconds=0)

    with pytest.raises(RatesUnavailableError):
        asyncio.run(cache.fetch("USD"))

    assert client.calls == ["USD", "USD", "USD"]


def test_convert_uses_cached_rate(rate_cache: RateCache) -> None:
    rate_cache.put(_usd_table())

    result = rate_cache.convert(100, "USD", "EUR")

    assert result == 92.0
    assert result == Decimal("92.00")


def test_convert_keeps_decimal_precision(rate_cache: RateCache) -> None:
    rate_cache.put(RateTable(base_code="USD", rates={"JPY": Decimal("149.8723")}))

    assert rate_cache.convert("0.10", "usd", "jpy") == Decimal("14.987230")


def test_convert_to_base_is_identity(rate_cache: RateCache) -> None:
    rate_cache.put(_usd_table())

    assert rate_cache.convert(Decimal("12.5"), "USD", "USD") == Decimal("12.5")


def test_convert_unknown_currency(rate_cache: RateCache) -> None:
    rate_cache.put(_usd_table())

    with pytest.raises(UnknownCurrencyError) as excinfo:
        rate_cache.convert(10, "USD", "GBP")

    assert excinfo.value.code == "GBP"


@pytest.mark.parametrize("amount", [-5, "-0.01", "abc", "NaN", True])
def test_convert_rejects_invalid_amounts(rate_cache: RateCache, amount: object) -> None:
    rate_cache.put(_usd_table())

    with pytest.raises(InvalidArgumentError):
        rate_cache.convert(amount, "USD", "EUR")  # type: ignore[arg-type]


def test_convert_without_cached_table(rate_cache: RateCache) -> None:
    with pytest.raises(RatesUnavailableError):
        rate_cache.convert(10, "USD", "EUR")


def test_convert_rejects_malformed_codes(rate_cache: RateCache) -> None:
    rate_cache.put(_usd_table())

    with pytest.raises(InvalidArgumentError):
        rate_cache.convert(10, "US", "EUR")


def test_currencies_lists_codes(rate_cache: RateCache) -> None:
    assert rate_cache.currencies("USD") == []

    asyncio.run(rate_cache.fetch("USD"))

    assert rate_cache.currencies("USD") == ["BRL", "EUR", "USD"]


def test_rate_table_staleness() -> None:
    fetched_at = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)
    table = RateTable(base_code="USD", rates={"EUR": Decimal("0.92")}, fetched_at=fetched_at)

    assert not table.is_stale(timedelta(hours=1), now=fetched_at + timedelta(minutes=30))
    assert table.is_stale(timedelta(hours=1), now=fetched_at + timedelta(hours=2))


def test_rate_table_rejects_non_positive_rates() -> None:
    with pytest.raises(ValueError):
        RateTable(base_code="USD", rates={"EUR": Decimal("0")})
