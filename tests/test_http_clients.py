"""Tests for HTTP-based adapters."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from currency_converter.adapters.rates_client import HttpxRatesClient
from currency_converter.domain.errors import RatesUnavailableError
from currency_converter.services.rates import RateCache


def test_rates_client_fetches_latest_with_decimals() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        return httpx.Response(
            200,
            content=b'{"base": "USD", "date": "2026-10-19", "rates": {"EUR": 0.92, "JPY": 149.8723}}',
            headers={"content-type": "application/json"},
        )

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxRatesClient(
        base_url="https://api.exchangerate-api.com/v4/latest", http_client=async_client
    )

    payload = asyncio.run(client.get_latest("usd"))

    assert seen_paths == ["/v4/latest/USD"]
    assert payload["base"] == "USD"
    assert payload["rates"] == {"EUR": Decimal("0.92"), "JPY": Decimal("149.8723")}
    asyncio.run(client.close())


def test_rates_client_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    transport = httpx.MockTransport(handler)
    client = HttpxRatesClient(
        base_url="https://rates.test/v4/latest",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_latest("USD"))


def test_rate_cache_maps_transport_errors_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    transport = httpx.MockTransport(handler)
    client = HttpxRatesClient(
        base_url="https://rates.test/v4/latest",
        http_client=httpx.AsyncClient(transport=transport),
    )
    cache = RateCache(client=client, retry_attempts=0)

    with pytest.raises(RatesUnavailableError):
        asyncio.run(cache.fetch("USD"))


def test_rate_cache_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    transport = httpx.MockTransport(handler)
    client = HttpxRatesClient(
        base_url="https://rates.test/v4/latest",
        http_client=httpx.AsyncClient(transport=transport),
    )
    cache = RateCache(client=client, retry_attempts=0)

    with pytest.raises(RatesUnavailableError):
        asyncio.run(cache.fetch("USD"))
    assert cache.get("USD") is None


def test_create_strips_trailing_slash() -> None:
    client = HttpxRatesClient.create("https://rates.test/v4/latest/", timeout_seconds=2.5)

    assert client.base_url == "https://rates.test/v4/latest"
    assert client.timeout_seconds == 2.5
    asyncio.run(client.close())
