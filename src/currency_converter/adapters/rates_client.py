"""Exchange-rate provider API client."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

import httpx


class RatesClient(Protocol):
    """Interface for the remote rate source."""

    async def get_latest(self, base_code: str) -> dict[str, object]:
        """Fetch the latest rates for a base currency and return raw API data."""


@dataclass
class HttpxRatesClient(RatesClient):
    """HTTPX-backed rate provider client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float = 10.0) -> "HttpxRatesClient":
        """Create a rates client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def get_latest(self, base_code: str) -> dict[str, object]:
        """Fetch the latest rates for a base currency."""
        url = f"{self.base_url}/{base_code.upper()}"
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        response.raise_for_status()
        return response.json(parse_float=Decimal)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
