"""Exchange-rate cache backed by the remote rate source."""

import asyncio
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from currency_converter.adapters.rates_client import RatesClient
from currency_converter.domain.errors import (
    InvalidArgumentError,
    RatesUnavailableError,
    UnknownCurrencyError,
)
from currency_converter.domain.models import RateTable
from currency_converter.services.validation import parse_amount

_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")

_logger = logging.getLogger(__name__)


class RatesPayload(BaseModel):
    """Body returned by the rate provider."""

    base: str
    rates: dict[str, Decimal]
    date: str | None = None

    @field_validator("base")
    @classmethod
    def _check_base(cls, value: str) -> str:
        return _payload_code(value)

    @field_validator("rates")
    @classmethod
    def _check_rates(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        normalized: dict[str, Decimal] = {}
        for code, rate in value.items():
            key = _payload_code(code)
            if key in normalized:
                raise ValueError(f"duplicate rate for {key}")
            if not rate.is_finite() or rate <= 0:
                raise ValueError(f"rate for {key} must be positive")
            normalized[key] = rate
        return normalized


def normalize_code(code: str) -> str:
    """Return an upper-case ISO 4217 style code or raise."""
    normalized = code.strip().upper()
    if not _CODE_PATTERN.match(normalized):
        raise InvalidArgumentError(f"Invalid currency code: {code!r}")
    return normalized


def _payload_code(code: str) -> str:
    try:
        return normalize_code(code)
    except InvalidArgumentError as exc:
        raise ValueError(str(exc)) from exc


@dataclass
class RateCache:
    """Holds the latest rate table per base currency.

    Tables never expire on their own; callers refresh them with
    :meth:`fetch` once :meth:`RateTable.is_stale` says so.
    """

    client: RatesClient
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    _tables: dict[str, RateTable] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    async def fetch(self, base_code: str) -> RateTable:
        """Fetch a fresh table from the remote source and cache it.

        Raises:
            RatesUnavailableError: On transport failure, timeout, a
                non-success status or a malformed body. Any previously
                cached table for the base is left untouched.

        """
        base = normalize_code(base_code)
        payload = await self._call_with_retry(base)
        try:
            parsed = RatesPayload.model_validate(payload)
        except ValidationError as exc:
            _logger.warning("Malformed rates payload for %s: %s", base, exc)
            raise RatesUnavailableError(f"Malformed rates for {base}") from exc
        if parsed.base != base:
            raise RatesUnavailableError(
                f"Rate source answered for {parsed.base} instead of {base}"
            )
        table = RateTable(
            base_code=base, rates=parsed.rates, fetched_at=datetime.now(tz=UTC)
        )
        with self._lock:
            self._tables[base] = table
        _logger.info("Fetched %d rates for %s", len(table.rates), base)
        return table

    def get(self, base_code: str) -> RateTable | None:
        """Return the cached table without network activity."""
        with self._lock:
            return self._tables.get(normalize_code(base_code))

    def put(self, table: RateTable) -> None:
        """Install a table directly, e.g. one restored from elsewhere."""
        with self._lock:
            self._tables[normalize_code(table.base_code)] = table

    def currencies(self, base_code: str) -> list[str]:
        """Return the codes a cached table can convert into."""
        table = self.get(base_code)
        if table is None:
            return []
        return sorted({table.base_code, *table.rates})

    def convert(
        self, amount: Decimal | int | float | str, from_code: str, to_code: str
    ) -> Decimal:
        """Convert using the cached table for ``from_code``."""
        value = parse_amount(amount)
        source = normalize_code(from_code)
        target = normalize_code(to_code)
        table = self.get(source)
        if table is None:
            raise RatesUnavailableError(f"No cached rates for {source}")
        rate = table.rate_for(target)
        if rate is None:
            raise UnknownCurrencyError(target)
        return value * rate

    async def _call_with_retry(self, base: str) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await self.client.get_latest(base)
            except (httpx.HTTPError, ValueError) as exc:
                attempt += 1
                _logger.warning(
                    "Rates fetch for %s failed (attempt %s/%s, status=%s): %s",
                    base,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise RatesUnavailableError(f"Rates unavailable for {base}") from exc
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
