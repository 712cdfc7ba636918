"""Currency conversion flow and conversion history."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Protocol

from currency_converter.domain.errors import InvalidArgumentError, RatesUnavailableError
from currency_converter.domain.models import ConversionRecord, RateTable
from currency_converter.services.rates import RateCache, normalize_code
from currency_converter.services.sessions import SessionCache
from currency_converter.services.validation import parse_amount

_logger = logging.getLogger(__name__)


class ConversionHistoryRepository(Protocol):
    """Persistence interface for the conversion log."""

    def append(self, record: ConversionRecord) -> None:
        """Append a record; rejects unknown account ids."""

    def list_for_account(
        self, account_id: int, limit: int | None = None
    ) -> list[ConversionRecord]:
        """Return an account's records oldest first."""


@dataclass
class ConversionService:
    """Converts amounts and logs them for the signed-in account."""

    rate_cache: RateCache
    history_repository: ConversionHistoryRepository
    sessions: SessionCache
    max_rate_age: timedelta = timedelta(hours=1)

    async def convert(
        self, amount: Decimal | int | float | str, from_code: str, to_code: str
    ) -> ConversionRecord:
        """Convert an amount and append it to the active account's history.

        Anonymous conversions are returned with ``account_id=None`` and are
        not stored.
        """
        value = parse_amount(amount)
        source = normalize_code(from_code)
        target = normalize_code(to_code)
        await self.ensure_rates(source)
        result = self.rate_cache.convert(value, source, target)
        record = ConversionRecord(
            account_id=self.sessions.session.account_id,
            from_code=source,
            to_code=target,
            amount=value,
            result=result,
            timestamp=datetime.now(tz=UTC),
        )
        if record.account_id is not None:
            self.history_repository.append(record)
        return record

    async def ensure_rates(self, base_code: str) -> RateTable:
        """Return a usable table, refreshing it when missing or stale.

        A stale table is kept in use when the refresh fails.
        """
        cached = self.rate_cache.get(base_code)
        if cached is not None and not cached.is_stale(self.max_rate_age):
            return cached
        try:
            return await self.rate_cache.fetch(base_code)
        except RatesUnavailableError:
            if cached is None:
                raise
            _logger.warning(
                "Using stale rates for %s fetched at %s",
                cached.base_code,
                cached.fetched_at.isoformat(),
            )
            return cached

    async def refresh(self, base_code: str) -> RateTable:
        """Force a fetch of the rate table for a base currency."""
        return await self.rate_cache.fetch(base_code)

    def history(self, limit: int | None = None) -> list[ConversionRecord]:
        """Return the active account's conversions, empty when anonymous."""
        if limit is not None and limit < 0:
            raise InvalidArgumentError(f"History limit cannot be negative: {limit}")
        account_id = self.sessions.session.account_id
        if account_id is None:
            return []
        return self.history_repository.list_for_account(account_id, limit=limit)
