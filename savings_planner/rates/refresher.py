"""Rate refresh orchestration.

Applies fetch results to the cache. At most one refresh runs at a time;
a trigger that arrives while one is in flight is skipped, not queued.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from savings_planner.base import utcnow
from savings_planner.config import settings
from savings_planner.errors import RateFetchError
from savings_planner.rates.cache import (
    SOURCE_BACKUP,
    SOURCE_FALLBACK,
    SOURCE_PROVIDER,
    ExchangeRateCache,
    RateSnapshot,
)
from savings_planner.rates.fetcher import RateFetcher

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Outcome of one refresh attempt."""
    snapshot: Optional[RateSnapshot]
    updated: bool = False
    skipped: bool = False
    error: Optional[RateFetchError] = None

    @property
    def used_fallback(self) -> bool:
        return self.snapshot is not None and self.snapshot.source == SOURCE_FALLBACK


class RateRefresher:
    """Fetches a new rate and writes it into the cache."""

    def __init__(
        self,
        fetcher: RateFetcher,
        cache: ExchangeRateCache,
        api_key: str = settings.EXCHANGE_API_KEY,
        use_backup: bool = settings.EXCHANGE_API_USE_BACKUP,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.api_key = api_key
        self.use_backup = use_backup
        self._clock = clock
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def refresh(self) -> RefreshResult:
        """Run one refresh; never raises for provider failures."""
        if self._busy:
            logger.debug("Rate refresh already in flight, skipping")
            return RefreshResult(snapshot=self.cache.get(), skipped=True)

        self._busy = True
        try:
            try:
                rate, source = await self._fetch()
            except RateFetchError as e:
                logger.warning(f"Exchange rate refresh failed ({e.kind.value}): {e}")
                snapshot = self.cache.get()
                if snapshot is None:
                    # Nothing cached yet: pin the fallback so conversions can proceed
                    snapshot = self.cache.set(self.cache.fallback_rate, self._clock(), SOURCE_FALLBACK)
                return RefreshResult(snapshot=snapshot, error=e)

            snapshot = self.cache.set(rate, self._clock(), source)
            logger.info(f"Exchange rate updated: {rate} ({source})")
            return RefreshResult(snapshot=snapshot, updated=True)
        finally:
            self._busy = False

    async def _fetch(self) -> tuple[float, str]:
        try:
            return await self.fetcher.fetch(self.api_key), SOURCE_PROVIDER
        except RateFetchError as primary_error:
            if not self.use_backup:
                raise
            try:
                return await self.fetcher.fetch_backup(), SOURCE_BACKUP
            except RateFetchError as backup_error:
                logger.warning(f"Backup exchange rate fetch failed: {backup_error}")
                raise primary_error from backup_error
