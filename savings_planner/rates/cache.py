"""Exchange rate cache.

Holds the single latest FOREIGN -> BASE factor. A stale snapshot is still
served by `effective_rate`; staleness only signals that a refresh is due.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from savings_planner.config import settings
from savings_planner.errors import ValidationError


# Rate sources
SOURCE_PROVIDER = "provider"
SOURCE_BACKUP = "backup"
SOURCE_FALLBACK = "fallback"
SOURCE_STORAGE = "storage"


@dataclass(frozen=True)
class RateSnapshot:
    """A cached rate with the time it was assigned."""
    rate: float
    fetched_at: datetime
    source: str = SOURCE_PROVIDER


class ExchangeRateCache:
    """
    Latest-rate cache with a freshness window.

    Default TTL is one hour. Writes always overwrite; refreshes are
    serialized by the caller so there is no write race to resolve.
    """

    def __init__(
        self,
        ttl_seconds: int = settings.RATE_CACHE_TTL_SECONDS,
        fallback_rate: float = settings.FALLBACK_EXCHANGE_RATE,
        snapshot: Optional[RateSnapshot] = None,
    ):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._fallback_rate = fallback_rate
        self._snapshot = snapshot

    @property
    def fallback_rate(self) -> float:
        return self._fallback_rate

    def get(self) -> Optional[RateSnapshot]:
        return self._snapshot

    def is_fresh(self, snapshot: Optional[RateSnapshot], now: datetime) -> bool:
        """True while the snapshot is younger than the TTL."""
        if snapshot is None:
            return False
        return now - snapshot.fetched_at < self._ttl

    def needs_refresh(self, now: datetime) -> bool:
        return not self.is_fresh(self._snapshot, now)

    def set(self, rate: float, at: datetime, source: str = SOURCE_PROVIDER) -> RateSnapshot:
        """Overwrite the current snapshot."""
        if rate is None or not math.isfinite(rate) or rate <= 0:
            raise ValidationError({"rate": "Exchange rate must be a positive number"})
        self._snapshot = RateSnapshot(rate=float(rate), fetched_at=at, source=source)
        return self._snapshot

    def effective_rate(self) -> float:
        """Cached rate regardless of staleness, else the fallback constant."""
        if self._snapshot is None:
            return self._fallback_rate
        return self._snapshot.rate

    def clear(self) -> None:
        self._snapshot = None
