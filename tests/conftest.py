"""Shared test fixtures and configuration for savings planner tests."""
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import httpx
import pytest

from savings_planner.database import Database
from savings_planner.rates.cache import ExchangeRateCache
from savings_planner.rates.fetcher import RateFetcher
from savings_planner.rates.refresher import RateRefresher
from savings_planner.session import SavingsSession
from savings_planner.storage.gateway import PersistenceGateway
from savings_planner.storage.store import KeyValueStore

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

PROVIDER_URL = "https://rates.test/v6"
BACKUP_URL = "https://backup.test/v4/latest/USD"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def provider_payload(rate: float = 83.0) -> dict:
    return {"result": "success", "base_code": "USD", "conversion_rates": {"USD": 1, "INR": rate}}


def make_fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> RateFetcher:
    return RateFetcher(
        base_url=PROVIDER_URL,
        backup_url=BACKUP_URL,
        base_currency="INR",
        foreign_currency="USD",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def database():
    """Fresh in-memory database per test."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return KeyValueStore(database)


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def provider_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def fetcher(provider_requests):
    """Fetcher whose provider always answers 83.0."""
    def handler(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        return httpx.Response(200, json=provider_payload(83.0))

    return make_fetcher(handler)


@pytest.fixture
def rate_cache():
    return ExchangeRateCache(ttl_seconds=3600, fallback_rate=83.5)


@pytest.fixture
def refresher(fetcher, rate_cache, clock):
    return RateRefresher(fetcher, rate_cache, api_key="test-key", use_backup=False, clock=clock)


@pytest.fixture
def session(gateway, refresher, clock):
    """A loaded session over empty storage."""
    s = SavingsSession(gateway=gateway, refresher=refresher, clock=clock)
    s.load()
    return s


@pytest.fixture
def fetcher_factory():
    """Build a fetcher around a request handler."""
    return make_fetcher


@pytest.fixture
def session_factory(gateway, clock):
    """Build a loaded session around a given refresher."""
    def factory(refresher: RateRefresher) -> SavingsSession:
        s = SavingsSession(gateway=gateway, refresher=refresher, clock=clock)
        s.load()
        return s

    return factory
