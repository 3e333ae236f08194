"""Session wiring and FastAPI dependencies."""
from fastapi import Request

from savings_planner.config import settings
from savings_planner.database import Database
from savings_planner.rates.cache import ExchangeRateCache
from savings_planner.rates.fetcher import RateFetcher
from savings_planner.rates.refresher import RateRefresher
from savings_planner.session import SavingsSession
from savings_planner.storage.gateway import PersistenceGateway
from savings_planner.storage.store import KeyValueStore


def build_session(storage_url: str = settings.STORAGE_URL) -> SavingsSession:
    """Create an unloaded session backed by the configured local store."""
    database = Database(storage_url)
    database.create_all()
    gateway = PersistenceGateway(KeyValueStore(database))
    refresher = RateRefresher(fetcher=RateFetcher(), cache=ExchangeRateCache())
    return SavingsSession(gateway=gateway, refresher=refresher)


def get_session(request: Request) -> SavingsSession:
    """The loaded session created at startup."""
    return request.app.state.session
