"""Exchange rate provider client.

Asks the provider for the latest FOREIGN -> BASE factor and reports either
the rate or a RateFetchError. It never substitutes a fallback rate; that
policy belongs to the cache and the refresher.
"""
import logging
import math
from typing import Any, Optional

import httpx

from savings_planner.config import settings
from savings_planner.errors import RateFetchError, RateFetchErrorKind

logger = logging.getLogger(__name__)


# Provider "error-type" values mapped onto our taxonomy
PROVIDER_ERROR_TYPES = {
    "invalid-key": RateFetchErrorKind.UNAUTHORIZED,
    "inactive-account": RateFetchErrorKind.UNAUTHORIZED,
    "quota-reached": RateFetchErrorKind.RATE_LIMITED,
    "unsupported-code": RateFetchErrorKind.NOT_FOUND,
    "malformed-request": RateFetchErrorKind.NOT_FOUND,
}


def classify_status(status_code: int) -> RateFetchErrorKind:
    """Map a non-2xx HTTP status to a failure kind."""
    if status_code == 429:
        return RateFetchErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return RateFetchErrorKind.UNAUTHORIZED
    if status_code == 404:
        return RateFetchErrorKind.NOT_FOUND
    return RateFetchErrorKind.UNKNOWN


def extract_rate(payload: Any, rates_key: str, currency: str) -> float:
    """Pull a positive numeric rate out of a provider payload."""
    if not isinstance(payload, dict):
        raise RateFetchError(RateFetchErrorKind.UNKNOWN, "Response is not a JSON object")

    if payload.get("result") == "error":
        error_type = payload.get("error-type") or "API Error"
        kind = PROVIDER_ERROR_TYPES.get(error_type, RateFetchErrorKind.UNKNOWN)
        raise RateFetchError(kind, error_type)

    rates = payload.get(rates_key)
    if not isinstance(rates, dict):
        raise RateFetchError(RateFetchErrorKind.UNKNOWN, f"Missing '{rates_key}' in response")

    value = rates.get(currency)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RateFetchError(RateFetchErrorKind.UNKNOWN, f"No numeric {currency} rate in response")
    if not math.isfinite(value) or value <= 0:
        raise RateFetchError(RateFetchErrorKind.UNKNOWN, f"Invalid {currency} rate: {value}")
    return float(value)


class RateFetcher:
    """
    Single-attempt client for the exchange rate provider.

    Callers are expected to keep at most one fetch in flight, but
    concurrent calls are independent and safe.
    """

    def __init__(
        self,
        base_url: str = settings.EXCHANGE_API_BASE_URL,
        backup_url: str = settings.EXCHANGE_API_BACKUP_URL,
        base_currency: str = settings.BASE_CURRENCY,
        foreign_currency: str = settings.FOREIGN_CURRENCY,
        timeout: float = settings.EXCHANGE_API_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.backup_url = backup_url
        self.base_currency = base_currency
        self.foreign_currency = foreign_currency
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_json(self, url: str) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.error(f"Exchange rate request failed: {e}")
            raise RateFetchError(RateFetchErrorKind.UNKNOWN, str(e)) from e

        if not response.is_success:
            kind = classify_status(response.status_code)
            logger.error(f"Exchange rate provider returned HTTP {response.status_code}")
            raise RateFetchError(kind, f"HTTP error! status: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise RateFetchError(RateFetchErrorKind.UNKNOWN, "Malformed JSON payload") from e

    async def fetch(self, api_key: str) -> float:
        """Fetch the latest FOREIGN -> BASE rate from the keyed endpoint."""
        if not api_key:
            raise RateFetchError(RateFetchErrorKind.UNAUTHORIZED, "No API key configured")

        url = f"{self.base_url}/{api_key}/latest/{self.foreign_currency}"
        payload = await self._get_json(url)
        try:
            rate = extract_rate(payload, "conversion_rates", self.base_currency)
        except RateFetchError as e:
            logger.error(f"Exchange rate fetch error: {e.detail}")
            raise
        logger.info(f"Fetched {self.foreign_currency}->{self.base_currency} rate {rate}")
        return rate

    async def fetch_backup(self) -> float:
        """Fetch the rate from the keyless backup endpoint."""
        payload = await self._get_json(self.backup_url)
        try:
            rate = extract_rate(payload, "rates", self.base_currency)
        except RateFetchError as e:
            logger.error(f"Backup exchange rate fetch error: {e.detail}")
            raise
        logger.info(f"Fetched backup {self.foreign_currency}->{self.base_currency} rate {rate}")
        return rate
