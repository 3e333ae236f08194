"""
Error taxonomy for the savings planner.

None of these are fatal to the process:
- ValidationError: bad user input, reported back per field
- NotFoundError: a referenced goal does not exist
- RateFetchError: the rate provider could not be used, the cached or fallback rate applies
- StorageError: local storage could not be read or written, in-memory state stays authoritative
"""
from enum import Enum
from typing import Dict, Optional


class SavingsPlannerError(Exception):
    """Base class for all savings planner errors."""


class ValidationError(SavingsPlannerError, ValueError):
    """Raised when user input violates a goal or contribution constraint."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        message = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(message or "Invalid input")


class NotFoundError(SavingsPlannerError, LookupError):
    """Raised when a goal id is not present in the ledger."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class RateFetchErrorKind(str, Enum):
    """Failure categories reported by the rate provider boundary."""
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


RATE_FETCH_MESSAGES = {
    RateFetchErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    RateFetchErrorKind.UNAUTHORIZED: "Invalid API key or access denied",
    RateFetchErrorKind.NOT_FOUND: "API endpoint not found",
    RateFetchErrorKind.UNKNOWN: "Unable to fetch exchange rate",
}


class RateFetchError(SavingsPlannerError):
    """Raised when the exchange rate provider call fails."""

    def __init__(self, kind: RateFetchErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(RATE_FETCH_MESSAGES[kind])


class StorageError(SavingsPlannerError):
    """Raised when local storage cannot be read or written."""
