"""Pydantic schemas for exchange rate responses."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ExchangeRateResponse(BaseModel):
    """Current effective rate and the snapshot behind it."""
    from_currency: str
    to_currency: str
    rate: float
    fetched_at: Optional[datetime] = None
    source: str
    is_fresh: bool
    warnings: List[str] = []


class RefreshResponse(ExchangeRateResponse):
    updated: bool
    skipped: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
