"""Goal and contribution records held by the ledger."""
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, Field, field_validator, model_validator

from savings_planner.base import generate_id, utcnow
from savings_planner.config import settings


class Currency(str, Enum):
    """Supported goal currencies."""
    INR = "INR"
    USD = "USD"


BASE_CURRENCY = Currency(settings.BASE_CURRENCY)
FOREIGN_CURRENCY = Currency(settings.FOREIGN_CURRENCY)


def _coerce_datetime(value):
    # Stored timestamps come from JS toISOString() ("...Z") or datetime.isoformat()
    if isinstance(value, str):
        value = isoparse(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class Contribution(BaseModel):
    """A single saving entry against a goal.

    `date` is when the saving happened, `timestamp` is when it was recorded.
    """
    id: str = Field(default_factory=lambda: generate_id("contrib"))
    amount: float = Field(..., gt=0)
    date: date
    timestamp: datetime = Field(default_factory=utcnow)
    notes: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        return str(value)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return isoparse(value).date()
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value):
        return _coerce_datetime(value)


class Goal(BaseModel):
    """A savings goal and its contribution history.

    `saved` is always the sum of contribution amounts; it is recomputed,
    never edited directly.
    """
    id: str = Field(default_factory=lambda: generate_id("goal"))
    name: str
    target: float = Field(..., gt=0)
    currency: Currency
    saved: float = 0.0
    contributions: List[Contribution] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        return str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value):
        return _coerce_datetime(value)

    @model_validator(mode="after")
    def _derive_saved(self):
        self.saved = sum_contributions(self.contributions)
        return self

    @property
    def created_on(self) -> date:
        """Earliest valid contribution date."""
        return self.created_at.date()

    @property
    def is_completed(self) -> bool:
        return self.saved >= self.target

    def to_storage(self) -> dict:
        """Serialize with the camelCase keys used by stored and exported data."""
        return self.model_dump(mode="json", by_alias=True)


def sum_contributions(contributions: List[Contribution]) -> float:
    """Total of all contribution amounts."""
    return float(sum(c.amount for c in contributions))
