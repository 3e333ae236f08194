"""Pydantic schemas for goal and contribution input validation."""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from savings_planner.goals.models import Currency, Goal

GOAL_NAME_MIN_LENGTH = 2
GOAL_NAME_MAX_LENGTH = 50
MAX_GOAL_TARGET = 10_000_000
MAX_CONTRIBUTION_AMOUNT = 1_000_000
MAX_NOTES_LENGTH = 200


class GoalCreate(BaseModel):
    """Schema for creating a goal."""
    name: str
    target: float
    currency: Currency = Currency.INR

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Goal name is required")
        if len(value) < GOAL_NAME_MIN_LENGTH:
            raise ValueError(f"Goal name must be at least {GOAL_NAME_MIN_LENGTH} characters")
        if len(value) > GOAL_NAME_MAX_LENGTH:
            raise ValueError(f"Goal name must be at most {GOAL_NAME_MAX_LENGTH} characters")
        return value

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: float) -> float:
        if value != value:  # NaN
            raise ValueError("Please enter a valid number")
        if value <= 0:
            raise ValueError("Target amount must be greater than 0")
        if value > MAX_GOAL_TARGET:
            raise ValueError("Target amount is too large")
        return value


def goal_bound_errors(goal: Goal) -> Dict[str, str]:
    """Creation limits re-checked on goals that arrive from storage or an import file."""
    errors: Dict[str, str] = {}
    name_length = len(goal.name.strip())
    if not GOAL_NAME_MIN_LENGTH <= name_length <= GOAL_NAME_MAX_LENGTH:
        errors["name"] = f"Goal name must be {GOAL_NAME_MIN_LENGTH}-{GOAL_NAME_MAX_LENGTH} characters"
    if goal.target > MAX_GOAL_TARGET:
        errors["target"] = "Target amount is too large"
    return errors


class ContributionCreate(BaseModel):
    """Schema for adding a contribution.

    The date window depends on the goal, so the ledger checks it.
    """
    amount: float
    date: date
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: float) -> float:
        if value != value:
            raise ValueError("Please enter a valid number")
        if value <= 0:
            raise ValueError("Contribution amount must be greater than 0")
        if value > MAX_CONTRIBUTION_AMOUNT:
            raise ValueError("Contribution amount is too large")
        return value


class ContributionResponse(BaseModel):
    """Schema for contribution response."""
    id: str
    amount: float
    date: date
    timestamp: datetime
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class GoalResponse(BaseModel):
    """Schema for goal response."""
    id: str
    name: str
    target: float
    currency: Currency
    saved: float
    created_at: datetime
    contributions: List[ContributionResponse]

    model_config = {"from_attributes": True}


class MutationResponse(BaseModel):
    """Wraps a mutation result with any non-blocking warnings."""
    goal: Optional[GoalResponse] = None
    deleted: Optional[bool] = None
    newly_unlocked_achievements: List[str] = []
    warnings: List[str] = []
