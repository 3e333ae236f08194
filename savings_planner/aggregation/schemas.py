"""Pydantic schemas for portfolio aggregation results."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from savings_planner.goals.models import Currency


class PortfolioTotals(BaseModel):
    """Portfolio totals expressed in the base currency."""
    total_target: float
    total_saved: float
    overall_progress_pct: float
    base_currency: Currency


class GoalProgress(BaseModel):
    """Progress figures for a single goal in its own currency."""
    goal_id: str
    name: str
    currency: Currency
    target: float
    saved: float
    remaining: float
    progress_pct: float
    is_completed: bool
    contributions_count: int

    # Target shown in the other currency
    converted_target: float
    converted_currency: Currency


class DashboardResponse(BaseModel):
    """Totals, per-goal progress and the rate they were computed with."""
    totals: PortfolioTotals
    goals: List[GoalProgress]
    exchange_rate: float
    rate_fetched_at: Optional[datetime] = None
    rate_is_fresh: bool
    warnings: List[str] = []
