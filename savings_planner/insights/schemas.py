"""Pydantic schemas for insights API responses."""
from datetime import date
from typing import Optional

from pydantic import BaseModel


class GoalInsights(BaseModel):
    """Derived savings analytics. All money figures are in the base currency."""
    avg_contribution: float
    days_active: int
    streak: int
    projected_completion: Optional[date] = None
    suggested_monthly: int

    # Summary metrics
    total_contributions: int
    total_contribution_value: float
    total_saved: float
    total_target: float
    overall_progress_pct: float
