"""
Insights Engine - computes savings analytics from the goal ledger.

Read-only and recomputed on every call:
1. Contribution behaviour: average size, active span, daily streak
2. Projection: estimated completion date at the current daily pace
3. Planning: suggested monthly contribution to close the gap in a year
"""
import math
from datetime import date, timedelta
from typing import Iterable, List, Set, Tuple

from savings_planner.aggregation.engine import to_base, totals
from savings_planner.goals.models import Contribution, Goal
from savings_planner.insights.schemas import GoalInsights

STREAK_LOOKBACK_DAYS = 30
SUGGESTION_MONTHS = 12


def _contributions_with_currency(goals: Iterable[Goal]) -> List[Tuple[Contribution, Goal]]:
    return [(contribution, goal) for goal in goals for contribution in goal.contributions]


def calculate_streak(contribution_dates: Set[date], today: date, lookback: int = STREAK_LOOKBACK_DAYS) -> int:
    """Consecutive days with a contribution, counting back from today."""
    streak = 0
    for offset in range(lookback):
        if today - timedelta(days=offset) in contribution_dates:
            streak += 1
        else:
            break
    return streak


def calculate_insights(goals: Iterable[Goal], effective_rate: float, today: date) -> GoalInsights:
    """Compute insights for the whole ledger."""
    goals = list(goals)
    portfolio = totals(goals, effective_rate)
    entries = _contributions_with_currency(goals)

    if not entries:
        return GoalInsights(
            avg_contribution=0.0,
            days_active=0,
            streak=0,
            projected_completion=None,
            suggested_monthly=0,
            total_contributions=0,
            total_contribution_value=0.0,
            total_saved=portfolio.total_saved,
            total_target=portfolio.total_target,
            overall_progress_pct=portfolio.overall_progress_pct,
        )

    total_value = sum(to_base(c.amount, goal.currency, effective_rate) for c, goal in entries)
    avg_contribution = total_value / len(entries)

    dates = [c.date for c, _ in entries]
    days_active = max(1, (max(dates) - min(dates)).days + 1)

    daily_rate = total_value / days_active
    remaining = portfolio.total_target - portfolio.total_saved

    projected_completion = None
    if remaining > 0 and daily_rate > 0:
        days_to_go = math.ceil(remaining / daily_rate)
        # Horizons past the calendar have no date
        if days_to_go <= (date.max - today).days:
            projected_completion = today + timedelta(days=days_to_go)

    suggested_monthly = math.ceil(remaining / SUGGESTION_MONTHS) if remaining > 0 else 0

    return GoalInsights(
        avg_contribution=avg_contribution,
        days_active=days_active,
        streak=calculate_streak(set(dates), today),
        projected_completion=projected_completion,
        suggested_monthly=suggested_monthly,
        total_contributions=len(entries),
        total_contribution_value=total_value,
        total_saved=portfolio.total_saved,
        total_target=portfolio.total_target,
        overall_progress_pct=portfolio.overall_progress_pct,
    )
