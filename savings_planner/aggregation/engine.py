"""
Aggregation Engine - normalizes goals into the base currency.

Foreign-currency figures are multiplied by the effective rate; base-currency
figures pass through. All portfolio totals are in the base currency.
"""
import math
from typing import Iterable, Tuple

from savings_planner.aggregation.schemas import GoalProgress, PortfolioTotals
from savings_planner.errors import ValidationError
from savings_planner.goals.models import BASE_CURRENCY, FOREIGN_CURRENCY, Currency, Goal


def _check_rate(rate: float) -> None:
    if rate is None or not math.isfinite(rate) or rate <= 0:
        raise ValidationError({"rate": "Exchange rate is unavailable"})


def to_base(amount: float, currency: Currency, rate: float) -> float:
    """Convert an amount into the base currency."""
    if currency == BASE_CURRENCY:
        return amount
    _check_rate(rate)
    return amount * rate


def convert_for_display(amount: float, from_currency: Currency, rate: float) -> Tuple[float, Currency]:
    """
    Convert an amount into the other supported currency.

    FOREIGN -> BASE multiplies by the rate, BASE -> FOREIGN divides.
    A zero or invalid rate raises ValidationError instead of yielding inf/NaN.
    """
    _check_rate(rate)
    if from_currency == FOREIGN_CURRENCY:
        return amount * rate, BASE_CURRENCY
    return amount / rate, FOREIGN_CURRENCY


def totals(goals: Iterable[Goal], effective_rate: float) -> PortfolioTotals:
    """Sum targets and savings across goals in the base currency."""
    total_target = 0.0
    total_saved = 0.0
    for goal in goals:
        total_target += to_base(goal.target, goal.currency, effective_rate)
        total_saved += to_base(goal.saved, goal.currency, effective_rate)

    overall_progress = (total_saved / total_target * 100) if total_target > 0 else 0.0

    return PortfolioTotals(
        total_target=total_target,
        total_saved=total_saved,
        overall_progress_pct=overall_progress,
        base_currency=BASE_CURRENCY,
    )


def goal_progress(goal: Goal, effective_rate: float) -> GoalProgress:
    """Progress, remaining amount and converted target for one goal."""
    progress = (goal.saved / goal.target * 100) if goal.target > 0 else 0.0
    converted_target, converted_currency = convert_for_display(goal.target, goal.currency, effective_rate)

    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        currency=goal.currency,
        target=goal.target,
        saved=goal.saved,
        remaining=max(goal.target - goal.saved, 0.0),
        progress_pct=progress,
        is_completed=goal.is_completed,
        contributions_count=len(goal.contributions),
        converted_target=converted_target,
        converted_currency=converted_currency,
    )
