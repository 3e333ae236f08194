"""
Tests for the Insights Engine.

Covers streak counting, active span, projections and the monthly
suggestion, all in the base currency.
"""

import math
from datetime import date, datetime, timedelta, timezone

import pytest

from savings_planner.goals.models import Contribution, Currency, Goal
from savings_planner.insights.engine import calculate_insights, calculate_streak

TODAY = date(2026, 10, 17)


def make_goal(target, currency, contributions):
    return Goal(
        name="Goal",
        target=target,
        currency=currency,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        contributions=[Contribution(amount=amount, date=day) for amount, day in contributions],
    )


def days_ago(n):
    return TODAY - timedelta(days=n)


# =============================================================================
# Streak
# =============================================================================

class TestStreak:
    """Tests for consecutive-day streaks."""

    def test_gap_breaks_streak(self):
        dates = {TODAY, days_ago(1), days_ago(3)}
        assert calculate_streak(dates, TODAY) == 2

    def test_no_contribution_today_means_zero(self):
        dates = {days_ago(1), days_ago(2)}
        assert calculate_streak(dates, TODAY) == 0

    def test_streak_capped_by_lookback(self):
        dates = {days_ago(n) for n in range(45)}
        assert calculate_streak(dates, TODAY) == 30

    def test_multiple_contributions_same_day_count_once(self):
        goal = make_goal(1000, Currency.INR, [(10, TODAY), (20, TODAY), (30, days_ago(1))])

        assert calculate_insights([goal], 80, TODAY).streak == 2


# =============================================================================
# Insights
# =============================================================================

class TestCalculateInsights:
    """Tests for the full insights computation."""

    def test_empty_ledger_yields_zeros(self):
        insights = calculate_insights([], 83.5, TODAY)

        assert insights.avg_contribution == 0
        assert insights.days_active == 0
        assert insights.streak == 0
        assert insights.projected_completion is None
        assert insights.suggested_monthly == 0
        assert insights.total_contributions == 0

    def test_goals_without_contributions(self):
        insights = calculate_insights([make_goal(1200, Currency.INR, [])], 80, TODAY)

        assert insights.total_target == 1200
        assert insights.projected_completion is None
        assert insights.days_active == 0

    def test_single_day_span_is_one_day(self):
        goal = make_goal(1000, Currency.INR, [(100, TODAY)])

        insights = calculate_insights([goal], 80, TODAY)

        assert insights.days_active == 1
        assert insights.avg_contribution == 100

    def test_span_is_inclusive(self):
        goal = make_goal(10000, Currency.INR, [(100, days_ago(9)), (100, TODAY)])

        assert calculate_insights([goal], 80, TODAY).days_active == 10

    def test_projection_and_suggestion(self):
        # 1000 saved over 10 days -> 100/day; 11000 remaining -> 110 days
        goal = make_goal(12000, Currency.INR, [(500, days_ago(9)), (500, TODAY)])

        insights = calculate_insights([goal], 80, TODAY)

        assert insights.projected_completion == TODAY + timedelta(days=110)
        assert insights.suggested_monthly == 917

    def test_foreign_contributions_are_converted(self):
        inr = make_goal(1000, Currency.INR, [(200, TODAY)])
        usd = make_goal(100, Currency.USD, [(10, TODAY)])

        insights = calculate_insights([inr, usd], 80, TODAY)

        assert insights.total_contribution_value == 1000
        assert insights.avg_contribution == 500
        assert insights.total_saved == 1000
        assert insights.total_target == 9000

    def test_completed_portfolio_has_no_projection(self):
        goal = make_goal(100, Currency.INR, [(150, TODAY)])

        insights = calculate_insights([goal], 80, TODAY)

        assert insights.projected_completion is None
        assert insights.suggested_monthly == 0
        assert insights.overall_progress_pct == pytest.approx(150.0)

    def test_projection_beyond_calendar_is_none(self):
        # 1 INR in a single day against a 10,000,000 target
        goal = make_goal(10_000_000, Currency.INR, [(1, TODAY)])

        insights = calculate_insights([goal], 83.5, TODAY)

        assert insights.projected_completion is None
        assert insights.suggested_monthly == math.ceil((10_000_000 - 1) / 12)
        assert insights.days_active == 1

    def test_projection_on_last_representable_day(self):
        horizon = (date.max - TODAY).days
        goal = make_goal(horizon + 1, Currency.INR, [(1, TODAY)])

        insights = calculate_insights([goal], 80, TODAY)

        assert insights.projected_completion == date.max
