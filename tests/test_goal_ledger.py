"""
Tests for the Goal Ledger.

Covers goal creation rules, contribution append and date window,
the saved == sum(contributions) invariant, and idempotent deletion.
"""

import pytest
from datetime import timedelta

from savings_planner.errors import NotFoundError, ValidationError
from savings_planner.goals.ledger import GoalLedger
from savings_planner.goals.models import Currency


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def ledger(clock):
    return GoalLedger(clock=clock)


@pytest.fixture
def goal(ledger):
    return ledger.create_goal("Emergency Fund", 50000, Currency.INR)


# =============================================================================
# Goal creation
# =============================================================================

class TestCreateGoal:
    """Tests for goal creation."""

    def test_creates_goal_with_defaults(self, ledger, clock):
        goal = ledger.create_goal("  Vacation  ", 2000, "USD")

        assert goal.name == "Vacation"
        assert goal.target == 2000
        assert goal.currency == Currency.USD
        assert goal.saved == 0
        assert goal.contributions == []
        assert goal.created_at == clock.now
        assert goal.id.startswith("goal_")
        assert ledger.goals == (goal,)

    def test_ids_are_unique(self, ledger):
        ids = {ledger.create_goal(f"Goal {i}", 100, Currency.INR).id for i in range(20)}
        assert len(ids) == 20

    @pytest.mark.parametrize("name", ["", "   ", "a", " b ", "x" * 51])
    def test_rejects_bad_names(self, ledger, name):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_goal(name, 1000, Currency.INR)

        assert "name" in exc_info.value.errors
        assert len(ledger) == 0

    @pytest.mark.parametrize("name", ["ab", "x" * 50])
    def test_accepts_name_length_bounds(self, ledger, name):
        assert ledger.create_goal(name, 1000, Currency.INR).name == name

    @pytest.mark.parametrize("target", [0, -1, 10_000_000.01, float("nan")])
    def test_rejects_bad_targets(self, ledger, target):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_goal("House", target, Currency.INR)

        assert "target" in exc_info.value.errors
        assert len(ledger) == 0

    def test_accepts_max_target(self, ledger):
        assert ledger.create_goal("House", 10_000_000, Currency.INR).target == 10_000_000

    def test_rejects_unknown_currency(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_goal("Trip", 1000, "EUR")

        assert "currency" in exc_info.value.errors

    def test_error_messages_are_field_feedback(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_goal("a", 1000, Currency.INR)

        assert exc_info.value.errors["name"] == "Goal name must be at least 2 characters"


# =============================================================================
# Contributions
# =============================================================================

class TestAddContribution:
    """Tests for contribution append."""

    def test_appends_and_recomputes_saved(self, ledger, goal, clock):
        today = clock.now.date()
        ledger.add_contribution(goal.id, 1000, today)
        ledger.add_contribution(goal.id, 250.5, today)
        updated = ledger.add_contribution(goal.id, 0.1, today, notes="coins")

        assert [c.amount for c in updated.contributions] == [1000, 250.5, 0.1]
        assert updated.saved == pytest.approx(1250.6)
        assert updated.contributions[-1].notes == "coins"
        assert ledger.get_goal(goal.id) == updated

    def test_saved_matches_sum_after_many_additions(self, ledger, goal, clock):
        today = clock.now.date()
        for amount in [0.1, 0.2, 0.3, 1234.56, 99.99] * 10:
            ledger.add_contribution(goal.id, amount, today)

        stored = ledger.get_goal(goal.id)
        assert stored.saved == pytest.approx(sum(c.amount for c in stored.contributions))
        assert len(stored.contributions) == 50

    def test_records_timestamp_separately_from_date(self, ledger, goal, clock):
        clock.advance(days=3)
        updated = ledger.add_contribution(goal.id, 500, clock.now.date() - timedelta(days=2))

        contribution = updated.contributions[0]
        assert contribution.date == clock.now.date() - timedelta(days=2)
        assert contribution.timestamp == clock.now

    def test_contribution_ids_unique_within_goal(self, ledger, goal, clock):
        for _ in range(10):
            ledger.add_contribution(goal.id, 10, clock.now.date())

        ids = [c.id for c in ledger.get_goal(goal.id).contributions]
        assert len(set(ids)) == 10

    def test_unknown_goal_raises_not_found(self, ledger, clock):
        with pytest.raises(NotFoundError):
            ledger.add_contribution("goal_missing", 100, clock.now.date())

    @pytest.mark.parametrize("amount", [0, -10, 1_000_000.01])
    def test_rejects_bad_amounts(self, ledger, goal, clock, amount):
        with pytest.raises(ValidationError) as exc_info:
            ledger.add_contribution(goal.id, amount, clock.now.date())

        assert "amount" in exc_info.value.errors
        assert ledger.get_goal(goal.id).contributions == []

    def test_accepts_max_amount(self, ledger, goal, clock):
        updated = ledger.add_contribution(goal.id, 1_000_000, clock.now.date())
        assert updated.saved == 1_000_000

    def test_rejects_future_date(self, ledger, goal, clock):
        with pytest.raises(ValidationError) as exc_info:
            ledger.add_contribution(goal.id, 100, clock.now.date() + timedelta(days=1))

        assert exc_info.value.errors["date"] == "Date cannot be in the future"

    def test_rejects_date_before_goal_creation(self, ledger, goal, clock):
        with pytest.raises(ValidationError) as exc_info:
            ledger.add_contribution(goal.id, 100, goal.created_on - timedelta(days=1))

        assert "before goal creation" in exc_info.value.errors["date"]

    def test_accepts_window_bounds(self, ledger, goal, clock):
        clock.advance(days=10)
        ledger.add_contribution(goal.id, 100, goal.created_on)
        updated = ledger.add_contribution(goal.id, 100, clock.now.date())

        assert updated.saved == 200

    def test_failed_validation_leaves_ledger_unchanged(self, ledger, goal, clock):
        ledger.add_contribution(goal.id, 100, clock.now.date())
        before = ledger.get_goal(goal.id)

        with pytest.raises(ValidationError):
            ledger.add_contribution(goal.id, -1, clock.now.date())

        assert ledger.get_goal(goal.id) == before


# =============================================================================
# Deletion
# =============================================================================

class TestDeleteGoal:
    """Tests for goal deletion."""

    def test_removes_goal_and_contributions(self, ledger, goal, clock):
        ledger.add_contribution(goal.id, 100, clock.now.date())
        other = ledger.create_goal("Car", 5000, Currency.USD)

        assert ledger.delete_goal(goal.id) is True
        assert ledger.goals == (other,)
        with pytest.raises(NotFoundError):
            ledger.get_goal(goal.id)

    def test_unknown_id_is_noop(self, ledger, goal):
        before = ledger.goals

        assert ledger.delete_goal("goal_missing") is False
        assert ledger.goals == before

    def test_repeated_deletion_behaves_identically(self, ledger, goal):
        ledger.delete_goal(goal.id)
        state_after_first = ledger.goals

        assert ledger.delete_goal(goal.id) is False
        assert ledger.delete_goal(goal.id) is False
        assert ledger.goals == state_after_first
