"""
Tests for the savings session: load/save ordering, persistence after
mutations, rate refresh handling and import/clear.
"""

import httpx
import pytest

from savings_planner.database import Base
from savings_planner.rates.cache import SOURCE_FALLBACK, SOURCE_PROVIDER, ExchangeRateCache
from savings_planner.rates.refresher import RateRefresher
from savings_planner.session import RATE_WARNING, STORAGE_WARNING, SavingsSession


@pytest.fixture
def failing_session(session_factory, fetcher_factory, clock):
    """Session whose provider always answers HTTP 500."""
    fetcher = fetcher_factory(lambda request: httpx.Response(500))
    cache = ExchangeRateCache(ttl_seconds=3600, fallback_rate=83.5)
    refresher = RateRefresher(fetcher, cache, api_key="test-key", use_backup=False, clock=clock)
    return session_factory(refresher)


# =============================================================================
# Lifecycle
# =============================================================================

class TestLifecycle:
    """Tests for load ordering."""

    def test_mutation_before_load_is_refused(self, gateway, refresher, clock):
        session = SavingsSession(gateway=gateway, refresher=refresher, clock=clock)

        with pytest.raises(RuntimeError):
            session.create_goal("Vacation", 1000, "INR")

        assert gateway.load().goals == []

    def test_load_restores_previous_state(self, session, gateway, refresher, clock):
        goal, _ = session.create_goal("Vacation", 1000, "INR")
        session.add_contribution(goal.id, 250, clock.now.date())

        restored = SavingsSession(gateway=gateway, refresher=refresher, clock=clock)
        restored.load()

        assert [g.id for g in restored.goals] == [goal.id]
        assert restored.goals[0].saved == 250
        assert "first_goal" in restored.tracker.unlocked

    def test_load_evaluates_achievements(self, session, gateway, refresher, clock):
        goal, _ = session.create_goal("Vacation", 100, "INR")
        session.add_contribution(goal.id, 100, clock.now.date())
        gateway.save(unlocked_achievement_ids=[])

        restored = SavingsSession(gateway=gateway, refresher=refresher, clock=clock)
        restored.load()

        assert "goal_crusher" in gateway.load().unlocked_achievement_ids


# =============================================================================
# Mutations
# =============================================================================

class TestMutations:
    """Tests for synchronous persistence after each mutation."""

    def test_create_goal_persists_and_unlocks(self, session, gateway):
        goal, update = session.create_goal("Vacation", 1000, "INR")

        state = gateway.load()
        assert [g.id for g in state.goals] == [goal.id]
        assert update.newly_unlocked == ["first_goal"]
        assert state.unlocked_achievement_ids == ["first_goal"]

    def test_contribution_persists(self, session, gateway, clock):
        goal, _ = session.create_goal("Vacation", 1000, "INR")

        session.add_contribution(goal.id, 400, clock.now.date(), notes="salary")

        stored = gateway.load().goals[0]
        assert stored.saved == 400
        assert stored.contributions[0].notes == "salary"

    def test_persistent_achievement_survives_delete(self, session, gateway, clock):
        goal, _ = session.create_goal("Gift", 100, "INR")
        _, update = session.add_contribution(goal.id, 100, clock.now.date())
        assert "goal_crusher" in update.newly_unlocked

        deleted, update = session.delete_goal(goal.id)

        assert deleted is True
        assert update.revoked == ["first_goal"]
        assert gateway.load().unlocked_achievement_ids == ["goal_crusher"]

    def test_delete_unknown_goal_is_noop(self, session):
        deleted, update = session.delete_goal("goal_missing")

        assert deleted is False
        assert update.changed is False

    def test_storage_failure_becomes_warning(self, session, database):
        Base.metadata.drop_all(database.engine)

        goal, _ = session.create_goal("Vacation", 1000, "INR")

        assert session.goals == [goal]
        assert session.drain_warnings() == [STORAGE_WARNING]
        assert session.drain_warnings() == []


# =============================================================================
# Exchange rate
# =============================================================================

class TestRateRefresh:
    """Tests for rate refresh through the session."""

    @pytest.mark.asyncio
    async def test_refresh_persists_rate(self, session, gateway, clock):
        result = await session.refresh_rate()

        assert result.updated is True
        assert session.effective_rate() == 83.0
        assert session.rate_is_fresh() is True
        snapshot = gateway.load().rate_snapshot
        assert snapshot.rate == 83.0
        assert snapshot.fetched_at == clock.now

    @pytest.mark.asyncio
    async def test_failure_uses_fallback_and_warns(self, failing_session, gateway):
        result = await failing_session.refresh_rate()

        assert result.used_fallback is True
        assert failing_session.effective_rate() == 83.5
        assert failing_session.drain_warnings() == [RATE_WARNING]
        assert gateway.load().rate_snapshot is None

    @pytest.mark.asyncio
    async def test_ensure_fresh_rate_only_when_stale(self, session, clock, provider_requests):
        await session.ensure_fresh_rate()
        assert await session.ensure_fresh_rate() is None
        assert len(provider_requests) == 1

        clock.advance(hours=1, seconds=1)
        result = await session.ensure_fresh_rate()

        assert result.updated is True
        assert len(provider_requests) == 2

    @pytest.mark.asyncio
    async def test_stored_rate_is_restored(self, session, gateway, refresher, clock):
        await session.refresh_rate()

        restored = SavingsSession(
            gateway=gateway,
            refresher=RateRefresher(refresher.fetcher, ExchangeRateCache(3600, 83.5), clock=clock),
            clock=clock,
        )
        restored.load()

        assert restored.effective_rate() == 83.0
        assert restored.rate_snapshot.source != SOURCE_PROVIDER
        assert restored.rate_snapshot.source != SOURCE_FALLBACK

    @pytest.mark.asyncio
    async def test_rate_change_moves_totals(self, session, clock):
        session.create_goal("Flight", 100, "USD")
        session.cache.set(80.0, clock.now)
        assert session.totals().total_target == 8000

        await session.refresh_rate()

        assert session.totals().total_target == 8300


# =============================================================================
# Import / clear
# =============================================================================

class TestImportAndClear:
    """Tests for replace-all import and reset."""

    def test_import_replaces_goals(self, session, gateway):
        session.create_goal("Old", 1000, "INR")
        payload = {
            "goals": [{"id": "g1", "name": "Bike", "target": 300, "currency": "USD", "saved": 50,
                       "createdAt": "2026-05-01T10:00:00Z"}],
            "exchangeRate": 82.0,
        }

        result = session.import_data(payload)

        assert result.ok
        assert [g.name for g in session.goals] == ["Bike"]
        assert session.effective_rate() == 82.0
        assert [g.id for g in gateway.load().goals] == ["g1"]

    def test_rejected_import_changes_nothing(self, session, gateway):
        goal, _ = session.create_goal("Keep", 1000, "INR")

        result = session.import_data({"goals": [{"name": "Broken"}]})

        assert not result.ok
        assert session.goals == [goal]
        assert [g.id for g in gateway.load().goals] == [goal.id]

    @pytest.mark.asyncio
    async def test_import_keeps_existing_rate(self, session):
        await session.refresh_rate()

        session.import_data({"goals": [], "exchangeRate": 70.0})

        assert session.effective_rate() == 83.0

    def test_clear_all(self, session, gateway, clock):
        goal, _ = session.create_goal("Vacation", 100, "INR")
        session.add_contribution(goal.id, 100, clock.now.date())

        session.clear_all()

        assert session.goals == []
        assert session.rate_snapshot is None
        assert session.tracker.unlocked == []
        state = gateway.load()
        assert state.goals == []
        assert state.unlocked_achievement_ids == []

    def test_import_with_infinite_rate_commits_goals(self, session, gateway):
        payload = (
            '{"goals": [{"id": "g1", "name": "Bike", "target": 300, "currency": "USD", "saved": 0}],'
            ' "exchangeRate": Infinity}'
        )

        result = session.import_data(payload)

        assert result.ok
        assert session.effective_rate() == 83.5
        assert session.rate_snapshot is None
        assert [g.id for g in gateway.load().goals] == ["g1"]
        assert session.totals().total_target == 300 * 83.5


# =============================================================================
# Non-finite rates
# =============================================================================

class TestNonFiniteProviderRate:
    """A provider answering Infinity must not poison later mutations."""

    @pytest.mark.asyncio
    async def test_goals_still_persist(self, session_factory, fetcher_factory, clock, gateway):
        body = b'{"result": "success", "conversion_rates": {"INR": Infinity}}'
        fetcher = fetcher_factory(lambda request: httpx.Response(200, content=body))
        cache = ExchangeRateCache(ttl_seconds=3600, fallback_rate=83.5)
        session = session_factory(RateRefresher(fetcher, cache, api_key="key", use_backup=False, clock=clock))

        result = await session.refresh_rate()
        goal, _ = session.create_goal("Trip", 100, "USD")

        assert result.updated is False
        assert session.effective_rate() == 83.5
        assert [g.id for g in gateway.load().goals] == [goal.id]
        assert gateway.load().rate_snapshot is None
