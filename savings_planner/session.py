"""
Savings Session - application state and its load/save boundary.

Owns the ledger, rate cache and achievement tracker for one user on one
device. Every ledger mutation is persisted synchronously before the call
returns; storage failures become warnings instead of exceptions because the
in-memory ledger stays authoritative until the next load.
"""
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from savings_planner.achievements.models import AchievementContext, AchievementResponse
from savings_planner.achievements.tracker import AchievementTracker, AchievementUpdate
from savings_planner.aggregation import engine as aggregation
from savings_planner.aggregation.schemas import GoalProgress, PortfolioTotals
from savings_planner.base import utcnow
from savings_planner.errors import StorageError
from savings_planner.exports.service import ImportResult, export_csv, export_json, parse_import
from savings_planner.exports.templates import build_progress_report
from savings_planner.goals.ledger import GoalLedger
from savings_planner.goals.models import Currency, Goal
from savings_planner.insights.engine import calculate_insights
from savings_planner.insights.schemas import GoalInsights
from savings_planner.rates.cache import SOURCE_FALLBACK, SOURCE_STORAGE, ExchangeRateCache, RateSnapshot
from savings_planner.rates.refresher import RateRefresher, RefreshResult
from savings_planner.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

STORAGE_WARNING = "Changes may not be saved"
RATE_WARNING = "Failed to fetch exchange rate"


class SavingsSession:
    """Coordinates the ledger, rate cache, achievements and persistence."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        refresher: RateRefresher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = gateway
        self.refresher = refresher
        self.cache: ExchangeRateCache = refresher.cache
        self.ledger = GoalLedger(clock=clock)
        self.tracker = AchievementTracker()
        self._clock = clock
        self._loaded = False
        self._warnings: List[str] = []

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        """Restore state from storage. Must complete before anything is saved."""
        state = self.gateway.load()
        self.ledger.replace_all(state.goals)
        if state.rate_snapshot is not None:
            self.cache.set(state.rate_snapshot.rate, state.rate_snapshot.fetched_at, state.rate_snapshot.source)
        else:
            self.cache.clear()
        self.tracker.reset(state.unlocked_achievement_ids)
        self._loaded = True
        # Catalogue or goal changes since the last session may shift the unlocked set
        self._evaluate_achievements()

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("Session must be loaded before it can be modified")

    def _persist(self, **parts: Any) -> None:
        try:
            self.gateway.save(**parts)
        except StorageError as e:
            logger.error(f"Failed to save data locally: {e}")
            self._warn(STORAGE_WARNING)

    def _warn(self, message: str) -> None:
        if message not in self._warnings:
            self._warnings.append(message)

    def drain_warnings(self) -> List[str]:
        """Return pending non-blocking notices and clear them."""
        warnings, self._warnings = self._warnings, []
        return warnings

    def today(self) -> date:
        return self._clock().date()

    # =========================================================================
    # Goals
    # =========================================================================

    @property
    def goals(self) -> List[Goal]:
        return list(self.ledger.goals)

    def get_goal(self, goal_id: str) -> Goal:
        return self.ledger.get_goal(goal_id)

    def create_goal(self, name: str, target: float, currency: Union[Currency, str]) -> tuple[Goal, AchievementUpdate]:
        self._require_loaded()
        goal = self.ledger.create_goal(name, target, currency)
        return goal, self._after_goals_changed()

    def add_contribution(
        self,
        goal_id: str,
        amount: float,
        contribution_date: date,
        notes: Optional[str] = None,
    ) -> tuple[Goal, AchievementUpdate]:
        self._require_loaded()
        goal = self.ledger.add_contribution(goal_id, amount, contribution_date, notes)
        return goal, self._after_goals_changed()

    def delete_goal(self, goal_id: str) -> tuple[bool, AchievementUpdate]:
        self._require_loaded()
        removed = self.ledger.delete_goal(goal_id)
        if not removed:
            return False, AchievementUpdate(unlocked=self.tracker.unlocked)
        return True, self._after_goals_changed()

    def _after_goals_changed(self) -> AchievementUpdate:
        update = self._evaluate_achievements(persist=False)
        parts: Dict[str, Any] = {"goals": self.ledger.goals}
        if update.changed:
            parts["unlocked_achievement_ids"] = update.unlocked
        self._persist(**parts)
        return update

    def _evaluate_achievements(self, persist: bool = True) -> AchievementUpdate:
        ctx = AchievementContext(
            goals=self.ledger.goals,
            effective_rate=self.cache.effective_rate(),
            today=self.today(),
        )
        update = self.tracker.evaluate(ctx)
        if persist and update.changed:
            self._persist(unlocked_achievement_ids=update.unlocked)
        return update

    # =========================================================================
    # Exchange rate
    # =========================================================================

    @property
    def rate_snapshot(self) -> Optional[RateSnapshot]:
        return self.cache.get()

    def effective_rate(self) -> float:
        return self.cache.effective_rate()

    def rate_is_fresh(self) -> bool:
        return self.cache.is_fresh(self.cache.get(), self._clock())

    async def refresh_rate(self) -> RefreshResult:
        """Fetch a new rate; provider failures become a banner warning."""
        result = await self.refresher.refresh()
        if result.skipped:
            return result
        if result.error is not None:
            self._warn(RATE_WARNING)
        elif result.snapshot is not None and result.snapshot.source != SOURCE_FALLBACK:
            self._persist(rate_snapshot=result.snapshot)
        return result

    async def ensure_fresh_rate(self) -> Optional[RefreshResult]:
        """Refresh only when the cached rate is absent or stale."""
        if not self.cache.needs_refresh(self._clock()):
            return None
        return await self.refresh_rate()

    # =========================================================================
    # Derived views
    # =========================================================================

    def totals(self) -> PortfolioTotals:
        return aggregation.totals(self.ledger.goals, self.effective_rate())

    def goal_progress(self) -> List[GoalProgress]:
        rate = self.effective_rate()
        return [aggregation.goal_progress(goal, rate) for goal in self.ledger.goals]

    def insights(self) -> GoalInsights:
        return calculate_insights(self.ledger.goals, self.effective_rate(), self.today())

    def achievements(self) -> List[AchievementResponse]:
        return self.tracker.describe()

    # =========================================================================
    # Export / import
    # =========================================================================

    def export_json(self) -> str:
        snapshot = self.cache.get()
        return export_json(self.ledger.goals, snapshot.rate if snapshot else None, self._clock())

    def export_csv(self) -> str:
        return export_csv(self.ledger.goals)

    def export_report(self) -> tuple[str, str]:
        return build_progress_report(self.ledger.goals, self.effective_rate(), self._clock())

    def import_data(self, payload: Union[str, bytes, Dict[str, Any]]) -> ImportResult:
        """Replace all goals with an imported set. Nothing changes on rejection."""
        self._require_loaded()
        result = parse_import(payload)
        if not result.ok:
            return result

        adopt_rate = result.exchange_rate is not None and self.cache.get() is None
        rate = result.exchange_rate if adopt_rate else self.cache.effective_rate()
        # Evaluate against the incoming goals first; the ledger and cache change only afterwards
        update = self.tracker.evaluate(
            AchievementContext(goals=tuple(result.goals), effective_rate=rate, today=self.today())
        )

        self.ledger.replace_all(result.goals)
        parts: Dict[str, Any] = {}
        if adopt_rate:
            parts["rate_snapshot"] = self.cache.set(rate, self._clock(), SOURCE_STORAGE)
        self._persist(goals=self.ledger.goals, unlocked_achievement_ids=update.unlocked, **parts)
        logger.info(f"Imported {len(result.goals)} goal(s)")
        return result

    def clear_all(self) -> None:
        """Wipe goals, the cached rate and achievements from memory and storage."""
        self._require_loaded()
        self.ledger.clear()
        self.cache.clear()
        self.tracker.reset()
        try:
            self.gateway.clear()
        except StorageError as e:
            logger.error(f"Failed to clear local storage: {e}")
            self._warn(STORAGE_WARNING)
        logger.info("Cleared all savings data")
